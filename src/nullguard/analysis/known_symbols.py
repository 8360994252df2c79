"""
Known Symbols.

An immutable snapshot of the helper declarations the rule looks for, resolved once
per compilation and passed explicitly into matching and analysis.
"""

from dataclasses import dataclass
from typing import FrozenSet, Optional, Tuple

from nullguard.config import RuntimeConfig
from nullguard.semantics.binder import Compilation
from nullguard.semantics.symbols import MethodSymbol, TypeSymbol


@dataclass(frozen=True)
class KnownSymbols:
  """
  Attributes:
      helper_type: The class declaring the helper overloads.
      helper_methods: The overload definitions, compared by identity.
      namespace_type_names: Simple names of every type declared in the helper's
          namespace; used to decide whether its using directive is still needed.
  """

  helper_type: TypeSymbol
  helper_methods: Tuple[MethodSymbol, ...]
  namespace_type_names: FrozenSet[str]

  @classmethod
  def from_compilation(cls, compilation: Compilation, config: Optional[RuntimeConfig] = None) -> Optional["KnownSymbols"]:
    """
    Looks up the helper family in a compilation.

    Args:
        compilation: The compilation to search.
        config: Supplies the helper's metadata name and method name.

    Returns:
        Optional[KnownSymbols]: None when the helper type or its methods are absent,
        in which case the rule does not apply.
    """
    config = config or RuntimeConfig()
    helper_type = compilation.get_type_by_metadata_name(config.helper_type)
    if helper_type is None:
      return None
    methods = tuple(m for m in helper_type.get_members(config.helper_method) if isinstance(m, MethodSymbol))
    if not methods:
      return None
    namespace = helper_type.namespace
    names = frozenset(name for ns, name, _ in compilation.globals.types if ns == namespace)
    return cls(helper_type, methods, names)

  @property
  def namespace(self) -> str:
    return self.helper_type.namespace

  @property
  def method_name(self) -> str:
    return self.helper_methods[0].name

  def is_helper(self, method: MethodSymbol) -> bool:
    """True if `method` is a reduced or constructed use of one of the helper overloads."""
    if method.reduced_from is None and method.constructed_from is method:
      return False
    definition = method.original_definition
    return any(definition is m for m in self.helper_methods)

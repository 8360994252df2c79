"""
Semantic Symbols.

Identity-compared objects describing what names resolve to: types, methods,
properties, fields, parameters, locals and namespaces.

Definitions are created once (from metadata or source declarations) and never
mutated after binding completes. Generic construction (`Func<int, string>`,
`IfNotNull<ReferenceThing, int>`) produces fresh objects that point back at their
definition, so identity checks against "the" helper method go through
`original_definition`.
"""

from enum import Enum, auto
from typing import Dict, List, Optional, Sequence, Tuple

from nullguard.syntax.nodes import ArrayType, NamedType, NullableType, PredefinedType, TypeSyntax


class TypeKind(Enum):
  CLASS = auto()
  STRUCT = auto()
  INTERFACE = auto()
  DELEGATE = auto()
  ARRAY = auto()
  ANONYMOUS = auto()
  TYPE_PARAMETER = auto()
  VOID = auto()
  NULL = auto()
  ERROR = auto()


class Constraint(Enum):
  """Reference/value constraint on a type parameter."""

  NONE = auto()
  CLASS = auto()
  STRUCT = auto()


class Symbol:
  """Base class for all symbols. Equality is identity."""

  name: str

  def __repr__(self) -> str:
    return f"<{type(self).__name__} {self.name}>"


class TypeSymbol(Symbol):
  """
  A named, constructed, array, anonymous or special type.

  Attributes:
      name: Simple name (`ReferenceThing`, `Func`, `T`).
      kind: The TypeKind.
      namespace: Containing namespace (`System`), empty for the global namespace.
      type_parameters: Type parameters of a generic definition.
      type_arguments: Type arguments of a constructed type.
      original_definition: The generic definition a constructed type came from.
      element_type: Element type of an array.
      keyword: C# keyword alias for special types (`int`, `string`).
      constraint: Constraint of a type parameter.
  """

  def __init__(
    self,
    name: str,
    kind: TypeKind,
    namespace: str = "",
    keyword: Optional[str] = None,
    constraint: Constraint = Constraint.NONE,
  ):
    self.name = name
    self.kind = kind
    self.namespace = namespace
    self.keyword = keyword
    self.constraint = constraint
    self.type_parameters: List["TypeSymbol"] = []
    self.type_arguments: Tuple["TypeSymbol", ...] = ()
    self.original_definition: "TypeSymbol" = self
    self.element_type: Optional["TypeSymbol"] = None
    self.base_type: Optional["TypeSymbol"] = None
    self._members: Dict[str, List[Symbol]] = {}

  # --- Construction ---

  def construct(self, type_arguments: Sequence["TypeSymbol"]) -> "TypeSymbol":
    """
    Builds the constructed generic type `self<type_arguments>`.

    Args:
        type_arguments: One type per type parameter.

    Returns:
        TypeSymbol: A new constructed type.

    Raises:
        ValueError: If the arity does not match.
    """
    if len(type_arguments) != len(self.type_parameters):
      raise ValueError(f"{self.name} expects {len(self.type_parameters)} type arguments, got {len(type_arguments)}")
    constructed = TypeSymbol(self.name, self.kind, self.namespace, self.keyword)
    constructed.type_parameters = self.type_parameters
    constructed.type_arguments = tuple(type_arguments)
    constructed.original_definition = self
    constructed.base_type = self.base_type
    return constructed

  @property
  def substitution(self) -> Dict[int, "TypeSymbol"]:
    """Maps `id(type_parameter)` to its argument for constructed types."""
    return {id(p): a for p, a in zip(self.type_parameters, self.type_arguments)}

  # --- Members ---

  def add_member(self, member: Symbol) -> None:
    self._members.setdefault(member.name, []).append(member)

  def get_members(self, name: str) -> List[Symbol]:
    """
    Returns members named `name`, substituted for constructed types.

    Base types are searched when the type itself declares nothing by that name.

    Args:
        name: Member name. Indexers are registered under `this[]`.

    Returns:
        List[Symbol]: Matching members, possibly empty.
    """
    definition = self.original_definition
    found = definition._members.get(name, [])
    if not found and self.base_type is not None:
      return self.base_type.get_members(name)
    if definition is self or not self.type_arguments:
      return list(found)
    mapping = self.substitution
    return [substitute_member(m, mapping, self) for m in found]

  def all_members(self) -> List[Symbol]:
    return [m for members in self.original_definition._members.values() for m in members]

  @property
  def delegate_invoke(self) -> Optional["MethodSymbol"]:
    """The `Invoke` method of a delegate type, substituted."""
    if self.kind != TypeKind.DELEGATE:
      return None
    members = self.get_members("Invoke")
    return members[0] if members else None

  # --- Type facts ---

  @property
  def metadata_name(self) -> str:
    """Namespace-qualified name with generic arity suffix (`System.Func`2`)."""
    arity = len(self.original_definition.type_parameters)
    simple = f"{self.name}`{arity}" if arity else self.name
    return f"{self.namespace}.{simple}" if self.namespace else simple

  @property
  def is_reference_type(self) -> bool:
    if self.kind == TypeKind.TYPE_PARAMETER:
      return self.constraint == Constraint.CLASS
    return self.kind in (TypeKind.CLASS, TypeKind.INTERFACE, TypeKind.DELEGATE, TypeKind.ARRAY, TypeKind.ANONYMOUS)

  @property
  def is_value_type(self) -> bool:
    if self.kind == TypeKind.TYPE_PARAMETER:
      return self.constraint == Constraint.STRUCT
    return self.kind == TypeKind.STRUCT

  @property
  def is_nullable_value_type(self) -> bool:
    """True for constructed `Nullable<T>` (`T?`)."""
    return self.original_definition is NULLABLE_DEFINITION and bool(self.type_arguments)

  @property
  def can_be_referenced_by_name(self) -> bool:
    """False for anonymous, error and null types, or anything built from them."""
    if self.kind in (TypeKind.ANONYMOUS, TypeKind.ERROR, TypeKind.NULL):
      return False
    if self.kind == TypeKind.ARRAY:
      return self.element_type is not None and self.element_type.can_be_referenced_by_name
    return all(a.can_be_referenced_by_name for a in self.type_arguments)

  def display(self) -> str:
    """
    Renders the type the way C# source would spell it.

    Returns:
        str: e.g. `int`, `int?`, `ReferenceThing`, `Func<int, string>`.
    """
    if self.keyword:
      return self.keyword
    if self.is_nullable_value_type:
      return f"{self.type_arguments[0].display()}?"
    if self.kind == TypeKind.ARRAY:
      return f"{self.element_type.display()}[]"
    if self.kind == TypeKind.ANONYMOUS:
      return "<anonymous type>"
    if self.type_arguments:
      return f"{self.name}<{', '.join(a.display() for a in self.type_arguments)}>"
    return self.name

  def to_type_syntax(self) -> TypeSyntax:
    """
    Builds a type reference node naming this type.

    Raises:
        ValueError: If the type cannot be referenced by name.
    """
    if not self.can_be_referenced_by_name:
      raise ValueError(f"Type '{self.display()}' cannot be referenced by name")
    if self.keyword:
      return PredefinedType(self.keyword)
    if self.is_nullable_value_type:
      return NullableType(self.type_arguments[0].to_type_syntax())
    if self.kind == TypeKind.ARRAY:
      return ArrayType(self.element_type.to_type_syntax())
    return NamedType((self.name,), tuple(a.to_type_syntax() for a in self.type_arguments))

  def __repr__(self) -> str:
    return f"<TypeSymbol {self.display()}>"


class MethodSymbol(Symbol):
  """
  A method, possibly generic, possibly an extension method.

  Attributes:
      containing_type: Declaring type.
      parameters: Ordered parameters (including `this` for extension definitions).
      return_type: Declared return type (VOID for `void`).
      type_parameters: Method type parameters of a generic definition.
      type_arguments: Inferred or explicit arguments of a constructed method.
      constructed_from: The generic definition this was constructed from.
      reduced_from: For an extension method called in receiver form, the
          unreduced (static) method.
  """

  def __init__(
    self,
    name: str,
    containing_type: Optional[TypeSymbol],
    return_type: TypeSymbol,
    parameters: Sequence["ParameterSymbol"] = (),
    type_parameters: Sequence[TypeSymbol] = (),
    is_static: bool = False,
    is_extension: bool = False,
  ):
    self.name = name
    self.containing_type = containing_type
    self.return_type = return_type
    self.parameters: List[ParameterSymbol] = list(parameters)
    self.type_parameters: List[TypeSymbol] = list(type_parameters)
    self.type_arguments: Tuple[TypeSymbol, ...] = ()
    self.is_static = is_static
    self.is_extension = is_extension
    self.constructed_from: "MethodSymbol" = self
    self.reduced_from: Optional["MethodSymbol"] = None

  @property
  def arity(self) -> int:
    """Number of method type parameters."""
    return len(self.type_parameters)

  @property
  def original_definition(self) -> "MethodSymbol":
    """Walks back through reduction and construction to the declared method."""
    method = self
    while True:
      if method.reduced_from is not None:
        method = method.reduced_from
      elif method.constructed_from is not method:
        method = method.constructed_from
      else:
        return method

  @property
  def returns_void(self) -> bool:
    return self.return_type.kind == TypeKind.VOID

  def construct(self, type_arguments: Sequence[TypeSymbol]) -> "MethodSymbol":
    """
    Builds the constructed method for the given type arguments.

    Args:
        type_arguments: One type per method type parameter.

    Returns:
        MethodSymbol: A substituted copy with `constructed_from` set.
    """
    mapping = {id(p): a for p, a in zip(self.type_parameters, type_arguments)}
    constructed = MethodSymbol(
      self.name,
      self.containing_type,
      substitute(self.return_type, mapping),
      [ParameterSymbol(p.name, substitute(p.type, mapping), p.modifiers, p.has_default) for p in self.parameters],
      self.type_parameters,
      self.is_static,
      self.is_extension,
    )
    constructed.type_arguments = tuple(type_arguments)
    constructed.constructed_from = self
    return constructed

  def reduce(self) -> "MethodSymbol":
    """
    Returns the receiver-form view of an extension method (first parameter dropped).

    Returns:
        MethodSymbol: The reduced method; `is_static` is False, `reduced_from` is `self`.
    """
    reduced = MethodSymbol(
      self.name,
      self.containing_type,
      self.return_type,
      self.parameters[1:],
      self.type_parameters,
      is_static=False,
      is_extension=True,
    )
    reduced.type_arguments = self.type_arguments
    reduced.reduced_from = self
    return reduced


class PropertySymbol(Symbol):
  def __init__(self, name: str, type_: TypeSymbol, containing_type: Optional[TypeSymbol], is_static: bool = False):
    self.name = name
    self.type = type_
    self.containing_type = containing_type
    self.is_static = is_static


class FieldSymbol(Symbol):
  def __init__(self, name: str, type_: TypeSymbol, containing_type: Optional[TypeSymbol], is_static: bool = False):
    self.name = name
    self.type = type_
    self.containing_type = containing_type
    self.is_static = is_static


class IndexerSymbol(Symbol):
  """`this[...]` indexer, registered under the member name `this[]`."""

  def __init__(self, type_: TypeSymbol, parameters: Sequence["ParameterSymbol"], containing_type: Optional[TypeSymbol]):
    self.name = INDEXER_NAME
    self.type = type_
    self.parameters = list(parameters)
    self.containing_type = containing_type


class ParameterSymbol(Symbol):
  def __init__(self, name: str, type_: TypeSymbol, modifiers: Sequence[str] = (), has_default: bool = False):
    self.name = name
    self.type = type_
    self.modifiers = tuple(modifiers)
    self.has_default = has_default


class LocalSymbol(Symbol):
  """A local variable, pattern designation, foreach variable or range variable."""

  def __init__(self, name: str, type_: TypeSymbol):
    self.name = name
    self.type = type_


class NamespaceSymbol(Symbol):
  def __init__(self, name: str):
    self.name = name


INDEXER_NAME = "this[]"


# --- Substitution ---


def substitute(type_: TypeSymbol, mapping: Dict[int, TypeSymbol]) -> TypeSymbol:
  """
  Replaces type parameters inside `type_` according to `mapping`.

  Args:
      type_: The type to rewrite.
      mapping: `id(type_parameter) -> replacement`.

  Returns:
      TypeSymbol: The substituted type (the same object when nothing changes).
  """
  if not mapping:
    return type_
  if type_.kind == TypeKind.TYPE_PARAMETER:
    return mapping.get(id(type_), type_)
  if type_.kind == TypeKind.ARRAY:
    element = substitute(type_.element_type, mapping)
    return type_ if element is type_.element_type else make_array(element)
  if type_.type_arguments:
    args = [substitute(a, mapping) for a in type_.type_arguments]
    if all(a is b for a, b in zip(args, type_.type_arguments)):
      return type_
    return type_.original_definition.construct(args)
  return type_


def substitute_member(member: Symbol, mapping: Dict[int, TypeSymbol], owner: TypeSymbol) -> Symbol:
  """Returns `member` as seen through the constructed type `owner`."""
  if isinstance(member, PropertySymbol):
    return PropertySymbol(member.name, substitute(member.type, mapping), owner, member.is_static)
  if isinstance(member, FieldSymbol):
    return FieldSymbol(member.name, substitute(member.type, mapping), owner, member.is_static)
  if isinstance(member, IndexerSymbol):
    params = [ParameterSymbol(p.name, substitute(p.type, mapping), p.modifiers) for p in member.parameters]
    return IndexerSymbol(substitute(member.type, mapping), params, owner)
  if isinstance(member, MethodSymbol):
    method = MethodSymbol(
      member.name,
      owner,
      substitute(member.return_type, mapping),
      [ParameterSymbol(p.name, substitute(p.type, mapping), p.modifiers, p.has_default) for p in member.parameters],
      member.type_parameters,
      member.is_static,
      member.is_extension,
    )
    method.constructed_from = member
    return method
  return member


def same_type(a: Optional[TypeSymbol], b: Optional[TypeSymbol]) -> bool:
  """
  Structural identity for types: same definition and pairwise-same arguments.

  Definitions themselves are compared by identity.
  """
  if a is b:
    return True
  if a is None or b is None:
    return False
  if a.kind == TypeKind.ARRAY and b.kind == TypeKind.ARRAY:
    return same_type(a.element_type, b.element_type)
  if a.original_definition is not b.original_definition:
    return False
  if len(a.type_arguments) != len(b.type_arguments):
    return False
  return all(same_type(x, y) for x, y in zip(a.type_arguments, b.type_arguments))


def make_array(element: TypeSymbol) -> TypeSymbol:
  array = TypeSymbol(f"{element.name}[]", TypeKind.ARRAY)
  array.element_type = element
  array.base_type = OBJECT_TYPE
  return array


def make_nullable(underlying: TypeSymbol) -> TypeSymbol:
  """`T?` for a value type; other types are returned unchanged."""
  if underlying.is_value_type and not underlying.is_nullable_value_type:
    return NULLABLE_DEFINITION.construct([underlying])
  return underlying


def make_anonymous(properties: Sequence[Tuple[str, TypeSymbol]]) -> TypeSymbol:
  """Creates a fresh anonymous type with read-only properties."""
  anonymous = TypeSymbol("<anonymous type>", TypeKind.ANONYMOUS)
  anonymous.base_type = OBJECT_TYPE
  for name, type_ in properties:
    anonymous.add_member(PropertySymbol(name, type_, anonymous))
  return anonymous


def make_type_parameter(name: str, constraint: Constraint = Constraint.NONE) -> TypeSymbol:
  return TypeSymbol(name, TypeKind.TYPE_PARAMETER, constraint=constraint)


# --- Special types ---

ERROR_TYPE = TypeSymbol("?", TypeKind.ERROR)
NULL_TYPE = TypeSymbol("null", TypeKind.NULL)
VOID_TYPE = TypeSymbol("Void", TypeKind.VOID, "System", keyword="void")
OBJECT_TYPE = TypeSymbol("Object", TypeKind.CLASS, "System", keyword="object")
STRING_TYPE = TypeSymbol("String", TypeKind.CLASS, "System", keyword="string")
DYNAMIC_TYPE = TypeSymbol("Object", TypeKind.CLASS, "System", keyword="dynamic")

_STRUCT_KEYWORDS = {
  "bool": "Boolean",
  "byte": "Byte",
  "char": "Char",
  "decimal": "Decimal",
  "double": "Double",
  "float": "Single",
  "int": "Int32",
  "long": "Int64",
  "sbyte": "SByte",
  "short": "Int16",
  "uint": "UInt32",
  "ulong": "UInt64",
  "ushort": "UInt16",
}

SPECIAL_TYPES: Dict[str, TypeSymbol] = {
  "object": OBJECT_TYPE,
  "string": STRING_TYPE,
  "void": VOID_TYPE,
  "dynamic": DYNAMIC_TYPE,
}
for _keyword, _name in _STRUCT_KEYWORDS.items():
  SPECIAL_TYPES[_keyword] = TypeSymbol(_name, TypeKind.STRUCT, "System", keyword=_keyword)

for _special in SPECIAL_TYPES.values():
  if _special is not OBJECT_TYPE:
    _special.base_type = OBJECT_TYPE
STRING_TYPE.add_member(PropertySymbol("Length", SPECIAL_TYPES["int"], STRING_TYPE))
STRING_TYPE.add_member(FieldSymbol("Empty", STRING_TYPE, STRING_TYPE, is_static=True))
OBJECT_TYPE.add_member(MethodSymbol("ToString", OBJECT_TYPE, STRING_TYPE))
OBJECT_TYPE.add_member(MethodSymbol("GetHashCode", OBJECT_TYPE, SPECIAL_TYPES["int"]))

INT_TYPE = SPECIAL_TYPES["int"]
BOOL_TYPE = SPECIAL_TYPES["bool"]

NULLABLE_DEFINITION = TypeSymbol("Nullable", TypeKind.STRUCT, "System")
_NULLABLE_T = make_type_parameter("T", Constraint.STRUCT)
NULLABLE_DEFINITION.type_parameters = [_NULLABLE_T]
NULLABLE_DEFINITION.add_member(PropertySymbol("Value", _NULLABLE_T, NULLABLE_DEFINITION))
NULLABLE_DEFINITION.add_member(PropertySymbol("HasValue", BOOL_TYPE, NULLABLE_DEFINITION))
NULLABLE_DEFINITION.add_member(MethodSymbol("GetValueOrDefault", NULLABLE_DEFINITION, _NULLABLE_T))

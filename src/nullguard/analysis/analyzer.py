"""
IfNotNull Analyzer.

Reports every invocation of the helper family. Detection only needs the resolved
symbol; whether a fix exists is decided separately, so a diagnostic surfaces even
when no rewrite is safe.

Analysis is a pure read of immutable inputs and may run concurrently for
different units. Each invocation is checked in isolation: a failure while
resolving one call is logged and does not stop the scan.
"""

from typing import List, Optional

from nullguard.analysis.diagnostics import IF_NOT_NULL_DESCRIPTOR, Diagnostic, Severity
from nullguard.analysis.known_symbols import KnownSymbols
from nullguard.config import RuntimeConfig
from nullguard.semantics.binder import Compilation, Resolved, SemanticModel
from nullguard.semantics.symbols import MethodSymbol
from nullguard.syntax.nodes import IdentifierName, Invocation, MemberAccess, MemberBinding
from nullguard.syntax.source import SourceUnit
from nullguard.syntax.tree import walk
from nullguard.utils.console import log_debug, log_warning


def callee_name(invocation: Invocation) -> Optional[str]:
  """The simple name being invoked (`IfNotNull` for `a.IfNotNull(...)`), if any."""
  callee = invocation.expression
  if isinstance(callee, IdentifierName):
    return callee.identifier
  if isinstance(callee, (MemberAccess, MemberBinding)):
    return callee.name
  return None


def resolve_helper_call(model: SemanticModel, invocation: Invocation, known: KnownSymbols) -> Optional[MethodSymbol]:
  """
  Resolves an invocation and checks that it targets a helper overload.

  Args:
      model: Semantic model of the unit containing `invocation`.
      invocation: The call node.
      known: The helper family of the compilation.

  Returns:
      Optional[MethodSymbol]: The reduced or constructed helper method, or None.
  """
  if callee_name(invocation) != known.method_name:
    return None
  resolution = model.resolve(invocation)
  if not isinstance(resolution, Resolved) or not isinstance(resolution.symbol, MethodSymbol):
    return None
  if not known.is_helper(resolution.symbol):
    return None
  return resolution.symbol


class GuardedTransformAnalyzer:
  """
  Finds helper invocations and reports them as `FL0010` diagnostics.

  Attributes:
      config (RuntimeConfig): Helper identity and reported severity.
      descriptor: The rule descriptor.
  """

  descriptor = IF_NOT_NULL_DESCRIPTOR

  def __init__(self, config: Optional[RuntimeConfig] = None):
    self.config = config or RuntimeConfig()

  @property
  def severity(self) -> Severity:
    return Severity(self.config.severity)

  def analyze_unit(self, compilation: Compilation, unit: SourceUnit, known: Optional[KnownSymbols] = None) -> List[Diagnostic]:
    """
    Reports the helper invocations of one unit.

    Args:
        compilation: The compilation `unit` belongs to.
        unit: The unit to scan.
        known: Pre-resolved helper symbols of `compilation`, looked up if omitted.

    Returns:
        List[Diagnostic]: Diagnostics in source order. Empty when the helper is not
        declared anywhere in the compilation.
    """
    known = known or KnownSymbols.from_compilation(compilation, self.config)
    if known is None:
      return []

    model = compilation.semantic_model(unit)
    diagnostics = []
    for node in walk(model.root):
      if not isinstance(node, Invocation) or callee_name(node) != known.method_name:
        continue
      try:
        method = resolve_helper_call(model, node, known)
      except (ValueError, RecursionError) as e:
        log_warning(f"Skipping call at [path]{unit.path}[/path] offset {node.span.start}: {e}")
        continue
      if method is None:
        log_debug(f"{known.method_name} call at {unit.path}:{node.span.start} does not bind to the helper")
        continue
      line, column = unit.location(node.span.start)
      diagnostics.append(Diagnostic(self.descriptor, unit.path, node.span, self.severity, line, column))

    diagnostics.sort(key=lambda d: (d.span.start, -d.span.end))
    return diagnostics

  def analyze(self, compilation: Compilation) -> List[Diagnostic]:
    """Reports diagnostics for every unit of a compilation, unit by unit."""
    known = KnownSymbols.from_compilation(compilation, self.config)
    if known is None:
      return []
    diagnostics = []
    for unit in compilation.units:
      diagnostics.extend(self.analyze_unit(compilation, unit, known))
    return diagnostics

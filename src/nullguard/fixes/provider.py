"""
IfNotNull Fix Provider.

Computes the code fix for one `FL0010` diagnostic by running the rewrite pipeline:
match, eligibility, hygiene, synthesis. The cancellation token is checked between
every phase; a cancelled computation returns nothing.
"""

from dataclasses import dataclass
from typing import List, Optional

from nullguard.analysis.diagnostics import IF_NOT_NULL_DIAGNOSTIC_ID, Diagnostic
from nullguard.analysis.known_symbols import KnownSymbols
from nullguard.cancellation import CancellationToken
from nullguard.config import RuntimeConfig
from nullguard.fixes.applier import apply_candidate, remove_unused_helper_using
from nullguard.rewrite.eligibility import assess
from nullguard.rewrite.hygiene import allocate_name
from nullguard.rewrite.matcher import match
from nullguard.rewrite.models import Declined, RewriteCandidate, TransformKind
from nullguard.rewrite.synthesizer import synthesize
from nullguard.semantics.binder import Compilation
from nullguard.syntax.nodes import Invocation
from nullguard.syntax.source import SourceUnit
from nullguard.syntax.tree import find_nodes_at
from nullguard.utils.console import log_debug


def _cancelled(token: Optional[CancellationToken]) -> bool:
  return token is not None and token.is_cancelled


@dataclass(frozen=True)
class CodeFix:
  """
  One offered fix.

  Attributes:
      title: User-facing title.
      equivalence_key: Groups fixes of the same kind for fix-all.
      diagnostic: The diagnostic being fixed.
      unit: The unit the fix was computed against.
      candidate: The replacement to apply.
      known: Helper symbols, used to clean up the helper's using directive.
      remove_helper_using: Whether to drop that directive once it is unused.
  """

  title: str
  equivalence_key: str
  diagnostic: Diagnostic
  unit: SourceUnit
  candidate: RewriteCandidate
  known: KnownSymbols
  remove_helper_using: bool = True

  def apply(self, token: Optional[CancellationToken] = None) -> Optional[SourceUnit]:
    """
    Produces the fixed unit.

    Args:
        token: Cancellation token.

    Returns:
        Optional[SourceUnit]: The new unit, or None if cancelled.
    """
    if _cancelled(token):
      return None
    fixed = apply_candidate(self.unit, self.candidate)
    if self.remove_helper_using:
      fixed = remove_unused_helper_using(fixed, self.known.namespace, self.known.namespace_type_names, self.known.method_name)
    return fixed


class GuardedTransformFixProvider:
  """
  Offers the IfNotNull replacement for `FL0010` diagnostics.

  Attributes:
      config (RuntimeConfig): Helper identity, wrapper naming and using cleanup.
  """

  fixable_diagnostic_ids = (IF_NOT_NULL_DIAGNOSTIC_ID,)

  def __init__(self, config: Optional[RuntimeConfig] = None):
    self.config = config or RuntimeConfig()

  def compute_candidate(
    self,
    compilation: Compilation,
    unit: SourceUnit,
    diagnostic: Diagnostic,
    token: Optional[CancellationToken] = None,
    known: Optional[KnownSymbols] = None,
  ) -> Optional[RewriteCandidate]:
    """
    Runs the rewrite pipeline for one diagnostic.

    Args:
        compilation: The compilation `unit` belongs to.
        unit: The unit the diagnostic was reported on.
        diagnostic: The diagnostic.
        token: Cancellation token, checked between phases.
        known: Pre-resolved helper symbols.

    Returns:
        Optional[RewriteCandidate]: None when the rule does not apply here or the
        computation was cancelled; an ineligible candidate when a match has no safe
        rewrite.

    Raises:
        ValueError: If a binding cannot be introduced at the call site.
    """
    if diagnostic.rule_id not in self.fixable_diagnostic_ids or _cancelled(token):
      return None
    known = known or KnownSymbols.from_compilation(compilation, self.config)
    if known is None:
      return None

    model = compilation.semantic_model(unit)
    invocations = find_nodes_at(model.root, diagnostic.span, Invocation)
    if not invocations:
      return None

    call = match(model, invocations[0], known)
    if call is None or _cancelled(token):
      return None

    plan = assess(call, model, self.config)
    if isinstance(plan, Declined):
      log_debug(f"No fix for {unit.path}({diagnostic.line},{diagnostic.column}): {plan.reason}")
      return RewriteCandidate.ineligible(plan)
    if _cancelled(token):
      return None

    binding_name = None
    if plan.needs_binding:
      exclude = plan.parameter if call.transform_kind == TransformKind.LAMBDA else None
      binding_name = allocate_name(plan.parameter.name, call.invocation, model.parents, exclude)
    if _cancelled(token):
      return None

    return synthesize(plan, binding_name)

  def compute_fixes(
    self,
    compilation: Compilation,
    unit: SourceUnit,
    diagnostic: Diagnostic,
    token: Optional[CancellationToken] = None,
  ) -> List[CodeFix]:
    """
    Returns the fixes offered for a diagnostic (zero or one).

    Args:
        compilation: The compilation `unit` belongs to.
        unit: The unit the diagnostic was reported on.
        diagnostic: The diagnostic.
        token: Cancellation token.

    Returns:
        List[CodeFix]: Empty when no safe rewrite exists or the work was cancelled.
    """
    known = KnownSymbols.from_compilation(compilation, self.config)
    if known is None:
      return []
    candidate = self.compute_candidate(compilation, unit, diagnostic, token, known)
    if candidate is None or not candidate.eligible or _cancelled(token):
      return []
    return [
      CodeFix(
        title=candidate.title,
        equivalence_key=candidate.equivalence_key,
        diagnostic=diagnostic,
        unit=unit,
        candidate=candidate,
        known=known,
        remove_helper_using=self.config.remove_unused_helper_using,
      )
    ]

"""
Rewrite Data Models.

Immutable records passed between the matcher, the eligibility analyzer and the
synthesizer. A `CallSite` describes one matched helper call; a `RewritePlan` is
the eligibility decision for it; a `RewriteCandidate` is the synthesized result.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple

from nullguard.semantics.symbols import MethodSymbol, TypeSymbol
from nullguard.syntax.nodes import ExpressionSyntax, Invocation, Parameter, SyntaxNode

CONDITIONAL_ACCESS_TITLE = "Use conditional access operator"
PATTERN_MATCHING_TITLE = "Use pattern matching"
EQUIVALENCE_KEY = "use-modern-language-features"


class TargetIdiom(str, Enum):
  OPTIONAL_CHAIN = "optional-chain"
  COALESCE = "coalesce"
  TYPE_TEST_CONDITIONAL = "type-test-conditional"
  IF_ELSE = "if-else"

  @property
  def title(self) -> str:
    if self in (TargetIdiom.OPTIONAL_CHAIN, TargetIdiom.COALESCE):
      return CONDITIONAL_ACCESS_TITLE
    return PATTERN_MATCHING_TITLE


class DefaultKind(str, Enum):
  ABSENT = "absent"
  VALUE = "value"
  PRODUCER = "producer"


class TransformKind(str, Enum):
  LAMBDA = "lambda"
  ANONYMOUS_METHOD = "anonymous-method"
  REFERENCE = "reference"


@dataclass(frozen=True)
class CallSite:
  """
  One matched helper call.

  Attributes:
      invocation: The call node.
      method: The resolved (reduced or constructed) helper method.
      receiver: The value being guarded.
      transform: The function applied to a non-null receiver.
      transform_kind: Inline lambda, anonymous method or delegate reference.
      default: The default operand, if any.
      default_kind: Whether the default is an eager value or a producer.
      input_type: First type argument.
      output_type: Second type argument; None for the single-argument family.
      is_static_form: Called as `IfNotNullExtensionMethod.IfNotNull(recv, ...)`.
      receiver_is_binding: The receiver starts with `.Member` or `[..]` inside an
          enclosing conditional access.
  """

  invocation: Invocation
  method: MethodSymbol
  receiver: ExpressionSyntax
  transform: ExpressionSyntax
  transform_kind: TransformKind
  default: Optional[ExpressionSyntax]
  default_kind: DefaultKind
  input_type: TypeSymbol
  output_type: Optional[TypeSymbol]
  is_static_form: bool = False
  receiver_is_binding: bool = False

  @property
  def is_void(self) -> bool:
    return self.output_type is None

  @property
  def is_input_value_type(self) -> bool:
    return self.input_type.is_value_type

  @property
  def output_is_nullable(self) -> bool:
    """The output can represent "no value" on its own (reference or `Nullable<T>`)."""
    if self.output_type is None:
      return False
    return self.output_type.is_reference_type or self.output_type.is_nullable_value_type

  @property
  def is_output_nullable_value_type(self) -> bool:
    return self.output_type is not None and self.output_type.is_nullable_value_type

  @property
  def is_output_reference_type(self) -> bool:
    return self.output_type is not None and self.output_type.is_reference_type


@dataclass(frozen=True)
class RewritePlan:
  """
  The eligibility decision for one call site.

  Attributes:
      idiom: The chosen target form.
      call: The call site.
      target: The node the replacement stands in for (the invocation, its
          enclosing `??` expression, or its expression statement).
      parameter: The bound lambda parameter (wrapped references get a synthetic one).
      body: The transform body after delegate-invocation rewriting.
      default: The default expression to emit, already unwrapped or invoked.
      chain_body: For chain forms, the body with casts unwrapped.
      chain_access: For chain forms, the member or element access whose receiver is
          the bound parameter.
      fallback: For the `??` special case, the coalesce's right-hand side.
  """

  idiom: TargetIdiom
  call: CallSite
  target: SyntaxNode
  parameter: Parameter
  body: ExpressionSyntax
  default: Optional[ExpressionSyntax] = None
  chain_body: Optional[ExpressionSyntax] = None
  chain_access: Optional[SyntaxNode] = None
  fallback: Optional[ExpressionSyntax] = None

  @property
  def needs_binding(self) -> bool:
    return self.idiom in (TargetIdiom.TYPE_TEST_CONDITIONAL, TargetIdiom.IF_ELSE)


@dataclass(frozen=True)
class Declined:
  """A match for which no safe rewrite exists."""

  call: CallSite
  reason: str


@dataclass(frozen=True)
class RewriteCandidate:
  """
  A synthesized replacement, or the record of why there is none.

  Attributes:
      idiom: The target form (None when ineligible).
      target: The node to replace.
      replacement: The new fragment.
      introduced_bindings: Names the replacement declares, in order.
      eligible: True when the replacement is safe to apply.
      reason: Why the rewrite was declined.
  """

  idiom: Optional[TargetIdiom]
  target: SyntaxNode
  replacement: Optional[SyntaxNode] = None
  introduced_bindings: Tuple[str, ...] = field(default=())
  eligible: bool = True
  reason: str = ""

  @property
  def title(self) -> str:
    return self.idiom.title if self.idiom is not None else ""

  @property
  def equivalence_key(self) -> str:
    return EQUIVALENCE_KEY

  @classmethod
  def ineligible(cls, declined: Declined) -> "RewriteCandidate":
    return cls(idiom=None, target=declined.call.invocation, eligible=False, reason=declined.reason)

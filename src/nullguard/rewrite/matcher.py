"""
Pattern Matcher.

Recognizes invocations of the helper family and extracts a `CallSite` from them.
Matching is purely a read over the tree and the semantic model, so it is safe to
run concurrently over different units.
"""

from typing import Optional

from nullguard.analysis.analyzer import resolve_helper_call
from nullguard.analysis.known_symbols import KnownSymbols
from nullguard.rewrite.models import CallSite, DefaultKind, TransformKind
from nullguard.semantics.binder import SemanticModel
from nullguard.semantics.symbols import same_type
from nullguard.syntax.nodes import (
  AnonymousMethod,
  ConditionalAccess,
  ElementAccess,
  ElementBinding,
  Invocation,
  Lambda,
  MemberAccess,
  MemberBinding,
  SyntaxNode,
)


def leftmost(expr: SyntaxNode) -> SyntaxNode:
  """Follows receivers of invocations, member/element accesses and conditional accesses."""
  node = expr
  while isinstance(node, (Invocation, MemberAccess, ConditionalAccess, ElementAccess)):
    node = node.expression
  return node


def match(model: SemanticModel, invocation: Invocation, known: KnownSymbols) -> Optional[CallSite]:
  """
  Extracts the operands of a helper call.

  Args:
      model: Semantic model of the unit containing `invocation`.
      invocation: The call node.
      known: The helper family of the compilation.

  Returns:
      Optional[CallSite]: None when the node is not a helper call or its argument
      shape is not one the rewrite understands.
  """
  method = resolve_helper_call(model, invocation, known)
  if method is None:
    return None

  args = [a.expression for a in invocation.arguments]
  is_static_form = method.is_static
  if is_static_form:
    if len(args) < 2:
      return None
    receiver, transform, rest = args[0], args[1], args[2:]
    params = method.parameters[2:]
  else:
    if not isinstance(invocation.expression, MemberAccess) or not args:
      return None
    receiver, transform, rest = invocation.expression.expression, args[0], args[1:]
    params = method.parameters[1:]

  if len(rest) > 1 or any(a.name is not None or a.modifier is not None for a in invocation.arguments):
    return None

  input_type = method.type_arguments[0]
  output_type = method.type_arguments[1] if method.arity == 2 else None

  default = rest[0] if rest else None
  default_kind = DefaultKind.ABSENT
  if default is not None:
    # With one type argument every default is a producer; otherwise a default whose
    # parameter is typed as the output itself is a plain value.
    default_param = params[0].type if params else None
    if output_type is not None and default_param is not None and same_type(default_param, output_type):
      default_kind = DefaultKind.VALUE
    else:
      default_kind = DefaultKind.PRODUCER

  if isinstance(transform, Lambda):
    transform_kind = TransformKind.LAMBDA
  elif isinstance(transform, AnonymousMethod):
    transform_kind = TransformKind.ANONYMOUS_METHOD
  else:
    transform_kind = TransformKind.REFERENCE

  return CallSite(
    invocation=invocation,
    method=method,
    receiver=receiver,
    transform=transform,
    transform_kind=transform_kind,
    default=default,
    default_kind=default_kind,
    input_type=input_type,
    output_type=output_type,
    is_static_form=is_static_form,
    receiver_is_binding=isinstance(leftmost(receiver), (MemberBinding, ElementBinding)),
  )

"""
Eligibility Analyzer.

Decides which replacement idiom, if any, is provably equivalent to a matched
helper call. Preference order:

1.  **Optional chain** (`recv?.Member`), with a trailing `?? default` when a default
    has to be kept (**coalesce**).
2.  **Type-test conditional** (`recv is T x ? body : default`).
3.  **If/else statement** for void calls standing alone as a statement.

Anything else is declined with a reason; the diagnostic stays, no fix is offered.
"""

from typing import Optional, Tuple, Union

from nullguard.config import RuntimeConfig
from nullguard.rewrite.models import CallSite, Declined, DefaultKind, RewritePlan, TargetIdiom, TransformKind
from nullguard.semantics.binder import SemanticModel
from nullguard.semantics.symbols import same_type
from nullguard.syntax.nodes import (
  AnonymousMethod,
  AnonymousObjectCreation,
  Argument,
  AsExpression,
  Binary,
  Block,
  Cast,
  ConditionalAccess,
  DefaultExpression,
  ElementAccess,
  ExpressionStatement,
  ExpressionSyntax,
  IdentifierName,
  Invocation,
  Lambda,
  LiteralExpression,
  MemberAccess,
  ObjectCreation,
  Parameter,
  Parenthesized,
  SyntaxNode,
)
from nullguard.syntax.precedence import needs_parentheses
from nullguard.syntax.tree import count_references

Assessment = Union[RewritePlan, Declined]


def _invoke(producer: ExpressionSyntax, arguments: Tuple[Argument, ...] = ()) -> ExpressionSyntax:
  """`producer(arguments)`, parenthesizing the callee when needed."""
  callee = producer
  if needs_parentheses(Invocation(producer), "expression", producer):
    callee = Parenthesized(producer)
  return Invocation(callee, arguments)


def _is_droppable_default(expr: ExpressionSyntax) -> bool:
  return isinstance(expr, DefaultExpression) or (isinstance(expr, LiteralExpression) and expr.kind == "null")


def _leftmost_access(expr: ExpressionSyntax) -> Tuple[SyntaxNode, Optional[SyntaxNode]]:
  """The leftmost receiver of a postfix chain together with the node that accesses it."""
  parent = None
  node = expr
  while isinstance(node, (Invocation, MemberAccess, ConditionalAccess, ElementAccess)):
    parent, node = node, node.expression
  return node, parent


def _wrapper_name(reference: ExpressionSyntax, desired: str) -> str:
  """A parameter name for wrapping `reference` that the reference itself does not mention."""
  name = desired
  suffix = 1
  while count_references(reference, name):
    name = f"{desired}{suffix}"
    suffix += 1
  return name


def resolve_default(call: CallSite) -> Union[Optional[ExpressionSyntax], Declined]:
  """
  Turns the default operand into the expression to emit.

  Producers are unwrapped (expression-bodied lambdas) or invoked (delegate
  references). Async, block-bodied and anonymous-method producers are declined.
  """
  default = call.default
  if default is None:
    return None
  if call.default_kind == DefaultKind.PRODUCER:
    if isinstance(default, Lambda):
      if default.is_async:
        return Declined(call, "the default producer is async")
      if isinstance(default.body, Block):
        return Declined(call, "the default producer has a block body")
      if default.parameters:
        return Declined(call, "the default producer takes parameters")
      default = default.body
    elif isinstance(default, AnonymousMethod):
      return Declined(call, "the default producer is an anonymous method")
    else:
      default = _invoke(default)
  return default


def transform_lambda(call: CallSite, config: RuntimeConfig) -> Union[Lambda, Declined]:
  """The transform as a lambda, wrapping delegate references as `value => ref(value)`."""
  transform = call.transform
  if call.transform_kind == TransformKind.ANONYMOUS_METHOD:
    return Declined(call, "the transform is an anonymous method")
  if call.transform_kind == TransformKind.REFERENCE:
    name = _wrapper_name(transform, config.default_binding_name)
    return Lambda((Parameter(name),), _invoke(transform, (Argument(IdentifierName(name)),)))
  if transform.is_async:
    return Declined(call, "the transform is async")
  if len(transform.parameters) != 1:
    return Declined(call, "the transform does not take exactly one parameter")
  if isinstance(transform.body, Block):
    return Declined(call, "the transform has a block body")
  return transform


def _unwrap_nullable_cast(body: ExpressionSyntax, call: CallSite, model: SemanticModel) -> ExpressionSyntax:
  """
  Drops `(T?)` / `as T?` around a `T`-typed body; chaining already lifts it to `T?`.

  A wrapper around any other type is kept, since it may also convert (`(long?) intValue`).
  """
  inner = None
  if isinstance(body, Cast):
    inner = body.expression
  elif isinstance(body, AsExpression):
    inner = body.expression
  if inner is None:
    return body
  underlying = call.output_type.type_arguments[0]
  if same_type(model.get_type(inner), underlying):
    return inner
  return body


def assess(call: CallSite, model: SemanticModel, config: Optional[RuntimeConfig] = None) -> Assessment:
  """
  Chooses the rewrite for a call site.

  Args:
      call: The matched call.
      model: Semantic model of the unit containing the call.
      config: Supplies the wrapper parameter name.

  Returns:
      Assessment: A `RewritePlan`, or `Declined` with the reason no safe rewrite exists.
  """
  config = config or RuntimeConfig()
  output_nullable = call.output_is_nullable

  default = resolve_default(call)
  if isinstance(default, Declined):
    return default

  if not call.is_void:
    if output_nullable and default is not None and _is_droppable_default(default):
      default = None
    elif default is None and not output_nullable:
      if not call.output_type.can_be_referenced_by_name:
        return Declined(call, "the output type cannot be named")
      default = DefaultExpression(call.output_type.to_type_syntax())

  # The enclosing `?.` already lifts the call's result; a fallback would replace that null.
  if call.receiver_is_binding and default is not None:
    return Declined(call, "the receiver continues an enclosing conditional access")

  fn = transform_lambda(call, config)
  if isinstance(fn, Declined):
    return fn
  parameter = fn.parameters[0]
  body = fn.body
  name = parameter.name

  receiver_type = model.get_type(call.receiver)
  can_chain = not (
    (call.is_void and default is not None)
    or count_references(body, name) >= 2
    or (default is not None and output_nullable)
    or (receiver_type.is_value_type and not receiver_type.is_nullable_value_type)
  )

  if can_chain and isinstance(body, Invocation) and isinstance(body.expression, IdentifierName) and body.expression.identifier == name:
    body = Invocation(MemberAccess(body.expression, "Invoke"), body.arguments)

  if can_chain:
    chain_body = body
    if call.is_output_nullable_value_type:
      chain_body = _unwrap_nullable_cast(chain_body, call, model)
    left, access = _leftmost_access(chain_body)
    if (
      isinstance(left, IdentifierName)
      and left.identifier == name
      and isinstance(access, (MemberAccess, ElementAccess))
      and (not call.is_void or isinstance(chain_body, Invocation))
    ):
      return RewritePlan(
        idiom=TargetIdiom.COALESCE if default is not None else TargetIdiom.OPTIONAL_CHAIN,
        call=call,
        target=call.invocation,
        parameter=parameter,
        body=body,
        default=default,
        chain_body=chain_body,
        chain_access=access,
      )

  if call.receiver_is_binding:
    return Declined(call, "the receiver continues an enclosing conditional access")
  if not call.input_type.can_be_referenced_by_name:
    return Declined(call, "the input type cannot be named")

  parent = model.parents.get(id(call.invocation))
  if call.is_void:
    if not isinstance(parent, ExpressionStatement):
      return Declined(call, "the void call is not a standalone statement")
    return RewritePlan(TargetIdiom.IF_ELSE, call, parent, parameter, body, default=default)

  if (
    default is None
    and isinstance(parent, Binary)
    and parent.operator == "??"
    and parent.left is call.invocation
    and isinstance(body, (ObjectCreation, AnonymousObjectCreation))
  ):
    return RewritePlan(TargetIdiom.TYPE_TEST_CONDITIONAL, call, parent, parameter, body, fallback=parent.right)

  if default is None:
    if not call.output_type.can_be_referenced_by_name:
      return Declined(call, "the output type cannot be named")
    default = DefaultExpression(call.output_type.to_type_syntax())
  return RewritePlan(TargetIdiom.TYPE_TEST_CONDITIONAL, call, call.invocation, parameter, body, default=default)

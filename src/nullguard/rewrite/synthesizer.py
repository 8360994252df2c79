"""
Rewrite Synthesizer.

Builds the replacement fragment for an eligible `RewritePlan`:

- optional chain: the bound parameter's leading access becomes a binding inside a
  conditional access on the receiver (`recv?.A.B`), followed by `?? default` for
  the coalesce form;
- type-test conditional: `recv is T name ? body : default`;
- if/else: `if (recv is T name) { body; } else { default; }`.

Fragments are returned without parentheses decisions for their final position;
`add_parentheses` fixes their inner structure and the applier handles the splice.
"""

from typing import Optional

from nullguard.rewrite.models import RewriteCandidate, RewritePlan, TargetIdiom
from nullguard.syntax.nodes import (
  Binary,
  Block,
  Conditional,
  ConditionalAccess,
  DeclarationPattern,
  ElementBinding,
  ExpressionStatement,
  ExpressionSyntax,
  IfStatement,
  IsPattern,
  MemberAccess,
  MemberBinding,
  StatementSyntax,
  ThrowExpression,
  ThrowStatement,
)
from nullguard.syntax.precedence import add_parentheses
from nullguard.syntax.tree import rename_identifier, replace_node


def _as_statement(expr: ExpressionSyntax) -> StatementSyntax:
  if isinstance(expr, ThrowExpression):
    return ThrowStatement(expr.expression)
  return ExpressionStatement(expr)


def build_chain(plan: RewritePlan) -> ExpressionSyntax:
  """`recv?.<chain>` with an optional trailing `?? default`."""
  access = plan.chain_access
  if isinstance(access, MemberAccess):
    binding = MemberBinding(access.name, access.type_arguments)
  else:
    binding = ElementBinding(access.arguments)
  result: ExpressionSyntax = ConditionalAccess(plan.call.receiver, replace_node(plan.chain_body, access, binding))
  if plan.default is not None:
    result = Binary(result, "??", plan.default)
  return result


def build_type_test(plan: RewritePlan, binding_name: str):
  """The type-test conditional expression, or the if/else statement for void calls."""
  body = plan.body
  if binding_name != plan.parameter.name:
    body = rename_identifier(body, plan.parameter.name, binding_name)
  condition = IsPattern(plan.call.receiver, DeclarationPattern(plan.call.input_type.to_type_syntax(), binding_name))

  if plan.idiom == TargetIdiom.IF_ELSE:
    else_statement = Block((_as_statement(plan.default),)) if plan.default is not None else None
    return IfStatement(condition, Block((ExpressionStatement(body),)), else_statement)

  when_false = plan.fallback if plan.fallback is not None else plan.default
  return Conditional(condition, body, when_false)


def synthesize(plan: RewritePlan, binding_name: Optional[str] = None) -> RewriteCandidate:
  """
  Builds the candidate for a plan.

  Args:
      plan: An eligible plan.
      binding_name: The name for the pattern variable. Required for the
          type-test and if/else forms; ignored by chain forms.

  Returns:
      RewriteCandidate: The replacement for `plan.target`.

  Raises:
      ValueError: If a binding form is requested without a name, or a type cannot
          be referenced by name.
  """
  if plan.needs_binding:
    if not binding_name:
      raise ValueError(f"{plan.idiom.value} rewrite needs a binding name")
    replacement = build_type_test(plan, binding_name)
    bindings = (binding_name,)
  else:
    replacement = build_chain(plan)
    bindings = ()
  return RewriteCandidate(
    idiom=plan.idiom,
    target=plan.target,
    replacement=add_parentheses(replacement),
    introduced_bindings=bindings,
  )

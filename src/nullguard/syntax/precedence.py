"""
Operator Precedence.

Classifies expressions by the C# precedence tier they bind at, and decides when a
synthesized expression needs parentheses to keep its meaning at the position it
is spliced into.
"""

import dataclasses
from enum import IntEnum

from nullguard.syntax.nodes import (
  AnonymousMethod,
  AsExpression,
  Assignment,
  Await,
  Binary,
  Cast,
  Conditional,
  ConditionalAccess,
  ElementAccess,
  ExpressionSyntax,
  Invocation,
  IsPattern,
  Lambda,
  MemberAccess,
  Parenthesized,
  PostfixUnary,
  QueryExpression,
  SyntaxNode,
  ThrowExpression,
  Unary,
)


class Precedence(IntEnum):
  """C# precedence tiers, loosest first."""

  ASSIGNMENT = 1
  CONDITIONAL = 2
  COALESCE = 3
  CONDITIONAL_OR = 4
  CONDITIONAL_AND = 5
  LOGICAL_OR = 6
  LOGICAL_XOR = 7
  LOGICAL_AND = 8
  EQUALITY = 9
  RELATIONAL = 10
  SHIFT = 11
  ADDITIVE = 12
  MULTIPLICATIVE = 13
  UNARY = 14
  PRIMARY = 15


BINARY_PRECEDENCE = {
  "??": Precedence.COALESCE,
  "||": Precedence.CONDITIONAL_OR,
  "&&": Precedence.CONDITIONAL_AND,
  "|": Precedence.LOGICAL_OR,
  "^": Precedence.LOGICAL_XOR,
  "&": Precedence.LOGICAL_AND,
  "==": Precedence.EQUALITY,
  "!=": Precedence.EQUALITY,
  "<": Precedence.RELATIONAL,
  ">": Precedence.RELATIONAL,
  "<=": Precedence.RELATIONAL,
  ">=": Precedence.RELATIONAL,
  "<<": Precedence.SHIFT,
  ">>": Precedence.SHIFT,
  "+": Precedence.ADDITIVE,
  "-": Precedence.ADDITIVE,
  "*": Precedence.MULTIPLICATIVE,
  "/": Precedence.MULTIPLICATIVE,
  "%": Precedence.MULTIPLICATIVE,
}


def precedence_of(expr: SyntaxNode) -> Precedence:
  """
  Returns the tier an expression binds at.

  Args:
      expr: Any expression node.

  Returns:
      Precedence: PRIMARY for atoms and postfix chains.
  """
  if isinstance(expr, (Lambda, AnonymousMethod, Assignment, ThrowExpression, QueryExpression)):
    return Precedence.ASSIGNMENT
  if isinstance(expr, Conditional):
    return Precedence.CONDITIONAL
  if isinstance(expr, Binary):
    return BINARY_PRECEDENCE.get(expr.operator, Precedence.ASSIGNMENT)
  if isinstance(expr, (IsPattern, AsExpression)):
    return Precedence.RELATIONAL
  if isinstance(expr, (Unary, Cast, Await)):
    return Precedence.UNARY
  return Precedence.PRIMARY


def parenthesize(expr: ExpressionSyntax, minimum: Precedence) -> ExpressionSyntax:
  """Wraps `expr` in parentheses when it binds looser than `minimum`."""
  if precedence_of(expr) < minimum:
    return Parenthesized(expr)
  return expr


def needs_parentheses(parent: SyntaxNode, field_name: str, child: ExpressionSyntax) -> bool:
  """
  Decides whether `child`, placed in `parent.<field_name>`, must be parenthesized.

  Receiver slots of member, element and invocation accesses need a primary
  expression that is not itself a conditional access (wrapping would otherwise
  extend the null-conditional short circuit). The receiver of a conditional access
  does accept a nested conditional access.

  Args:
      parent: The node that will own `child`.
      field_name: The dataclass field of `parent` holding `child`.
      child: The expression being placed.

  Returns:
      bool: True if parentheses are required.
  """
  child_prec = precedence_of(child)

  if isinstance(parent, (MemberAccess, ElementAccess, Invocation, PostfixUnary)) and field_name in ("expression", "operand"):
    return child_prec < Precedence.PRIMARY or isinstance(child, ConditionalAccess)
  if isinstance(parent, ConditionalAccess) and field_name == "expression":
    return child_prec < Precedence.PRIMARY
  if isinstance(parent, Binary):
    op_prec = BINARY_PRECEDENCE.get(parent.operator, Precedence.ASSIGNMENT)
    right_assoc = parent.operator == "??"
    if field_name == "left":
      return child_prec <= op_prec if right_assoc else child_prec < op_prec
    return child_prec < op_prec if right_assoc else child_prec <= op_prec
  if isinstance(parent, (IsPattern, AsExpression)) and field_name == "expression":
    return child_prec < Precedence.RELATIONAL
  if isinstance(parent, (Unary, Cast, Await)) and field_name in ("operand", "expression"):
    return child_prec < Precedence.UNARY
  if isinstance(parent, Conditional) and field_name == "condition":
    return child_prec < Precedence.COALESCE
  return False


def field_of(parent: SyntaxNode, child: SyntaxNode) -> str:
  """Returns the name of the field in `parent` that holds `child` (by identity)."""
  for name in parent.__dataclass_fields__:
    value = getattr(parent, name)
    if value is child or (isinstance(value, tuple) and any(v is child for v in value)):
      return name
  raise ValueError(f"{type(child).__name__} is not a child of {type(parent).__name__}")


def add_parentheses(node: SyntaxNode) -> SyntaxNode:
  """
  Parenthesizes the children of synthesized nodes wherever precedence requires it.

  Parsed subtrees (nodes with a span) are already valid where they stand and are
  returned unchanged; only their placement under a synthesized parent is checked.

  Args:
      node: Root of a synthesized fragment.

  Returns:
      SyntaxNode: The fragment with the required `Parenthesized` wrappers added.
  """
  if node.span is not None:
    return node

  def fit(field_name: str, child: SyntaxNode) -> SyntaxNode:
    fixed = add_parentheses(child)
    if isinstance(fixed, ExpressionSyntax) and needs_parentheses(node, field_name, fixed):
      return Parenthesized(fixed)
    return fixed

  changes = {}
  for f in dataclasses.fields(node):
    if f.name == "span":
      continue
    value = getattr(node, f.name)
    if isinstance(value, SyntaxNode):
      fixed = fit(f.name, value)
      if fixed is not value:
        changes[f.name] = fixed
    elif isinstance(value, tuple) and any(isinstance(v, SyntaxNode) for v in value):
      items = tuple(fit(f.name, v) if isinstance(v, SyntaxNode) else v for v in value)
      if any(a is not b for a, b in zip(items, value)):
        changes[f.name] = items
  if not changes:
    return node
  return dataclasses.replace(node, **changes)

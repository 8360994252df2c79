"""
C# Syntax Tree Nodes.

This module defines the closed family of node types for the C# subset the engine
analyzes. It follows the same philosophy as the other tree modules in this codebase:
nodes own their string representation via `to_text()`.

Design constraints:
- Nodes are frozen dataclasses compared by identity (`eq=False`). Two structurally
  equal fragments at different positions are different nodes.
- Fields are declared in source order, so `nullguard.syntax.tree.children` can
  enumerate child nodes generically.
- Nodes produced by the parser carry a `span`; synthesized nodes leave it `None`.
"""

from abc import ABC, abstractmethod
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Iterator, Optional, Tuple, Union

from nullguard.syntax.source import TextSpan

_INDENT = "    "

_SOURCE_TEXT: ContextVar[Optional[str]] = ContextVar("nullguard_source_text", default=None)


@contextmanager
def source_text(text: str) -> Iterator[None]:
  """
  Renders parsed nodes verbatim from `text` while the context is active.

  Inside this context, any node that still carries a `span` renders as the exact
  source slice it was parsed from, so untouched sub-expressions keep the author's
  formatting inside synthesized replacements.

  Args:
      text: The source text the spans refer to.
  """
  token = _SOURCE_TEXT.set(text)
  try:
    yield
  finally:
    _SOURCE_TEXT.reset(token)


@dataclass(frozen=True, eq=False)
class SyntaxNode(ABC):
  """Abstract base class for all syntax nodes."""

  span: Optional[TextSpan] = field(default=None, kw_only=True, repr=False)

  def to_text(self) -> str:
    """
    Render this node to C# text.

    Returns:
        str: The source slice when rendering under `source_text` and the node was
        parsed, otherwise the canonical rendering.
    """
    text = _SOURCE_TEXT.get()
    if text is not None and self.span is not None:
      return text[self.span.start : self.span.end]
    return self._render()

  @abstractmethod
  def _render(self) -> str:
    """Canonical rendering of this construct."""

  def __str__(self) -> str:
    return self.to_text()


class ExpressionSyntax(SyntaxNode):
  """Marker base for expressions."""


class TypeSyntax(SyntaxNode):
  """Marker base for type references."""


class PatternSyntax(SyntaxNode):
  """Marker base for `is` patterns."""


class StatementSyntax(SyntaxNode):
  """Marker base for statements."""


class MemberDeclaration(SyntaxNode):
  """Marker base for declarations that can enclose code (namespaces, types, members)."""


def _join(nodes) -> str:
  return ", ".join(n.to_text() for n in nodes)


def _type_args(type_arguments) -> str:
  return f"<{_join(type_arguments)}>" if type_arguments else ""


# --- Types ---


@dataclass(frozen=True, eq=False)
class PredefinedType(TypeSyntax):
  """A keyword type such as `int`, `string` or `void`."""

  keyword: str

  def _render(self) -> str:
    return self.keyword


@dataclass(frozen=True, eq=False)
class NamedType(TypeSyntax):
  """
  A simple, qualified or generic type name.

  Example: `System.Func<int, string>` has parts `("System", "Func")`.
  """

  parts: Tuple[str, ...]
  type_arguments: Tuple[TypeSyntax, ...] = ()

  @property
  def name(self) -> str:
    """The right-most identifier."""
    return self.parts[-1]

  def _render(self) -> str:
    text = ".".join(self.parts)
    if self.type_arguments:
      text += f"<{_join(self.type_arguments)}>"
    return text


@dataclass(frozen=True, eq=False)
class NullableType(TypeSyntax):
  """`T?`"""

  element_type: TypeSyntax

  def _render(self) -> str:
    return f"{self.element_type.to_text()}?"


@dataclass(frozen=True, eq=False)
class ArrayType(TypeSyntax):
  """`T[]`"""

  element_type: TypeSyntax
  rank: int = 1

  def _render(self) -> str:
    return f"{self.element_type.to_text()}[{',' * (self.rank - 1)}]"


# --- Expressions ---


@dataclass(frozen=True, eq=False)
class IdentifierName(ExpressionSyntax):
  """A bare identifier used as an expression."""

  identifier: str
  type_arguments: Tuple[TypeSyntax, ...] = ()

  def _render(self) -> str:
    return self.identifier + _type_args(self.type_arguments)


@dataclass(frozen=True, eq=False)
class LiteralExpression(ExpressionSyntax):
  """
  A literal token.

  Attributes:
      kind: One of `numeric`, `string`, `char`, `true`, `false`, `null`.
      token: The literal's source spelling.
  """

  kind: str
  token: str

  def _render(self) -> str:
    return self.token


@dataclass(frozen=True, eq=False)
class ThisExpression(ExpressionSyntax):
  def _render(self) -> str:
    return "this"


@dataclass(frozen=True, eq=False)
class DefaultExpression(ExpressionSyntax):
  """`default(T)`, or the target-typed `default` literal when `type` is None."""

  type: Optional[TypeSyntax] = None

  def _render(self) -> str:
    if self.type is None:
      return "default"
    return f"default({self.type.to_text()})"


@dataclass(frozen=True, eq=False)
class TypeOfExpression(ExpressionSyntax):
  type: TypeSyntax

  def _render(self) -> str:
    return f"typeof({self.type.to_text()})"


@dataclass(frozen=True, eq=False)
class Argument(SyntaxNode):
  """An invocation or element-access argument, optionally named or by-reference."""

  expression: ExpressionSyntax
  name: Optional[str] = None
  modifier: Optional[str] = None

  def _render(self) -> str:
    text = self.expression.to_text()
    if self.modifier:
      text = f"{self.modifier} {text}"
    if self.name:
      text = f"{self.name}: {text}"
    return text


@dataclass(frozen=True, eq=False)
class MemberAccess(ExpressionSyntax):
  """`expression.name`"""

  expression: ExpressionSyntax
  name: str
  type_arguments: Tuple[TypeSyntax, ...] = ()

  def _render(self) -> str:
    return f"{self.expression.to_text()}.{self.name}{_type_args(self.type_arguments)}"


@dataclass(frozen=True, eq=False)
class MemberBinding(ExpressionSyntax):
  """`.name` at the start of a conditional access's when-not-null chain."""

  name: str
  type_arguments: Tuple[TypeSyntax, ...] = ()

  def _render(self) -> str:
    return f".{self.name}{_type_args(self.type_arguments)}"


@dataclass(frozen=True, eq=False)
class ElementAccess(ExpressionSyntax):
  """`expression[arguments]`"""

  expression: ExpressionSyntax
  arguments: Tuple[Argument, ...]

  def _render(self) -> str:
    return f"{self.expression.to_text()}[{_join(self.arguments)}]"


@dataclass(frozen=True, eq=False)
class ElementBinding(ExpressionSyntax):
  """`[arguments]` at the start of a conditional access's when-not-null chain."""

  arguments: Tuple[Argument, ...]

  def _render(self) -> str:
    return f"[{_join(self.arguments)}]"


@dataclass(frozen=True, eq=False)
class ConditionalAccess(ExpressionSyntax):
  """
  `expression?<when_not_null>`.

  The when-not-null chain always starts with a `MemberBinding` or `ElementBinding`
  as its leftmost node.
  """

  expression: ExpressionSyntax
  when_not_null: ExpressionSyntax

  def _render(self) -> str:
    return f"{self.expression.to_text()}?{self.when_not_null.to_text()}"


@dataclass(frozen=True, eq=False)
class Invocation(ExpressionSyntax):
  """`expression(arguments)`"""

  expression: ExpressionSyntax
  arguments: Tuple[Argument, ...] = ()

  def _render(self) -> str:
    return f"{self.expression.to_text()}({_join(self.arguments)})"


@dataclass(frozen=True, eq=False)
class Parenthesized(ExpressionSyntax):
  expression: ExpressionSyntax

  def _render(self) -> str:
    return f"({self.expression.to_text()})"


@dataclass(frozen=True, eq=False)
class Cast(ExpressionSyntax):
  """`(type) expression`"""

  type: TypeSyntax
  expression: ExpressionSyntax

  def _render(self) -> str:
    return f"({self.type.to_text()}) {self.expression.to_text()}"


@dataclass(frozen=True, eq=False)
class AsExpression(ExpressionSyntax):
  """Safe cast: `expression as type`."""

  expression: ExpressionSyntax
  type: TypeSyntax

  def _render(self) -> str:
    return f"{self.expression.to_text()} as {self.type.to_text()}"


@dataclass(frozen=True, eq=False)
class Binary(ExpressionSyntax):
  """Infix operator application, including `??`."""

  left: ExpressionSyntax
  operator: str
  right: ExpressionSyntax

  def _render(self) -> str:
    return f"{self.left.to_text()} {self.operator} {self.right.to_text()}"


@dataclass(frozen=True, eq=False)
class Unary(ExpressionSyntax):
  """Prefix operator application (`!x`, `-x`, `++x`)."""

  operator: str
  operand: ExpressionSyntax

  def _render(self) -> str:
    return f"{self.operator}{self.operand.to_text()}"


@dataclass(frozen=True, eq=False)
class PostfixUnary(ExpressionSyntax):
  """Postfix operator application (`x++`, null-forgiving `x!`)."""

  operand: ExpressionSyntax
  operator: str

  def _render(self) -> str:
    return f"{self.operand.to_text()}{self.operator}"


@dataclass(frozen=True, eq=False)
class Await(ExpressionSyntax):
  expression: ExpressionSyntax

  def _render(self) -> str:
    return f"await {self.expression.to_text()}"


@dataclass(frozen=True, eq=False)
class Assignment(ExpressionSyntax):
  left: ExpressionSyntax
  operator: str
  right: ExpressionSyntax

  def _render(self) -> str:
    return f"{self.left.to_text()} {self.operator} {self.right.to_text()}"


@dataclass(frozen=True, eq=False)
class IsPattern(ExpressionSyntax):
  """`expression is pattern`"""

  expression: ExpressionSyntax
  pattern: PatternSyntax

  def _render(self) -> str:
    return f"{self.expression.to_text()} is {self.pattern.to_text()}"


@dataclass(frozen=True, eq=False)
class Conditional(ExpressionSyntax):
  """`condition ? when_true : when_false`"""

  condition: ExpressionSyntax
  when_true: ExpressionSyntax
  when_false: ExpressionSyntax

  def _render(self) -> str:
    return f"{self.condition.to_text()} ? {self.when_true.to_text()} : {self.when_false.to_text()}"


@dataclass(frozen=True, eq=False)
class Parameter(SyntaxNode):
  """A method, lambda or indexer parameter."""

  name: str
  type: Optional[TypeSyntax] = None
  modifiers: Tuple[str, ...] = ()
  default: Optional[ExpressionSyntax] = None

  def _render(self) -> str:
    parts = list(self.modifiers)
    if self.type is not None:
      parts.append(self.type.to_text())
    parts.append(self.name)
    text = " ".join(parts)
    if self.default is not None:
      text += f" = {self.default.to_text()}"
    return text


@dataclass(frozen=True, eq=False)
class Lambda(ExpressionSyntax):
  """
  `x => body`, `(T x, y) => body` or `async x => body`.

  Attributes:
      parameters: Declared parameters.
      body: An expression, or a `Block` for statement lambdas.
      is_async: Whether the `async` modifier is present.
      parenthesized: Whether the parameter list is written in parentheses.
  """

  parameters: Tuple[Parameter, ...]
  body: Union[ExpressionSyntax, "Block"]
  is_async: bool = False
  parenthesized: bool = False

  def _render(self) -> str:
    simple = len(self.parameters) == 1 and self.parameters[0].type is None and not self.parenthesized
    params = self.parameters[0].to_text() if simple else f"({_join(self.parameters)})"
    prefix = "async " if self.is_async else ""
    return f"{prefix}{params} => {self.body.to_text()}"


@dataclass(frozen=True, eq=False)
class AnonymousMethod(ExpressionSyntax):
  """Old-style anonymous delegate: `delegate (int x) { ... }`."""

  parameters: Optional[Tuple[Parameter, ...]]
  body: "Block"
  is_async: bool = False

  def _render(self) -> str:
    prefix = "async " if self.is_async else ""
    params = f" ({_join(self.parameters)})" if self.parameters is not None else ""
    return f"{prefix}delegate{params} {self.body.to_text()}"


@dataclass(frozen=True, eq=False)
class InitializerExpression(ExpressionSyntax):
  """`{ a, b }` or `{ Name = value }` following a creation expression."""

  expressions: Tuple[ExpressionSyntax, ...] = ()

  def _render(self) -> str:
    if not self.expressions:
      return "{ }"
    return f"{{ {_join(self.expressions)} }}"


@dataclass(frozen=True, eq=False)
class ObjectCreation(ExpressionSyntax):
  """`new T(arguments) { initializer }`"""

  type: TypeSyntax
  arguments: Optional[Tuple[Argument, ...]] = ()
  initializer: Optional[InitializerExpression] = None

  def _render(self) -> str:
    text = f"new {self.type.to_text()}"
    if self.arguments is not None:
      text += f"({_join(self.arguments)})"
    if self.initializer is not None:
      text += f" {self.initializer.to_text()}"
    return text


@dataclass(frozen=True, eq=False)
class AnonymousObjectMember(SyntaxNode):
  """`Name = expression`, or a projection initializer when `name` is None."""

  expression: ExpressionSyntax
  name: Optional[str] = None

  def _render(self) -> str:
    if self.name is None:
      return self.expression.to_text()
    return f"{self.name} = {self.expression.to_text()}"


@dataclass(frozen=True, eq=False)
class AnonymousObjectCreation(ExpressionSyntax):
  """`new { Property = value }`"""

  members: Tuple[AnonymousObjectMember, ...] = ()

  def _render(self) -> str:
    if not self.members:
      return "new { }"
    return f"new {{ {_join(self.members)} }}"


@dataclass(frozen=True, eq=False)
class ArrayCreation(ExpressionSyntax):
  """`new[] { x }`, `new T[] { x }` or `new T[n]`."""

  element_type: Optional[TypeSyntax] = None
  sizes: Tuple[ExpressionSyntax, ...] = ()
  initializer: Optional[InitializerExpression] = None

  def _render(self) -> str:
    if self.element_type is None:
      text = "new[]"
    else:
      text = f"new {self.element_type.to_text()}[{_join(self.sizes)}]"
    if self.initializer is not None:
      text += f" {self.initializer.to_text()}"
    return text


@dataclass(frozen=True, eq=False)
class ThrowExpression(ExpressionSyntax):
  expression: ExpressionSyntax

  def _render(self) -> str:
    return f"throw {self.expression.to_text()}"


@dataclass(frozen=True, eq=False)
class DeclarationExpression(ExpressionSyntax):
  """`var x` as used in `out var x` arguments."""

  type: TypeSyntax
  designation: str

  def _render(self) -> str:
    return f"{self.type.to_text()} {self.designation}"


# --- Query expressions ---


@dataclass(frozen=True, eq=False)
class FromClause(SyntaxNode):
  """`from [T] x in expression`"""

  identifier: str
  expression: ExpressionSyntax
  type: Optional[TypeSyntax] = None

  def _render(self) -> str:
    typed = f"{self.type.to_text()} " if self.type is not None else ""
    return f"from {typed}{self.identifier} in {self.expression.to_text()}"


@dataclass(frozen=True, eq=False)
class LetClause(SyntaxNode):
  identifier: str
  expression: ExpressionSyntax

  def _render(self) -> str:
    return f"let {self.identifier} = {self.expression.to_text()}"


@dataclass(frozen=True, eq=False)
class WhereClause(SyntaxNode):
  condition: ExpressionSyntax

  def _render(self) -> str:
    return f"where {self.condition.to_text()}"


@dataclass(frozen=True, eq=False)
class Ordering(SyntaxNode):
  expression: ExpressionSyntax
  direction: Optional[str] = None

  def _render(self) -> str:
    if self.direction:
      return f"{self.expression.to_text()} {self.direction}"
    return self.expression.to_text()


@dataclass(frozen=True, eq=False)
class OrderByClause(SyntaxNode):
  orderings: Tuple[Ordering, ...]

  def _render(self) -> str:
    return f"orderby {_join(self.orderings)}"


@dataclass(frozen=True, eq=False)
class SelectClause(SyntaxNode):
  expression: ExpressionSyntax

  def _render(self) -> str:
    return f"select {self.expression.to_text()}"


@dataclass(frozen=True, eq=False)
class GroupClause(SyntaxNode):
  group_expression: ExpressionSyntax
  by_expression: ExpressionSyntax

  def _render(self) -> str:
    return f"group {self.group_expression.to_text()} by {self.by_expression.to_text()}"


@dataclass(frozen=True, eq=False)
class QueryBody(SyntaxNode):
  clauses: Tuple[SyntaxNode, ...]
  select_or_group: SyntaxNode
  continuation: Optional["QueryContinuation"] = None

  def _render(self) -> str:
    parts = [c.to_text() for c in self.clauses]
    parts.append(self.select_or_group.to_text())
    if self.continuation is not None:
      parts.append(self.continuation.to_text())
    return " ".join(parts)


@dataclass(frozen=True, eq=False)
class QueryContinuation(SyntaxNode):
  """`into x <body>`"""

  identifier: str
  body: QueryBody

  def _render(self) -> str:
    return f"into {self.identifier} {self.body.to_text()}"


@dataclass(frozen=True, eq=False)
class QueryExpression(ExpressionSyntax):
  from_clause: FromClause
  body: QueryBody

  def _render(self) -> str:
    return f"{self.from_clause.to_text()} {self.body.to_text()}"


# --- Patterns ---


@dataclass(frozen=True, eq=False)
class DeclarationPattern(PatternSyntax):
  """`T name`: tests the type and binds the value."""

  type: TypeSyntax
  designation: str

  def _render(self) -> str:
    return f"{self.type.to_text()} {self.designation}"


@dataclass(frozen=True, eq=False)
class TypePattern(PatternSyntax):
  type: TypeSyntax

  def _render(self) -> str:
    return self.type.to_text()


@dataclass(frozen=True, eq=False)
class ConstantPattern(PatternSyntax):
  expression: ExpressionSyntax

  def _render(self) -> str:
    return self.expression.to_text()


@dataclass(frozen=True, eq=False)
class NotPattern(PatternSyntax):
  pattern: PatternSyntax

  def _render(self) -> str:
    return f"not {self.pattern.to_text()}"


# --- Statements ---


@dataclass(frozen=True, eq=False)
class Block(StatementSyntax):
  statements: Tuple[StatementSyntax, ...] = ()

  def _render(self) -> str:
    if not self.statements:
      return "{ }"
    return "{ " + " ".join(s.to_text() for s in self.statements) + " }"


@dataclass(frozen=True, eq=False)
class ExpressionStatement(StatementSyntax):
  expression: ExpressionSyntax

  def _render(self) -> str:
    return f"{self.expression.to_text()};"


@dataclass(frozen=True, eq=False)
class VariableDeclarator(SyntaxNode):
  name: str
  initializer: Optional[ExpressionSyntax] = None

  def _render(self) -> str:
    if self.initializer is None:
      return self.name
    return f"{self.name} = {self.initializer.to_text()}"


@dataclass(frozen=True, eq=False)
class LocalDeclaration(StatementSyntax):
  type: TypeSyntax
  declarators: Tuple[VariableDeclarator, ...]
  is_const: bool = False

  def _render(self) -> str:
    prefix = "const " if self.is_const else ""
    return f"{prefix}{self.type.to_text()} {_join(self.declarators)};"


@dataclass(frozen=True, eq=False)
class IfStatement(StatementSyntax):
  condition: ExpressionSyntax
  statement: StatementSyntax
  else_statement: Optional[StatementSyntax] = None

  def _render(self) -> str:
    text = f"if ({self.condition.to_text()}) {self.statement.to_text()}"
    if self.else_statement is not None:
      text += f" else {self.else_statement.to_text()}"
    return text


@dataclass(frozen=True, eq=False)
class ReturnStatement(StatementSyntax):
  expression: Optional[ExpressionSyntax] = None

  def _render(self) -> str:
    if self.expression is None:
      return "return;"
    return f"return {self.expression.to_text()};"


@dataclass(frozen=True, eq=False)
class ThrowStatement(StatementSyntax):
  expression: Optional[ExpressionSyntax] = None

  def _render(self) -> str:
    if self.expression is None:
      return "throw;"
    return f"throw {self.expression.to_text()};"


@dataclass(frozen=True, eq=False)
class WhileStatement(StatementSyntax):
  condition: ExpressionSyntax
  statement: StatementSyntax

  def _render(self) -> str:
    return f"while ({self.condition.to_text()}) {self.statement.to_text()}"


@dataclass(frozen=True, eq=False)
class ForEachStatement(StatementSyntax):
  type: TypeSyntax
  identifier: str
  expression: ExpressionSyntax
  statement: StatementSyntax

  def _render(self) -> str:
    return f"foreach ({self.type.to_text()} {self.identifier} in {self.expression.to_text()}) {self.statement.to_text()}"


@dataclass(frozen=True, eq=False)
class EmptyStatement(StatementSyntax):
  def _render(self) -> str:
    return ";"


# --- Declarations ---


def _modifiers(modifiers: Tuple[str, ...]) -> str:
  return "".join(f"{m} " for m in modifiers)


def _indent(text: str) -> str:
  return "\n".join(_INDENT + line if line else line for line in text.split("\n"))


def _member_body(body: Optional[Block], expression_body: Optional[ExpressionSyntax]) -> str:
  if expression_body is not None:
    return f" => {expression_body.to_text()};"
  if body is not None:
    return f" {body.to_text()}"
  return ";"


@dataclass(frozen=True, eq=False)
class UsingDirective(SyntaxNode):
  """`using A.B;`, `using static A.B;` or `using X = A.B;`"""

  name: str
  is_static: bool = False
  alias: Optional[str] = None

  def _render(self) -> str:
    static = "static " if self.is_static else ""
    alias = f"{self.alias} = " if self.alias else ""
    return f"using {static}{alias}{self.name};"


@dataclass(frozen=True, eq=False)
class TypeParameter(SyntaxNode):
  name: str

  def _render(self) -> str:
    return self.name


@dataclass(frozen=True, eq=False)
class Accessor(SyntaxNode):
  """`get`, `set` or `init` accessor of a property or indexer."""

  keyword: str
  modifiers: Tuple[str, ...] = ()
  body: Optional[Block] = None
  expression_body: Optional[ExpressionSyntax] = None

  def _render(self) -> str:
    return f"{_modifiers(self.modifiers)}{self.keyword}{_member_body(self.body, self.expression_body)}"


def _accessor_list(accessors: Tuple[Accessor, ...]) -> str:
  return "{ " + " ".join(a.to_text() for a in accessors) + " }"


@dataclass(frozen=True, eq=False)
class ConstraintClause(SyntaxNode):
  """`where T : class, new()`"""

  type_parameter: str
  constraints: Tuple[str, ...]

  def _render(self) -> str:
    return f"where {self.type_parameter} : {', '.join(self.constraints)}"


def _constraints(clauses: Tuple[ConstraintClause, ...]) -> str:
  return "".join(f" {c.to_text()}" for c in clauses)


@dataclass(frozen=True, eq=False)
class MethodDeclaration(MemberDeclaration):
  modifiers: Tuple[str, ...]
  return_type: TypeSyntax
  name: str
  type_parameters: Tuple[TypeParameter, ...] = ()
  parameters: Tuple[Parameter, ...] = ()
  body: Optional[Block] = None
  expression_body: Optional[ExpressionSyntax] = None
  constraint_clauses: Tuple[ConstraintClause, ...] = ()

  def _render(self) -> str:
    generic = f"<{_join(self.type_parameters)}>" if self.type_parameters else ""
    return (
      f"{_modifiers(self.modifiers)}{self.return_type.to_text()} {self.name}{generic}"
      f"({_join(self.parameters)}){_constraints(self.constraint_clauses)}{_member_body(self.body, self.expression_body)}"
    )


@dataclass(frozen=True, eq=False)
class DelegateDeclaration(MemberDeclaration):
  """`delegate TResult Func<in T, out TResult>(T arg);`"""

  modifiers: Tuple[str, ...]
  return_type: TypeSyntax
  name: str
  type_parameters: Tuple[TypeParameter, ...] = ()
  parameters: Tuple[Parameter, ...] = ()
  constraint_clauses: Tuple[ConstraintClause, ...] = ()

  def _render(self) -> str:
    generic = f"<{_join(self.type_parameters)}>" if self.type_parameters else ""
    return (
      f"{_modifiers(self.modifiers)}delegate {self.return_type.to_text()} {self.name}{generic}"
      f"({_join(self.parameters)}){_constraints(self.constraint_clauses)};"
    )


@dataclass(frozen=True, eq=False)
class ConstructorDeclaration(MemberDeclaration):
  modifiers: Tuple[str, ...]
  name: str
  parameters: Tuple[Parameter, ...] = ()
  body: Optional[Block] = None
  expression_body: Optional[ExpressionSyntax] = None

  def _render(self) -> str:
    return f"{_modifiers(self.modifiers)}{self.name}({_join(self.parameters)}){_member_body(self.body, self.expression_body)}"


@dataclass(frozen=True, eq=False)
class PropertyDeclaration(MemberDeclaration):
  modifiers: Tuple[str, ...]
  type: TypeSyntax
  name: str
  accessors: Optional[Tuple[Accessor, ...]] = None
  expression_body: Optional[ExpressionSyntax] = None
  initializer: Optional[ExpressionSyntax] = None

  def _render(self) -> str:
    head = f"{_modifiers(self.modifiers)}{self.type.to_text()} {self.name}"
    if self.expression_body is not None:
      return f"{head} => {self.expression_body.to_text()};"
    text = f"{head} {_accessor_list(self.accessors or ())}"
    if self.initializer is not None:
      text += f" = {self.initializer.to_text()};"
    return text


@dataclass(frozen=True, eq=False)
class IndexerDeclaration(MemberDeclaration):
  modifiers: Tuple[str, ...]
  type: TypeSyntax
  parameters: Tuple[Parameter, ...]
  accessors: Optional[Tuple[Accessor, ...]] = None
  expression_body: Optional[ExpressionSyntax] = None

  def _render(self) -> str:
    head = f"{_modifiers(self.modifiers)}{self.type.to_text()} this[{_join(self.parameters)}]"
    if self.expression_body is not None:
      return f"{head} => {self.expression_body.to_text()};"
    return f"{head} {_accessor_list(self.accessors or ())}"


@dataclass(frozen=True, eq=False)
class FieldDeclaration(MemberDeclaration):
  modifiers: Tuple[str, ...]
  type: TypeSyntax
  declarators: Tuple[VariableDeclarator, ...]

  def _render(self) -> str:
    return f"{_modifiers(self.modifiers)}{self.type.to_text()} {_join(self.declarators)};"


@dataclass(frozen=True, eq=False)
class TypeDeclaration(MemberDeclaration):
  """A `class`, `struct` or `interface` declaration."""

  modifiers: Tuple[str, ...]
  keyword: str
  name: str
  type_parameters: Tuple[TypeParameter, ...] = ()
  base_types: Tuple[TypeSyntax, ...] = ()
  members: Tuple[MemberDeclaration, ...] = ()
  constraint_clauses: Tuple[ConstraintClause, ...] = ()

  def _render(self) -> str:
    generic = f"<{_join(self.type_parameters)}>" if self.type_parameters else ""
    bases = f" : {_join(self.base_types)}" if self.base_types else ""
    lines = [f"{_modifiers(self.modifiers)}{self.keyword} {self.name}{generic}{bases}{_constraints(self.constraint_clauses)}", "{"]
    lines.extend(_indent(m.to_text()) for m in self.members)
    lines.append("}")
    return "\n".join(lines)


@dataclass(frozen=True, eq=False)
class NamespaceDeclaration(MemberDeclaration):
  name: str
  usings: Tuple[UsingDirective, ...] = ()
  members: Tuple[MemberDeclaration, ...] = ()
  file_scoped: bool = False

  def _render(self) -> str:
    inner = [u.to_text() for u in self.usings] + [m.to_text() for m in self.members]
    if self.file_scoped:
      return "\n".join([f"namespace {self.name};", *inner])
    return "\n".join([f"namespace {self.name}", "{", *(_indent(t) for t in inner), "}"])


@dataclass(frozen=True, eq=False)
class CompilationUnit(SyntaxNode):
  usings: Tuple[UsingDirective, ...] = ()
  members: Tuple[MemberDeclaration, ...] = ()

  def _render(self) -> str:
    parts = [u.to_text() for u in self.usings]
    if parts and self.members:
      parts.append("")
    parts.extend(m.to_text() for m in self.members)
    return "\n".join(parts) + "\n"

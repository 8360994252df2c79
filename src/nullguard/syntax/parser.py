"""
C# Parser Implementation.

This module provides the `CSharpParser`, a recursive descent parser that converts
a stream of tokens (from `CSharpLexer`) into the syntax tree defined in `nodes.py`.

Capabilities:
- Compilation units with `using` directives, block and file-scoped namespaces.
- Classes, structs and interfaces with methods, constructors, properties,
  indexers and fields.
- Statements: blocks, locals, `if`/`else`, `while`, `foreach`, `return`, `throw`.
- The full C# operator precedence ladder, including `??`, `is` patterns, casts,
  lambdas, anonymous methods, creation expressions and query expressions.
- Null-conditional chains (`a?.b[0]?.c()`), nested to the right as C# does.

Every parsed node carries the `TextSpan` of the tokens it was built from.
"""

from typing import List, Optional, Tuple, Union

from nullguard.syntax.nodes import (
  Accessor,
  AnonymousMethod,
  AnonymousObjectCreation,
  AnonymousObjectMember,
  Argument,
  ArrayCreation,
  ArrayType,
  AsExpression,
  Assignment,
  Await,
  Binary,
  Block,
  Cast,
  CompilationUnit,
  Conditional,
  ConditionalAccess,
  ConstantPattern,
  ConstraintClause,
  ConstructorDeclaration,
  DeclarationExpression,
  DeclarationPattern,
  DefaultExpression,
  DelegateDeclaration,
  ElementAccess,
  ElementBinding,
  EmptyStatement,
  ExpressionStatement,
  ExpressionSyntax,
  FieldDeclaration,
  ForEachStatement,
  FromClause,
  GroupClause,
  IdentifierName,
  IfStatement,
  IndexerDeclaration,
  InitializerExpression,
  Invocation,
  IsPattern,
  Lambda,
  LetClause,
  LiteralExpression,
  LocalDeclaration,
  MemberAccess,
  MemberBinding,
  MemberDeclaration,
  MethodDeclaration,
  NamedType,
  NamespaceDeclaration,
  NotPattern,
  NullableType,
  ObjectCreation,
  OrderByClause,
  Ordering,
  Parameter,
  Parenthesized,
  PatternSyntax,
  PostfixUnary,
  PredefinedType,
  PropertyDeclaration,
  QueryBody,
  QueryContinuation,
  QueryExpression,
  ReturnStatement,
  SelectClause,
  StatementSyntax,
  SyntaxNode,
  ThisExpression,
  ThrowExpression,
  ThrowStatement,
  TypeDeclaration,
  TypeOfExpression,
  TypeParameter,
  TypePattern,
  TypeSyntax,
  Unary,
  UsingDirective,
  VariableDeclarator,
  WhereClause,
  WhileStatement,
)
from nullguard.syntax.source import TextSpan
from nullguard.syntax.tokens import PREDEFINED_TYPES, CSharpLexer, Token, TokenType

MEMBER_MODIFIERS = frozenset(
  {
    "abstract",
    "async",
    "const",
    "internal",
    "override",
    "partial",
    "private",
    "protected",
    "public",
    "readonly",
    "sealed",
    "static",
    "virtual",
  }
)

PARAMETER_MODIFIERS = frozenset({"this", "ref", "out", "in", "params"})

ASSIGNMENT_OPERATORS = frozenset({"=", "+=", "-=", "*=", "/=", "%=", "&=", "|=", "^=", "??="})

# Binary operator tiers from loosest to tightest, below `??`.
BINARY_LEVELS: List[Tuple[str, ...]] = [
  ("||",),
  ("&&",),
  ("|",),
  ("^",),
  ("&",),
  ("==", "!="),
  ("<", ">", "<=", ">="),
  ("+", "-"),
  ("*", "/", "%"),
]
_RELATIONAL_LEVEL = 6

# Tokens after `(T)` that make the parenthesized type a cast.
_CAST_FOLLOWER_KEYWORDS = frozenset({"new", "this", "base", "null", "true", "false", "default", "typeof", "await", "delegate"})

# Tokens after `T?` that make the `?` a nullable marker inside an expression.
_NULLABLE_EXPRESSION_FOLLOWERS = frozenset({")", ",", ";", "]", "}", "??", ">"})


class CSharpParser:
  """
  Recursive descent parser for C#.
  """

  def __init__(self, code: str):
    """
    Initialize the parser.

    Args:
        code: The raw C# source string.
    """
    self.lexer = CSharpLexer()
    self.tokens = list(self.lexer.tokenize(code))
    self.pos = 0

  def parse(self) -> CompilationUnit:
    """
    Parses an entire compilation unit.

    Returns:
        CompilationUnit: The root of the tree.

    Raises:
        SyntaxError: On malformed input.
    """
    start = self._peek()
    usings = self._parse_usings()
    members = self._parse_members(closing=None)
    return CompilationUnit(tuple(usings), tuple(members), span=TextSpan(start.start, self.tokens[-1].end))

  def parse_expression(self) -> ExpressionSyntax:
    """
    Parses a standalone expression (the entire input).

    Returns:
        ExpressionSyntax: The parsed expression.
    """
    expr = self._parse_expression()
    self._expect_eof()
    return expr

  def parse_statement(self) -> StatementSyntax:
    """Parses a standalone statement (the entire input)."""
    stmt = self._parse_statement()
    self._expect_eof()
    return stmt

  # --- Token Helpers ---

  def _peek(self, offset: int = 0) -> Token:
    """Looks ahead at a pending token. Past the end, the EOF token is returned."""
    index = min(self.pos + offset, len(self.tokens) - 1)
    return self.tokens[index]

  def _previous(self) -> Token:
    return self.tokens[self.pos - 1]

  def _consume(self, kind: Optional[TokenType] = None) -> Token:
    """
    Consumes the current token.

    Args:
        kind: If provided, enforces that the current token matches this type.

    Raises:
        SyntaxError: If end of file or type mismatch.
    """
    token = self._peek()
    if token.kind == TokenType.EOF:
      raise SyntaxError(f"Unexpected End of File at line {token.line}.")
    if kind and token.kind != kind:
      raise SyntaxError(f"Expected {kind}, got {token.kind} ('{token.value}') at line {token.line}, col {token.column}")
    self.pos += 1
    return token

  def _expect(self, value: str) -> Token:
    """Consumes a punctuation or keyword token with the exact spelling `value`."""
    token = self._peek()
    if token.value != value or token.kind not in (TokenType.PUNCTUATION, TokenType.KEYWORD, TokenType.IDENTIFIER):
      raise SyntaxError(f"Expected '{value}', got '{token.value}' at line {token.line}, col {token.column}")
    self.pos += 1
    return token

  def _match(self, *values: str) -> bool:
    """Checks if the current token is punctuation with one of the given spellings."""
    return self._peek().is_punct(*values)

  def _accept(self, *values: str) -> Optional[Token]:
    """Consumes the current token if it is punctuation with one of the given spellings."""
    if self._match(*values):
      return self._consume()
    return None

  def _is_eof(self) -> bool:
    return self._peek().kind == TokenType.EOF

  def _expect_eof(self) -> None:
    if not self._is_eof():
      token = self._peek()
      raise SyntaxError(f"Unexpected '{token.value}' at line {token.line}, col {token.column}")

  def _identifier(self) -> str:
    return self._consume(TokenType.IDENTIFIER).value

  def _span(self, start: int) -> TextSpan:
    """Span from `start` to the end of the most recently consumed token."""
    return TextSpan(start, self._previous().end)

  # --- Declarations ---

  def _parse_usings(self) -> List[UsingDirective]:
    usings = []
    while self._peek().is_keyword("using"):
      start = self._consume().start
      is_static = bool(self._peek().is_keyword("static"))
      if is_static:
        self._consume()
      alias = None
      if self._peek().kind == TokenType.IDENTIFIER and self._peek(1).is_punct("="):
        alias = self._identifier()
        self._consume()
      name = self._parse_qualified_name()
      self._expect(";")
      usings.append(UsingDirective(name, is_static, alias, span=self._span(start)))
    return usings

  def _parse_qualified_name(self) -> str:
    parts = [self._identifier()]
    while self._match(".") and self._peek(1).kind == TokenType.IDENTIFIER:
      self._consume()
      parts.append(self._identifier())
    return ".".join(parts)

  def _parse_members(self, closing: Optional[str], type_name: Optional[str] = None) -> List[MemberDeclaration]:
    members = []
    while not self._is_eof() and not (closing and self._match(closing)):
      if self._accept(";"):
        continue
      members.append(self._parse_member(type_name))
    return members

  def _skip_attributes(self) -> None:
    while self._match("["):
      depth = 0
      while True:
        token = self._consume()
        if token.is_punct("["):
          depth += 1
        elif token.is_punct("]"):
          depth -= 1
          if depth == 0:
            break

  def _parse_constraint_clauses(self) -> Tuple[ConstraintClause, ...]:
    """Parses `where T : class, new()` clauses."""
    clauses = []
    while self._peek().is_word("where"):
      start = self._consume().start
      name = self._identifier()
      self._expect(":")
      constraints = []
      while True:
        if self._peek().is_keyword("class", "struct"):
          constraints.append(self._consume().value)
        elif self._peek().is_keyword("new"):
          self._consume()
          self._expect("(")
          self._expect(")")
          constraints.append("new()")
        else:
          constraints.append(self._parse_type().to_text())
        if not self._accept(","):
          break
      clauses.append(ConstraintClause(name, tuple(constraints), span=self._span(start)))
    return tuple(clauses)

  def _parse_member(self, type_name: Optional[str]) -> MemberDeclaration:
    self._skip_attributes()
    start = self._peek().start

    if self._peek().is_keyword("namespace"):
      return self._parse_namespace(start)

    modifiers = []
    while self._peek().kind == TokenType.KEYWORD and self._peek().value in MEMBER_MODIFIERS:
      modifiers.append(self._consume().value)

    token = self._peek()
    if token.is_keyword("class", "struct", "interface"):
      return self._parse_type_declaration(start, tuple(modifiers))

    if token.is_keyword("delegate"):
      self._consume()
      return_type = self._parse_type()
      name = self._identifier()
      type_parameters = self._parse_type_parameters()
      parameters = self._parse_parameter_list("(", ")")
      constraint_clauses = self._parse_constraint_clauses()
      self._expect(";")
      return DelegateDeclaration(
        tuple(modifiers), return_type, name, type_parameters, parameters, constraint_clauses, span=self._span(start)
      )

    if token.kind == TokenType.IDENTIFIER and token.value == type_name and self._peek(1).is_punct("("):
      self._consume()
      parameters = self._parse_parameter_list("(", ")")
      if self._accept(":"):
        # Constructor initializer `: base(...)` / `: this(...)`.
        self._consume()
        self._parse_argument_list("(", ")")
      body, expression_body = self._parse_member_body()
      return ConstructorDeclaration(tuple(modifiers), token.value, parameters, body, expression_body, span=self._span(start))

    member_type = self._parse_type()

    if self._peek().is_keyword("this"):
      self._consume()
      parameters = self._parse_parameter_list("[", "]")
      if self._accept("=>"):
        expr = self._parse_expression()
        self._expect(";")
        return IndexerDeclaration(tuple(modifiers), member_type, parameters, None, expr, span=self._span(start))
      accessors = self._parse_accessors()
      return IndexerDeclaration(tuple(modifiers), member_type, parameters, accessors, span=self._span(start))

    name = self._identifier()

    if self._match("<", "("):
      type_parameters = self._parse_type_parameters()
      parameters = self._parse_parameter_list("(", ")")
      constraint_clauses = self._parse_constraint_clauses()
      body, expression_body = self._parse_member_body()
      return MethodDeclaration(
        tuple(modifiers),
        member_type,
        name,
        type_parameters,
        parameters,
        body,
        expression_body,
        constraint_clauses,
        span=self._span(start),
      )

    if self._match("{"):
      accessors = self._parse_accessors()
      initializer = None
      if self._accept("="):
        initializer = self._parse_expression()
        self._expect(";")
      return PropertyDeclaration(tuple(modifiers), member_type, name, accessors, None, initializer, span=self._span(start))

    if self._accept("=>"):
      expr = self._parse_expression()
      self._expect(";")
      return PropertyDeclaration(tuple(modifiers), member_type, name, None, expr, span=self._span(start))

    declarators = self._parse_declarators(name)
    self._expect(";")
    return FieldDeclaration(tuple(modifiers), member_type, declarators, span=self._span(start))

  def _parse_namespace(self, start: int) -> NamespaceDeclaration:
    self._expect("namespace")
    name = self._parse_qualified_name()
    if self._accept(";"):
      usings = self._parse_usings()
      members = self._parse_members(closing=None)
      return NamespaceDeclaration(name, tuple(usings), tuple(members), True, span=self._span(start))
    self._expect("{")
    usings = self._parse_usings()
    members = self._parse_members(closing="}")
    self._expect("}")
    return NamespaceDeclaration(name, tuple(usings), tuple(members), span=self._span(start))

  def _parse_type_declaration(self, start: int, modifiers: Tuple[str, ...]) -> TypeDeclaration:
    keyword = self._consume().value
    name = self._identifier()
    type_parameters = self._parse_type_parameters()
    base_types = []
    if self._accept(":"):
      base_types.append(self._parse_type())
      while self._accept(","):
        base_types.append(self._parse_type())
    constraint_clauses = self._parse_constraint_clauses()
    self._expect("{")
    members = self._parse_members(closing="}", type_name=name)
    self._expect("}")
    return TypeDeclaration(
      modifiers,
      keyword,
      name,
      type_parameters,
      tuple(base_types),
      tuple(members),
      constraint_clauses,
      span=self._span(start),
    )

  def _parse_type_parameters(self) -> Tuple[TypeParameter, ...]:
    params = []
    if self._accept("<"):
      while True:
        if self._peek().is_keyword("in", "out"):
          self._consume()
        token = self._consume(TokenType.IDENTIFIER)
        params.append(TypeParameter(token.value, span=TextSpan(token.start, token.end)))
        if not self._accept(","):
          break
      self._expect(">")
    return tuple(params)

  def _parse_parameter_list(self, opening: str, closing: str) -> Tuple[Parameter, ...]:
    self._expect(opening)
    params = []
    if not self._match(closing):
      while True:
        params.append(self._parse_parameter())
        if not self._accept(","):
          break
    self._expect(closing)
    return tuple(params)

  def _parse_parameter(self) -> Parameter:
    self._skip_attributes()
    start = self._peek().start
    modifiers = []
    while self._peek().kind == TokenType.KEYWORD and self._peek().value in PARAMETER_MODIFIERS:
      modifiers.append(self._consume().value)
    param_type = self._parse_type()
    name = self._identifier()
    default = None
    if self._accept("="):
      default = self._parse_expression()
    return Parameter(name, param_type, tuple(modifiers), default, span=self._span(start))

  def _parse_member_body(self) -> Tuple[Optional[Block], Optional[ExpressionSyntax]]:
    if self._accept("=>"):
      expr = self._parse_expression()
      self._expect(";")
      return None, expr
    if self._accept(";"):
      return None, None
    return self._parse_block(), None

  def _parse_accessors(self) -> Tuple[Accessor, ...]:
    self._expect("{")
    accessors = []
    while not self._match("}"):
      start = self._peek().start
      modifiers = []
      while self._peek().kind == TokenType.KEYWORD and self._peek().value in MEMBER_MODIFIERS:
        modifiers.append(self._consume().value)
      keyword = self._consume(TokenType.IDENTIFIER).value
      if keyword not in ("get", "set", "init"):
        raise SyntaxError(f"Expected accessor, got '{keyword}' at line {self._previous().line}")
      body, expression_body = self._parse_member_body()
      accessors.append(Accessor(keyword, tuple(modifiers), body, expression_body, span=self._span(start)))
    self._expect("}")
    return tuple(accessors)

  def _parse_declarators(self, first_name: str) -> Tuple[VariableDeclarator, ...]:
    """Parses `a = 1, b` after the first declarator name has been consumed."""
    declarators = []
    name = first_name
    name_start = self._previous().start
    while True:
      initializer = None
      if self._accept("="):
        initializer = self._parse_variable_initializer()
      declarators.append(VariableDeclarator(name, initializer, span=self._span(name_start)))
      if not self._accept(","):
        break
      name_start = self._peek().start
      name = self._identifier()
    return tuple(declarators)

  def _parse_variable_initializer(self) -> ExpressionSyntax:
    if self._match("{"):
      return self._parse_initializer()
    return self._parse_expression()

  # --- Types ---

  def _parse_type(self, in_expression: bool = False, allow_array: bool = True) -> TypeSyntax:
    """
    Parses a type reference.

    Args:
        in_expression: Whether the type sits inside an expression (`is`, `as`,
            casts), where a trailing `?` may instead start a conditional operator.
        allow_array: Whether `[]` suffixes belong to the type.

    Returns:
        TypeSyntax: The parsed type.
    """
    token = self._peek()
    start = token.start
    if token.kind == TokenType.KEYWORD and token.value in PREDEFINED_TYPES:
      self._consume()
      result: TypeSyntax = PredefinedType(token.value, span=self._span(start))
    elif token.kind == TokenType.IDENTIFIER:
      parts = [self._identifier()]
      type_arguments: Tuple[TypeSyntax, ...] = ()
      while True:
        if self._match("<"):
          type_arguments = self._parse_type_arguments()
        if self._match(".") and self._peek(1).kind == TokenType.IDENTIFIER and not type_arguments:
          self._consume()
          parts.append(self._identifier())
          continue
        break
      result = NamedType(tuple(parts), type_arguments, span=self._span(start))
    else:
      raise SyntaxError(f"Expected type, got '{token.value}' at line {token.line}, col {token.column}")

    while True:
      if self._match("?") and self._nullable_marker_allowed(in_expression):
        self._consume()
        result = NullableType(result, span=self._span(start))
      elif allow_array and self._match("[") and self._peek(1).is_punct("]", ","):
        self._consume()
        rank = 1
        while self._accept(","):
          rank += 1
        self._expect("]")
        result = ArrayType(result, rank, span=self._span(start))
      else:
        return result

  def _nullable_marker_allowed(self, in_expression: bool) -> bool:
    follower = self._peek(1)
    if follower.is_punct(*_NULLABLE_EXPRESSION_FOLLOWERS):
      return True
    if in_expression:
      return False
    return follower.kind == TokenType.IDENTIFIER or follower.is_punct("[", "=", "(") or follower.is_keyword("this")

  def _parse_type_arguments(self) -> Tuple[TypeSyntax, ...]:
    self._expect("<")
    args = [self._parse_type()]
    while self._accept(","):
      args.append(self._parse_type())
    self._expect(">")
    return tuple(args)

  def _try_parse_type(self, in_expression: bool = False) -> Optional[TypeSyntax]:
    """Speculatively parses a type, restoring the position on failure."""
    saved = self.pos
    try:
      return self._parse_type(in_expression)
    except SyntaxError:
      self.pos = saved
      return None

  def _try_type_arguments(self) -> Optional[Tuple[TypeSyntax, ...]]:
    """Speculatively parses `<...>` in expression context when followed by `(` or `.`."""
    saved = self.pos
    try:
      args = self._parse_type_arguments()
    except SyntaxError:
      self.pos = saved
      return None
    if self._match("(", "."):
      return args
    self.pos = saved
    return None

  # --- Statements ---

  def _parse_block(self) -> Block:
    start = self._expect("{").start
    statements = []
    while not self._match("}"):
      if self._is_eof():
        raise SyntaxError("Unexpected End of File inside block.")
      statements.append(self._parse_statement())
    self._expect("}")
    return Block(tuple(statements), span=self._span(start))

  def _parse_statement(self) -> StatementSyntax:
    token = self._peek()
    start = token.start

    if token.is_punct("{"):
      return self._parse_block()
    if token.is_punct(";"):
      self._consume()
      return EmptyStatement(span=self._span(start))
    if token.is_keyword("if"):
      self._consume()
      self._expect("(")
      condition = self._parse_expression()
      self._expect(")")
      statement = self._parse_statement()
      else_statement = None
      if self._peek().is_keyword("else"):
        self._consume()
        else_statement = self._parse_statement()
      return IfStatement(condition, statement, else_statement, span=self._span(start))
    if token.is_keyword("while"):
      self._consume()
      self._expect("(")
      condition = self._parse_expression()
      self._expect(")")
      return WhileStatement(condition, self._parse_statement(), span=self._span(start))
    if token.is_keyword("foreach"):
      self._consume()
      self._expect("(")
      var_type = self._parse_type()
      identifier = self._identifier()
      self._expect("in")
      expr = self._parse_expression()
      self._expect(")")
      return ForEachStatement(var_type, identifier, expr, self._parse_statement(), span=self._span(start))
    if token.is_keyword("return"):
      self._consume()
      expr = None if self._match(";") else self._parse_expression()
      self._expect(";")
      return ReturnStatement(expr, span=self._span(start))
    if token.is_keyword("throw"):
      self._consume()
      expr = None if self._match(";") else self._parse_expression()
      self._expect(";")
      return ThrowStatement(expr, span=self._span(start))
    if token.is_keyword("const"):
      self._consume()
      declaration = self._try_local_declaration(start, is_const=True)
      if declaration is None:
        raise SyntaxError(f"Expected constant declaration at line {token.line}")
      return declaration

    declaration = self._try_local_declaration(start)
    if declaration is not None:
      return declaration

    expr = self._parse_expression()
    self._expect(";")
    return ExpressionStatement(expr, span=self._span(start))

  def _try_local_declaration(self, start: int, is_const: bool = False) -> Optional[LocalDeclaration]:
    saved = self.pos
    local_type = self._try_parse_type()
    if (
      local_type is not None
      and self._peek().kind == TokenType.IDENTIFIER
      and self._peek(1).is_punct("=", ";", ",")
    ):
      name = self._identifier()
      declarators = self._parse_declarators(name)
      self._expect(";")
      return LocalDeclaration(local_type, declarators, is_const, span=self._span(start))
    self.pos = saved
    return None

  # --- Expressions ---

  def _parse_expression(self) -> ExpressionSyntax:
    token = self._peek()
    start = token.start

    if self._is_lambda_start():
      return self._parse_lambda()
    if token.is_keyword("throw"):
      self._consume()
      return ThrowExpression(self._parse_expression(), span=self._span(start))
    if self._is_query_start():
      return self._parse_query()

    left = self._parse_conditional()
    if self._peek().kind == TokenType.PUNCTUATION and self._peek().value in ASSIGNMENT_OPERATORS:
      operator = self._consume().value
      right = self._parse_expression()
      return Assignment(left, operator, right, span=self._span(start))
    return left

  def _parse_conditional(self) -> ExpressionSyntax:
    start = self._peek().start
    condition = self._parse_coalesce()
    if self._match("?"):
      self._consume()
      when_true = self._parse_expression()
      self._expect(":")
      when_false = self._parse_expression()
      return Conditional(condition, when_true, when_false, span=self._span(start))
    return condition

  def _parse_coalesce(self) -> ExpressionSyntax:
    start = self._peek().start
    left = self._parse_binary(0)
    if self._match("??"):
      self._consume()
      right = self._parse_coalesce_operand()
      return Binary(left, "??", right, span=self._span(start))
    return left

  def _parse_coalesce_operand(self) -> ExpressionSyntax:
    # `a ?? throw e` is allowed on the right of `??`.
    if self._peek().is_keyword("throw"):
      start = self._consume().start
      return ThrowExpression(self._parse_coalesce(), span=self._span(start))
    return self._parse_coalesce()

  def _parse_binary(self, level: int) -> ExpressionSyntax:
    if level >= len(BINARY_LEVELS):
      return self._parse_unary()

    start = self._peek().start
    left = self._parse_binary(level + 1)
    operators = BINARY_LEVELS[level]
    while True:
      token = self._peek()
      if level == _RELATIONAL_LEVEL and token.is_keyword("is"):
        self._consume()
        pattern = self._parse_pattern()
        left = IsPattern(left, pattern, span=self._span(start))
      elif level == _RELATIONAL_LEVEL and token.is_keyword("as"):
        self._consume()
        as_type = self._parse_type(in_expression=True)
        left = AsExpression(left, as_type, span=self._span(start))
      elif token.is_punct(*operators):
        self._consume()
        right = self._parse_binary(level + 1)
        left = Binary(left, token.value, right, span=self._span(start))
      else:
        return left

  def _parse_pattern(self) -> PatternSyntax:
    token = self._peek()
    start = token.start
    if token.kind == TokenType.IDENTIFIER and token.value == "not":
      self._consume()
      return NotPattern(self._parse_pattern(), span=self._span(start))
    if token.kind in (TokenType.NUMBER, TokenType.STRING, TokenType.CHAR) or token.is_keyword("null", "true", "false"):
      return ConstantPattern(self._parse_primary(), span=self._span(start))
    pattern_type = self._parse_type(in_expression=True)
    follower = self._peek()
    if follower.kind == TokenType.IDENTIFIER and follower.value not in ("and", "or", "when"):
      self._consume()
      return DeclarationPattern(pattern_type, follower.value, span=self._span(start))
    return TypePattern(pattern_type, span=self._span(start))

  def _parse_unary(self) -> ExpressionSyntax:
    token = self._peek()
    start = token.start

    if token.is_punct("!", "-", "+", "~", "++", "--"):
      self._consume()
      return Unary(token.value, self._parse_unary(), span=self._span(start))
    if token.is_keyword("await"):
      self._consume()
      return Await(self._parse_unary(), span=self._span(start))
    if token.is_punct("("):
      cast = self._try_parse_cast()
      if cast is not None:
        return cast
    return self._parse_postfix(self._parse_primary())

  def _try_parse_cast(self) -> Optional[Cast]:
    saved = self.pos
    start = self._consume().start
    cast_type = self._try_parse_type(in_expression=True)
    if cast_type is None or not self._match(")"):
      self.pos = saved
      return None
    self._consume()

    follower = self._peek()
    base = cast_type
    while isinstance(base, (NullableType, ArrayType)):
      base = base.element_type
    is_cast = isinstance(base, PredefinedType) and not follower.is_punct(".", ")", ";", ",")
    if not is_cast:
      is_cast = (
        follower.kind in (TokenType.IDENTIFIER, TokenType.NUMBER, TokenType.STRING, TokenType.CHAR)
        or follower.is_punct("(", "!", "~")
        or (follower.kind == TokenType.KEYWORD and follower.value in _CAST_FOLLOWER_KEYWORDS)
      )
    if not is_cast:
      self.pos = saved
      return None
    return Cast(cast_type, self._parse_unary(), span=self._span(start))

  def _parse_postfix(self, expr: ExpressionSyntax) -> ExpressionSyntax:
    start = expr.span.start
    while True:
      token = self._peek()
      if token.is_punct("."):
        self._consume()
        name = self._identifier()
        type_arguments = self._try_type_arguments() if self._match("<") else None
        expr = MemberAccess(expr, name, type_arguments or (), span=self._span(start))
      elif token.is_punct("("):
        args = self._parse_argument_list("(", ")")
        expr = Invocation(expr, args, span=self._span(start))
      elif token.is_punct("["):
        args = self._parse_argument_list("[", "]")
        expr = ElementAccess(expr, args, span=self._span(start))
      elif token.is_punct("++", "--"):
        self._consume()
        expr = PostfixUnary(expr, token.value, span=self._span(start))
      elif token.is_punct("!") and self._peek(1).is_punct(".", "[", ")", ";", ","):
        self._consume()
        expr = PostfixUnary(expr, "!", span=self._span(start))
      elif self._at_conditional_access():
        when_not_null = self._parse_when_not_null()
        return ConditionalAccess(expr, when_not_null, span=self._span(start))
      else:
        return expr

  def _at_conditional_access(self) -> bool:
    token = self._peek()
    if token.is_punct("?."):
      return True
    follower = self._peek(1)
    return token.is_punct("?") and follower.is_punct("[") and follower.start == token.end

  def _parse_when_not_null(self) -> ExpressionSyntax:
    """Parses the chain after `?` (the binding plus any trailing accesses)."""
    token = self._consume()
    if token.is_punct("?."):
      binding_start = token.start + 1
      name = self._identifier()
      type_arguments = self._try_type_arguments() if self._match("<") else None
      binding: ExpressionSyntax = MemberBinding(name, type_arguments or (), span=self._span(binding_start))
    else:
      binding_start = self._peek().start
      args = self._parse_argument_list("[", "]")
      binding = ElementBinding(args, span=self._span(binding_start))
    return self._parse_postfix(binding)

  def _parse_argument_list(self, opening: str, closing: str) -> Tuple[Argument, ...]:
    self._expect(opening)
    args = []
    if not self._match(closing):
      while True:
        args.append(self._parse_argument())
        if not self._accept(","):
          break
    self._expect(closing)
    return tuple(args)

  def _parse_argument(self) -> Argument:
    start = self._peek().start
    name = None
    if self._peek().kind == TokenType.IDENTIFIER and self._peek(1).is_punct(":"):
      name = self._identifier()
      self._consume()
    modifier = None
    if self._peek().is_keyword("ref", "out", "in"):
      modifier = self._consume().value
      if modifier == "out":
        declaration = self._try_declaration_expression()
        if declaration is not None:
          return Argument(declaration, name, modifier, span=self._span(start))
    expr = self._parse_expression()
    return Argument(expr, name, modifier, span=self._span(start))

  def _try_declaration_expression(self) -> Optional[DeclarationExpression]:
    saved = self.pos
    start = self._peek().start
    decl_type = self._try_parse_type()
    if decl_type is not None and self._peek().kind == TokenType.IDENTIFIER and self._peek(1).is_punct(")", ","):
      designation = self._identifier()
      return DeclarationExpression(decl_type, designation, span=self._span(start))
    self.pos = saved
    return None

  def _parse_primary(self) -> ExpressionSyntax:
    token = self._peek()
    start = token.start

    if token.kind == TokenType.NUMBER:
      self._consume()
      return LiteralExpression("numeric", token.value, span=self._span(start))
    if token.kind == TokenType.STRING:
      self._consume()
      return LiteralExpression("string", token.value, span=self._span(start))
    if token.kind == TokenType.CHAR:
      self._consume()
      return LiteralExpression("char", token.value, span=self._span(start))
    if token.is_keyword("true", "false", "null"):
      self._consume()
      return LiteralExpression(token.value, token.value, span=self._span(start))
    if token.is_keyword("this"):
      self._consume()
      return ThisExpression(span=self._span(start))
    if token.is_keyword("base"):
      self._consume()
      return IdentifierName("base", span=self._span(start))
    if token.is_keyword("default"):
      self._consume()
      if self._accept("("):
        default_type = self._parse_type()
        self._expect(")")
        return DefaultExpression(default_type, span=self._span(start))
      return DefaultExpression(span=self._span(start))
    if token.is_keyword("typeof"):
      self._consume()
      self._expect("(")
      typeof_type = self._parse_type()
      self._expect(")")
      return TypeOfExpression(typeof_type, span=self._span(start))
    if token.is_keyword("new"):
      return self._parse_creation()
    if token.is_keyword("delegate"):
      return self._parse_anonymous_method(start, is_async=False)
    if token.is_punct("("):
      self._consume()
      inner = self._parse_expression()
      self._expect(")")
      return Parenthesized(inner, span=self._span(start))
    if token.kind == TokenType.KEYWORD and token.value in PREDEFINED_TYPES:
      # `string.Empty`, `int.Parse(...)`
      self._consume()
      return IdentifierName(token.value, span=self._span(start))
    if token.kind == TokenType.IDENTIFIER:
      self._consume()
      type_arguments = self._try_type_arguments() if self._match("<") else None
      return IdentifierName(token.value, type_arguments or (), span=self._span(start))

    raise SyntaxError(f"Unexpected token '{token.value}' at line {token.line}, col {token.column}")

  def _parse_creation(self) -> ExpressionSyntax:
    start = self._expect("new").start

    if self._match("[") and self._peek(1).is_punct("]"):
      self._consume()
      self._consume()
      initializer = self._parse_initializer()
      return ArrayCreation(None, (), initializer, span=self._span(start))

    if self._match("{"):
      return self._parse_anonymous_object(start)

    created_type = self._parse_type(allow_array=False)
    if self._match("["):
      self._consume()
      sizes: List[ExpressionSyntax] = []
      if not self._match("]"):
        sizes.append(self._parse_expression())
        while self._accept(","):
          sizes.append(self._parse_expression())
      self._expect("]")
      initializer = self._parse_initializer() if self._match("{") else None
      return ArrayCreation(created_type, tuple(sizes), initializer, span=self._span(start))

    arguments = None
    if self._match("("):
      arguments = self._parse_argument_list("(", ")")
    initializer = None
    if self._match("{"):
      initializer = self._parse_initializer()
    if arguments is None and initializer is None:
      token = self._peek()
      raise SyntaxError(f"Expected '(' or '{{' after 'new {created_type.to_text()}' at line {token.line}")
    return ObjectCreation(created_type, arguments, initializer, span=self._span(start))

  def _parse_initializer(self) -> InitializerExpression:
    start = self._expect("{").start
    expressions: List[ExpressionSyntax] = []
    while not self._match("}"):
      if self._match("{"):
        expressions.append(self._parse_initializer())
      else:
        expressions.append(self._parse_expression())
      if not self._accept(","):
        break
    self._expect("}")
    return InitializerExpression(tuple(expressions), span=self._span(start))

  def _parse_anonymous_object(self, start: int) -> AnonymousObjectCreation:
    self._expect("{")
    members = []
    while not self._match("}"):
      member_start = self._peek().start
      name = None
      if self._peek().kind == TokenType.IDENTIFIER and self._peek(1).is_punct("="):
        name = self._identifier()
        self._consume()
      expr = self._parse_expression()
      members.append(AnonymousObjectMember(expr, name, span=self._span(member_start)))
      if not self._accept(","):
        break
    self._expect("}")
    return AnonymousObjectCreation(tuple(members), span=self._span(start))

  def _parse_anonymous_method(self, start: int, is_async: bool) -> AnonymousMethod:
    self._expect("delegate")
    parameters = None
    if self._match("("):
      parameters = self._parse_parameter_list("(", ")")
    body = self._parse_block()
    return AnonymousMethod(parameters, body, is_async, span=self._span(start))

  # --- Lambdas ---

  def _is_lambda_start(self) -> bool:
    offset = 0
    if self._peek().is_keyword("async") and not self._peek(1).is_punct("=>"):
      if self._peek(1).is_keyword("delegate"):
        return True
      offset = 1
    token = self._peek(offset)
    if token.kind == TokenType.IDENTIFIER and self._peek(offset + 1).is_punct("=>"):
      return True
    if token.is_punct("("):
      depth = 0
      index = offset
      while True:
        current = self._peek(index)
        if current.kind == TokenType.EOF:
          return False
        if current.is_punct("("):
          depth += 1
        elif current.is_punct(")"):
          depth -= 1
          if depth == 0:
            return self._peek(index + 1).is_punct("=>")
        index += 1
    return False

  def _parse_lambda(self) -> ExpressionSyntax:
    start = self._peek().start
    is_async = False
    if self._peek().is_keyword("async"):
      self._consume()
      is_async = True
      if self._peek().is_keyword("delegate"):
        return self._parse_anonymous_method(start, is_async=True)

    parenthesized = self._match("(")
    if parenthesized:
      self._consume()
      parameters = []
      if not self._match(")"):
        while True:
          parameters.append(self._parse_lambda_parameter())
          if not self._accept(","):
            break
      self._expect(")")
    else:
      token = self._consume(TokenType.IDENTIFIER)
      parameters = [Parameter(token.value, span=TextSpan(token.start, token.end))]

    self._expect("=>")
    body: Union[ExpressionSyntax, Block]
    if self._match("{"):
      body = self._parse_block()
    else:
      body = self._parse_expression()
    return Lambda(tuple(parameters), body, is_async, parenthesized, span=self._span(start))

  def _parse_lambda_parameter(self) -> Parameter:
    start = self._peek().start
    modifiers = []
    while self._peek().is_keyword("ref", "out", "in"):
      modifiers.append(self._consume().value)
    if self._peek().kind == TokenType.IDENTIFIER and self._peek(1).is_punct(",", ")"):
      return Parameter(self._identifier(), None, tuple(modifiers), span=self._span(start))
    param_type = self._parse_type()
    name = self._identifier()
    return Parameter(name, param_type, tuple(modifiers), span=self._span(start))

  # --- Query Expressions ---

  def _is_query_start(self) -> bool:
    token = self._peek()
    if token.kind != TokenType.IDENTIFIER or token.value != "from":
      return False
    if self._peek(1).kind == TokenType.IDENTIFIER and self._peek(2).is_keyword("in"):
      return True
    # Typed range variable: `from T x in ...`
    next_token = self._peek(1)
    return (next_token.kind == TokenType.KEYWORD and next_token.value in PREDEFINED_TYPES) or (
      next_token.kind == TokenType.IDENTIFIER and self._peek(2).kind == TokenType.IDENTIFIER and self._peek(3).is_keyword("in")
    )

  def _parse_query(self) -> QueryExpression:
    start = self._peek().start
    from_clause = self._parse_from_clause()
    body = self._parse_query_body()
    return QueryExpression(from_clause, body, span=self._span(start))

  def _parse_from_clause(self) -> FromClause:
    start = self._expect("from").start
    range_type = None
    if not (self._peek().kind == TokenType.IDENTIFIER and self._peek(1).is_keyword("in")):
      range_type = self._parse_type()
    identifier = self._identifier()
    self._expect("in")
    expr = self._parse_expression()
    return FromClause(identifier, expr, range_type, span=self._span(start))

  def _parse_query_body(self) -> QueryBody:
    start = self._peek().start
    clauses: List[SyntaxNode] = []
    while True:
      token = self._peek()
      clause_start = token.start
      if token.is_word("from"):
        clauses.append(self._parse_from_clause())
      elif token.is_word("let"):
        self._consume()
        identifier = self._identifier()
        self._expect("=")
        clauses.append(LetClause(identifier, self._parse_expression(), span=self._span(clause_start)))
      elif token.is_word("where"):
        self._consume()
        clauses.append(WhereClause(self._parse_expression(), span=self._span(clause_start)))
      elif token.is_word("orderby"):
        self._consume()
        orderings = [self._parse_ordering()]
        while self._accept(","):
          orderings.append(self._parse_ordering())
        clauses.append(OrderByClause(tuple(orderings), span=self._span(clause_start)))
      else:
        break

    token = self._peek()
    clause_start = token.start
    if token.is_word("select"):
      self._consume()
      final: SyntaxNode = SelectClause(self._parse_expression(), span=self._span(clause_start))
    elif token.is_word("group"):
      self._consume()
      group_expression = self._parse_expression()
      self._expect("by")
      final = GroupClause(group_expression, self._parse_expression(), span=self._span(clause_start))
    else:
      raise SyntaxError(f"Expected 'select' or 'group' at line {token.line}, col {token.column}")

    continuation = None
    if self._peek().is_word("into"):
      into_start = self._consume().start
      identifier = self._identifier()
      continuation_body = self._parse_query_body()
      continuation = QueryContinuation(identifier, continuation_body, span=self._span(into_start))
    return QueryBody(tuple(clauses), final, continuation, span=self._span(start))

  def _parse_ordering(self) -> Ordering:
    start = self._peek().start
    expr = self._parse_expression()
    direction = None
    if self._peek().is_word("ascending", "descending"):
      direction = self._consume().value
    return Ordering(expr, direction, span=self._span(start))

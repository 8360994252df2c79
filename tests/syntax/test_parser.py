"""
Tests for the C# Parser.

Verifies:
1. Expression structure for the null-aware operators and patterns.
2. Disambiguation of casts, parenthesized expressions and lambdas.
3. Declarations: usings, namespaces, types, members and generic constraints.
4. Spans that map every node back to its exact source slice.
5. SyntaxError on malformed input.
"""

import pytest

from nullguard.syntax.nodes import (
  AnonymousObjectCreation,
  ArrayCreation,
  Binary,
  Cast,
  Conditional,
  ConditionalAccess,
  DeclarationPattern,
  DefaultExpression,
  ElementBinding,
  IdentifierName,
  IndexerDeclaration,
  Invocation,
  IsPattern,
  Lambda,
  MemberAccess,
  MemberBinding,
  MethodDeclaration,
  NamespaceDeclaration,
  NullableType,
  Parenthesized,
  PropertyDeclaration,
  ThrowExpression,
  TypeDeclaration,
  source_text,
)
from nullguard.syntax.parser import CSharpParser
from nullguard.syntax.tree import walk


def parse_expr(code):
  return CSharpParser(code).parse_expression()


def test_member_invocation_chain():
  expr = parse_expr("possiblyNull.IfNotNull(x => x.Value)")

  assert isinstance(expr, Invocation)
  assert isinstance(expr.expression, MemberAccess)
  assert expr.expression.name == "IfNotNull"
  lam = expr.arguments[0].expression
  assert isinstance(lam, Lambda)
  assert lam.parameters[0].name == "x"
  assert isinstance(lam.body, MemberAccess)


def test_conditional_access_with_binding():
  """`a?.B.C()` nests the rest of the chain under the binding."""
  expr = parse_expr("a?.B.C()")

  assert isinstance(expr, ConditionalAccess)
  assert isinstance(expr.expression, IdentifierName)
  chain = expr.when_not_null
  assert isinstance(chain, Invocation)
  assert isinstance(chain.expression, MemberAccess)
  assert isinstance(chain.expression.expression, MemberBinding)


def test_nested_conditional_access():
  expr = parse_expr("a?.B?[0]")

  assert isinstance(expr, ConditionalAccess)
  inner = expr.when_not_null
  assert isinstance(inner, ConditionalAccess)
  assert isinstance(inner.expression, MemberBinding)
  assert isinstance(inner.when_not_null, ElementBinding)


def test_coalesce_is_right_associative():
  expr = parse_expr("a ?? b ?? c")

  assert isinstance(expr, Binary)
  assert expr.left.identifier == "a"
  assert isinstance(expr.right, Binary)


def test_type_test_conditional():
  expr = parse_expr("r is Thing x ? x.A : default(int)")

  assert isinstance(expr, Conditional)
  assert isinstance(expr.condition, IsPattern)
  pattern = expr.condition.pattern
  assert isinstance(pattern, DeclarationPattern)
  assert pattern.designation == "x"
  assert isinstance(expr.when_false, DefaultExpression)


def test_nullable_cast():
  expr = parse_expr("(ValueThing?) new ValueThing()")

  assert isinstance(expr, Cast)
  assert isinstance(expr.type, NullableType)


def test_parenthesized_is_not_a_cast():
  expr = parse_expr("(x).CalculateValue()")

  assert isinstance(expr, Invocation)
  assert isinstance(expr.expression.expression, Parenthesized)


def test_lambda_forms():
  typed = parse_expr("(ValueThing x) => x.Method()")
  assert isinstance(typed, Lambda)
  assert typed.parenthesized
  assert typed.parameters[0].type.to_text() == "ValueThing"

  producer = parse_expr("() => throw new InvalidOperationException()")
  assert producer.parameters == ()
  assert isinstance(producer.body, ThrowExpression)

  async_lambda = parse_expr("async x => await x")
  assert async_lambda.is_async


def test_anonymous_objects_and_arrays():
  anon = parse_expr('new { Property = "value" }')
  assert isinstance(anon, AnonymousObjectCreation)
  assert anon.members[0].name == "Property"

  array = parse_expr("new[] { x }")
  assert isinstance(array, ArrayCreation)
  assert array.element_type is None


def test_compilation_unit_declarations():
  code = (
    "using System;\n"
    "namespace Lib\n{\n"
    "    public static class Ext\n    {\n"
    "        public static T Id<T>(this T t) where T : class => t;\n"
    "    }\n"
    "    internal sealed class Thing\n    {\n"
    "        public int Value => 0;\n"
    "        public Thing this[int i] => null;\n"
    "    }\n"
    "}\n"
  )
  unit = CSharpParser(code).parse()

  assert [u.name for u in unit.usings] == ["System"]
  ns = unit.members[0]
  assert isinstance(ns, NamespaceDeclaration)
  assert ns.name == "Lib"
  ext, thing = ns.members
  assert isinstance(ext, TypeDeclaration)
  method = ext.members[0]
  assert isinstance(method, MethodDeclaration)
  assert method.parameters[0].modifiers == ("this",)
  assert method.constraint_clauses[0].constraints == ("class",)
  assert isinstance(thing.members[0], PropertyDeclaration)
  assert isinstance(thing.members[1], IndexerDeclaration)


def test_spans_map_to_source():
  """Every parsed node renders verbatim from its span under `source_text`."""
  code = "var result = possiblyNull.IfNotNull(x  =>  x.Value ,  () => 0);"
  stmt = CSharpParser(code).parse_statement()

  with source_text(code):
    for node in walk(stmt):
      assert node.span is not None
      assert node.to_text() == code[node.span.start : node.span.end]


def test_canonical_rendering_without_source():
  expr = parse_expr("a?.B  ??  default( int )")

  assert expr.to_text() == "a?.B ?? default(int)"


def test_syntax_error():
  with pytest.raises(SyntaxError):
    CSharpParser("namespace A { class B { void M() { var x = ; } } }").parse()

"""
End-to-end Tests for the IfNotNull Rule.

Verifies:
1. Every helper call is reported once, at the invocation's start.
2. Single calls are rewritten to conditional access, null coalescing or pattern
   matching, and the helper's using directive is dropped afterwards.
3. Nested and chained calls are all fixed, with fresh binding names where needed.
4. Void calls become `?.` statements or if/else statements.
5. Calls without a safe rewrite keep their diagnostic and are left untouched.
6. Calls continuing an outer conditional access only ever join its chain.
7. Generated member chains rewrite to the same chain, and the result is a fixed point.
"""

import pytest
from hypothesis import HealthCheck, given, settings, strategies as st

from nullguard import analyze_source, fix_source
from nullguard.analysis.diagnostics import IF_NOT_NULL_DIAGNOSTIC_ID, Severity

REF = "new ReferenceThing()"
VAL = "(ValueThing?) new ValueThing()"
FUNC_REF = "(Func<ReferenceThing>) new ReferenceThing().CalculateValue"
FUNC_INT = "(Func<int>) new ReferenceThing().CalculateValueTypeValue"
ANON = 'new { Property = "value" }'

SIMPLE_CASES = [
  # Value-typed results need `?? default(T)` to keep the type.
  (REF, "possiblyNull.IfNotNull(x => x.ValueTypeProperty)", "possiblyNull?.ValueTypeProperty ?? default(int)"),
  (
    REF,
    "possiblyNull.IfNotNull(x => x.CalculateValue().ValueTypeProperty)",
    "possiblyNull?.CalculateValue().ValueTypeProperty ?? default(int)",
  ),
  (REF, "possiblyNull.IfNotNull(x => x.ValueTypeProperty, () => 0)", "possiblyNull?.ValueTypeProperty ?? 0"),
  (REF, "IfNotNullExtensionMethod.IfNotNull(possiblyNull, x => x.ValueTypeProperty, () => 0)", "possiblyNull?.ValueTypeProperty ?? 0"),
  (REF, "possiblyNull.IfNotNull(x => x.CalculateValue())", "possiblyNull?.CalculateValue()"),
  (REF, "possiblyNull.IfNotNull(x => x.RecursiveProperty?.CalculateValue())", "possiblyNull?.RecursiveProperty?.CalculateValue()"),
  # A parenthesized receiver cannot start a chain.
  (
    REF,
    "possiblyNull.IfNotNull(x => (x.CalculateValue()))",
    "possiblyNull is ReferenceThing x ? (x.CalculateValue()) : default(ReferenceThing)",
  ),
  (
    REF,
    "possiblyNull.IfNotNull(x => (x).CalculateValue())",
    "possiblyNull is ReferenceThing x ? (x).CalculateValue() : default(ReferenceThing)",
  ),
  (
    REF,
    "possiblyNull.IfNotNull(x => (x.RecursiveProperty).CalculateValue())",
    "possiblyNull is ReferenceThing x ? (x.RecursiveProperty).CalculateValue() : default(ReferenceThing)",
  ),
  (
    REF,
    "possiblyNull.IfNotNull(x => ((x.RecursiveProperty).RecursiveProperty).CalculateValue())",
    "possiblyNull is ReferenceThing x ? ((x.RecursiveProperty).RecursiveProperty).CalculateValue() : default(ReferenceThing)",
  ),
  (
    REF,
    "possiblyNull.IfNotNull(x => (x.RecursiveProperty?.RecursiveProperty).CalculateValue())",
    "possiblyNull is ReferenceThing x ? (x.RecursiveProperty?.RecursiveProperty).CalculateValue() : default(ReferenceThing)",
  ),
  (
    REF,
    "possiblyNull.IfNotNull(x => (x.ValueTypeProperty))",
    "possiblyNull is ReferenceThing x ? (x.ValueTypeProperty) : default(int)",
  ),
  # Element access.
  (REF, "possiblyNull.IfNotNull(x => x[0])", "possiblyNull?[0]"),
  (REF, "possiblyNull.IfNotNull(x => x.RecursiveProperty[0])", "possiblyNull?.RecursiveProperty[0]"),
  (REF, "possiblyNull.IfNotNull(x => x.RecursiveProperty?[0])", "possiblyNull?.RecursiveProperty?[0]"),
  # Delegate references are invoked on a fresh binding.
  (
    REF,
    "possiblyNull.IfNotNull(ReferenceThing.CalculateStatic)",
    "possiblyNull is ReferenceThing value ? ReferenceThing.CalculateStatic(value) : default(ReferenceThing)",
  ),
  (
    REF,
    "possiblyNull.IfNotNull(ReferenceThing.CalculateStatic, ReferenceThing.Factory)",
    "possiblyNull is ReferenceThing value ? ReferenceThing.CalculateStatic(value) : ReferenceThing.Factory()",
  ),
  # Nullable value-type results already carry "no value".
  (REF, "possiblyNull.IfNotNull(x => x.NullableProperty)", "possiblyNull?.NullableProperty"),
  # Nullable value-type receivers.
  (VAL, "possiblyNull.IfNotNull((ValueThing x) => x.ValueTypeProperty)", "possiblyNull?.ValueTypeProperty ?? default(int)"),
  (VAL, "possiblyNull.IfNotNull((ValueThing x) => x.RecursiveProperty)", "possiblyNull?.RecursiveProperty ?? default(ValueThing)"),
  (
    VAL,
    "IfNotNullExtensionMethod.IfNotNull(possiblyNull, (ValueThing x) => x.ValueTypeProperty)",
    "possiblyNull?.ValueTypeProperty ?? default(int)",
  ),
  (VAL, "possiblyNull.IfNotNull((ValueThing x) => x.ValueTypeProperty, 0)", "possiblyNull?.ValueTypeProperty ?? 0"),
  (VAL, "IfNotNullExtensionMethod.IfNotNull(possiblyNull, (ValueThing x) => x.ValueTypeProperty, 0)", "possiblyNull?.ValueTypeProperty ?? 0"),
  (VAL, "possiblyNull.IfNotNull((ValueThing x) => x.ValueTypeProperty, () => 0)", "possiblyNull?.ValueTypeProperty ?? 0"),
  (
    VAL,
    "IfNotNullExtensionMethod.IfNotNull(possiblyNull, (ValueThing x) => x.ValueTypeProperty, () => 0)",
    "possiblyNull?.ValueTypeProperty ?? 0",
  ),
  # A reference-typed default cannot follow `??` without changing behavior.
  (
    REF,
    "possiblyNull.IfNotNull(x => x.CalculateValue(), () => new ReferenceThing())",
    "possiblyNull is ReferenceThing x ? x.CalculateValue() : new ReferenceThing()",
  ),
  (
    REF,
    "possiblyNull.IfNotNull(x => x.CalculateValue(), new ReferenceThing())",
    "possiblyNull is ReferenceThing x ? x.CalculateValue() : new ReferenceThing()",
  ),
  # Delegate receivers are invoked through `Invoke`.
  (FUNC_REF, "possiblyNull.IfNotNull(x => x())", "possiblyNull?.Invoke()"),
  (FUNC_INT, "possiblyNull.IfNotNull(x => x(), 0)", "possiblyNull?.Invoke() ?? 0"),
  (FUNC_INT, "possiblyNull.IfNotNull(x => x(), () => 1)", "possiblyNull?.Invoke() ?? 1"),
  (FUNC_INT, "possiblyNull.IfNotNull(x => x(), possiblyNull)", "possiblyNull?.Invoke() ?? possiblyNull()"),
  # The parameter is used twice, so it needs a binding.
  (
    REF,
    "possiblyNull.IfNotNull(x => x.CalculateValue(x))",
    "possiblyNull is ReferenceThing x ? x.CalculateValue(x) : default(ReferenceThing)",
  ),
  (REF, "possiblyNull.IfNotNull(x => (int?) x.ValueTypeProperty)", "possiblyNull?.ValueTypeProperty"),
  # A nullable output with a value default keeps both; only pattern matching can.
  (REF, "possiblyNull.IfNotNull(x => x.NullableProperty, 5)", "possiblyNull is ReferenceThing x ? x.NullableProperty : 5"),
  # Anonymous types.
  (ANON, "possiblyNull.IfNotNull(x => x.Property)", "possiblyNull?.Property"),
  (
    REF,
    'possiblyNull.IfNotNull(x => new { Property = "value" }, () => new { Property = "other value" })',
    'possiblyNull is ReferenceThing x ? new { Property = "value" } : new { Property = "other value" }',
  ),
  (
    REF,
    'possiblyNull.IfNotNull(x => new { Property = "value" }) ?? new { Property = "other value" }',
    'possiblyNull is ReferenceThing x ? new { Property = "value" } : new { Property = "other value" }',
  ),
]


@pytest.mark.parametrize("receiver, call, fixed_call", SIMPLE_CASES)
def test_simple_call(receiver, call, fixed_call, program, fixed_program, references, call_line):
  """Single assignment calls are reported at column 17 and rewritten."""
  source = program(receiver, f"var result = {call};")

  diagnostics = analyze_source(source, "Test0.cs", references)
  assert [d.location for d in diagnostics] == [(call_line, 17)]
  assert diagnostics[0].rule_id == IF_NOT_NULL_DIAGNOSTIC_ID
  assert diagnostics[0].severity == Severity.INFO
  assert diagnostics[0].message == "Prefer modern language features over IfNotNull usage."

  assert fix_source(source, "Test0.cs", references) == fixed_program(receiver, f"var result = {fixed_call};")


MULTIPLE_CASES = [
  (
    "possiblyNull.IfNotNull(x => x.RecursiveProperty.IfNotNull(y => y.CalculateValue()))",
    "possiblyNull?.RecursiveProperty?.CalculateValue()",
    17,
    45,
  ),
  (
    "possiblyNull.IfNotNull(x => x.RecursiveProperty).IfNotNull(x => x.CalculateValue())",
    "possiblyNull?.RecursiveProperty?.CalculateValue()",
    17,
    17,
  ),
  (
    "possiblyNull.IfNotNull(x => ReferenceThing.CalculateStatic(x)).IfNotNull(x => ReferenceThing.CalculateStatic(x))",
    "(possiblyNull is ReferenceThing x ? ReferenceThing.CalculateStatic(x) : default(ReferenceThing))"
    " is ReferenceThing x1 ? ReferenceThing.CalculateStatic(x1) : default(ReferenceThing)",
    17,
    17,
  ),
  (
    "possiblyNull.IfNotNull(ReferenceThing.CalculateStatic).IfNotNull(ReferenceThing.CalculateStatic)",
    "(possiblyNull is ReferenceThing value1 ? ReferenceThing.CalculateStatic(value1) : default(ReferenceThing))"
    " is ReferenceThing value ? ReferenceThing.CalculateStatic(value) : default(ReferenceThing)",
    17,
    17,
  ),
]


@pytest.mark.parametrize("call, fixed_call, first_column, second_column", MULTIPLE_CASES)
def test_multiple_calls(call, fixed_call, first_column, second_column, program, fixed_program, references, call_line):
  """Every call of a nested or chained expression is reported and fixed."""
  source = program(REF, f"var result = {call};")

  diagnostics = analyze_source(source, "Test0.cs", references)
  assert sorted(d.location for d in diagnostics) == [(call_line, first_column), (call_line, second_column)]

  assert fix_source(source, "Test0.cs", references) == fixed_program(REF, f"var result = {fixed_call};")


VOID_CASES = [
  (REF, "possiblyNull.IfNotNull(x => x.Method());", "possiblyNull?.Method();"),
  (REF, "IfNotNullExtensionMethod.IfNotNull(possiblyNull, x => x.Method());", "possiblyNull?.Method();"),
  (VAL, "possiblyNull.IfNotNull((ValueThing x) => x.Method());", "possiblyNull?.Method();"),
  (VAL, "IfNotNullExtensionMethod.IfNotNull(possiblyNull, (ValueThing x) => x.Method());", "possiblyNull?.Method();"),
  (
    REF,
    "possiblyNull.IfNotNull(x => x.Method(), () => throw new InvalidOperationException());",
    "if (possiblyNull is ReferenceThing x) { x.Method(); } else { throw new InvalidOperationException(); }",
  ),
  (
    REF,
    "IfNotNullExtensionMethod.IfNotNull(possiblyNull, x => x.Method(), () => throw new InvalidOperationException());",
    "if (possiblyNull is ReferenceThing x) { x.Method(); } else { throw new InvalidOperationException(); }",
  ),
  (
    VAL,
    "possiblyNull.IfNotNull((ValueThing x) => x.Method(), () => throw new InvalidOperationException());",
    "if (possiblyNull is ValueThing x) { x.Method(); } else { throw new InvalidOperationException(); }",
  ),
  (
    VAL,
    "IfNotNullExtensionMethod.IfNotNull(possiblyNull, (ValueThing x) => x.Method(), () => throw new InvalidOperationException());",
    "if (possiblyNull is ValueThing x) { x.Method(); } else { throw new InvalidOperationException(); }",
  ),
]


@pytest.mark.parametrize("receiver, call, fixed_call", VOID_CASES)
def test_void_call(receiver, call, fixed_call, program, fixed_program, references, call_line):
  """Void calls standing alone as statements are reported at column 4 and rewritten."""
  source = program(receiver, call)

  diagnostics = analyze_source(source, "Test0.cs", references)
  assert [d.location for d in diagnostics] == [(call_line, 4)]

  assert fix_source(source, "Test0.cs", references) == fixed_program(receiver, fixed_call)


UNHANDLED_CASES = [
  ("System.Threading.Tasks.Task.FromResult(default(ReferenceThing))", "possiblyNull.IfNotNull(async x => await x)"),
  (REF, "possiblyNull.IfNotNull(x => { return x.CalculateValue(); })"),
  (REF, "possiblyNull.IfNotNull(x => new { Property = 5 })"),
  ("new { Property = 5 }", "possiblyNull.IfNotNull(x => new[] { x })"),
]


@pytest.mark.parametrize("receiver, call", UNHANDLED_CASES)
def test_unhandled_call(receiver, call, program, references, call_line):
  """Calls with no safe rewrite are still reported but never changed."""
  source = program(receiver, f"var result = {call};")

  diagnostics = analyze_source(source, "Test0.cs", references)
  assert [d.location for d in diagnostics] == [(call_line, 17)]

  assert fix_source(source, "Test0.cs", references) == source


def test_conditional_access_receiver_chains(program, fixed_program, references):
  """A call continuing an outer `?.` joins that chain."""
  source = program(REF, "var result = possiblyNull?.RecursiveProperty.IfNotNull(x => x.CalculateValue());")

  assert len(analyze_source(source, "Test0.cs", references)) == 1
  assert fix_source(source, "Test0.cs", references) == fixed_program(REF, "var result = possiblyNull?.RecursiveProperty?.CalculateValue();")


@pytest.mark.parametrize(
  "call",
  [
    "possiblyNull?.RecursiveProperty.IfNotNull(x => x.ValueTypeProperty, 0)",
    "possiblyNull?.RecursiveProperty.IfNotNull(x => x.ValueTypeProperty)",
  ],
)
def test_conditional_access_receiver_keeps_null(call, program, references):
  """The call is null whenever `possiblyNull` is; a `??` fallback would change that."""
  source = program(REF, f"var result = {call};")

  assert len(analyze_source(source, "Test0.cs", references)) == 1
  assert fix_source(source, "Test0.cs", references) == source


_SEGMENTS = st.lists(st.sampled_from([".RecursiveProperty", ".CalculateValue()", "[0]"]), min_size=1, max_size=4)
_TAILS = st.sampled_from(["", ".ValueTypeProperty", ".CalculateValueTypeValue()"])
_DEFAULTS = st.sampled_from([(None, "default(int)"), ("0", "0"), ("() => 1", "1")])


@given(segments=_SEGMENTS, tail=_TAILS, default=_DEFAULTS)
@settings(max_examples=25, deadline=None, suppress_health_check=[HealthCheck.function_scoped_fixture])
def test_generated_chains(segments, tail, default, program, fixed_program, references):
  """
  Member chains of any length become the same chain after `?.`, with a `??`
  fallback for value-typed results, and the fixed program has nothing left to fix.
  """
  members = "".join(segments) + tail
  argument, fallback = default
  if not tail:
    call = f"possiblyNull.IfNotNull(x => x{members})"
    expected = f"possiblyNull?{members}"
  else:
    extra = f", {argument}" if argument else ""
    call = f"possiblyNull.IfNotNull(x => x{members}{extra})"
    expected = f"possiblyNull?{members} ?? {fallback}"
  source = program(REF, f"var result = {call};")

  fixed = fix_source(source, "Test0.cs", references)

  assert fixed == fixed_program(REF, f"var result = {expected};")
  assert analyze_source(fixed, "Test0.cs", references) == []
  assert fix_source(fixed, "Test0.cs", references) == fixed


def test_void_call_inside_expression_is_not_rewritten(program, references):
  """A void call used as a lambda body cannot become an if/else statement."""
  source = program(REF, "Action act = () => possiblyNull.IfNotNull(x => x.Method(), () => throw new InvalidOperationException());")

  assert len(analyze_source(source, "Test0.cs", references)) == 1
  assert fix_source(source, "Test0.cs", references) == source


def test_helper_using_kept_while_still_needed(program, references):
  """The using directive stays while an unfixable call still depends on it."""
  source = program(REF, "var a = possiblyNull.IfNotNull(x => x.CalculateValue());\n\t\t\tvar b = possiblyNull.IfNotNull(x => new { Property = 5 });")

  fixed = fix_source(source, "Test0.cs", references)

  assert "var a = possiblyNull?.CalculateValue();" in fixed
  assert "var b = possiblyNull.IfNotNull(x => new { Property = 5 });" in fixed
  assert "using Libronix.Utility.IfNotNull;\n" in fixed


def test_default_references_declare_helper():
  """With the bundled metadata, a bare file using the helper is analyzed and fixed."""
  source = (
    "using Libronix.Utility.IfNotNull;\n"
    "namespace App\n{\n"
    "    class Node { public Node Next => null; }\n"
    "    static class Walker\n    {\n"
    "        static Node Skip(Node node) => node.IfNotNull(n => n.Next);\n"
    "    }\n}\n"
  )

  diagnostics = analyze_source(source, "Walker.cs")
  assert [d.location for d in diagnostics] == [(7, 40)]

  fixed = fix_source(source, "Walker.cs")
  assert "static Node Skip(Node node) => node?.Next;" in fixed
  assert "using Libronix.Utility.IfNotNull;" not in fixed


def test_no_helper_no_diagnostics(references):
  """Without the helper declared anywhere the rule stays silent."""
  source = "namespace App\n{\n    static class C\n    {\n        static object M(object o) => o.IfNotNull(x => x);\n    }\n}\n"

  assert analyze_source(source, "C.cs", references) == []
  assert fix_source(source, "C.cs", references) == source

"""
Tests for Matching and Eligibility.

Verifies:
1. Call sites expose receiver, transform, default and type arguments for both
   the extension and static call forms.
2. Defaults typed as the output are values; everything else is a producer.
3. The preferred idiom is chosen for each call shape.
4. Calls without a safe rewrite are declined with a reason.
"""

import pytest

from nullguard.rewrite import Declined, RewritePlan, TargetIdiom, assess
from nullguard.rewrite.models import DefaultKind, TransformKind
from nullguard.syntax.nodes import ExpressionStatement, MemberAccess

REF = "new ReferenceThing()"
VAL = "(ValueThing?) new ValueThing()"


def _site(call_sites, program, receiver, statement):
  sites, model = call_sites(program(receiver, statement))
  assert len(sites) == 1
  return sites[0], model


def test_extension_form(call_sites, program):
  site, _ = _site(call_sites, program, REF, "var r = possiblyNull.IfNotNull(x => x.ValueTypeProperty, 0);")

  assert not site.is_static_form
  assert site.receiver.to_text() == "possiblyNull"
  assert site.transform_kind == TransformKind.LAMBDA
  assert site.default_kind == DefaultKind.VALUE
  assert site.input_type.display() == "ReferenceThing"
  assert site.output_type.display() == "int"
  assert not site.output_is_nullable


def test_static_form_with_producer(call_sites, program):
  site, _ = _site(
    call_sites,
    program,
    VAL,
    "var r = IfNotNullExtensionMethod.IfNotNull(possiblyNull, (ValueThing x) => x.ValueTypeProperty, () => 0);",
  )

  assert site.is_static_form
  assert site.default_kind == DefaultKind.PRODUCER
  assert site.is_input_value_type
  assert site.input_type.display() == "ValueThing"


def test_void_family(call_sites, program):
  site, _ = _site(call_sites, program, REF, "possiblyNull.IfNotNull(ReferenceThing.CalculateStatic);")

  assert site.transform_kind == TransformKind.REFERENCE

  site, _ = _site(call_sites, program, REF, "possiblyNull.IfNotNull(x => x.Method());")
  assert site.is_void
  assert site.output_type is None


@pytest.mark.parametrize(
  "statement, idiom",
  [
    ("var r = possiblyNull.IfNotNull(x => x.CalculateValue());", TargetIdiom.OPTIONAL_CHAIN),
    ("var r = possiblyNull.IfNotNull(x => x.NullableProperty);", TargetIdiom.OPTIONAL_CHAIN),
    ("var r = possiblyNull.IfNotNull(x => x.ValueTypeProperty);", TargetIdiom.COALESCE),
    ("var r = possiblyNull.IfNotNull(x => x.CalculateValue(x));", TargetIdiom.TYPE_TEST_CONDITIONAL),
    ("var r = possiblyNull.IfNotNull(x => x.NullableProperty, 5);", TargetIdiom.TYPE_TEST_CONDITIONAL),
    ("var r = possiblyNull?.RecursiveProperty.IfNotNull(x => x.CalculateValue());", TargetIdiom.OPTIONAL_CHAIN),
    ("var r = possiblyNull.IfNotNull(x => x.CalculateValue(), () => new ReferenceThing());", TargetIdiom.TYPE_TEST_CONDITIONAL),
    ("possiblyNull.IfNotNull(x => x.Method());", TargetIdiom.OPTIONAL_CHAIN),
    ("possiblyNull.IfNotNull(x => x.Method(), () => throw new InvalidOperationException());", TargetIdiom.IF_ELSE),
  ],
)
def test_idiom_choice(statement, idiom, call_sites, program):
  site, model = _site(call_sites, program, REF, statement)

  plan = assess(site, model)

  assert isinstance(plan, RewritePlan)
  assert plan.idiom == idiom
  assert plan.call is site


def test_chain_plan_fields(call_sites, program):
  site, model = _site(call_sites, program, REF, "var r = possiblyNull.IfNotNull(x => x.ValueTypeProperty);")

  plan = assess(site, model)

  assert plan.target is site.invocation
  assert isinstance(plan.chain_access, MemberAccess)
  assert plan.default.to_text() == "default(int)"
  assert not plan.needs_binding


def test_if_else_targets_statement(call_sites, program):
  site, model = _site(call_sites, program, REF, "possiblyNull.IfNotNull(x => x.Method(), () => throw new InvalidOperationException());")

  plan = assess(site, model)

  assert isinstance(plan.target, ExpressionStatement)
  assert plan.needs_binding


def test_droppable_default(call_sites, program):
  """`null` as the default of a reference-typed output adds nothing."""
  site, model = _site(call_sites, program, REF, "var r = possiblyNull.IfNotNull(x => x.CalculateValue(), () => null);")

  plan = assess(site, model)

  assert plan.idiom == TargetIdiom.OPTIONAL_CHAIN
  assert plan.default is None


@pytest.mark.parametrize(
  "receiver, statement, reason",
  [
    (REF, "var r = possiblyNull.IfNotNull(x => { return x.CalculateValue(); });", "the transform has a block body"),
    (REF, "var r = possiblyNull.IfNotNull(x => x.ValueTypeProperty, () => { return 0; });", "the default producer has a block body"),
    (REF, "var r = possiblyNull.IfNotNull(x => new { Property = 5 });", "the output type cannot be named"),
    ("new { Property = 5 }", "var r = possiblyNull.IfNotNull(x => new[] { x });", "the input type cannot be named"),
    (
      "System.Threading.Tasks.Task.FromResult(default(ReferenceThing))",
      "var r = possiblyNull.IfNotNull(async x => await x);",
      "the transform is async",
    ),
    (
      REF,
      "Action act = () => possiblyNull.IfNotNull(x => x.Method(), () => throw new InvalidOperationException());",
      "the void call is not a standalone statement",
    ),
    (REF, "var r = possiblyNull?.RecursiveProperty.IfNotNull(x => x.ValueTypeProperty, 0);", "the receiver continues an enclosing conditional access"),
    (REF, "var r = possiblyNull?.RecursiveProperty.IfNotNull(x => x.ValueTypeProperty);", "the receiver continues an enclosing conditional access"),
  ],
)
def test_declined(receiver, statement, reason, call_sites, program):
  site, model = _site(call_sites, program, receiver, statement)

  declined = assess(site, model)

  assert isinstance(declined, Declined)
  assert declined.reason == reason
  assert declined.call is site

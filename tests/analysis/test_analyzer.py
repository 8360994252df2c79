"""
Tests for the IfNotNull Analyzer.

Verifies:
1. Diagnostics carry the rule id, path, span and 1-based location of the call.
2. Severity follows the runtime configuration.
3. Calls that do not bind to the helper family are not reported.
4. Whole-compilation analysis covers every unit.
5. The rule is inert when the helper is not declared.
"""

from nullguard.analysis import GuardedTransformAnalyzer, KnownSymbols, Severity
from nullguard.config import RuntimeConfig
from nullguard.semantics import SYSTEM_LIBRARY, Compilation
from nullguard.syntax.source import SourceUnit


def _compile(*units, references):
  return Compilation(units, references)


def test_reports_call_location(program, references, call_line):
  call = "possiblyNull.IfNotNull(x => x.Method());"
  unit = SourceUnit("Test0.cs", program("new ReferenceThing()", call))

  diagnostics = GuardedTransformAnalyzer().analyze_unit(_compile(unit, references=references), unit)

  assert len(diagnostics) == 1
  diagnostic = diagnostics[0]
  assert diagnostic.rule_id == "FL0010"
  assert diagnostic.path == "Test0.cs"
  assert diagnostic.location == (call_line, 4)
  assert diagnostic.severity == Severity.INFO
  assert unit.slice(diagnostic.span) == call[:-1]
  assert str(diagnostic) == f"Test0.cs({call_line},4): info FL0010: Prefer modern language features over IfNotNull usage."


def test_severity_from_config(program, references):
  unit = SourceUnit("Test0.cs", program("new ReferenceThing()", "possiblyNull.IfNotNull(x => x.Method());"))
  analyzer = GuardedTransformAnalyzer(RuntimeConfig(severity="Warning"))

  diagnostics = analyzer.analyze_unit(_compile(unit, references=references), unit)

  assert analyzer.severity == Severity.WARNING
  assert diagnostics[0].severity == Severity.WARNING


def test_nested_calls_sorted_outer_first(program, references):
  call = "var r = possiblyNull.IfNotNull(x => x.RecursiveProperty.IfNotNull(y => y.ValueTypeProperty));"
  unit = SourceUnit("Test0.cs", program("new ReferenceThing()", call))

  diagnostics = GuardedTransformAnalyzer().analyze_unit(_compile(unit, references=references), unit)

  assert len(diagnostics) == 2
  outer, inner = diagnostics
  assert outer.span.contains(inner.span)
  assert outer.span.start < inner.span.start


def test_same_name_method_is_not_reported(program, references):
  """A user method named IfNotNull is a different symbol."""
  source = program("new ReferenceThing()", "Local.IfNotNull(possiblyNull);").replace(
    "namespace TestProgram\n{\n\tinternal static class TestClass",
    "namespace TestProgram\n{\n\tinternal static class Local\n\t{\n\t\tpublic static void IfNotNull(ReferenceThing r) { }\n\t}\n\n\tinternal static class TestClass",
  )
  unit = SourceUnit("Test0.cs", source)

  assert GuardedTransformAnalyzer().analyze_unit(_compile(unit, references=references), unit) == []


def test_analyze_covers_all_units(program, references):
  first = SourceUnit("Test0.cs", program("new ReferenceThing()", "possiblyNull.IfNotNull(x => x.Method());"))
  second = SourceUnit(
    "Test1.cs",
    "using Libronix.Utility.IfNotNull;\nusing TestProgram;\n\nnamespace Other\n{\n"
    "\tinternal static class Uses\n\t{\n"
    "\t\tpublic static int Get(ReferenceThing r) => r.IfNotNull(x => x.ValueTypeProperty);\n"
    "\t}\n}\n",
  )

  diagnostics = GuardedTransformAnalyzer().analyze(_compile(first, second, references=references))

  assert [d.path for d in diagnostics] == ["Test0.cs", "Test1.cs"]
  assert diagnostics[1].location == (8, 46)


def test_no_helper_declared():
  unit = SourceUnit(
    "Plain.cs",
    "namespace Plain\n{\n\tinternal static class C\n\t{\n\t\tpublic static int M(string s) => s.Length;\n\t}\n}\n",
  )
  compilation = _compile(unit, references=(SYSTEM_LIBRARY,))

  assert KnownSymbols.from_compilation(compilation) is None
  assert GuardedTransformAnalyzer().analyze(compilation) == []


def test_known_symbols(program, references):
  unit = SourceUnit("Test0.cs", program("new ReferenceThing()", ""))
  known = KnownSymbols.from_compilation(_compile(unit, references=references))

  assert known.namespace == "Libronix.Utility.IfNotNull"
  assert known.method_name == "IfNotNull"
  assert len(known.helper_methods) == 10
  assert known.namespace_type_names == frozenset({"IfNotNullExtensionMethod"})

"""
Tests for the Fix-All Orchestrator.

Verifies:
1. Solution scope fixes every file, reporting only changed files.
2. Project and document scopes restrict the files touched.
3. Unknown projects and documents are rejected.
4. A cancelled run reports nothing.
5. Results merge without mutating their inputs, and runs are deterministic.
6. Progress is logged through the engine console.
"""

import pytest

from nullguard.cancellation import CancellationToken
from nullguard.config import RuntimeConfig
from nullguard.fixes import FixAllOrchestrator, FixAllResult, FixAllScope, Project, Solution
from nullguard.syntax.source import SourceUnit

REF = "new ReferenceThing()"

CONSUMER_HEADER = "using Libronix.Utility.IfNotNull;\nusing TestProgram;\n\nnamespace Other\n{{\n\tinternal static class {name}Uses\n\t{{\n"
CONSUMER_FOOTER = "\t}\n}\n"


def _consumer(path, member):
  return SourceUnit(path, CONSUMER_HEADER.format(name=path[:-3]) + "\t\t" + member + "\n" + CONSUMER_FOOTER)


@pytest.fixture
def solution(program, references):
  app = Project(
    "App",
    (
      SourceUnit("Test0.cs", program(REF, "var result = possiblyNull.IfNotNull(x => x.CalculateValue());")),
      SourceUnit("Plain.cs", "namespace Other\n{\n\tinternal static class Plain { }\n}\n"),
      _consumer("Anon.cs", "public static object Get(ReferenceThing r) => r.IfNotNull(x => new { Property = 5 });"),
      _consumer("Next.cs", "public static ReferenceThing Next(ReferenceThing r) => r.IfNotNull(x => x.RecursiveProperty);"),
    ),
    references,
  )
  lib = Project(
    "Lib",
    (SourceUnit("Lib.cs", program(REF, "var result = possiblyNull.IfNotNull(x => x.ValueTypeProperty);")),),
    references,
  )
  return Solution((app, lib))


def test_solution_scope(solution, fixed_program):
  result = FixAllOrchestrator().fix_all(solution)

  assert not result.cancelled
  assert sorted(result.documents) == ["Lib.cs", "Next.cs", "Test0.cs"]
  assert result.documents["Test0.cs"] == fixed_program(REF, "var result = possiblyNull?.CalculateValue();")
  assert result.documents["Lib.cs"] == fixed_program(REF, "var result = possiblyNull?.ValueTypeProperty ?? default(int);")
  next_text = result.documents["Next.cs"]
  assert "=> r?.RecursiveProperty;" in next_text
  assert "using Libronix.Utility.IfNotNull;" not in next_text
  assert result.fix_counts == {"Test0.cs": 1, "Next.cs": 1, "Lib.cs": 1}
  assert result.total_fixes == 3
  assert result.unfixed == {"Anon.cs": 1}


def test_project_scope(solution):
  result = FixAllOrchestrator().fix_all(solution, FixAllScope.PROJECT, project="Lib")

  assert list(result.documents) == ["Lib.cs"]
  assert result.unfixed == {}


def test_document_scope(solution):
  result = FixAllOrchestrator().fix_all(solution, FixAllScope.DOCUMENT, document="Next.cs")

  assert list(result.documents) == ["Next.cs"]
  assert result.fix_counts == {"Next.cs": 1}


def test_unknown_targets(solution):
  orchestrator = FixAllOrchestrator()

  with pytest.raises(ValueError, match="Unknown project"):
    orchestrator.fix_all(solution, FixAllScope.PROJECT, project="Missing")
  with pytest.raises(ValueError, match="Unknown document"):
    orchestrator.fix_all(solution, FixAllScope.DOCUMENT, document="Missing.cs")
  with pytest.raises(ValueError):
    orchestrator.fix_all(solution, FixAllScope.DOCUMENT)


def test_cancelled_run(solution):
  token = CancellationToken()
  token.cancel()

  result = FixAllOrchestrator().fix_all(solution, token=token)

  assert result.cancelled
  assert result.documents == {}
  assert result.fix_counts == {}


def test_nested_calls_in_one_file(program, references, fixed_program):
  """Each fix re-analyzes the file, so nested calls are fixed one after another."""
  call = "var result = possiblyNull.IfNotNull(x => x.RecursiveProperty.IfNotNull(y => y.CalculateValue()));"
  project = Project("App", (SourceUnit("Test0.cs", program(REF, call)),), references)

  result = FixAllOrchestrator(RuntimeConfig(max_workers=1)).fix_document(project.compilation, project.units[0])

  assert result.fix_counts == {"Test0.cs": 2}
  assert result.documents["Test0.cs"] == fixed_program(REF, "var result = possiblyNull?.RecursiveProperty?.CalculateValue();")


def test_iteration_bound(program, references):
  call = "var result = possiblyNull.IfNotNull(x => x.RecursiveProperty.IfNotNull(y => y.CalculateValue()));"
  project = Project("App", (SourceUnit("Test0.cs", program(REF, call)),), references)

  result = FixAllOrchestrator(RuntimeConfig(max_fix_iterations=1)).fix_document(project.compilation, project.units[0])

  assert result.fix_counts == {"Test0.cs": 1}
  assert result.unfixed == {"Test0.cs": 1}


def test_merge_is_pure():
  first = FixAllResult(documents={"a.cs": "A"}, fix_counts={"a.cs": 2})
  second = FixAllResult(documents={"b.cs": "B"}, fix_counts={"b.cs": 1}, unfixed={"b.cs": 3})

  merged = first.merge(second)

  assert merged.documents == {"a.cs": "A", "b.cs": "B"}
  assert merged.total_fixes == 3
  assert merged.unfixed == {"b.cs": 3}
  assert first.documents == {"a.cs": "A"}
  assert second.fix_counts == {"b.cs": 1}
  assert first.merge(FixAllResult(cancelled=True)).cancelled


def test_deterministic(solution):
  orchestrator = FixAllOrchestrator()

  assert orchestrator.fix_all(solution) == orchestrator.fix_all(solution)


def test_logging(solution, recorded_console):
  FixAllOrchestrator().fix_all(solution)

  output = recorded_console.export_text()
  assert "Fixing 5 file(s) in solution scope" in output
  assert "Applied 3 fix(es) across 3 file(s)" in output
  assert "1 diagnostic(s) left without a fix" in output

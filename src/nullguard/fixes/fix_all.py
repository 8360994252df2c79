"""
Fix-All Orchestrator.

Applies every available IfNotNull fix across a document, a project or a whole
solution.

Within one file the work is strictly serial: each applied fix shifts the spans of
the remaining diagnostics and adds names the hygiene allocator must avoid, so the
file is re-analyzed after every fix and the first fixable diagnostic is taken
again. Files are independent of each other and run concurrently on a thread pool.
Per-file results are combined with `FixAllResult.merge`.
"""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum
from functools import cached_property
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, Field

from nullguard.analysis.analyzer import GuardedTransformAnalyzer
from nullguard.cancellation import CancellationToken
from nullguard.config import RuntimeConfig
from nullguard.fixes.provider import GuardedTransformFixProvider
from nullguard.semantics.binder import Compilation
from nullguard.semantics.library import DEFAULT_REFERENCES, MetadataLibrary
from nullguard.syntax.source import SourceUnit
from nullguard.utils.console import log_error, log_info, log_success, log_warning


class FixAllScope(str, Enum):
  DOCUMENT = "document"
  PROJECT = "project"
  SOLUTION = "solution"


@dataclass(frozen=True)
class Project:
  """
  A set of source units compiled together.

  Attributes:
      name: Project identity.
      units: Source units.
      references: Metadata libraries bound with the units.
  """

  name: str
  units: Tuple[SourceUnit, ...]
  references: Tuple[MetadataLibrary, ...] = DEFAULT_REFERENCES

  @cached_property
  def compilation(self) -> Compilation:
    return Compilation(self.units, self.references)

  def get_unit(self, path: str) -> Optional[SourceUnit]:
    return next((u for u in self.units if u.path == path), None)


@dataclass(frozen=True)
class Solution:
  projects: Tuple[Project, ...] = field(default=())

  def get_project(self, name: str) -> Optional[Project]:
    return next((p for p in self.projects if p.name == name), None)

  def find_document(self, path: str) -> Optional[Tuple[Project, SourceUnit]]:
    """Finds the first project containing a unit with the given path."""
    for project in self.projects:
      unit = project.get_unit(path)
      if unit is not None:
        return project, unit
    return None


class FixAllResult(BaseModel):
  """
  Outcome of a fix-all run.

  Attributes:
      documents: New text per changed file. Unchanged files are omitted.
      fix_counts: Number of fixes applied per changed file.
      unfixed: Diagnostics left without a fix, per file that still has any.
      cancelled: True if the run was cancelled; no documents are reported then.
  """

  documents: Dict[str, str] = Field(default_factory=dict)
  fix_counts: Dict[str, int] = Field(default_factory=dict)
  unfixed: Dict[str, int] = Field(default_factory=dict)
  cancelled: bool = False

  @property
  def total_fixes(self) -> int:
    return sum(self.fix_counts.values())

  def merge(self, other: "FixAllResult") -> "FixAllResult":
    """
    Combines two results for disjoint sets of files.

    Args:
        other: The other result.

    Returns:
        FixAllResult: A new result; neither input is modified.
    """
    return FixAllResult(
      documents={**self.documents, **other.documents},
      fix_counts={**self.fix_counts, **other.fix_counts},
      unfixed={**self.unfixed, **other.unfixed},
      cancelled=self.cancelled or other.cancelled,
    )


class FixAllOrchestrator:
  """
  Drives the analyzer and the fix provider until no more fixes apply.

  Attributes:
      config (RuntimeConfig): Shared configuration.
      analyzer (GuardedTransformAnalyzer): Produces diagnostics.
      provider (GuardedTransformFixProvider): Computes fixes.
  """

  def __init__(
    self,
    config: Optional[RuntimeConfig] = None,
    analyzer: Optional[GuardedTransformAnalyzer] = None,
    provider: Optional[GuardedTransformFixProvider] = None,
  ):
    self.config = config or RuntimeConfig()
    self.analyzer = analyzer or GuardedTransformAnalyzer(self.config)
    self.provider = provider or GuardedTransformFixProvider(self.config)

  def fix_all(
    self,
    solution: Solution,
    scope: FixAllScope = FixAllScope.SOLUTION,
    project: Optional[str] = None,
    document: Optional[str] = None,
    token: Optional[CancellationToken] = None,
  ) -> FixAllResult:
    """
    Fixes every fixable diagnostic in scope.

    Args:
        solution: The program.
        scope: What to fix.
        project: Project name, required for PROJECT scope.
        document: Document path, required for DOCUMENT scope.
        token: Cancellation token shared by all files.

    Returns:
        FixAllResult: Merged result over all files in scope.

    Raises:
        ValueError: If the requested project or document does not exist.
    """
    targets = self._targets(solution, scope, project, document)
    token = token or CancellationToken()
    log_info(f"Fixing {len(targets)} file(s) in {scope.value} scope")

    with ThreadPoolExecutor(max_workers=self.config.max_workers) as pool:
      futures = [pool.submit(self.fix_document, p.compilation, unit, token.linked()) for p, unit in targets]
      result = FixAllResult()
      for future in futures:
        result = result.merge(future.result())

    if result.cancelled or token.is_cancelled:
      log_warning("Fix-all cancelled; no changes reported")
      return FixAllResult(cancelled=True)

    log_success(f"Applied {result.total_fixes} fix(es) across {len(result.documents)} file(s)")
    if result.unfixed:
      log_warning(f"{sum(result.unfixed.values())} diagnostic(s) left without a fix")
    return result

  def _targets(
    self, solution: Solution, scope: FixAllScope, project: Optional[str], document: Optional[str]
  ) -> List[Tuple[Project, SourceUnit]]:
    if scope == FixAllScope.DOCUMENT:
      found = solution.find_document(document) if document else None
      if found is None:
        raise ValueError(f"Unknown document: '{document}'")
      return [found]
    if scope == FixAllScope.PROJECT:
      selected = solution.get_project(project) if project else None
      if selected is None:
        raise ValueError(f"Unknown project: '{project}'")
      return [(selected, unit) for unit in selected.units]
    return [(p, unit) for p in solution.projects for unit in p.units]

  def fix_document(
    self, compilation: Compilation, unit: SourceUnit, token: Optional[CancellationToken] = None
  ) -> FixAllResult:
    """
    Runs the serial fix loop for one file.

    Args:
        compilation: A compilation containing `unit`.
        unit: The file to fix.
        token: Cancellation token.

    Returns:
        FixAllResult: The file's result; empty if nothing was fixed.
    """
    path = unit.path
    current = unit
    applied = 0
    diagnostics = []

    for _ in range(self.config.max_fix_iterations):
      if token is not None and token.is_cancelled:
        return FixAllResult(cancelled=True)
      try:
        diagnostics = self.analyzer.analyze_unit(compilation, current)
      except (ValueError, SyntaxError) as e:
        log_error(f"Cannot analyze [path]{path}[/path]: {e}")
        diagnostics = []
        break
      if not diagnostics:
        break

      fixed = None
      for diagnostic in diagnostics:
        if token is not None and token.is_cancelled:
          return FixAllResult(cancelled=True)
        try:
          fixes = self.provider.compute_fixes(compilation, current, diagnostic, token)
          if fixes:
            fixed = fixes[0].apply(token)
            if fixed is not None:
              fixed.root  # raises SyntaxError if the fix produced unparsable text
        except (ValueError, SyntaxError) as e:
          log_warning(f"Skipping {diagnostic}: {e}")
          fixed = None
          continue
        if fixed is not None:
          break

      if fixed is None:
        break
      current = fixed
      applied += 1
      compilation = compilation.with_unit(current)
    else:
      log_warning(f"Stopped fixing [path]{path}[/path] after {self.config.max_fix_iterations} fixes")
      diagnostics = self.analyzer.analyze_unit(compilation, current)

    result = FixAllResult()
    if applied:
      log_info(f"[path]{path}[/path]: {applied} fix(es) applied")
      result = FixAllResult(documents={path: current.text}, fix_counts={path: applied})
    if diagnostics:
      result = result.merge(FixAllResult(unfixed={path: len(diagnostics)}))
    return result

"""
nullguard Package.

Detects calls to the legacy `IfNotNull` helper in C# source and rewrites them
into conditional access (`x?.Prop`), null coalescing (`x?.Prop ?? d`) or
pattern matching (`x is T v ? ... : ...`).

Usage
-----

Analysis
^^^^^^^^

.. code-block:: python

    import nullguard
    for diagnostic in nullguard.analyze_source(text, path="Program.cs"):
        print(diagnostic)

Fixing a Single Document
^^^^^^^^^^^^^^^^^^^^^^^^

.. code-block:: python

    fixed = nullguard.fix_source(text, path="Program.cs")

Multi-file Fix-All
^^^^^^^^^^^^^^^^^^

.. code-block:: python

    from nullguard import FixAllOrchestrator, Project, Solution, SourceUnit

    solution = Solution((Project("App", (SourceUnit("A.cs", a), SourceUnit("B.cs", b))),))
    result = FixAllOrchestrator().fix_all(solution)
    print(result.documents)
"""

from typing import List, Optional, Sequence

from nullguard.analysis import Diagnostic, GuardedTransformAnalyzer
from nullguard.config import RuntimeConfig
from nullguard.fixes import FixAllOrchestrator, FixAllResult, FixAllScope, GuardedTransformFixProvider, Project, Solution
from nullguard.semantics import DEFAULT_REFERENCES, Compilation, MetadataLibrary
from nullguard.syntax.source import SourceUnit

__version__ = "0.1.0"


def analyze_source(
  text: str,
  path: str = "<source>",
  references: Sequence[MetadataLibrary] = DEFAULT_REFERENCES,
  config: Optional[RuntimeConfig] = None,
) -> List[Diagnostic]:
  """
  Reports IfNotNull usages in one C# file.

  Args:
      text (str): C# source.
      path (str): Identity used in diagnostics.
      references (Sequence[MetadataLibrary]): Libraries bound alongside the file.
      config (RuntimeConfig, optional): Rule settings.

  Returns:
      List[Diagnostic]: Diagnostics in source order.

  Raises:
      SyntaxError: If the source cannot be parsed.
  """
  unit = SourceUnit(path, text)
  compilation = Compilation((unit,), references)
  return GuardedTransformAnalyzer(config).analyze_unit(compilation, unit)


def fix_source(
  text: str,
  path: str = "<source>",
  references: Sequence[MetadataLibrary] = DEFAULT_REFERENCES,
  config: Optional[RuntimeConfig] = None,
) -> str:
  """
  Applies every available IfNotNull fix to one C# file.

  Args:
      text (str): C# source.
      path (str): Identity of the file.
      references (Sequence[MetadataLibrary]): Libraries bound alongside the file.
      config (RuntimeConfig, optional): Rule settings.

  Returns:
      str: The fixed text; `text` itself if nothing could be fixed.
  """
  project = Project("default", (SourceUnit(path, text),), tuple(references))
  result = FixAllOrchestrator(config).fix_all(Solution((project,)), FixAllScope.DOCUMENT, document=path)
  return result.documents.get(path, text)


__all__ = [
  "Compilation",
  "Diagnostic",
  "FixAllOrchestrator",
  "FixAllResult",
  "FixAllScope",
  "GuardedTransformAnalyzer",
  "GuardedTransformFixProvider",
  "Project",
  "RuntimeConfig",
  "Solution",
  "SourceUnit",
  "analyze_source",
  "fix_source",
  "__version__",
]

"""
Fixes Package.

The fix provider, the text-splicing applier and the fix-all orchestrator.
"""

from nullguard.fixes.applier import apply_candidate, remove_using_directive
from nullguard.fixes.fix_all import FixAllOrchestrator, FixAllResult, FixAllScope, Project, Solution
from nullguard.fixes.provider import CodeFix, GuardedTransformFixProvider

__all__ = [
  "CodeFix",
  "FixAllOrchestrator",
  "FixAllResult",
  "FixAllScope",
  "GuardedTransformFixProvider",
  "Project",
  "Solution",
  "apply_candidate",
  "remove_using_directive",
]

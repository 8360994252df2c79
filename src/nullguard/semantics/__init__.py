"""
Semantics Package.

Symbols, metadata references and the binder that resolves names, types and
overloads for the rule engine.
"""

from nullguard.semantics.binder import Compilation, Resolved, SemanticModel, Skipped, SkipReason
from nullguard.semantics.library import DEFAULT_REFERENCES, IF_NOT_NULL_LIBRARY, SYSTEM_LIBRARY, MetadataLibrary

__all__ = [
  "Compilation",
  "DEFAULT_REFERENCES",
  "IF_NOT_NULL_LIBRARY",
  "MetadataLibrary",
  "Resolved",
  "SYSTEM_LIBRARY",
  "SemanticModel",
  "SkipReason",
  "Skipped",
]

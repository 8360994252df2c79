"""
Analysis Package.

Rule descriptors, diagnostic records and the IfNotNull analyzer.
"""

from nullguard.analysis.analyzer import GuardedTransformAnalyzer
from nullguard.analysis.diagnostics import IF_NOT_NULL_DESCRIPTOR, Diagnostic, DiagnosticDescriptor, Severity
from nullguard.analysis.known_symbols import KnownSymbols

__all__ = [
  "Diagnostic",
  "DiagnosticDescriptor",
  "GuardedTransformAnalyzer",
  "IF_NOT_NULL_DESCRIPTOR",
  "KnownSymbols",
  "Severity",
]

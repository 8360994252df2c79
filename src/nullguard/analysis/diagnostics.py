"""
Diagnostic Records.

Descriptors describe a rule once; `Diagnostic` values are the individual findings
reported for a source unit. Both are immutable.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Tuple

from nullguard.syntax.source import TextSpan


class Severity(str, Enum):
  HIDDEN = "hidden"
  INFO = "info"
  WARNING = "warning"
  ERROR = "error"


@dataclass(frozen=True)
class DiagnosticDescriptor:
  """
  Static description of a rule.

  Attributes:
      id: Rule identifier (`FL0010`).
      title: Short rule title.
      message_format: Message shown for each finding.
      category: Rule category.
      default_severity: Severity used unless configuration overrides it.
      help_link: Documentation URL.
  """

  id: str
  title: str
  message_format: str
  category: str
  default_severity: Severity
  help_link: str


IF_NOT_NULL_DIAGNOSTIC_ID = "FL0010"

IF_NOT_NULL_DESCRIPTOR = DiagnosticDescriptor(
  id=IF_NOT_NULL_DIAGNOSTIC_ID,
  title="IfNotNull deprecation",
  message_format="Prefer modern language features over IfNotNull usage.",
  category="Usage",
  default_severity=Severity.INFO,
  help_link=f"https://github.com/Faithlife/FaithlifeAnalyzers/wiki/{IF_NOT_NULL_DIAGNOSTIC_ID}",
)


@dataclass(frozen=True)
class Diagnostic:
  """
  One reported finding.

  Attributes:
      descriptor: The rule that produced it.
      path: Identity of the source unit.
      span: Location of the flagged invocation.
      severity: Effective severity.
      line: 1-based line of `span.start`.
      column: 1-based column of `span.start`.
  """

  descriptor: DiagnosticDescriptor
  path: str
  span: TextSpan
  severity: Severity
  line: int
  column: int

  @property
  def rule_id(self) -> str:
    return self.descriptor.id

  @property
  def message(self) -> str:
    return self.descriptor.message_format

  @property
  def location(self) -> Tuple[int, int]:
    return self.line, self.column

  def __str__(self) -> str:
    return f"{self.path}({self.line},{self.column}): {self.severity.value} {self.rule_id}: {self.message}"

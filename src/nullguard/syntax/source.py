"""
Source Units and Text Spans.

A `SourceUnit` is the immutable container the host hands to the engine: a stable
identity (its path) plus the current text. The syntax tree is parsed lazily from
the text and cached on the instance. Applying a fix never mutates a unit; it produces
a new one via `with_text`.
"""

from dataclasses import dataclass
from functools import cached_property
from typing import Tuple


@dataclass(frozen=True)
class TextSpan:
  """
  Half-open range of character offsets `[start, end)`.
  """

  start: int
  end: int

  @property
  def length(self) -> int:
    """Number of characters covered."""
    return self.end - self.start

  def contains(self, other: "TextSpan") -> bool:
    """
    Checks whether `other` lies entirely within this span.

    Args:
        other: The candidate inner span.

    Returns:
        bool: True if `other` is covered by this span.
    """
    return self.start <= other.start and other.end <= self.end

  def __str__(self) -> str:
    return f"[{self.start}..{self.end})"


@dataclass(frozen=True)
class SourceUnit:
  """
  Immutable source file with a stable identity.

  Attributes:
      path: Identity of the unit (file path or logical name).
      text: Full source text.
  """

  path: str
  text: str

  @cached_property
  def root(self):
    """
    The parsed `CompilationUnit` for this text.

    Parsing is pure, so concurrent first access at worst parses twice.
    """
    from nullguard.syntax.parser import CSharpParser

    return CSharpParser(self.text).parse()

  def with_text(self, text: str) -> "SourceUnit":
    """
    Returns a new unit with the same identity and updated text.

    Args:
        text: The replacement source text.

    Returns:
        SourceUnit: A fresh unit; the receiver is left untouched.
    """
    return SourceUnit(path=self.path, text=text)

  def location(self, offset: int) -> Tuple[int, int]:
    """
    Converts a character offset to a 1-based (line, column) pair.

    Args:
        offset: Character offset into `text`.

    Returns:
        Tuple[int, int]: Line and column numbers.
    """
    line = self.text.count("\n", 0, offset) + 1
    line_start = self.text.rfind("\n", 0, offset) + 1
    return line, offset - line_start + 1

  def slice(self, span: TextSpan) -> str:
    """Returns the source text covered by `span`."""
    return self.text[span.start : span.end]

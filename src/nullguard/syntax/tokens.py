"""
C# Tokenizer Definition.

Provides a Regex-based Lexer (`CSharpLexer`) that decomposes C# source text into a
stream of typed `Token` objects carrying both line/column and absolute character
offsets. Offsets are what spans, diagnostics and text splicing are built on.

Handles:
- Line (`//`) and block (`/* */`) comments, which are skipped like whitespace.
- Regular, verbatim (`@"..."`) strings and character literals.
- Longest-match punctuation for the null-aware operators (`?.`, `??`, `??=`).
"""

import re
from dataclasses import dataclass
from enum import Enum, auto
from typing import Generator

KEYWORDS = frozenset(
  {
    "abstract",
    "as",
    "async",
    "await",
    "base",
    "bool",
    "byte",
    "char",
    "class",
    "const",
    "decimal",
    "default",
    "delegate",
    "double",
    "dynamic",
    "else",
    "false",
    "float",
    "foreach",
    "if",
    "in",
    "int",
    "interface",
    "internal",
    "is",
    "long",
    "namespace",
    "new",
    "null",
    "object",
    "out",
    "override",
    "params",
    "partial",
    "private",
    "protected",
    "public",
    "readonly",
    "ref",
    "return",
    "sbyte",
    "sealed",
    "short",
    "static",
    "string",
    "struct",
    "this",
    "throw",
    "true",
    "typeof",
    "uint",
    "ulong",
    "ushort",
    "using",
    "virtual",
    "void",
    "while",
  }
)
"""Reserved words. Contextual keywords (`var`, `get`, `from`, ...) lex as identifiers."""

PREDEFINED_TYPES = frozenset(
  {
    "bool",
    "byte",
    "char",
    "decimal",
    "double",
    "dynamic",
    "float",
    "int",
    "long",
    "object",
    "sbyte",
    "short",
    "string",
    "uint",
    "ulong",
    "ushort",
    "void",
  }
)


class TokenType(Enum):
  """Enumeration of valid C# token types."""

  IDENTIFIER = auto()  # possiblyNull, var, @class
  KEYWORD = auto()  # new, is, default
  NUMBER = auto()  # 0, 1.5, 0xFF, 10L
  STRING = auto()  # "text", @"C:\path"
  CHAR = auto()  # 'c'
  PUNCTUATION = auto()  # ?. ?? => ( ) ...
  EOF = auto()


@dataclass(frozen=True)
class Token:
  """
  Represents a lexical unit.

  Attributes:
      kind: The type of token.
      value: The raw source text of the token.
      line: Line number in source (1-based).
      column: Column number in source (1-based).
      start: Absolute offset of the first character.
      end: Absolute offset one past the last character.
  """

  kind: TokenType
  value: str
  line: int
  column: int
  start: int
  end: int

  def is_punct(self, *values: str) -> bool:
    """Checks for a punctuation token with one of the given spellings."""
    return self.kind == TokenType.PUNCTUATION and self.value in values

  def is_keyword(self, *values: str) -> bool:
    """Checks for a keyword token with one of the given spellings."""
    return self.kind == TokenType.KEYWORD and self.value in values

  def is_word(self, *values: str) -> bool:
    """Checks for an identifier or keyword token with one of the given spellings."""
    return self.kind in (TokenType.IDENTIFIER, TokenType.KEYWORD) and self.value in values


class CSharpLexer:
  """
  Regex-based Lexer for the C# subset understood by the engine.
  """

  # Compiled Regex Patterns (Order matters for priority)
  PATTERNS = [
    (None, r"//[^\n]*"),
    (None, r"/\*.*?\*/"),
    (TokenType.STRING, r'@"(?:[^"]|"")*"'),
    (TokenType.STRING, r'"(?:[^"\\\n]|\\.)*"'),
    (TokenType.CHAR, r"'(?:[^'\\\n]|\\.)+'"),
    (TokenType.NUMBER, r"0[xX][0-9a-fA-F_]+[uUlL]*"),
    (TokenType.NUMBER, r"\d[\d_]*(?:\.\d+)?(?:[eE][-+]?\d+)?[fFdDmMuUlL]*"),
    (TokenType.NUMBER, r"\.\d+(?:[eE][-+]?\d+)?[fFdDmM]?"),
    (TokenType.IDENTIFIER, r"@?[A-Za-z_][A-Za-z0-9_]*"),
    # `?.` followed by a digit is a conditional operator and a numeric literal.
    (TokenType.PUNCTUATION, r"\?\?=|\?\?|\?\.(?!\d)|=>|==|!=|<=|>=|&&|\|\||\+\+|--|\+=|-=|\*=|/=|%=|&=|\|=|\^=|::"),
    (TokenType.PUNCTUATION, r"[{}()\[\];,.?:=<>+\-*/%!&|^~]"),
  ]

  def __init__(self) -> None:
    """Initializes the lexer with compiled patterns."""
    self.regex_pairs = [(kind, re.compile(pattern, re.DOTALL)) for kind, pattern in self.PATTERNS]
    self._whitespace = re.compile(r"\s+")

  def tokenize(self, text: str) -> Generator[Token, None, None]:
    """
    Tokenizes the input string.

    Args:
        text: Raw C# source code.

    Yields:
        Token objects, terminated by a single EOF token.

    Raises:
        ValueError: If an unrecognized character sequence is encountered.
    """
    pos = 0
    line_num = 1
    line_start = 0
    length = len(text)

    while pos < length:
      match_ws = self._whitespace.match(text, pos)
      if match_ws:
        ws_str = match_ws.group(0)
        newlines = ws_str.count("\n")
        if newlines > 0:
          line_num += newlines
          line_start = pos + ws_str.rfind("\n") + 1
        pos = match_ws.end()
        continue

      match_found = False
      for kind, regex in self.regex_pairs:
        match = regex.match(text, pos)
        if not match:
          continue

        val = match.group(0)
        if kind is not None:
          if kind == TokenType.IDENTIFIER and val in KEYWORDS:
            kind = TokenType.KEYWORD
          yield Token(kind, val, line_num, pos - line_start + 1, pos, match.end())
        else:
          # Comments may span lines
          newlines = val.count("\n")
          if newlines > 0:
            line_num += newlines
            line_start = pos + val.rfind("\n") + 1

        pos = match.end()
        match_found = True
        break

      if not match_found:
        snippet = text[pos : min(pos + 10, length)]
        raise ValueError(f"Illegal character at line {line_num}, col {pos - line_start + 1}: '{snippet}...'")

    yield Token(TokenType.EOF, "", line_num, pos - line_start + 1, pos, pos)

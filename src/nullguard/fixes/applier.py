"""
Fix Applier.

Substitutes a candidate's replacement for its target and returns a new
`SourceUnit`. The edit is a text splice over the target's span: everything outside
the span is kept byte for byte, and parsed nodes inside the replacement render
verbatim from the old text, so only the synthesized glue is canonical.
"""

import re
from typing import FrozenSet, Optional

from nullguard.rewrite.models import RewriteCandidate
from nullguard.syntax.nodes import (
  ExpressionSyntax,
  IdentifierName,
  MemberAccess,
  MemberBinding,
  NamedType,
  NamespaceDeclaration,
  Parenthesized,
  UsingDirective,
  source_text,
)
from nullguard.syntax.precedence import field_of, needs_parentheses
from nullguard.syntax.source import SourceUnit
from nullguard.syntax.tree import parent_map, walk

_TRAILING_LINE_BREAK = re.compile(r"[ \t]*(\r?\n|$)")


def render_replacement(unit: SourceUnit, candidate: RewriteCandidate) -> str:
  """
  Renders the replacement as it will appear at the target's position.

  Args:
      unit: The unit the candidate was computed against.
      candidate: An eligible candidate.

  Returns:
      str: Replacement text, parenthesized if the surrounding expression needs it.
  """
  replacement = candidate.replacement
  parents = parent_map(unit.root)
  parent = parents.get(id(candidate.target))
  if parent is not None and isinstance(replacement, ExpressionSyntax):
    if needs_parentheses(parent, field_of(parent, candidate.target), replacement):
      replacement = Parenthesized(replacement)
  with source_text(unit.text):
    return replacement.to_text()


def apply_candidate(unit: SourceUnit, candidate: RewriteCandidate) -> SourceUnit:
  """
  Applies one candidate.

  Args:
      unit: The unit the candidate was computed against. Not modified.
      candidate: An eligible candidate whose target belongs to `unit`.

  Returns:
      SourceUnit: A new unit with the target replaced.

  Raises:
      ValueError: If the candidate is ineligible or its target has no span.
  """
  if not candidate.eligible or candidate.replacement is None:
    raise ValueError(f"Cannot apply an ineligible rewrite: {candidate.reason}")
  span = candidate.target.span
  if span is None:
    raise ValueError("Rewrite target is not part of the parsed unit")
  rendered = render_replacement(unit, candidate)
  return unit.with_text(unit.text[: span.start] + rendered + unit.text[span.end :])


def _mentions_any(unit: SourceUnit, names: FrozenSet[str], namespace: str) -> bool:
  """True if a name outside `namespace`'s own declarations refers to one of `names`."""
  root = unit.root
  parents = parent_map(root)
  for node in walk(root):
    if isinstance(node, IdentifierName):
      name = node.identifier
    elif isinstance(node, (MemberAccess, MemberBinding)):
      name = node.name
    elif isinstance(node, NamedType):
      name = node.parts[-1]
    else:
      continue
    if name not in names:
      continue
    owner = parents.get(id(node))
    while owner is not None and not (isinstance(owner, NamespaceDeclaration) and owner.name == namespace):
      owner = parents.get(id(owner))
    if owner is None:
      return True
  return False


def remove_using_directive(unit: SourceUnit, namespace: str) -> SourceUnit:
  """
  Deletes `using <namespace>;` lines from a unit.

  The directive's line is removed together with its line break when nothing else
  shares the line; otherwise only the directive text goes.

  Args:
      unit: The unit to edit.
      namespace: The imported namespace.

  Returns:
      SourceUnit: The edited unit, or `unit` itself if there is no such directive.
  """
  spans = [
    n.span
    for n in walk(unit.root)
    if isinstance(n, UsingDirective) and n.name == namespace and not n.is_static and n.alias is None and n.span is not None
  ]
  if not spans:
    return unit
  text = unit.text
  for span in sorted(spans, key=lambda s: s.start, reverse=True):
    start, end = span.start, span.end
    line_start = text.rfind("\n", 0, start) + 1
    newline = _TRAILING_LINE_BREAK.match(text, end)
    if not text[line_start:start].strip() and newline is not None:
      start, end = line_start, newline.end()
    text = text[:start] + text[end:]
  return unit.with_text(text)


def remove_unused_helper_using(
  unit: SourceUnit, namespace: str, names: FrozenSet[str], method_name: Optional[str] = None
) -> SourceUnit:
  """
  Removes the helper namespace's using directive once nothing in the unit needs it.

  Args:
      unit: The unit after a fix was applied.
      namespace: The helper namespace.
      names: Type names declared in that namespace.
      method_name: The helper method name (extension calls need the using too).

  Returns:
      SourceUnit: The unit with the directive removed, or unchanged.
  """
  used = set(names)
  if method_name:
    used.add(method_name)
  if _mentions_any(unit, frozenset(used), namespace):
    return unit
  return remove_using_directive(unit, namespace)

"""
Syntax Tree Utilities.

Generic traversal and persistent-update helpers over the node family in
`nullguard.syntax.nodes`. Because nodes are immutable, "replacing" a node rebuilds
the path from the root down to it; every rebuilt ancestor loses its span, so it
renders canonically while untouched siblings keep rendering from source.
"""

import dataclasses
from typing import Callable, Dict, Iterator, List, Optional

from nullguard.syntax.nodes import IdentifierName, Lambda, MemberBinding, SyntaxNode
from nullguard.syntax.source import TextSpan

ParentMap = Dict[int, SyntaxNode]


def _node_fields(node: SyntaxNode):
  for f in dataclasses.fields(node):
    if f.name != "span":
      yield f.name, getattr(node, f.name)


def children(node: SyntaxNode) -> List[SyntaxNode]:
  """
  Returns the direct child nodes in source order.

  Args:
      node: The parent node.

  Returns:
      List[SyntaxNode]: Children, flattening tuple-valued fields.
  """
  result = []
  for _, value in _node_fields(node):
    if isinstance(value, SyntaxNode):
      result.append(value)
    elif isinstance(value, tuple):
      result.extend(v for v in value if isinstance(v, SyntaxNode))
  return result


def walk(node: SyntaxNode) -> Iterator[SyntaxNode]:
  """Yields `node` and all its descendants in pre-order."""
  stack = [node]
  while stack:
    current = stack.pop()
    yield current
    stack.extend(reversed(children(current)))


def parent_map(root: SyntaxNode) -> ParentMap:
  """
  Builds an identity-keyed map from each node to its parent.

  Args:
      root: Tree root.

  Returns:
      ParentMap: `id(child) -> parent`. The root has no entry.
  """
  parents: ParentMap = {}
  for node in walk(root):
    for child in children(node):
      parents[id(child)] = node
  return parents


def ancestors(node: SyntaxNode, parents: ParentMap) -> Iterator[SyntaxNode]:
  """Yields the parent of `node`, then its parent, up to the root."""
  current = parents.get(id(node))
  while current is not None:
    yield current
    current = parents.get(id(current))


def find_nodes_at(root: SyntaxNode, span: TextSpan, kind: Optional[type] = None) -> List[SyntaxNode]:
  """
  Finds parsed nodes whose span equals `span`, outermost first.

  Args:
      root: Tree root.
      span: The exact span to look for.
      kind: Optional node class filter.

  Returns:
      List[SyntaxNode]: Matching nodes.
  """
  found = []
  for node in walk(root):
    if node.span == span and (kind is None or isinstance(node, kind)):
      found.append(node)
  return found


def transform(node: SyntaxNode, fn: Callable[[SyntaxNode], Optional[SyntaxNode]]) -> SyntaxNode:
  """
  Rebuilds a tree top-down through a replacement callback.

  `fn` is called on each node before its children. A non-None return value
  replaces the node (and its subtree is not visited further). Ancestors of any
  replaced node are rebuilt without spans.

  Args:
      node: Subtree root.
      fn: Replacement callback.

  Returns:
      SyntaxNode: The original node if nothing changed, otherwise a rebuilt node.
  """
  replacement = fn(node)
  if replacement is not None:
    return replacement

  changes = {}
  for name, value in _node_fields(node):
    if isinstance(value, SyntaxNode):
      new_value = transform(value, fn)
      if new_value is not value:
        changes[name] = new_value
    elif isinstance(value, tuple) and any(isinstance(v, SyntaxNode) for v in value):
      new_items = tuple(transform(v, fn) if isinstance(v, SyntaxNode) else v for v in value)
      if any(a is not b for a, b in zip(new_items, value)):
        changes[name] = new_items
  if not changes:
    return node
  return dataclasses.replace(node, span=None, **changes)


def replace_node(root: SyntaxNode, target: SyntaxNode, replacement: SyntaxNode) -> SyntaxNode:
  """
  Returns a copy of `root` where `target` (matched by identity) is swapped out.

  Args:
      root: Tree root.
      target: The node to replace.
      replacement: The node to put in its place.

  Returns:
      SyntaxNode: The rebuilt root.
  """
  return transform(root, lambda n: replacement if n is target else None)


def rename_identifier(node: SyntaxNode, old: str, new: str) -> SyntaxNode:
  """
  Renames free references to `old` inside an expression.

  Member names (`a.old`, `?.old`) are not references and stay untouched. A nested
  lambda that re-declares `old` shadows it, so its body is skipped.

  Args:
      node: Expression to rewrite.
      old: The identifier to rename.
      new: The replacement identifier.

  Returns:
      SyntaxNode: The rewritten expression.
  """

  def visit(n: SyntaxNode) -> Optional[SyntaxNode]:
    if isinstance(n, IdentifierName) and n.identifier == old:
      return IdentifierName(new, n.type_arguments)
    if isinstance(n, Lambda) and any(p.name == old for p in n.parameters):
      return n
    if isinstance(n, MemberBinding):
      return n
    return None

  return transform(node, visit)


def count_references(node: SyntaxNode, name: str) -> int:
  """Counts `IdentifierName` occurrences of `name` in a subtree."""
  return sum(1 for n in walk(node) if isinstance(n, IdentifierName) and n.identifier == name)


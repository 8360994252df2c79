"""
Identifier Hygiene.

Mints names for bindings a rewrite introduces. The check is textual and
conservative: every declared name inside the enclosing member that starts with the
desired name is reserved, whether or not it is actually in scope at the rewrite
site. This can over-reserve but never lets a new binding collide with an existing one.
"""

from typing import Optional, Set

from nullguard.syntax.nodes import (
  DeclarationExpression,
  DeclarationPattern,
  ForEachStatement,
  FromClause,
  IndexerDeclaration,
  LetClause,
  MemberDeclaration,
  Parameter,
  PropertyDeclaration,
  QueryContinuation,
  SyntaxNode,
  TypeParameter,
  VariableDeclarator,
)
from nullguard.syntax.tree import ParentMap, ancestors, walk

IMPLICIT_ACCESSOR_PARAMETER = "value"


def enclosing_declaration(node: SyntaxNode, parents: ParentMap) -> MemberDeclaration:
  """
  Returns the nearest member declaration containing `node`.

  Raises:
      ValueError: If `node` is not inside a member declaration.
  """
  for ancestor in ancestors(node, parents):
    if isinstance(ancestor, MemberDeclaration):
      return ancestor
  raise ValueError("Cannot declare a variable at this scope.")


def _declared_name(node: SyntaxNode) -> Optional[str]:
  if isinstance(node, (Parameter, TypeParameter, VariableDeclarator)):
    return node.name
  if isinstance(node, (DeclarationPattern, DeclarationExpression)):
    return node.designation
  if isinstance(node, (FromClause, LetClause, QueryContinuation, ForEachStatement)):
    return node.identifier
  return None


def reserved_names(declaration: SyntaxNode, prefix: str, exclude: Optional[SyntaxNode] = None) -> Set[str]:
  """
  Collects the declared names inside `declaration` that start with `prefix`.

  Args:
      declaration: The enclosing member declaration.
      prefix: Only names starting with this text are collected.
      exclude: A declaring node (matched by identity) to ignore.

  Returns:
      Set[str]: The reserved names.
  """
  names = set()
  for node in walk(declaration):
    if node is exclude:
      continue
    name = _declared_name(node)
    if name is not None and name.startswith(prefix):
      names.add(name)
  if isinstance(declaration, (PropertyDeclaration, IndexerDeclaration)) and IMPLICIT_ACCESSOR_PARAMETER.startswith(prefix):
    names.add(IMPLICIT_ACCESSOR_PARAMETER)
  return names


def allocate_name(desired: str, at: SyntaxNode, parents: ParentMap, exclude: Optional[SyntaxNode] = None) -> str:
  """
  Finds a collision-free name for a binding introduced at `at`.

  Args:
      desired: The preferred name.
      at: A node inside the member where the binding is introduced.
      parents: Parent map of the tree containing `at`.
      exclude: An existing declaration being renamed, which does not count as a
          collision.

  Returns:
      str: `desired`, or `desired` followed by the smallest positive integer suffix
      that is not reserved.

  Raises:
      ValueError: If `at` is not inside a member declaration.
  """
  declaration = enclosing_declaration(at, parents)
  taken = reserved_names(declaration, desired, exclude)
  name = desired
  suffix = 1
  while name in taken:
    name = f"{desired}{suffix}"
    suffix += 1
  return name

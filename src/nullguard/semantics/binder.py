"""
Compilation and Semantic Model.

The binder answers the two questions the rule engine asks the host:
"what type does this expression have?" and "what does this name resolve to?".

- `Compilation` binds the declared types and members of every source unit and
  metadata reference into one global table. It is immutable; `with_unit` returns
  a new compilation, which is how an applied fix becomes visible.
- `SemanticModel` answers per-node queries for one unit. Resolution never raises for
  shapes it does not understand; it returns a typed `Skipped` result instead.

Overload resolution follows C# closely enough for helper-call detection: generic
type inference runs in two phases (plain arguments first, then lambdas and method
groups once their parameter types are fixed), constraints are checked, and a
value-returning lambda prefers `Func<>` over `Action<>` targets.
"""

import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterator, List, Mapping, Optional, Sequence, Set, Tuple, Union

from nullguard.semantics.library import MetadataLibrary
from nullguard.semantics.symbols import (
  BOOL_TYPE,
  ERROR_TYPE,
  INDEXER_NAME,
  INT_TYPE,
  NULL_TYPE,
  NULLABLE_DEFINITION,
  OBJECT_TYPE,
  SPECIAL_TYPES,
  STRING_TYPE,
  VOID_TYPE,
  Constraint,
  FieldSymbol,
  IndexerSymbol,
  LocalSymbol,
  MethodSymbol,
  NamespaceSymbol,
  ParameterSymbol,
  PropertySymbol,
  Symbol,
  TypeKind,
  TypeSymbol,
  make_anonymous,
  make_array,
  make_nullable,
  make_type_parameter,
  same_type,
  substitute,
)
from nullguard.syntax.nodes import (
  Accessor,
  AnonymousMethod,
  AnonymousObjectCreation,
  ArrayCreation,
  ArrayType,
  AsExpression,
  Assignment,
  Await,
  Binary,
  Block,
  Cast,
  CompilationUnit,
  Conditional,
  ConditionalAccess,
  ConstructorDeclaration,
  DeclarationExpression,
  DeclarationPattern,
  DefaultExpression,
  DelegateDeclaration,
  ElementAccess,
  ElementBinding,
  FieldDeclaration,
  ForEachStatement,
  FromClause,
  IdentifierName,
  IndexerDeclaration,
  Invocation,
  IsPattern,
  Lambda,
  LetClause,
  LiteralExpression,
  LocalDeclaration,
  MemberAccess,
  MemberBinding,
  MethodDeclaration,
  NamedType,
  NamespaceDeclaration,
  NullableType,
  ObjectCreation,
  Parameter,
  Parenthesized,
  PostfixUnary,
  PredefinedType,
  PropertyDeclaration,
  QueryContinuation,
  QueryExpression,
  ReturnStatement,
  StatementSyntax,
  SyntaxNode,
  ThisExpression,
  ThrowExpression,
  TypeDeclaration,
  TypeSyntax,
  Unary,
  VariableDeclarator,
)
from nullguard.syntax.source import SourceUnit
from nullguard.syntax.tree import ParentMap, ancestors, children, parent_map, walk

# Type of `throw` expressions and the target-typed `default` literal.
UNTYPED = TypeSymbol("<untyped>", TypeKind.NULL)

_TASK_NAMESPACE = "System.Threading.Tasks"

_IMPLICIT_NUMERIC = {
  "sbyte": {"short", "int", "long", "float", "double", "decimal"},
  "byte": {"short", "ushort", "int", "uint", "long", "ulong", "float", "double", "decimal"},
  "short": {"int", "long", "float", "double", "decimal"},
  "ushort": {"int", "uint", "long", "ulong", "float", "double", "decimal"},
  "int": {"long", "float", "double", "decimal"},
  "uint": {"long", "ulong", "float", "double", "decimal"},
  "long": {"float", "double", "decimal"},
  "ulong": {"float", "double", "decimal"},
  "char": {"ushort", "int", "uint", "long", "ulong", "float", "double", "decimal"},
  "float": {"double"},
}

_NUMERIC_RANK = ["int", "uint", "long", "ulong", "float", "double", "decimal"]


class SkipReason(Enum):
  """Why a resolution query produced no symbol."""

  UNRESOLVED_NAME = "unresolved-name"
  METHOD_GROUP = "method-group"
  NO_APPLICABLE_OVERLOAD = "no-applicable-overload"
  RECURSIVE = "recursive"
  UNSUPPORTED_SYNTAX = "unsupported-syntax"


@dataclass(frozen=True)
class Resolved:
  symbol: Symbol


@dataclass(frozen=True)
class Skipped:
  reason: SkipReason
  detail: str = ""


Resolution = Union[Resolved, Skipped]


@dataclass(frozen=True)
class TypeContext:
  """Where a type name is being bound: namespace, imports and generic parameters in scope."""

  namespace: str = ""
  usings: Tuple[str, ...] = ()
  type_parameters: Mapping[str, TypeSymbol] = field(default_factory=dict)
  containing_type: Optional[TypeSymbol] = None


def _namespace_chain(namespace: str) -> List[str]:
  """`A.B` -> [`A.B`, `A`, ``]"""
  chain = []
  parts = namespace.split(".") if namespace else []
  while parts:
    chain.append(".".join(parts))
    parts.pop()
  chain.append("")
  return chain


class _Globals:
  """Global declaration table shared by all semantic models of one compilation."""

  def __init__(self, references: Sequence[SourceUnit], sources: Sequence[SourceUnit]):
    self.types: Dict[Tuple[str, str, int], TypeSymbol] = {}
    self.namespaces: Set[str] = {""}
    self.declared: Dict[int, TypeSymbol] = {}
    self.members: Dict[int, Symbol] = {}
    self.extensions: List[MethodSymbol] = []

    declarations = []
    for unit in (*references, *sources):
      declarations.extend(self._declare(unit.root))
    for decl, ctx in declarations:
      self._bind_members(decl, ctx)
    self.extensions = [m for m in self.extensions if self._is_visible(m.containing_type)]

  def _is_visible(self, type_: TypeSymbol) -> bool:
    """False for a metadata type shadowed by a source declaration of the same name."""
    return self.types.get((type_.namespace, type_.name, len(type_.type_parameters))) is type_

  # --- Declaration ---

  def _declare(self, root: CompilationUnit):
    usings = tuple(u.name for u in root.usings if not u.is_static and not u.alias)
    pending = [(m, "", usings) for m in root.members]
    while pending:
      decl, namespace, scope_usings = pending.pop(0)
      if isinstance(decl, NamespaceDeclaration):
        full = f"{namespace}.{decl.name}" if namespace else decl.name
        self._register_namespace(full)
        inner = scope_usings + tuple(u.name for u in decl.usings if not u.is_static and not u.alias)
        pending.extend((m, full, inner) for m in decl.members)
      elif isinstance(decl, (TypeDeclaration, DelegateDeclaration)):
        symbol = self._declare_type(decl, namespace)
        yield decl, TypeContext(namespace, scope_usings, {}, symbol)
        if isinstance(decl, TypeDeclaration):
          pending.extend((m, namespace, scope_usings) for m in decl.members if isinstance(m, (TypeDeclaration, DelegateDeclaration)))

  def _register_namespace(self, full: str) -> None:
    parts = full.split(".")
    for i in range(1, len(parts) + 1):
      self.namespaces.add(".".join(parts[:i]))

  def _declare_type(self, decl, namespace: str) -> TypeSymbol:
    if isinstance(decl, DelegateDeclaration):
      kind = TypeKind.DELEGATE
    else:
      kind = {"class": TypeKind.CLASS, "struct": TypeKind.STRUCT, "interface": TypeKind.INTERFACE}[decl.keyword]
    symbol = TypeSymbol(decl.name, kind, namespace)
    constraints = _constraint_map(decl.constraint_clauses)
    symbol.type_parameters = [make_type_parameter(tp.name, constraints.get(tp.name, Constraint.NONE)) for tp in decl.type_parameters]
    symbol.base_type = None if kind == TypeKind.INTERFACE else OBJECT_TYPE
    # Later declarations (source) shadow earlier ones (metadata) with the same name.
    self.types[(namespace, decl.name, len(decl.type_parameters))] = symbol
    self.declared[id(decl)] = symbol
    return symbol

  def _bind_members(self, decl, ctx: TypeContext) -> None:
    owner = ctx.containing_type
    type_ctx = TypeContext(ctx.namespace, ctx.usings, {tp.name: tp for tp in owner.type_parameters}, owner)

    if isinstance(decl, DelegateDeclaration):
      params = self._bind_parameters(decl.parameters, type_ctx)
      owner.add_member(MethodSymbol("Invoke", owner, self.bind_type(decl.return_type, type_ctx), params))
      return

    if decl.keyword == "class" and decl.base_types:
      base = self.bind_type(decl.base_types[0], type_ctx)
      if base.kind == TypeKind.CLASS:
        owner.base_type = base

    for member in decl.members:
      if isinstance(member, MethodDeclaration):
        self._bind_method(member, owner, type_ctx)
      elif isinstance(member, ConstructorDeclaration):
        params = self._bind_parameters(member.parameters, type_ctx)
        ctor = MethodSymbol(".ctor", owner, VOID_TYPE, params, is_static="static" in member.modifiers)
        owner.add_member(ctor)
        self.members[id(member)] = ctor
      elif isinstance(member, PropertyDeclaration):
        prop = PropertySymbol(member.name, self.bind_type(member.type, type_ctx), owner, "static" in member.modifiers)
        owner.add_member(prop)
        self.members[id(member)] = prop
      elif isinstance(member, IndexerDeclaration):
        indexer = IndexerSymbol(self.bind_type(member.type, type_ctx), self._bind_parameters(member.parameters, type_ctx), owner)
        owner.add_member(indexer)
        self.members[id(member)] = indexer
      elif isinstance(member, FieldDeclaration):
        field_type = self.bind_type(member.type, type_ctx)
        is_static = "static" in member.modifiers or "const" in member.modifiers
        for declarator in member.declarators:
          owner.add_member(FieldSymbol(declarator.name, field_type, owner, is_static))

  def _bind_method(self, decl: MethodDeclaration, owner: TypeSymbol, ctx: TypeContext) -> None:
    constraints = _constraint_map(decl.constraint_clauses)
    type_parameters = [make_type_parameter(tp.name, constraints.get(tp.name, Constraint.NONE)) for tp in decl.type_parameters]
    scope = dict(ctx.type_parameters)
    scope.update({tp.name: tp for tp in type_parameters})
    method_ctx = TypeContext(ctx.namespace, ctx.usings, scope, owner)

    params = self._bind_parameters(decl.parameters, method_ctx)
    is_static = "static" in decl.modifiers
    is_extension = is_static and bool(decl.parameters) and "this" in decl.parameters[0].modifiers
    method = MethodSymbol(
      decl.name,
      owner,
      self.bind_type(decl.return_type, method_ctx),
      params,
      type_parameters,
      is_static=is_static,
      is_extension=is_extension,
    )
    owner.add_member(method)
    self.members[id(decl)] = method
    if is_extension:
      self.extensions.append(method)

  def _bind_parameters(self, parameters: Sequence[Parameter], ctx: TypeContext) -> List[ParameterSymbol]:
    return [
      ParameterSymbol(p.name, self.bind_type(p.type, ctx) if p.type is not None else ERROR_TYPE, p.modifiers, p.default is not None)
      for p in parameters
    ]

  # --- Type binding ---

  def bind_type(self, syntax: TypeSyntax, ctx: TypeContext) -> TypeSymbol:
    """
    Binds a type reference in the given context.

    Args:
        syntax: The type node.
        ctx: Namespace, usings and generic parameters in scope.

    Returns:
        TypeSymbol: The bound type, or ERROR_TYPE when the name is unknown.
    """
    if isinstance(syntax, PredefinedType):
      return SPECIAL_TYPES.get(syntax.keyword, ERROR_TYPE)
    if isinstance(syntax, NullableType):
      return make_nullable(self.bind_type(syntax.element_type, ctx))
    if isinstance(syntax, ArrayType):
      return make_array(self.bind_type(syntax.element_type, ctx))
    if isinstance(syntax, NamedType):
      args = [self.bind_type(a, ctx) for a in syntax.type_arguments]
      definition = self.lookup_type(syntax.parts, len(args), ctx)
      if definition is None:
        return ERROR_TYPE
      return definition.construct(args) if args else definition
    return ERROR_TYPE

  def lookup_type(self, parts: Sequence[str], arity: int, ctx: TypeContext) -> Optional[TypeSymbol]:
    name = parts[-1]
    if len(parts) == 1:
      if arity == 0 and name in ctx.type_parameters:
        return ctx.type_parameters[name]
      for namespace in _namespace_chain(ctx.namespace):
        found = self._type_in(namespace, name, arity)
        if found is not None:
          return found
      for namespace in ctx.usings:
        found = self._type_in(namespace, name, arity)
        if found is not None:
          return found
      return None
    qualifier = ".".join(parts[:-1])
    for namespace in _namespace_chain(ctx.namespace):
      full = f"{namespace}.{qualifier}" if namespace else qualifier
      found = self._type_in(full, name, arity)
      if found is not None:
        return found
    return None

  def _type_in(self, namespace: str, name: str, arity: int) -> Optional[TypeSymbol]:
    if namespace == "System" and name == "Nullable" and arity == 1:
      return NULLABLE_DEFINITION
    return self.types.get((namespace, name, arity))


def _constraint_map(clauses) -> Dict[str, Constraint]:
  result = {}
  for clause in clauses:
    if "class" in clause.constraints:
      result[clause.type_parameter] = Constraint.CLASS
    elif "struct" in clause.constraints:
      result[clause.type_parameter] = Constraint.STRUCT
  return result


class Compilation:
  """
  An immutable set of source units plus metadata references.

  Attributes:
      units: Source units under analysis.
      references: Metadata libraries bound alongside them.
  """

  def __init__(self, units: Sequence[SourceUnit], references: Sequence[MetadataLibrary] = ()):
    self.units: Tuple[SourceUnit, ...] = tuple(units)
    self.references: Tuple[MetadataLibrary, ...] = tuple(references)
    self._globals: Optional[_Globals] = None
    self._lock = threading.Lock()

  @property
  def globals(self) -> _Globals:
    """The bound declaration table, built once on first use."""
    with self._lock:
      if self._globals is None:
        reference_units = [u for lib in self.references for u in lib.units]
        self._globals = _Globals(reference_units, self.units)
      return self._globals

  def get_unit(self, path: str) -> Optional[SourceUnit]:
    return next((u for u in self.units if u.path == path), None)

  def with_unit(self, unit: SourceUnit) -> "Compilation":
    """
    Returns a new compilation where the unit with the same path is replaced.

    Args:
        unit: The updated unit. Added if no unit with its path exists.

    Returns:
        Compilation: A fresh compilation; the receiver is unchanged.
    """
    replaced = False
    units = []
    for existing in self.units:
      if existing.path == unit.path:
        units.append(unit)
        replaced = True
      else:
        units.append(existing)
    if not replaced:
      units.append(unit)
    return Compilation(units, self.references)

  def get_type_by_metadata_name(self, metadata_name: str) -> Optional[TypeSymbol]:
    """
    Looks up a type by namespace-qualified name (`System.Func`2`).

    Args:
        metadata_name: Full name; generic types carry a backtick arity suffix.

    Returns:
        Optional[TypeSymbol]: The definition, or None if it is not declared.
    """
    namespace, _, simple = metadata_name.rpartition(".")
    name, _, arity = simple.partition("`")
    return self.globals._type_in(namespace, name, int(arity) if arity else 0)

  def semantic_model(self, unit: SourceUnit) -> "SemanticModel":
    return SemanticModel(self, unit)


class SemanticModel:
  """
  Type and symbol queries for one source unit.

  Results are memoised per model. A model is meant to be used from one thread;
  the compilation it reads from is shared and immutable.
  """

  def __init__(self, compilation: Compilation, unit: SourceUnit):
    self.compilation = compilation
    self.unit = unit
    self.root: CompilationUnit = unit.root
    self.parents: ParentMap = parent_map(self.root)
    self._globals = compilation.globals
    self._types: Dict[int, TypeSymbol] = {}
    self._resolutions: Dict[int, Resolution] = {}
    self._anonymous: Dict[int, TypeSymbol] = {}
    self._anonymous_shapes: List[Tuple[List[Tuple[str, TypeSymbol]], TypeSymbol]] = []
    self._lambda_overrides: Dict[int, List[TypeSymbol]] = {}
    self._in_progress: Set[int] = set()

  # --- Public queries ---

  def get_type(self, expr: SyntaxNode) -> TypeSymbol:
    """
    Returns the type of an expression.

    Args:
        expr: Any expression node of this unit.

    Returns:
        TypeSymbol: The type; ERROR_TYPE when it cannot be determined, VOID_TYPE for
        void invocations.
    """
    key = id(expr)
    cached = self._types.get(key)
    if cached is not None:
      return cached
    result = self._compute_type(expr)
    if not self._lambda_overrides:
      self._types[key] = result
    return result

  def resolve(self, node: SyntaxNode) -> Resolution:
    """
    Resolves a name, member access, element access or invocation to its symbol.

    Args:
        node: The node to resolve.

    Returns:
        Resolution: `Resolved(symbol)` or `Skipped(reason)`.
    """
    key = id(node)
    cached = self._resolutions.get(key)
    if cached is not None:
      return cached
    if key in self._in_progress:
      return Skipped(SkipReason.RECURSIVE, type(node).__name__)
    self._in_progress.add(key)
    try:
      result = self._compute_resolution(node)
    finally:
      self._in_progress.discard(key)
    if not self._lambda_overrides:
      self._resolutions[key] = result
    return result

  def lookup(self, name: str, at: SyntaxNode) -> List[Symbol]:
    """
    Finds the symbols a simple name refers to at a location.

    Scopes are searched innermost first: lambda parameters, locals and pattern
    variables, member parameters, members of the containing type, then types and
    namespaces.

    Args:
        name: The identifier.
        at: The node where the name appears.

    Returns:
        List[Symbol]: All symbols of the innermost scope that declares `name`.
    """
    child = at
    for ancestor in ancestors(at, self.parents):
      found = self._lookup_in(ancestor, child, name)
      if found:
        return found
      child = ancestor
    ctx = self.context_at(at)
    found_type = self._globals.lookup_type((name,), 0, ctx)
    if found_type is not None:
      return [found_type]
    if name in self._globals.namespaces:
      return [NamespaceSymbol(name)]
    return []

  def context_at(self, node: SyntaxNode) -> TypeContext:
    """Builds the type-binding context for a node from its ancestors."""
    namespace_parts: List[str] = []
    usings = [u.name for u in self.root.usings if not u.is_static and not u.alias]
    type_parameters: Dict[str, TypeSymbol] = {}
    containing: Optional[TypeSymbol] = None
    chain = [node, *ancestors(node, self.parents)]
    for item in reversed(chain):
      if isinstance(item, NamespaceDeclaration):
        namespace_parts.append(item.name)
        usings.extend(u.name for u in item.usings if not u.is_static and not u.alias)
      elif isinstance(item, (TypeDeclaration, DelegateDeclaration)):
        containing = self._globals.declared.get(id(item), containing)
        if containing is not None:
          type_parameters.update({tp.name: tp for tp in containing.type_parameters})
      elif isinstance(item, MethodDeclaration):
        method = self._globals.members.get(id(item))
        if isinstance(method, MethodSymbol):
          type_parameters.update({tp.name: tp for tp in method.type_parameters})
    return TypeContext(".".join(namespace_parts), tuple(usings), type_parameters, containing)

  def bind_type_at(self, syntax: TypeSyntax, at: SyntaxNode) -> TypeSymbol:
    return self._globals.bind_type(syntax, self.context_at(at))

  def is_convertible(self, source: Optional[TypeSymbol], target: Optional[TypeSymbol]) -> bool:
    """
    Checks for an implicit conversion from `source` to `target`.

    Error types convert both ways so that one unknown name does not cascade.
    """
    if source is None or target is None:
      return False
    if same_type(source, target):
      return True
    if source.kind == TypeKind.ERROR or target.kind == TypeKind.ERROR:
      return True
    if source is UNTYPED:
      return target.kind != TypeKind.VOID
    if source is NULL_TYPE:
      return (
        target.is_reference_type
        or target.is_nullable_value_type
        or (target.kind == TypeKind.TYPE_PARAMETER and target.constraint != Constraint.STRUCT)
      )
    if source.kind == TypeKind.VOID or target.kind == TypeKind.VOID:
      return False
    if target is OBJECT_TYPE:
      return True
    if target.is_nullable_value_type:
      underlying = source.type_arguments[0] if source.is_nullable_value_type else source
      return self.is_convertible(underlying, target.type_arguments[0])
    if source.keyword and target.keyword and target.keyword in _IMPLICIT_NUMERIC.get(source.keyword, ()):
      return True
    base = source.base_type
    while base is not None:
      if same_type(base, target):
        return True
      base = base.base_type
    return False

  # --- Lookup ---

  def _lookup_in(self, scope: SyntaxNode, child: SyntaxNode, name: str) -> List[Symbol]:
    if isinstance(scope, Lambda):
      for index, param in enumerate(scope.parameters):
        if param.name == name:
          return [ParameterSymbol(name, self.lambda_parameter_types(scope)[index], param.modifiers)]
    elif isinstance(scope, AnonymousMethod):
      for param in scope.parameters or ():
        if param.name == name:
          return [ParameterSymbol(name, self.bind_type_at(param.type, scope), param.modifiers)]
    elif isinstance(scope, Block):
      for statement in scope.statements:
        local = self._declared_local(statement, name)
        if local is not None:
          return [local]
        if statement is child:
          break
    elif isinstance(scope, ForEachStatement):
      if scope.identifier == name and child is scope.statement:
        return [LocalSymbol(name, self._foreach_type(scope))]
    elif isinstance(scope, QueryExpression):
      for node in walk(scope):
        if isinstance(node, (FromClause, LetClause, QueryContinuation)) and node.identifier == name:
          return [LocalSymbol(name, ERROR_TYPE)]
    elif isinstance(scope, (MethodDeclaration, ConstructorDeclaration)):
      member = self._globals.members.get(id(scope))
      if isinstance(member, MethodSymbol):
        for param in member.parameters:
          if param.name == name:
            return [param]
    elif isinstance(scope, IndexerDeclaration):
      member = self._globals.members.get(id(scope))
      if isinstance(member, IndexerSymbol):
        for param in member.parameters:
          if param.name == name:
            return [param]
    elif isinstance(scope, Accessor):
      if name == "value" and scope.keyword in ("set", "init"):
        owner = self.parents.get(id(scope))
        member = self._globals.members.get(id(owner)) if owner is not None else None
        if isinstance(member, (PropertySymbol, IndexerSymbol)):
          return [ParameterSymbol("value", member.type)]
    elif isinstance(scope, TypeDeclaration):
      owner = self._globals.declared.get(id(scope))
      if owner is not None:
        return owner.get_members(name)
    elif isinstance(scope, StatementSyntax):
      designation = self._designation_in(scope, name)
      if designation is not None:
        return [designation]
    return []

  def _declared_local(self, statement: StatementSyntax, name: str) -> Optional[LocalSymbol]:
    if isinstance(statement, LocalDeclaration):
      for declarator in statement.declarators:
        if declarator.name == name:
          return LocalSymbol(name, self._local_type(statement, declarator))
    return self._designation_in(statement, name)

  def _designation_in(self, statement: StatementSyntax, name: str) -> Optional[LocalSymbol]:
    for node in walk(statement):
      if isinstance(node, DeclarationPattern) and node.designation == name:
        return LocalSymbol(name, self.bind_type_at(node.type, node))
      if isinstance(node, DeclarationExpression) and node.designation == name:
        if _is_var(node.type):
          return LocalSymbol(name, ERROR_TYPE)
        return LocalSymbol(name, self.bind_type_at(node.type, node))
    return None

  def _local_type(self, statement: LocalDeclaration, declarator: VariableDeclarator) -> TypeSymbol:
    if _is_var(statement.type) and self._globals.lookup_type(("var",), 0, self.context_at(statement)) is None:
      if declarator.initializer is None or id(declarator) in self._in_progress:
        return ERROR_TYPE
      self._in_progress.add(id(declarator))
      try:
        return self.get_type(declarator.initializer)
      finally:
        self._in_progress.discard(id(declarator))
    return self.bind_type_at(statement.type, statement)

  def _foreach_type(self, statement: ForEachStatement) -> TypeSymbol:
    if not _is_var(statement.type):
      return self.bind_type_at(statement.type, statement)
    collection = self.get_type(statement.expression)
    if collection.kind == TypeKind.ARRAY:
      return collection.element_type
    return ERROR_TYPE

  # --- Lambdas ---

  def lambda_parameter_types(self, fn: Union[Lambda, AnonymousMethod]) -> List[TypeSymbol]:
    """
    Returns the parameter types of a lambda: explicit, or inferred from the
    delegate type the lambda is converted to.
    """
    override = self._lambda_overrides.get(id(fn))
    if override is not None:
      return override
    params = fn.parameters or ()
    if params and all(p.type is not None for p in params):
      return [self.bind_type_at(p.type, fn) for p in params]
    delegate = self.target_delegate(fn)
    invoke = delegate.delegate_invoke if delegate is not None else None
    if invoke is not None and len(invoke.parameters) == len(params):
      return [p.type for p in invoke.parameters]
    return [ERROR_TYPE] * len(params)

  def target_delegate(self, fn: SyntaxNode) -> Optional[TypeSymbol]:
    """The delegate type an anonymous function or method group is converted to."""
    node = fn
    parent = self.parents.get(id(node))
    while isinstance(parent, Parenthesized):
      node, parent = parent, self.parents.get(id(parent))
    if parent is None:
      return None
    if isinstance(parent, Cast):
      return self.bind_type_at(parent.type, parent)
    if isinstance(parent, VariableDeclarator):
      declaration = self.parents.get(id(parent))
      if isinstance(declaration, LocalDeclaration) and not _is_var(declaration.type):
        return self.bind_type_at(declaration.type, declaration)
      return None
    if isinstance(parent, Assignment) and parent.right is node:
      return self.get_type(parent.left)
    argument_owner = self.parents.get(id(parent))
    if isinstance(argument_owner, Invocation):
      resolution = self.resolve(argument_owner)
      if isinstance(resolution, Resolved) and isinstance(resolution.symbol, MethodSymbol):
        index = next(i for i, a in enumerate(argument_owner.arguments) if a is parent)
        params = resolution.symbol.parameters
        if index < len(params):
          return params[index].type
    return None

  @contextmanager
  def _assume(self, fn: SyntaxNode, types: Sequence[TypeSymbol]) -> Iterator[None]:
    """Temporarily fixes a lambda's parameter types while an overload is tried."""
    key = id(fn)
    previous = self._lambda_overrides.get(key)
    self._lambda_overrides[key] = list(types)
    try:
      yield
    finally:
      if previous is None:
        del self._lambda_overrides[key]
      else:
        self._lambda_overrides[key] = previous

  def _function_return_type(self, fn: SyntaxNode, param_types: Sequence[TypeSymbol]) -> Optional[TypeSymbol]:
    """Infers what an anonymous function or method group returns for the given parameter types."""
    if isinstance(fn, (Lambda, AnonymousMethod)):
      params = fn.parameters or ()
      if fn.parameters is not None and len(params) != len(param_types):
        return None
      explicit = [self.bind_type_at(p.type, fn) if p.type is not None else t for p, t in zip(params, param_types)]
      with self._assume(fn, explicit):
        if isinstance(fn.body, Block):
          result = self._block_return_type(fn.body)
        else:
          result = self.get_type(fn.body)
      if fn.is_async:
        return self._task_of(result)
      return result

    methods = self._method_group(fn)
    if not methods:
      return None
    for method in methods:
      if len(method.parameters) == len(param_types) and all(
        self.is_convertible(given, p.type) for given, p in zip(param_types, method.parameters)
      ):
        return method.return_type
    return None

  def _block_return_type(self, block: Block) -> TypeSymbol:
    stack: List[SyntaxNode] = [block]
    while stack:
      node = stack.pop()
      if isinstance(node, ReturnStatement) and node.expression is not None:
        return self.get_type(node.expression)
      if isinstance(node, (Lambda, AnonymousMethod)):
        continue
      stack.extend(reversed(children(node)))
    return VOID_TYPE

  def _task_of(self, result: TypeSymbol) -> TypeSymbol:
    if result.kind == TypeKind.VOID:
      task = self.compilation.get_type_by_metadata_name(f"{_TASK_NAMESPACE}.Task")
      return task or ERROR_TYPE
    task = self.compilation.get_type_by_metadata_name(f"{_TASK_NAMESPACE}.Task`1")
    return task.construct([result]) if task is not None else ERROR_TYPE

  # --- Types ---

  def _compute_type(self, expr: SyntaxNode) -> TypeSymbol:
    if isinstance(expr, LiteralExpression):
      return _literal_type(expr)
    if isinstance(expr, Parenthesized):
      return self.get_type(expr.expression)
    if isinstance(expr, (IdentifierName, MemberAccess, MemberBinding)):
      return self._symbol_type(expr)
    if isinstance(expr, Invocation):
      resolution = self.resolve(expr)
      if isinstance(resolution, Resolved) and isinstance(resolution.symbol, MethodSymbol):
        return resolution.symbol.return_type
      return ERROR_TYPE
    if isinstance(expr, (ElementAccess, ElementBinding)):
      return self._element_type(expr)
    if isinstance(expr, ConditionalAccess):
      inner = self.get_type(expr.when_not_null)
      return make_nullable(inner) if inner.kind != TypeKind.VOID else VOID_TYPE
    if isinstance(expr, (Cast, AsExpression, ObjectCreation)):
      return self.bind_type_at(expr.type, expr)
    if isinstance(expr, DefaultExpression):
      return self.bind_type_at(expr.type, expr) if expr.type is not None else UNTYPED
    if isinstance(expr, ThrowExpression):
      return UNTYPED
    if isinstance(expr, Binary):
      return self._binary_type(expr)
    if isinstance(expr, Unary):
      return BOOL_TYPE if expr.operator == "!" else self.get_type(expr.operand)
    if isinstance(expr, PostfixUnary):
      return self.get_type(expr.operand)
    if isinstance(expr, IsPattern):
      return BOOL_TYPE
    if isinstance(expr, Assignment):
      return self.get_type(expr.left)
    if isinstance(expr, Conditional):
      when_true = self.get_type(expr.when_true)
      if when_true.kind == TypeKind.NULL:
        return self.get_type(expr.when_false)
      return when_true
    if isinstance(expr, Await):
      return self._awaited_type(self.get_type(expr.expression))
    if isinstance(expr, ThisExpression):
      return self.context_at(expr).containing_type or ERROR_TYPE
    if isinstance(expr, AnonymousObjectCreation):
      return self._anonymous_type(expr)
    if isinstance(expr, ArrayCreation):
      if expr.element_type is not None:
        return make_array(self.bind_type_at(expr.element_type, expr))
      elements = expr.initializer.expressions if expr.initializer is not None else ()
      for element in elements:
        element_type = self.get_type(element)
        if element_type.kind != TypeKind.NULL:
          return make_array(element_type)
      return ERROR_TYPE
    if isinstance(expr, DeclarationExpression):
      return ERROR_TYPE if _is_var(expr.type) else self.bind_type_at(expr.type, expr)
    return ERROR_TYPE

  def _symbol_type(self, expr: SyntaxNode) -> TypeSymbol:
    resolution = self.resolve(expr)
    if not isinstance(resolution, Resolved):
      return ERROR_TYPE
    symbol = resolution.symbol
    if isinstance(symbol, (LocalSymbol, ParameterSymbol, FieldSymbol, PropertySymbol)):
      return symbol.type
    if isinstance(symbol, TypeSymbol):
      return symbol
    return ERROR_TYPE

  def _element_type(self, expr: Union[ElementAccess, ElementBinding]) -> TypeSymbol:
    receiver = self.get_type(expr.expression) if isinstance(expr, ElementAccess) else self.binding_receiver_type(expr)
    if receiver.kind == TypeKind.ARRAY:
      return receiver.element_type
    if receiver is STRING_TYPE:
      return SPECIAL_TYPES["char"]
    for member in self._members_of(receiver, INDEXER_NAME):
      if isinstance(member, IndexerSymbol) and len(member.parameters) == len(expr.arguments):
        return member.type
    return ERROR_TYPE

  def _binary_type(self, expr: Binary) -> TypeSymbol:
    op = expr.operator
    if op in ("==", "!=", "<", ">", "<=", ">=", "&&", "||"):
      return BOOL_TYPE
    left = self.get_type(expr.left)
    right = self.get_type(expr.right)
    if op == "??":
      if left.is_nullable_value_type:
        underlying = left.type_arguments[0]
        if right is UNTYPED or self.is_convertible(right, underlying):
          return underlying
        return left
      if right is UNTYPED or self.is_convertible(right, left):
        return left
      return right
    if op == "+" and (left is STRING_TYPE or right is STRING_TYPE):
      return STRING_TYPE
    if left.keyword in _NUMERIC_RANK and right.keyword in _NUMERIC_RANK:
      rank = max(_NUMERIC_RANK.index(left.keyword), _NUMERIC_RANK.index(right.keyword))
      return SPECIAL_TYPES[_NUMERIC_RANK[rank]]
    if left.keyword in ("short", "byte", "char", "sbyte", "ushort") or right.keyword in ("short", "byte", "char", "sbyte", "ushort"):
      return INT_TYPE
    return left

  def _awaited_type(self, awaited: TypeSymbol) -> TypeSymbol:
    if awaited.namespace == _TASK_NAMESPACE and awaited.name == "Task":
      return awaited.type_arguments[0] if awaited.type_arguments else VOID_TYPE
    return ERROR_TYPE

  def _anonymous_type(self, expr: AnonymousObjectCreation) -> TypeSymbol:
    cached = self._anonymous.get(id(expr))
    if cached is not None:
      return cached
    properties = []
    for member in expr.members:
      name = member.name
      if name is None and isinstance(member.expression, IdentifierName):
        name = member.expression.identifier
      elif name is None and isinstance(member.expression, MemberAccess):
        name = member.expression.name
      properties.append((name or "Item", self.get_type(member.expression)))
    # Creations with the same member names, order and types share one type.
    for shape, known in self._anonymous_shapes:
      if len(shape) == len(properties) and all(
        name == other_name and same_type(type_, other_type) for (name, type_), (other_name, other_type) in zip(properties, shape)
      ):
        self._anonymous[id(expr)] = known
        return known
    anonymous = make_anonymous(properties)
    self._anonymous_shapes.append((properties, anonymous))
    self._anonymous[id(expr)] = anonymous
    return anonymous

  def binding_receiver_type(self, binding: SyntaxNode) -> TypeSymbol:
    """
    Type of the value a member/element binding operates on.

    That is the expression of the nearest enclosing conditional access whose
    when-not-null part contains the binding, with `Nullable<T>` unwrapped.
    """
    child = binding
    for ancestor in ancestors(binding, self.parents):
      if isinstance(ancestor, ConditionalAccess) and ancestor.when_not_null is child:
        receiver = self.get_type(ancestor.expression)
        return receiver.type_arguments[0] if receiver.is_nullable_value_type else receiver
      child = ancestor
    return ERROR_TYPE

  def _members_of(self, receiver: TypeSymbol, name: str) -> List[Symbol]:
    if receiver.kind == TypeKind.TYPE_PARAMETER:
      return OBJECT_TYPE.get_members(name)
    if receiver.kind in (TypeKind.ERROR, TypeKind.NULL, TypeKind.VOID):
      return []
    found = receiver.get_members(name)
    if not found and receiver.kind != TypeKind.INTERFACE and receiver is not OBJECT_TYPE:
      found = OBJECT_TYPE.get_members(name)
    return found

  # --- Resolution ---

  def _compute_resolution(self, node: SyntaxNode) -> Resolution:
    if isinstance(node, Invocation):
      return self._resolve_invocation(node)
    if isinstance(node, (IdentifierName, MemberAccess, MemberBinding)):
      symbols = self._name_symbols(node)
      if not symbols:
        return Skipped(SkipReason.UNRESOLVED_NAME, node.to_text())
      if all(isinstance(s, MethodSymbol) for s in symbols) and len(symbols) > 1:
        return Skipped(SkipReason.METHOD_GROUP, node.to_text())
      return Resolved(symbols[0])
    if isinstance(node, (ElementAccess, ElementBinding)):
      receiver = self.get_type(node.expression) if isinstance(node, ElementAccess) else self.binding_receiver_type(node)
      for member in self._members_of(receiver, INDEXER_NAME):
        if isinstance(member, IndexerSymbol) and len(member.parameters) == len(node.arguments):
          return Resolved(member)
      return Skipped(SkipReason.UNRESOLVED_NAME, "indexer")
    return Skipped(SkipReason.UNSUPPORTED_SYNTAX, type(node).__name__)

  def _name_symbols(self, node: SyntaxNode) -> List[Symbol]:
    """All candidate symbols for a simple name, member access or member binding."""
    if isinstance(node, IdentifierName):
      return self.lookup(node.identifier, node)
    if isinstance(node, MemberBinding):
      return self._members_of(self.binding_receiver_type(node), node.name)

    receiver = node.expression
    if isinstance(receiver, (IdentifierName, MemberAccess)):
      receiver_symbols = self._name_symbols(receiver)
      if receiver_symbols and isinstance(receiver_symbols[0], NamespaceSymbol):
        full = f"{receiver_symbols[0].name}.{node.name}"
        found = self._globals._type_in(receiver_symbols[0].name, node.name, len(node.type_arguments))
        if found is not None:
          return [found]
        if full in self._globals.namespaces:
          return [NamespaceSymbol(full)]
        return []
      if receiver_symbols and isinstance(receiver_symbols[0], TypeSymbol):
        return [m for m in self._members_of(receiver_symbols[0], node.name) if getattr(m, "is_static", False)]
    return self._members_of(self.get_type(receiver), node.name)

  def _method_group(self, expr: SyntaxNode) -> Optional[List[MethodSymbol]]:
    """The methods an expression names when it is a method group, else None."""
    if not isinstance(expr, (IdentifierName, MemberAccess)):
      return None
    symbols = self._name_symbols(expr)
    methods = [s for s in symbols if isinstance(s, MethodSymbol)]
    if methods and len(methods) == len(symbols):
      return methods
    return None

  def _resolve_invocation(self, invocation: Invocation) -> Resolution:
    callee = invocation.expression
    while isinstance(callee, Parenthesized):
      callee = callee.expression
    explicit = tuple(self.bind_type_at(t, invocation) for t in getattr(callee, "type_arguments", ()))
    args = [a.expression for a in invocation.arguments]

    if isinstance(callee, (IdentifierName, MemberAccess, MemberBinding)):
      symbols = self._name_symbols(callee)
      methods = [s for s in symbols if isinstance(s, MethodSymbol)]
      if methods:
        result = self._pick(methods, args, None, explicit)
        if isinstance(result, Resolved):
          return result
      elif symbols:
        delegate = self._symbol_type(callee)
        if delegate.delegate_invoke is not None:
          return Resolved(delegate.delegate_invoke)

      if isinstance(callee, (MemberAccess, MemberBinding)) and not self._is_static_receiver(callee):
        receiver_type = self.get_type(callee.expression) if isinstance(callee, MemberAccess) else self.binding_receiver_type(callee)
        extensions = self._extension_candidates(callee.name, invocation)
        if extensions:
          result = self._pick(extensions, args, receiver_type, explicit)
          if isinstance(result, Resolved):
            return result
      return Skipped(SkipReason.NO_APPLICABLE_OVERLOAD, callee.to_text())

    delegate = self.get_type(callee)
    if delegate.delegate_invoke is not None:
      return Resolved(delegate.delegate_invoke)
    return Skipped(SkipReason.UNSUPPORTED_SYNTAX, type(callee).__name__)

  def _is_static_receiver(self, callee: SyntaxNode) -> bool:
    if not isinstance(callee, MemberAccess) or not isinstance(callee.expression, (IdentifierName, MemberAccess)):
      return False
    symbols = self._name_symbols(callee.expression)
    return bool(symbols) and isinstance(symbols[0], (TypeSymbol, NamespaceSymbol))

  def _extension_candidates(self, name: str, at: SyntaxNode) -> List[MethodSymbol]:
    ctx = self.context_at(at)
    visible = set(ctx.usings) | set(_namespace_chain(ctx.namespace))
    return [m for m in self._globals.extensions if m.name == name and m.containing_type.namespace in visible]

  def _pick(
    self,
    candidates: Sequence[MethodSymbol],
    args: Sequence[SyntaxNode],
    receiver_type: Optional[TypeSymbol],
    explicit: Tuple[TypeSymbol, ...],
  ) -> Resolution:
    applicable = []
    for candidate in candidates:
      method = self._try_candidate(candidate, args, receiver_type, explicit)
      if method is not None:
        applicable.append(method)
    if not applicable:
      return Skipped(SkipReason.NO_APPLICABLE_OVERLOAD, candidates[0].name)
    best = max(applicable, key=lambda m: self._function_score(m, args, receiver_type is not None))
    if receiver_type is not None:
      best = best.reduce()
    return Resolved(best)

  def _function_score(self, method: MethodSymbol, args: Sequence[SyntaxNode], reduced: bool) -> int:
    """Counts anonymous-function arguments bound to value-returning delegates."""
    params = method.parameters[1:] if reduced else method.parameters
    score = 0
    for arg, param in zip(args, params):
      invoke = param.type.delegate_invoke
      if isinstance(arg, (Lambda, AnonymousMethod)) and invoke is not None and not invoke.returns_void:
        score += 1
    return score

  def _try_candidate(
    self,
    candidate: MethodSymbol,
    args: Sequence[SyntaxNode],
    receiver_type: Optional[TypeSymbol],
    explicit: Tuple[TypeSymbol, ...],
  ) -> Optional[MethodSymbol]:
    actuals: List[Tuple[Optional[SyntaxNode], Optional[TypeSymbol]]] = []
    if receiver_type is not None:
      if not candidate.is_extension:
        return None
      actuals.append((None, receiver_type))
    actuals.extend((a, None) for a in args)
    params = candidate.parameters
    if len(actuals) > len(params) or any(not p.has_default for p in params[len(actuals) :]):
      return None

    method = candidate
    if candidate.type_parameters and not candidate.type_arguments:
      if explicit:
        if len(explicit) != len(candidate.type_parameters):
          return None
        method = candidate.construct(explicit)
      else:
        inferred = self._infer(candidate, actuals)
        if inferred is None:
          return None
        method = candidate.construct(inferred)
      if not _satisfies_constraints(method):
        return None

    for (expr, fixed), param in zip(actuals, method.parameters):
      if not self._argument_converts(expr, fixed, param.type):
        return None
    return method

  def _is_function_argument(self, expr: SyntaxNode) -> bool:
    return isinstance(expr, (Lambda, AnonymousMethod)) or self._method_group(expr) is not None

  def _infer(
    self,
    candidate: MethodSymbol,
    actuals: Sequence[Tuple[Optional[SyntaxNode], Optional[TypeSymbol]]],
  ) -> Optional[List[TypeSymbol]]:
    """
    Two-phase generic type inference.

    Each type parameter collects every lower bound the arguments give it, and is
    fixed to the bound all the others convert to.
    """
    type_params = candidate.type_parameters
    ids = {id(tp) for tp in type_params}
    bounds: Dict[int, List[TypeSymbol]] = {}
    pending = []

    # Phase 1: arguments with a type of their own.
    for (expr, fixed), param in zip(actuals, candidate.parameters):
      if expr is not None and self._is_function_argument(expr):
        pending.append((expr, param.type))
        continue
      _unify(param.type, fixed if fixed is not None else self.get_type(expr), ids, bounds)

    # Phase 2: anonymous functions and method groups, once their inputs are fixed.
    progress = True
    while pending and progress:
      progress = False
      inferred = self._fix_bounds(bounds)
      if inferred is None:
        return None
      for item in list(pending):
        expr, param_type = item
        invoke = substitute(param_type, inferred).delegate_invoke
        if invoke is not None and any(_mentions(p.type, ids) for p in invoke.parameters):
          continue
        if invoke is not None:
          result = self._function_return_type(expr, [p.type for p in invoke.parameters])
          if result is not None and result.kind != TypeKind.VOID:
            # The output is inferred from the unfixed return type.
            open_invoke = param_type.delegate_invoke or invoke
            _unify(open_invoke.return_type, result, ids, bounds)
        pending.remove(item)
        progress = True

    inferred = self._fix_bounds(bounds)
    if inferred is None or any(id(tp) not in inferred for tp in type_params):
      return None
    return [inferred[id(tp)] for tp in type_params]

  def _fix_bounds(self, bounds: Mapping[int, List[TypeSymbol]]) -> Optional[Dict[int, TypeSymbol]]:
    """Picks the best common type of each bound set, or None when one has none."""
    fixed: Dict[int, TypeSymbol] = {}
    for key, candidates in bounds.items():
      best = next((c for c in candidates if all(self.is_convertible(other, c) for other in candidates)), None)
      if best is None:
        return None
      fixed[key] = best
    return fixed

  def _argument_converts(self, expr: Optional[SyntaxNode], fixed: Optional[TypeSymbol], target: TypeSymbol) -> bool:
    if expr is None:
      return self.is_convertible(fixed, target)
    if not self._is_function_argument(expr):
      return self.is_convertible(self.get_type(expr), target)

    invoke = target.delegate_invoke
    if invoke is None:
      return False
    param_types = [p.type for p in invoke.parameters]

    if isinstance(expr, (Lambda, AnonymousMethod)):
      params = expr.parameters
      if params is not None and len(params) != len(param_types):
        return False
      for declared, expected in zip(params or (), param_types):
        if declared.type is not None and not same_type(self.bind_type_at(declared.type, expr), expected):
          return False
      if invoke.returns_void:
        if isinstance(expr.body, Block) and not expr.is_async:
          return self._function_return_type(expr, param_types) in (VOID_TYPE, None)
        return isinstance(expr.body, Block) or _is_statement_expression(expr.body)
      result = self._function_return_type(expr, param_types)
      return result is not None and result.kind != TypeKind.VOID and self.is_convertible(result, invoke.return_type)

    for method in self._method_group(expr) or ():
      if len(method.parameters) != len(param_types) or method.type_parameters:
        continue
      if not all(self.is_convertible(given, p.type) for given, p in zip(param_types, method.parameters)):
        continue
      if invoke.returns_void:
        if method.returns_void:
          return True
      elif not method.returns_void and self.is_convertible(method.return_type, invoke.return_type):
        return True
    return False


# --- Helpers ---


def _is_var(syntax: Optional[TypeSyntax]) -> bool:
  return isinstance(syntax, NamedType) and syntax.parts == ("var",) and not syntax.type_arguments


def _literal_type(expr: LiteralExpression) -> TypeSymbol:
  if expr.kind == "string":
    return STRING_TYPE
  if expr.kind == "char":
    return SPECIAL_TYPES["char"]
  if expr.kind in ("true", "false"):
    return BOOL_TYPE
  if expr.kind == "null":
    return NULL_TYPE
  text = expr.token.lower().replace("_", "")
  if text.startswith("0x"):
    return SPECIAL_TYPES["long"] if text.endswith("l") else INT_TYPE
  if text.endswith("m"):
    return SPECIAL_TYPES["decimal"]
  if text.endswith("f"):
    return SPECIAL_TYPES["float"]
  if text.endswith("d") or "." in text or "e" in text:
    return SPECIAL_TYPES["double"]
  if text.endswith(("ul", "lu")):
    return SPECIAL_TYPES["ulong"]
  if text.endswith("l"):
    return SPECIAL_TYPES["long"]
  if text.endswith("u"):
    return SPECIAL_TYPES["uint"]
  return INT_TYPE


def _is_statement_expression(expr: SyntaxNode) -> bool:
  """Whether `expr` may stand alone as a statement, which a void lambda body must."""
  while isinstance(expr, ConditionalAccess):
    expr = expr.when_not_null
  if isinstance(expr, Unary):
    return expr.operator in ("++", "--")
  if isinstance(expr, PostfixUnary):
    return expr.operator in ("++", "--")
  return isinstance(expr, (Invocation, Assignment, Await, ObjectCreation, ThrowExpression))


def _mentions(type_: TypeSymbol, ids: Set[int]) -> bool:
  if type_.kind == TypeKind.TYPE_PARAMETER:
    return id(type_) in ids
  if type_.kind == TypeKind.ARRAY:
    return _mentions(type_.element_type, ids)
  return any(_mentions(a, ids) for a in type_.type_arguments)


def _unify(param: TypeSymbol, arg: Optional[TypeSymbol], ids: Set[int], bounds: Dict[int, List[TypeSymbol]]) -> None:
  """Records lower bounds for the method type parameters appearing in `param`."""
  if arg is None or arg.kind in (TypeKind.ERROR, TypeKind.NULL):
    return
  if param.kind == TypeKind.TYPE_PARAMETER:
    if id(param) in ids:
      found = bounds.setdefault(id(param), [])
      if not any(same_type(arg, known) for known in found):
        found.append(arg)
    return
  if param.is_nullable_value_type:
    if arg.is_nullable_value_type:
      _unify(param.type_arguments[0], arg.type_arguments[0], ids, bounds)
    elif arg.is_value_type:
      _unify(param.type_arguments[0], arg, ids, bounds)
    return
  if param.kind == TypeKind.ARRAY:
    if arg.kind == TypeKind.ARRAY:
      _unify(param.element_type, arg.element_type, ids, bounds)
    return
  if not param.type_arguments:
    return
  candidate: Optional[TypeSymbol] = arg
  while candidate is not None and candidate.original_definition is not param.original_definition:
    candidate = candidate.base_type
  if candidate is not None:
    for p, a in zip(param.type_arguments, candidate.type_arguments):
      _unify(p, a, ids, bounds)


def _satisfies_constraints(method: MethodSymbol) -> bool:
  for type_param, arg in zip(method.type_parameters, method.type_arguments):
    if type_param.constraint == Constraint.CLASS and not arg.is_reference_type:
      return False
    if type_param.constraint == Constraint.STRUCT and (not arg.is_value_type or arg.is_nullable_value_type):
      return False
  return True

"""
Tests for the Binder.

Verifies:
1. Metadata lookup by namespace-qualified name.
2. Type inference for locals, lambda parameters and generic extension calls.
3. Overload selection across the Func/Action and class/struct helper overloads.
   Generic inference fixes each type parameter to the best of all its bounds, and
   only statement expressions convert to void-returning delegates.
4. Source declarations shadow metadata declarations with the same name.
5. Compilations are immutable: `with_unit` produces a new one.
"""

from nullguard.semantics import DEFAULT_REFERENCES, SYSTEM_LIBRARY, Compilation, Resolved, Skipped
from nullguard.semantics.symbols import MethodSymbol, TypeKind
from nullguard.syntax.nodes import AnonymousObjectCreation, Invocation, Lambda, LocalDeclaration
from nullguard.syntax.source import SourceUnit
from nullguard.syntax.tree import walk

PROGRAM = """using System;
using Libronix.Utility.IfNotNull;

namespace App
{
    internal sealed class Thing
    {
        public int Value => 0;
        public int? Maybe => null;
        public Thing Next => null;
        public void Touch() { }
    }

    internal struct Point
    {
        public int X => 0;
    }

    internal static class Program
    {
        public static void Run(Thing thing, Point? point)
        {
            var a = thing.IfNotNull(t => t.Value);
            var b = thing.IfNotNull(t => t.Next, () => new Thing());
            var c = point.IfNotNull(p => p.X, 0);
            thing.IfNotNull(t => t.Touch());
            var d = thing.Missing(t => t);
            var e = thing.IfNotNull(t => t.Maybe, 5);
            var f = thing.IfNotNull(t => new { Name = "a" }, () => new { Name = "b" });
            var g = thing.IfNotNull(t => new { Name = "a" });
        }
    }
}
"""


def _setup(text=PROGRAM, references=DEFAULT_REFERENCES):
  unit = SourceUnit("Program.cs", text)
  compilation = Compilation((unit,), references)
  return compilation, compilation.semantic_model(unit)


def _invocations(model, name):
  return [n for n in walk(model.root) if isinstance(n, Invocation) and n.expression.to_text().endswith(name)]


def _local(model, name):
  for node in walk(model.root):
    if isinstance(node, LocalDeclaration) and node.declarators[0].name == name:
      return node.declarators[0]
  raise AssertionError(name)


def test_metadata_lookup():
  compilation, _ = _setup()

  func = compilation.get_type_by_metadata_name("System.Func`2")
  assert func is not None
  assert func.kind == TypeKind.DELEGATE
  assert compilation.get_type_by_metadata_name("System.Missing") is None
  helper = compilation.get_type_by_metadata_name("Libronix.Utility.IfNotNull.IfNotNullExtensionMethod")
  assert helper is not None


def test_extension_call_inference():
  _, model = _setup()
  call = _invocations(model, "thing.IfNotNull")[0]

  resolution = model.resolve(call)
  assert isinstance(resolution, Resolved)
  method = resolution.symbol
  assert isinstance(method, MethodSymbol)
  assert method.reduced_from is not None
  assert [t.display() for t in method.type_arguments] == ["Thing", "int"]
  assert model.get_type(_local(model, "a").initializer).display() == "int"


def test_lambda_parameter_type():
  _, model = _setup()
  lam = next(n for n in walk(model.root) if isinstance(n, Lambda) and n.parameters[0].name == "t")

  assert [t.display() for t in model.lambda_parameter_types(lam)] == ["Thing"]


def test_producer_overload():
  _, model = _setup()
  method = model.resolve(_local(model, "b").initializer).symbol

  assert method.parameters[-1].type.display() == "Func<Thing>"


def test_nullable_value_receiver_overload():
  _, model = _setup()
  method = model.resolve(_local(model, "c").initializer).symbol

  assert [t.display() for t in method.type_arguments] == ["Point", "int"]
  assert method.parameters[-1].type.display() == "int"


def test_void_overload():
  _, model = _setup()
  void_call = [c for c in _invocations(model, "thing.IfNotNull") if "Touch" in c.to_text()][0]
  method = model.resolve(void_call).symbol

  assert method.returns_void
  assert len(method.type_arguments) == 1


def test_unknown_method_is_skipped():
  _, model = _setup()

  assert isinstance(model.resolve(_local(model, "d").initializer), Skipped)


def test_source_declaration_shadows_metadata():
  """A source-declared helper replaces the metadata helper, including its extensions."""
  shadow = PROGRAM + """
namespace Libronix.Utility.IfNotNull
{
    public static class IfNotNullExtensionMethod
    {
        public static TOutput IfNotNull<TInput, TOutput>(this TInput t, Func<TInput, TOutput> fn) where TInput : class => throw null;
    }
}
"""
  compilation, model = _setup(shadow)
  helper = compilation.get_type_by_metadata_name("Libronix.Utility.IfNotNull.IfNotNullExtensionMethod")

  assert len(helper.get_members("IfNotNull")) == 1
  assert all(m.containing_type is helper for m in compilation.globals.extensions if m.name == "IfNotNull")
  method = model.resolve(_invocations(model, "thing.IfNotNull")[0]).symbol
  assert method.original_definition.containing_type is helper


def test_without_helper_reference():
  _, model = _setup(references=(SYSTEM_LIBRARY,))

  assert isinstance(model.resolve(_invocations(model, "thing.IfNotNull")[0]), Skipped)


def test_with_unit_is_persistent():
  compilation, _ = _setup()
  updated = SourceUnit("Program.cs", PROGRAM.replace("var d = thing.Missing(t => t);", ""))

  changed = compilation.with_unit(updated)

  assert changed is not compilation
  assert changed.get_unit("Program.cs") is updated
  assert compilation.get_unit("Program.cs").text == PROGRAM
  added = compilation.with_unit(SourceUnit("Other.cs", "namespace B { }"))
  assert [u.path for u in added.units] == ["Program.cs", "Other.cs"]


def test_inference_uses_every_bound():
  """`5` gives `int` and the lambda gives `int?`; the output is the one both convert to."""
  _, model = _setup()
  method = model.resolve(_local(model, "e").initializer).symbol

  assert [t.display() for t in method.type_arguments] == ["Thing", "int?"]
  assert method.parameters[-1].type.display() == "int?"
  assert model.get_type(_local(model, "e").initializer).display() == "int?"


def test_identical_anonymous_creations_share_a_type():
  _, model = _setup()
  method = model.resolve(_local(model, "f").initializer).symbol
  first, second = [n for n in walk(_local(model, "f").initializer) if isinstance(n, AnonymousObjectCreation)]

  assert not method.returns_void
  assert model.get_type(first) is model.get_type(second)
  assert method.parameters[-1].type.display() == "Func<<anonymous type>>"


def test_non_statement_lambda_is_not_void():
  """An anonymous object creation cannot be the body of an `Action`."""
  _, model = _setup()
  method = model.resolve(_local(model, "g").initializer).symbol

  assert not method.returns_void
  assert method.type_arguments[1].kind == TypeKind.ANONYMOUS

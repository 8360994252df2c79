"""
Pytest Configuration and Fixtures.

Includes:
- Syspath patching for local imports.
- A C# preamble declaring the IfNotNull helper family and a small test model
  (`ReferenceThing`, `ValueThing`), plus builders for programs around it.
- Console capture for asserting on engine logging.
"""

import sys
from pathlib import Path
from typing import Callable

import pytest
from rich.console import Console

# Add src to path so we can import 'nullguard' without installing it
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

from nullguard.semantics.library import SYSTEM_LIBRARY  # noqa: E402
from nullguard.utils.console import reset_console, set_console  # noqa: E402

PREAMBLE = """using System;
using Libronix.Utility.IfNotNull;
using TestProgram;

namespace Libronix.Utility.IfNotNull
{
\tpublic static class IfNotNullExtensionMethod
\t{
\t\tpublic static TOutput IfNotNull<TInput, TOutput>(this TInput t, Func<TInput, TOutput> fn) where TInput : class => throw new NotImplementedException();
\t\tpublic static TOutput IfNotNull<TInput, TOutput>(this TInput? t, Func<TInput, TOutput> fn) where TInput : struct => throw new NotImplementedException();
\t\tpublic static TOutput IfNotNull<TInput, TOutput>(this TInput t, Func<TInput, TOutput> fn, TOutput def) where TInput : class => throw new NotImplementedException();
\t\tpublic static TOutput IfNotNull<TInput, TOutput>(this TInput? t, Func<TInput, TOutput> fn, TOutput def) where TInput : struct => throw new NotImplementedException();
\t\tpublic static TOutput IfNotNull<TInput, TOutput>(this TInput t, Func<TInput, TOutput> fn, Func<TOutput> def) where TInput : class => throw new NotImplementedException();
\t\tpublic static TOutput IfNotNull<TInput, TOutput>(this TInput? t, Func<TInput, TOutput> fn, Func<TOutput> def) where TInput : struct => throw new NotImplementedException();
\t\tpublic static void IfNotNull<TInput>(this TInput t, Action<TInput> fn) where TInput : class => throw new NotImplementedException();
\t\tpublic static void IfNotNull<TInput>(this TInput? t, Action<TInput> fn) where TInput : struct => throw new NotImplementedException();
\t\tpublic static void IfNotNull<TInput>(this TInput t, Action<TInput> fn, Action def) where TInput : class => throw new NotImplementedException();
\t\tpublic static void IfNotNull<TInput>(this TInput? t, Action<TInput> fn, Action def) where TInput : struct => throw new NotImplementedException();
\t}
}

namespace TestProgram
{
\tinternal sealed class ReferenceThing
\t{
\t\tpublic int ValueTypeProperty => throw new NotImplementedException();
\t\tpublic int? NullableProperty => throw new NotImplementedException();
\t\tpublic ReferenceThing RecursiveProperty => throw new NotImplementedException();
\t\tpublic void Method() => throw new NotImplementedException();
\t\tpublic ReferenceThing CalculateValue() => throw new NotImplementedException();
\t\tpublic ReferenceThing CalculateValue(ReferenceThing input) => throw new NotImplementedException();
\t\tpublic int CalculateValueTypeValue() => throw new NotImplementedException();
\t\tpublic ReferenceThing this[int i] => throw new NotImplementedException();
\t\tpublic static ReferenceThing CalculateStatic(ReferenceThing x) => throw new NotImplementedException();
\t\tpublic static ReferenceThing Factory() => throw new NotImplementedException();
\t}

\tinternal struct ValueThing
\t{
\t\tpublic int ValueTypeProperty => throw new NotImplementedException();
\t\tpublic ReferenceThing ReferenceTypeProperty => throw new NotImplementedException();
\t\tpublic ValueThing RecursiveProperty => throw new NotImplementedException();
\t\tpublic void Method() => throw new NotImplementedException();
\t\tpublic ValueThing CalculateValue() => throw new NotImplementedException();
\t}
}
"""

HELPER_USING = "using Libronix.Utility.IfNotNull;\n"

# The preamble declares the helper itself, so only the system slice is referenced.
REFERENCES = (SYSTEM_LIBRARY,)

# 1-based line of the statement following `var possiblyNull = ...;`.
CALL_LINE = PREAMBLE.count("\n") + 1 + 8


def make_program(receiver: str, call: str) -> str:
  """Wraps `call` in a method body after `var possiblyNull = <receiver>;`."""
  return (
    PREAMBLE
    + "\nnamespace TestProgram\n{\n\tinternal static class TestClass\n\t{\n\t\tpublic static void CallIfNotNull()\n\t\t{\n"
    + f"\t\t\tvar possiblyNull = {receiver};\n\t\t\t{call}\n\t\t}}\n\t}}\n}}"
  )


def make_fixed_program(receiver: str, fixed_call: str) -> str:
  """The program expected after every call was rewritten and the helper using dropped."""
  return make_program(receiver, fixed_call).replace(HELPER_USING, "")


@pytest.fixture
def program() -> Callable[[str, str], str]:
  return make_program


@pytest.fixture
def fixed_program() -> Callable[[str, str], str]:
  return make_fixed_program


@pytest.fixture
def references():
  return REFERENCES


@pytest.fixture
def call_line() -> int:
  return CALL_LINE


@pytest.fixture
def recorded_console():
  """
  Redirects engine logging into a recording console for the duration of a test.

  Yields:
      Console: The recording console; read it with `export_text()`.
  """
  recorder = Console(record=True, width=200, force_terminal=False)
  set_console(recorder)
  yield recorder
  reset_console()


@pytest.fixture
def call_sites(references):
  """
  Parses a program and matches every helper call in it.

  Returns:
      Callable: `source -> (sites, model)` with sites in source order.
  """
  from nullguard.analysis.analyzer import callee_name
  from nullguard.analysis.known_symbols import KnownSymbols
  from nullguard.rewrite.matcher import match
  from nullguard.semantics.binder import Compilation
  from nullguard.syntax.nodes import Invocation
  from nullguard.syntax.source import SourceUnit
  from nullguard.syntax.tree import walk

  def build(source: str):
    unit = SourceUnit("Test0.cs", source)
    compilation = Compilation((unit,), references)
    model = compilation.semantic_model(unit)
    known = KnownSymbols.from_compilation(compilation)
    invocations = [n for n in walk(model.root) if isinstance(n, Invocation) and callee_name(n) == "IfNotNull"]
    return [match(model, n, known) for n in invocations], model

  return build

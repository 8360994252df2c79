"""
Metadata Libraries.

A `MetadataLibrary` stands in for a referenced assembly. Its declarations are
written as C# signatures (bodies are irrelevant) and bound into every compilation
that references it, exactly like source types but never analyzed or rewritten.

Two libraries ship with the engine:
- `SYSTEM_LIBRARY`: the slice of the base class library the rule relies on
  (`Func<>`, `Action<>`, `Task<>`, common exceptions).
- `IF_NOT_NULL_LIBRARY`: the legacy `IfNotNull` helper family the rule targets.
"""

from dataclasses import dataclass
from functools import cached_property
from typing import Tuple

from nullguard.syntax.source import SourceUnit


@dataclass(frozen=True)
class MetadataLibrary:
  """
  A named bundle of reference declarations.

  Attributes:
      name: Assembly-like identity used in source unit paths.
      source: C# declarations.
  """

  name: str
  source: str

  @cached_property
  def units(self) -> Tuple[SourceUnit, ...]:
    """The declarations as parsed source units."""
    return (SourceUnit(path=f"<metadata:{self.name}>", text=self.source),)


SYSTEM_LIBRARY = MetadataLibrary(
  name="System.Runtime",
  source="""
namespace System
{
    public delegate void Action();
    public delegate void Action<in T>(T obj);
    public delegate void Action<in T1, in T2>(T1 arg1, T2 arg2);
    public delegate void Action<in T1, in T2, in T3>(T1 arg1, T2 arg2, T3 arg3);
    public delegate TResult Func<out TResult>();
    public delegate TResult Func<in T, out TResult>(T arg);
    public delegate TResult Func<in T1, in T2, out TResult>(T1 arg1, T2 arg2);
    public delegate TResult Func<in T1, in T2, in T3, out TResult>(T1 arg1, T2 arg2, T3 arg3);

    public class Exception
    {
        public Exception() { }
        public Exception(string message) { }
        public string Message => throw null;
    }

    public class InvalidOperationException : Exception
    {
        public InvalidOperationException() { }
        public InvalidOperationException(string message) { }
    }

    public class NotImplementedException : Exception
    {
        public NotImplementedException() { }
        public NotImplementedException(string message) { }
    }

    public class ArgumentNullException : Exception
    {
        public ArgumentNullException(string paramName) { }
    }
}

namespace System.Threading.Tasks
{
    public class Task
    {
        public static Task CompletedTask => throw null;
        public static Task<TResult> FromResult<TResult>(TResult result) => throw null;
    }

    public class Task<TResult> : Task
    {
        public TResult Result => throw null;
    }
}
""",
)

IF_NOT_NULL_LIBRARY = MetadataLibrary(
  name="Libronix.Utility",
  source="""
using System;

namespace Libronix.Utility.IfNotNull
{
    public static class IfNotNullExtensionMethod
    {
        public static TOutput IfNotNull<TInput, TOutput>(this TInput t, Func<TInput, TOutput> fn) where TInput : class => throw null;
        public static TOutput IfNotNull<TInput, TOutput>(this TInput? t, Func<TInput, TOutput> fn) where TInput : struct => throw null;
        public static TOutput IfNotNull<TInput, TOutput>(this TInput t, Func<TInput, TOutput> fn, TOutput def) where TInput : class => throw null;
        public static TOutput IfNotNull<TInput, TOutput>(this TInput? t, Func<TInput, TOutput> fn, TOutput def) where TInput : struct => throw null;
        public static TOutput IfNotNull<TInput, TOutput>(this TInput t, Func<TInput, TOutput> fn, Func<TOutput> def) where TInput : class => throw null;
        public static TOutput IfNotNull<TInput, TOutput>(this TInput? t, Func<TInput, TOutput> fn, Func<TOutput> def) where TInput : struct => throw null;
        public static void IfNotNull<TInput>(this TInput t, Action<TInput> fn) where TInput : class => throw null;
        public static void IfNotNull<TInput>(this TInput? t, Action<TInput> fn) where TInput : struct => throw null;
        public static void IfNotNull<TInput>(this TInput t, Action<TInput> fn, Action def) where TInput : class => throw null;
        public static void IfNotNull<TInput>(this TInput? t, Action<TInput> fn, Action def) where TInput : struct => throw null;
    }
}
""",
)

DEFAULT_REFERENCES: Tuple[MetadataLibrary, ...] = (SYSTEM_LIBRARY, IF_NOT_NULL_LIBRARY)

"""
Runtime Configuration Store.

Settings for the IfNotNull rule: which helper to look for, how loud the diagnostic
is, naming of synthesized bindings and fix-all bounds. Values come from the
`[tool.nullguard]` table of the nearest `pyproject.toml`, overridden by explicit
keyword arguments.
"""

import sys
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from pydantic import BaseModel, Field, field_validator

from nullguard.utils.console import log_warning

if sys.version_info >= (3, 11):
  import tomllib
else:
  try:
    import tomli as tomllib
  except ImportError:
    tomllib = None  # type: ignore

SEVERITIES = ("hidden", "info", "warning", "error")


class RuntimeConfig(BaseModel):
  """
  Global configuration container for the rule engine.
  """

  helper_type: str = Field(
    "Libronix.Utility.IfNotNull.IfNotNullExtensionMethod",
    description="Metadata name of the class declaring the helper overloads.",
  )
  helper_method: str = Field("IfNotNull", description="Name of the helper method family.")
  severity: str = Field("info", description="Reported severity: hidden, info, warning or error.")
  default_binding_name: str = Field("value", description="Parameter name used when wrapping a delegate reference in a lambda.")
  remove_unused_helper_using: bool = Field(True, description="Drop the helper's using directive once nothing uses it.")
  max_workers: Optional[int] = Field(None, gt=0, description="Thread count for cross-file fix-all. None lets the executor decide.")
  max_fix_iterations: int = Field(1000, gt=0, description="Upper bound on fixes applied to one file in a fix-all run.")

  @field_validator("severity")
  @classmethod
  def validate_severity(cls, v: str) -> str:
    """
    Normalizes and checks the severity name.

    Args:
        v (str): Raw severity.

    Returns:
        str: Lowercase severity.

    Raises:
        ValueError: If the severity is not one of SEVERITIES.
    """
    v_clean = v.lower().strip()
    if v_clean not in SEVERITIES:
      raise ValueError(f"Unknown severity: '{v_clean}'. Supported severities: {list(SEVERITIES)}")
    return v_clean

  @field_validator("default_binding_name")
  @classmethod
  def validate_binding_name(cls, v: str) -> str:
    if not v.isidentifier():
      raise ValueError(f"'{v}' is not a valid identifier")
    return v

  @property
  def helper_namespace(self) -> str:
    """Namespace of the helper class (`Libronix.Utility.IfNotNull`)."""
    return self.helper_type.rpartition(".")[0]

  @classmethod
  def load(
    cls,
    severity: Optional[str] = None,
    default_binding_name: Optional[str] = None,
    remove_unused_helper_using: Optional[bool] = None,
    max_workers: Optional[int] = None,
    search_path: Optional[Path] = None,
    **overrides: Any,
  ) -> "RuntimeConfig":
    """
    Loads configuration from pyproject.toml and applies explicit overrides.

    Args:
        severity (Optional[str]): Override for the reported severity.
        default_binding_name (Optional[str]): Override for the wrapper parameter name.
        remove_unused_helper_using (Optional[bool]): Override for using cleanup.
        max_workers (Optional[int]): Override for fix-all parallelism.
        search_path (Optional[Path]): Directory to start searching for TOML config.
        **overrides: Any other field, by name.

    Returns:
        RuntimeConfig: The fully resolved configuration object.

    Raises:
        ValueError: If a resolved value fails validation.
    """
    start_dir = search_path or Path.cwd()
    toml_config, _ = _load_toml_settings(start_dir)

    values: Dict[str, Any] = {k: v for k, v in toml_config.items() if k in cls.model_fields}
    explicit = {
      "severity": severity,
      "default_binding_name": default_binding_name,
      "remove_unused_helper_using": remove_unused_helper_using,
      "max_workers": max_workers,
      **overrides,
    }
    values.update({k: v for k, v in explicit.items() if v is not None})
    return cls(**values)


def _load_toml_settings(start_path: Path) -> Tuple[Dict[str, Any], Optional[Path]]:
  """
  Searches parents for 'pyproject.toml' and extracts the `[tool.nullguard]` table.

  Args:
      start_path (Path): Directory to start search from.

  Returns:
      Tuple[Dict, Optional[Path]]: The config dict and the directory it was found in.
  """
  if not tomllib:
    return {}, None

  current = start_path.resolve()

  for parent in [current, *current.parents]:
    toml_path = parent / "pyproject.toml"
    if toml_path.exists() and toml_path.is_file():
      try:
        with open(toml_path, "rb") as f:
          data = tomllib.load(f)
      except (OSError, tomllib.TOMLDecodeError) as e:
        log_warning(f"Ignoring unreadable config [path]{toml_path}[/path]: {e}")
        return {}, None

      tool_section = data.get("tool", {})
      return tool_section.get("nullguard", {}), parent

  return {}, None

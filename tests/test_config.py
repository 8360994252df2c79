"""
Tests for Runtime Configuration.

Verifies:
1. Defaults describe the Libronix helper.
2. `[tool.nullguard]` in the nearest pyproject.toml is picked up.
3. Explicit arguments override file settings.
4. Invalid values are rejected with ValueError.
5. Unreadable config files are ignored with a warning.
"""

import pytest

from nullguard.config import RuntimeConfig, _load_toml_settings


def test_defaults():
  config = RuntimeConfig()

  assert config.helper_type == "Libronix.Utility.IfNotNull.IfNotNullExtensionMethod"
  assert config.helper_namespace == "Libronix.Utility.IfNotNull"
  assert config.helper_method == "IfNotNull"
  assert config.severity == "info"
  assert config.default_binding_name == "value"
  assert config.remove_unused_helper_using
  assert config.max_workers is None


def test_load_from_pyproject(tmp_path):
  (tmp_path / "pyproject.toml").write_text('[tool.nullguard]\nseverity = "warning"\nmax_workers = 2\nunknown_key = 1\n')
  nested = tmp_path / "src" / "pkg"
  nested.mkdir(parents=True)

  config = RuntimeConfig.load(search_path=nested)

  assert config.severity == "warning"
  assert config.max_workers == 2

  settings, found_in = _load_toml_settings(nested)
  assert found_in == tmp_path.resolve()
  assert settings["unknown_key"] == 1


def test_explicit_overrides_win(tmp_path):
  (tmp_path / "pyproject.toml").write_text('[tool.nullguard]\nseverity = "warning"\ndefault_binding_name = "item"\n')

  config = RuntimeConfig.load(severity="ERROR", remove_unused_helper_using=False, search_path=tmp_path, helper_method="IfNotNull")

  assert config.severity == "error"
  assert config.default_binding_name == "item"
  assert not config.remove_unused_helper_using


def test_missing_table(tmp_path):
  (tmp_path / "pyproject.toml").write_text('[project]\nname = "x"\n')

  assert RuntimeConfig.load(search_path=tmp_path) == RuntimeConfig()


@pytest.mark.parametrize(
  "kwargs",
  [
    {"severity": "loud"},
    {"default_binding_name": "not valid"},
    {"max_workers": 0},
    {"max_fix_iterations": 0},
  ],
)
def test_invalid_values(kwargs):
  with pytest.raises(ValueError):
    RuntimeConfig(**kwargs)


def test_unreadable_pyproject(tmp_path, recorded_console):
  (tmp_path / "pyproject.toml").write_text("[tool.nullguard\nseverity = ")

  assert _load_toml_settings(tmp_path) == ({}, None)
  assert "Ignoring unreadable config" in recorded_console.export_text()

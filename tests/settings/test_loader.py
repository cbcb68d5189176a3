from pathlib import Path

import pytest

from patchgate.errors import SettingsError
from patchgate.settings import LogLevel, Settings
from patchgate.settings.loader import load_settings


def _write_tmp(tmp_path: Path, text: str, name: str = "config.yaml") -> Path:
    p = tmp_path / name
    p.write_text(text, encoding="utf-8")
    return p


def test_defaults() -> None:
    settings = Settings()
    assert settings.history.capacity == 50
    assert settings.diff.context_lines == 3
    assert settings.diff.preview_max_lines == 50
    assert settings.merge.ai_label == "AI Change"
    assert settings.plan.filename == "PROJECT_PLAN.md"
    assert settings.terminal.max_output_chars == 10 * 1024
    assert settings.logging.level == LogLevel.info


def test_yaml_with_variables(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setenv("TEST_PLAN_DIR", "docs")
    cfg = """
variables:
  CAPACITY: 10
  LABEL: assistant
history:
  capacity: ${CAPACITY}
merge:
  ai_label: "${LABEL} change"
plan:
  filename: "${env:TEST_PLAN_DIR}/PLAN.md"
"""
    settings = load_settings(_write_tmp(tmp_path, cfg))
    assert settings.history.capacity == 10
    assert settings.merge.ai_label == "assistant change"
    assert settings.plan.filename == "docs/PLAN.md"


def test_variable_chain_and_escape(tmp_path: Path) -> None:
    cfg = """
variables:
  BASE: 7
  CONTEXT: ${BASE}
diff:
  context_lines: ${CONTEXT}
plan:
  title: "Plan $${NAME}"
"""
    settings = load_settings(_write_tmp(tmp_path, cfg))
    assert settings.diff.context_lines == 7
    assert settings.plan.title == "Plan ${NAME}"


def test_json5_config(tmp_path: Path) -> None:
    cfg = """
{
  // comments are allowed
  terminal: { timeout_s: 5, max_output_chars: 100, },
  logging: { level: "debug" },
}
"""
    settings = load_settings(_write_tmp(tmp_path, cfg, "config.json5"))
    assert settings.terminal.timeout_s == 5
    assert settings.terminal.max_output_chars == 100
    assert settings.logging.level == LogLevel.debug


def test_variable_cycle_is_rejected(tmp_path: Path) -> None:
    cfg = """
variables:
  A: ${B}
  B: ${A}
"""
    with pytest.raises(SettingsError):
        load_settings(_write_tmp(tmp_path, cfg))


def test_invalid_values_are_rejected(tmp_path: Path) -> None:
    with pytest.raises(SettingsError):
        load_settings(_write_tmp(tmp_path, "history:\n  capacity: 0\n"))
    with pytest.raises(SettingsError):
        load_settings(_write_tmp(tmp_path, "diff:\n  context_lines: -1\n"))


def test_unsupported_extension(tmp_path: Path) -> None:
    with pytest.raises(SettingsError):
        load_settings(_write_tmp(tmp_path, "x = 1", "config.toml"))


def test_root_must_be_mapping(tmp_path: Path) -> None:
    with pytest.raises(SettingsError):
        load_settings(_write_tmp(tmp_path, "- a\n- b\n"))

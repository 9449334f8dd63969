# tests/unit/test_config_loader.py

"""Unit tests for loading cstest.toml."""

from pathlib import Path

import pytest

from cstest.config import PutResultsInDocument, load_config
from cstest.exceptions import ConfigurationError

VALID_CONFIG = """
[global]
log_level = "DEBUG"

[project]
scene_path = "game/scenes"
choicescript_path = "/opt/choicescript"

[randomtest]
iterations = 25
random_seed = 3
put_results_in_document = "always"
show_full_text = true
"""


def test_load_valid_config(write_config) -> None:
    path = write_config(VALID_CONFIG)

    config = load_config(path)

    base = path.resolve().parent
    assert config.config_file_path == path
    assert config.global_config.log_level == "DEBUG"
    assert config.project.scene_path == base / "game" / "scenes"
    assert config.project.choicescript_path == Path("/opt/choicescript")
    assert config.project.workspace_root == base
    assert config.project.quicktest_path == Path("/opt/choicescript/autotest.js")
    assert config.project.randomtest_path == Path("/opt/choicescript/randomtest.js")
    assert config.project.node_executable == "node"
    assert config.randomtest.iterations == 25
    assert config.randomtest.put_results_in_document is PutResultsInDocument.ALWAYS
    assert config.randomtest.show_full_text is True
    # Unset options keep their defaults.
    assert config.randomtest.avoid_used_options is True
    assert config.randomtest.put_results_in_unique_document is True


def test_defaults_for_optional_sections(write_config) -> None:
    config = load_config(write_config('[project]\nscene_path = "s"\nchoicescript_path = "cs"\n'))

    assert config.randomtest.iterations == 1000
    assert config.randomtest.random_seed == 0
    assert config.randomtest.put_results_in_document is PutResultsInDocument.FULLTEXT
    assert config.global_config.log_level == "WARNING"


def test_explicit_scripts_override_defaults(write_config) -> None:
    path = write_config(
        '[project]\nscene_path = "s"\nchoicescript_path = "cs"\nquicktest_script = "tools/qt.js"\n'
    )

    config = load_config(path)

    assert config.project.quicktest_path == path.resolve().parent / "tools" / "qt.js"


def test_environment_overrides(write_config, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CSTEST_RANDOMTEST_ITERATIONS", "7")
    monkeypatch.setenv("CSTEST_LOG_LEVEL", "ERROR")

    config = load_config(write_config(VALID_CONFIG))

    assert config.randomtest.iterations == 7
    assert config.global_config.log_level == "ERROR"


def test_invalid_environment_override(write_config, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CSTEST_RANDOMTEST_SEED", "many")

    with pytest.raises(ConfigurationError, match="CSTEST_RANDOMTEST_SEED"):
        load_config(write_config(VALID_CONFIG))


def test_missing_file(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError, match="not found"):
        load_config(tmp_path / "absent.toml")


def test_invalid_toml(write_config) -> None:
    with pytest.raises(ConfigurationError, match="Invalid TOML"):
        load_config(write_config("[project\nscene_path = "))


def test_missing_required_setting(write_config) -> None:
    with pytest.raises(ConfigurationError, match=r"\[project\]\.choicescript_path"):
        load_config(write_config('[project]\nscene_path = "s"\n'))


@pytest.mark.parametrize(
    "randomtest_body",
    [
        "iterations = -1",
        'put_results_in_document = "sometimes"',
        "unknown_option = 1",
    ],
)
def test_invalid_randomtest_values(write_config, randomtest_body: str) -> None:
    body = f'[project]\nscene_path = "s"\nchoicescript_path = "cs"\n[randomtest]\n{randomtest_body}\n'

    with pytest.raises(ConfigurationError, match="Invalid configuration"):
        load_config(write_config(body))


def test_invalid_log_level(write_config) -> None:
    body = '[global]\nlog_level = "LOUD"\n[project]\nscene_path = "s"\nchoicescript_path = "cs"\n'

    with pytest.raises(ConfigurationError, match="log_level"):
        load_config(write_config(body))

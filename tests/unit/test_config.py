"""Unit tests for configuration loading."""

from pathlib import Path

import pytest

from termbeacon.config import Config
from termbeacon.exceptions import ConfigurationError


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("TERMBEACON_CONFIG", "TERMBEACON_LOG_LEVEL", "TERMBEACON_DB_PATH"):
        monkeypatch.delenv(name, raising=False)


def write_config(tmp_path: Path, content: str) -> Path:
    path = tmp_path / "config.toml"
    path.write_text(content, encoding="utf-8")
    return path


def test_defaults() -> None:
    config = Config()

    assert config.engine.chunk_size == 50
    assert config.engine.match_policy == "term_major"
    assert config.colors.search == "#fff34d"
    assert config.colors.mapped == "#4dd0e1"
    config.validate()


def test_load_from_toml(tmp_path: Path) -> None:
    """Values from the file replace the defaults they name."""
    path = write_config(
        tmp_path,
        "[engine]\nchunk_size = 10\nmatch_policy = \"single_cursor\"\n"
        "[colors]\nsearch = \"#000\"\n"
        "[logging]\nlevel = \"DEBUG\"\n",
    )

    config = Config.load(path)

    assert config.engine.chunk_size == 10
    assert config.engine.match_policy == "single_cursor"
    assert config.engine.window_ms == 50.0
    assert config.colors.search == "#000"
    assert config.colors.mapped == "#4dd0e1"
    assert config.logging.level == "DEBUG"


def test_env_overrides(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Environment variables win over the file."""
    path = write_config(tmp_path, "[database]\npath = \"/from/file.db\"\n")
    monkeypatch.setenv("TERMBEACON_CONFIG", str(path))
    monkeypatch.setenv("TERMBEACON_DB_PATH", str(tmp_path / "env.db"))
    monkeypatch.setenv("TERMBEACON_LOG_LEVEL", "WARNING")

    config = Config.load()

    assert config.database.path == str(tmp_path / "env.db")
    assert config.logging.level == "WARNING"


def test_missing_explicit_file(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError, match="not found"):
        Config.load(tmp_path / "nope.toml")


@pytest.mark.parametrize(
    "content",
    [
        "[engine]\nchunk_sz = 3\n",
        "[engine]\nmatch_policy = \"leftmost\"\n",
        "[engine]\nchunk_size = 0\n",
        "[engine]\nwindow_ms = 10\nmin_remaining_ms = 10\n",
        "engine = 3\n",
        "[engine\n",
    ],
)
def test_invalid_files_are_rejected(tmp_path: Path, content: str) -> None:
    """Unknown keys, bad values and broken TOML all fail loudly."""
    path = write_config(tmp_path, content)

    with pytest.raises(ConfigurationError):
        Config.load(path)

from __future__ import annotations

import re
from pathlib import Path

import pytest

from study_quiz.core import config


def test_defaults_without_file(tmp_path):
    cfg = config.load_config(None)
    assert cfg.catalog_path == (tmp_path / "questions.json").resolve()
    assert cfg.storage_dir is None
    assert cfg.log_level == "INFO"
    assert cfg.verbose is False
    assert cfg.source is None


def test_template_round_trips(tmp_path):
    path = config.write_config_template(tmp_path / "cfg" / "study-quiz.toml")
    cfg = config.load_config(path)
    assert cfg.catalog_path == (tmp_path / "cfg" / "questions.json").resolve()
    assert cfg.source == path


def test_template_refuses_overwrite(tmp_path):
    path = config.write_config_template(tmp_path / "study-quiz.toml")
    with pytest.raises(config.TomlConfigError, match="already exists"):
        config.write_config_template(path)
    config.write_config_template(path, overwrite=True)


def test_overrides_resolve_relative_paths(tmp_path):
    path = tmp_path / "study-quiz.toml"
    path.write_text(
        '[quiz]\ncatalog = "bank/q.json"\n'
        '[storage]\ndirectory = "state"\n'
        '[logging]\nlevel = "DEBUG"\nverbose = true\n',
        encoding="utf-8",
    )
    cfg = config.load_config(path)
    assert cfg.catalog_path == (tmp_path / "bank" / "q.json").resolve()
    assert cfg.storage_dir == (tmp_path / "state").resolve()
    assert cfg.log_level == "DEBUG"
    assert cfg.verbose is True


@pytest.mark.parametrize(
    "body, message",
    [
        (
            "[quiz]\nshuffle = true\n",
            "study-quiz.toml: unknown key 'quiz.shuffle' (allowed: catalog)",
        ),
        ("quiz = 3\n", "'quiz' must be a [quiz] table, not int"),
        ("[quiz.catalog]\nname = 'x'\n", "'quiz.catalog' is a setting"),
        ("[quiz]\ncatalog = 3\n", "'quiz.catalog' must be a string"),
        ("[logging]\nverbose = 'yes'\n", "must be a boolean"),
        ("[quiz\n", "Could not parse study-quiz.toml"),
    ],
)
def test_invalid_config(tmp_path, body, message):
    path = tmp_path / "study-quiz.toml"
    path.write_text(body, encoding="utf-8")
    with pytest.raises(config.TomlConfigError, match=re.escape(message)):
        config.load_config(path)


def test_unknown_section_lists_allowed_tables():
    data = {"quiz": {"catalog": "q.json"}, "logging": {"level": "INFO"}}
    with pytest.raises(config.TomlConfigError) as excinfo:
        config.merge_defaults(data, {"bogus": {}}, source="custom.toml")
    assert str(excinfo.value) == (
        "custom.toml: unknown key 'bogus' (allowed: logging, quiz)."
    )


def test_find_config_search_order(tmp_path):
    extra = tmp_path / "extra"
    extra.mkdir()
    (extra / config.CONFIG_FILENAME).write_text("", encoding="utf-8")
    assert config.find_config(None, search=(extra,)) == (
        extra / config.CONFIG_FILENAME
    ).resolve()

    local = Path.cwd() / config.CONFIG_FILENAME
    local.write_text("", encoding="utf-8")
    assert config.find_config(None, search=(extra,)) == local.resolve()

    assert config.find_config(str(extra / config.CONFIG_FILENAME)) == (
        extra / config.CONFIG_FILENAME
    ).resolve()


def test_find_config_missing(tmp_path):
    assert config.find_config(None) is None
    with pytest.raises(config.TomlConfigError, match="not found"):
        config.find_config(tmp_path / "nope.toml")


def test_load_toml_missing_file(tmp_path):
    with pytest.raises(config.TomlConfigError, match="not found"):
        config.load_toml(tmp_path / "missing.toml")

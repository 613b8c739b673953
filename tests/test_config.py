from __future__ import annotations

import pytest
import yaml

from lproj_tm.config import (
    CONFIG_FILE,
    DEFAULT_SOURCE_LOCALES,
    DEFAULT_TEMPLATE,
    init_config,
    load_config,
    validate_config,
)
from lproj_tm.errors import ConfigError


def test_missing_file_returns_defaults(tmp_path):
    cfg = load_config(None, project_root=tmp_path)
    assert cfg.path is None
    assert cfg.lang_root == tmp_path.resolve()
    assert cfg.source_locales == DEFAULT_SOURCE_LOCALES
    assert cfg.openai.model == "gpt-4o"
    assert cfg.prompts.brand_names == ["Air Code", "Codea"]


def test_default_template_is_valid():
    validate_config(yaml.safe_load(DEFAULT_TEMPLATE))


def test_load_values(tmp_path):
    (tmp_path / CONFIG_FILE).write_text(
        "lang_root: App/Resources\n"
        "source_locales: [Base]\n"
        "openai:\n"
        "  model: gpt-4.1-mini\n"
        "  timeout: 12\n"
        "prompts:\n"
        "  brand_names: []\n"
        "  extra_en: Use informal tone.\n",
        encoding="utf-8",
    )
    cfg = load_config(None, project_root=tmp_path)

    assert cfg.path == (tmp_path / CONFIG_FILE).resolve()
    assert cfg.lang_root == (tmp_path / "App" / "Resources").resolve()
    assert cfg.source_locales == ("Base",)
    assert cfg.openai.model == "gpt-4.1-mini"
    assert cfg.openai.timeout == 12.0
    assert cfg.openai.api_key_env == "OPENAI_API_KEY"
    assert cfg.prompts.brand_names == []
    assert cfg.prompts.extra_en == "Use informal tone."


def test_explicit_relative_path(tmp_path):
    (tmp_path / "conf").mkdir()
    (tmp_path / "conf" / "x.yaml").write_text("lang_root: Res\n", encoding="utf-8")
    cfg = load_config(tmp_path / "conf" / "x.yaml", project_root=tmp_path)
    assert cfg.lang_root == (tmp_path / "Res").resolve()


def test_invalid_yaml_raises(tmp_path):
    (tmp_path / CONFIG_FILE).write_text("lang_root: [unclosed\n", encoding="utf-8")
    with pytest.raises(ConfigError) as ei:
        load_config(None, project_root=tmp_path)
    assert "box_lproj_tm init" in str(ei.value)


@pytest.mark.parametrize(
    "body",
    [
        "lang_root: 3\n",
        "source_locales: en\n",
        "source_locales: []\n",
        "openai: gpt-4o\n",
        "openai:\n  timeout: -1\n",
        "openai:\n  timeout: true\n",
        "prompts:\n  brand_names: [1, 2]\n",
        "- just\n- a list\n",
    ],
)
def test_invalid_fields_raise(tmp_path, body):
    (tmp_path / CONFIG_FILE).write_text(body, encoding="utf-8")
    with pytest.raises(ConfigError):
        load_config(None, project_root=tmp_path)


def test_init_creates_then_validates(tmp_path):
    path = tmp_path / CONFIG_FILE
    assert init_config(path) is True
    assert path.read_text(encoding="utf-8") == DEFAULT_TEMPLATE
    assert init_config(path) is False


def test_init_rejects_broken_existing_file(tmp_path):
    path = tmp_path / CONFIG_FILE
    path.write_text("openai: 1\n", encoding="utf-8")
    with pytest.raises(ConfigError):
        init_config(path)

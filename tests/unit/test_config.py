"""Unit tests for config.py"""

import pytest

from mdsite.config import load_config
from mdsite.core.render import EXTENSIONS


@pytest.fixture(autouse=True)
def isolated_cwd(tmp_path, monkeypatch):
    """Run from an empty directory with no MDSITE_* variables set."""
    monkeypatch.chdir(tmp_path)
    for name in ("OUTPUT_DIR", "STRICT_LINKS", "WORKERS", "POST_ROOTS", "EXTENSIONS", "FIELD_DEFAULTS"):
        monkeypatch.delenv(f"MDSITE_{name}", raising=False)


def test_load_config_defaults():
    """Defaults describe a posts, pages, images and css blog layout."""
    settings = load_config()
    assert settings.output_dir == "_site"
    assert settings.post_roots == ["posts"]
    assert settings.page_files == ["about.md", "contact.md"]
    assert settings.asset_roots == ["images", "css"]
    assert settings.extensions == list(EXTENSIONS)
    assert settings.strict_links is True
    assert settings.date_format == "%d-%m-%Y"


def test_load_config_reads_yaml(tmp_path):
    """mdsite.yaml values override defaults."""
    (tmp_path / "mdsite.yaml").write_text("output_dir: public\nstrict_links: false\n")
    settings = load_config()
    assert settings.output_dir == "public"
    assert settings.strict_links is False


def test_load_config_env_overrides_yaml(tmp_path, monkeypatch):
    """MDSITE_<FIELD> env vars take precedence over mdsite.yaml."""
    (tmp_path / "mdsite.yaml").write_text("output_dir: public\n")
    monkeypatch.setenv("MDSITE_OUTPUT_DIR", "from-env")
    assert load_config().output_dir == "from-env"


def test_load_config_cli_overrides_env(monkeypatch):
    """A non-None CLI override beats the env var; None overrides are ignored."""
    monkeypatch.setenv("MDSITE_OUTPUT_DIR", "from-env")
    assert load_config(overrides={"output_dir": "from-cli"}).output_dir == "from-cli"
    assert load_config(overrides={"output_dir": None}).output_dir == "from-env"


def test_load_config_env_coercion(monkeypatch):
    """Env values are coerced to bools, ints, lists and mappings."""
    monkeypatch.setenv("MDSITE_STRICT_LINKS", "false")
    monkeypatch.setenv("MDSITE_WORKERS", "4")
    monkeypatch.setenv("MDSITE_POST_ROOTS", "posts, notes")
    monkeypatch.setenv("MDSITE_FIELD_DEFAULTS", "{author: me}")
    settings = load_config()
    assert settings.strict_links is False
    assert settings.workers == 4
    assert settings.post_roots == ["posts", "notes"]
    assert settings.field_defaults == {"author": "me"}


def test_load_config_invalid_yaml(tmp_path):
    """load_config raises ValueError when mdsite.yaml contains invalid YAML."""
    (tmp_path / "mdsite.yaml").write_text("key: [unclosed\n")
    with pytest.raises(ValueError, match="Invalid mdsite.yaml"):
        load_config()


def test_load_config_rejects_unknown_extension():
    """Unknown markup extension names fail validation."""
    with pytest.raises(ValueError, match="nosuch"):
        load_config(overrides={"extensions": ["tables", "nosuch"]})


@pytest.mark.parametrize("overrides", [{"workers": 0}, {"recent_limit": -1}, {"log_level": "LOUD"}])
def test_load_config_rejects_invalid_values(overrides):
    """Out-of-range values raise a ValueError."""
    with pytest.raises(ValueError):
        load_config(overrides=overrides)

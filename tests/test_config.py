# File: tests/test_config.py
import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from link_scout.config import CheckerConfig, load_config, read_config_file


def write_file(tmp_path: Path, content: str, suffix: str) -> Path:
    path = tmp_path / f"config{suffix}"
    path.write_text(content, encoding="utf-8")
    return path


@pytest.mark.parametrize(
    "content,suffix,expect_exc",
    [
        ("url: http://example.com", ".yaml", None),
        ("url: http://example.com/\nconcurrency: 50", ".yml", None),
        (json.dumps({"url": "http://example.com"}), ".json", None),
        ("{}", ".yaml", ValidationError),
        ("not: a: mapping", ".yaml", ValueError),
        ("- just\n- a list", ".yaml", TypeError),
        ("{broken json", ".json", ValueError),
        ("[1, 2]", ".json", TypeError),
    ],
)
def test_load_config_variants(tmp_path, content, suffix, expect_exc):
    cfg_path = write_file(tmp_path, content, suffix)
    if expect_exc:
        with pytest.raises(expect_exc):
            load_config(cfg_path)
    else:
        cfg = load_config(cfg_path)
        assert isinstance(cfg, CheckerConfig)
        # Trailing slash is stripped
        assert cfg.url == "http://example.com"


def test_defaults():
    cfg = CheckerConfig(url="example.com")
    assert cfg.url == "https://example.com"
    assert cfg.sitemap is None
    assert cfg.concurrency == 200
    assert cfg.page_concurrency == 10
    assert cfg.timeout == 10.0
    assert cfg.retries == 1
    assert cfg.rate_limit == 0.0
    assert cfg.user_agent.startswith("LinkScout/")
    assert cfg.format == "text"
    assert not cfg.check_external


def test_load_config_default_missing(tmp_path, monkeypatch):
    # No configs/default.yaml in cwd: empty settings, source still required
    monkeypatch.chdir(tmp_path)
    assert read_config_file(None) == {}
    with pytest.raises(ValidationError):
        load_config(None)


def test_load_config_default_present(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    (tmp_path / "configs").mkdir()
    (tmp_path / "configs" / "default.yaml").write_text("sitemap: map.xml\n", encoding="utf-8")
    assert load_config(None).sitemap == "map.xml"


def test_explicit_file_not_found(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "absent.yaml")


def test_unsupported_suffix(tmp_path):
    with pytest.raises(ValueError):
        load_config(write_file(tmp_path, "url = 'x'", ".toml"))


def test_overrides(tmp_path):
    cfg_path = write_file(tmp_path, "url: example.com\nconcurrency: 5\nretries: 3", ".yaml")
    cfg = load_config(cfg_path, concurrency=20, retries=0, timeout=None)
    assert cfg.concurrency == 20
    assert cfg.retries == 0
    assert cfg.timeout == 10.0


@pytest.mark.parametrize(
    "data",
    [
        {"url": "example.com", "sitemap": "map.xml"},
        {"url": "example.com", "concurrency": 0},
        {"url": "example.com", "rate_limit": -1},
        {"url": "example.com", "format": "xml"},
        {"url": "example.com", "exclude": ["^(unclosed"]},
        {"url": "example.com", "unknown_option": True},
    ],
)
def test_invalid_settings(data):
    with pytest.raises(ValidationError):
        CheckerConfig(**data)


def test_single_pattern_becomes_list():
    cfg = CheckerConfig(sitemap="map.xml", exclude="*.pdf", include="")
    assert cfg.exclude == ["*.pdf"]
    assert cfg.include == []


def test_config_is_frozen():
    cfg = CheckerConfig(url="example.com")
    with pytest.raises(ValidationError):
        cfg.concurrency = 1

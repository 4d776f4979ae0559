# File: tests/test_cli.py
"""Тесты для CLI (`link_scout/cli.py`) с использованием click.testing.CliRunner.
Проверяют команды `check`, `list`, `config`, `--version`, а также обработку ошибок.
"""
import inspect
import json

import pytest
from click.testing import CliRunner

import link_scout.cli as cli_module
from link_scout.aggregator import aggregate_results
from link_scout.cli import cli
from link_scout.crawler.models import Classification, LinkKind, Result
from link_scout.errors import SitemapError
from link_scout.logger import init_logging

OK = Result("https://example.com/", "https://example.com/ok", 200, "OK",
            Classification.SUCCESS, kind=LinkKind.ANCHOR)
GONE = Result("https://example.com/", "https://example.com/gone", 404, "Not Found",
              Classification.BROKEN, kind=LinkKind.ANCHOR)


@pytest.fixture(autouse=True)
def restore_logging():
    yield
    init_logging(level="WARNING")


@pytest.fixture()
def scan_calls(monkeypatch):
    """Патчим start_scan: отчёт из заданных результатов без сетевых запросов."""
    calls = {"results": [OK], "configs": []}

    async def fake_scan(cfg, *, on_result=None, cancel_event=None):
        calls["configs"].append(cfg)
        for result in calls["results"]:
            if on_result is not None:
                on_result(result)
        return aggregate_results(calls["results"], pages_processed=1)

    monkeypatch.setattr(cli_module, "start_scan", fake_scan)
    return calls


@pytest.fixture()
def in_tmp(tmp_path, monkeypatch):
    # без configs/default.yaml в рабочей папке
    monkeypatch.chdir(tmp_path)
    return tmp_path


def invoke(*args):
    return CliRunner().invoke(cli, ["--log-level", "ERROR", *args])


def test_version_option():
    result = CliRunner().invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert "LinkScout" in result.output


def test_show_config(in_tmp):
    cfg_file = in_tmp / "settings.json"
    cfg_file.write_text(json.dumps({"url": "example.com", "concurrency": 7}), encoding="utf-8")

    result = invoke("--config", str(cfg_file), "config")
    assert result.exit_code == 0
    data = json.loads(result.stdout)
    assert data["url"] == "https://example.com"
    assert data["concurrency"] == 7


def test_check_text_all_valid(in_tmp, scan_calls):
    result = invoke("check", "--url", "example.com")
    assert result.exit_code == 0
    assert "✓ All links are valid!" in result.stdout


def test_check_json_with_broken_links(in_tmp, scan_calls):
    scan_calls["results"] = [OK, GONE]
    result = invoke("check", "--sitemap", "map.xml", "--format", "json")
    assert result.exit_code == 1
    data = json.loads(result.stdout)
    assert data["broken_links"] == 1
    assert data["total_links"] == 2


def test_check_options_reach_config(in_tmp, scan_calls):
    result = invoke(
        "check", "-u", "example.com",
        "--concurrency", "5", "--page-concurrency", "2", "--retries", "0",
        "--rate-limit", "2.5", "--exclude", "*.pdf", "-e", "^.*/tmp/",
        "--check-external", "--skip-resources", "--scan-timeout", "30",
    )
    assert result.exit_code == 0
    cfg = scan_calls["configs"][0]
    assert cfg.concurrency == 5
    assert cfg.page_concurrency == 2
    assert cfg.retries == 0
    assert cfg.rate_limit == 2.5
    assert cfg.exclude == ["*.pdf", "^.*/tmp/"]
    assert cfg.check_external and cfg.skip_resources
    assert cfg.scan_timeout == 30.0


def test_config_file_values_kept_without_flags(in_tmp, scan_calls):
    cfg_file = in_tmp / "settings.yaml"
    cfg_file.write_text(
        "url: example.com\nconcurrency: 9\ncheck_external: true\nexclude: ['*.zip']\n",
        encoding="utf-8",
    )
    result = invoke("--config", str(cfg_file), "check")
    assert result.exit_code == 0
    cfg = scan_calls["configs"][0]
    assert cfg.concurrency == 9
    assert cfg.check_external
    assert cfg.exclude == ["*.zip"]


@pytest.mark.parametrize("fmt,marker", [("csv", "Source URL,Target URL"), ("html", "<!DOCTYPE html>")])
def test_check_writes_output_file(in_tmp, scan_calls, fmt, marker):
    out = in_tmp / "reports" / f"report.{fmt}"
    result = invoke("check", "--url", "example.com", "--format", fmt, "--output", str(out))
    assert result.exit_code == 0
    assert out.exists()
    assert out.read_text(encoding="utf-8").startswith(marker)


def test_check_html_custom_template(in_tmp, scan_calls):
    tpl = in_tmp / "tpl"
    tpl.mkdir()
    (tpl / "report.html.j2").write_text("links={{ report.total_links }}", encoding="utf-8")
    out = in_tmp / "report.html"
    result = invoke("check", "--url", "example.com", "-f", "html", "-o", str(out), "-t", str(tpl))
    assert result.exit_code == 0
    assert out.read_text(encoding="utf-8") == "links=1"


def test_check_requires_source(in_tmp, scan_calls):
    result = invoke("check")
    assert result.exit_code == 1
    assert scan_calls["configs"] == []


def test_check_reports_sitemap_failure(in_tmp, monkeypatch):
    async def failing(cfg, *, on_result=None, cancel_event=None):
        raise SitemapError("no sitemap found at https://example.com")

    monkeypatch.setattr(cli_module, "start_scan", failing)
    result = invoke("check", "--url", "example.com")
    assert result.exit_code == 1
    assert "no sitemap found" in result.output


def test_check_rejects_bad_config_file(in_tmp):
    cfg_file = in_tmp / "broken.yaml"
    cfg_file.write_text("not: a: mapping", encoding="utf-8")
    result = invoke("--config", str(cfg_file), "check")
    assert result.exit_code == 1


def test_list_pages(in_tmp, monkeypatch):
    async def fake_pages(cfg):
        return ["https://example.com/", "https://example.com/about"]

    monkeypatch.setattr(cli_module, "list_pages", fake_pages)

    result = invoke("list", "--url", "example.com")
    assert result.exit_code == 0
    assert "2. https://example.com/about" in result.stdout
    assert "Total: 2 URLs" in result.stdout

    result = invoke("list", "--url", "example.com", "--json")
    assert json.loads(result.stdout) == ["https://example.com/", "https://example.com/about"]


def test_cli_module_exposes_scan_entry_points():
    # link_scout.cli stays a module, so start_scan/list_pages can be patched
    assert inspect.ismodule(cli_module)
    assert callable(cli_module.start_scan)
    assert callable(cli_module.list_pages)
    assert cli_module.cli is cli


def test_check_html_template_to_stdout(in_tmp, scan_calls):
    tpl = in_tmp / "tpl"
    tpl.mkdir()
    (tpl / "report.html.j2").write_text(
        "CUSTOM-TEMPLATE {{ report.total_links }}", encoding="utf-8"
    )
    result = invoke("check", "--sitemap", "s.xml", "--format", "html", "--template", str(tpl))
    assert result.exit_code == 0
    assert result.stdout == "CUSTOM-TEMPLATE 1"


def test_check_html_to_stdout_uses_builtin_template(in_tmp, scan_calls):
    result = invoke("check", "--sitemap", "s.xml", "--format", "html")
    assert result.exit_code == 0
    assert result.stdout.startswith("<!DOCTYPE html>")


def test_check_rejects_template_for_other_formats(in_tmp, scan_calls):
    tpl = in_tmp / "tpl"
    tpl.mkdir()
    result = invoke("check", "--sitemap", "s.xml", "--format", "json", "--template", str(tpl))
    assert result.exit_code == 1
    assert "--format html" in result.output
    assert scan_calls["configs"] == []

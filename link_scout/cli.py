#!/usr/bin/env python3
"""
Точка входа для запуска LinkScout через командную строку.

Команды:
  check     Проверить ссылки на страницах из sitemap и вывести/сохранить отчёт
  list      Показать страницы, найденные в sitemap, без проверки ссылок
  config    Показать итоговую конфигурацию

Общие опции:
  --config PATH       Путь к YAML/JSON-конфигу (default: configs/default.yaml, если есть)
  --log-level LEVEL   Уровень логирования (DEBUG, INFO, ...)
  --log-file PATH     Файл для логов (только stderr, если не указан)
  --log-format FORMAT Формат логирования

Дополнительно:
  --version, -v       Показать версию LinkScout

Пример:
  link-scout check --url example.com --rate-limit 5 --format json --output report.json
"""
import asyncio
import json
import sys
from pathlib import Path

import aiohttp
import click
from pydantic import ValidationError
from tqdm import tqdm
from tqdm.contrib.logging import logging_redirect_tqdm

from link_scout import __version__
from link_scout.config import CheckerConfig, read_config_file
from link_scout.engine import list_pages, start_scan
from link_scout.errors import LinkScoutError
from link_scout.logger import init_logging, logger
from link_scout.report import format_report, write_report
from link_scout.report.html_report import format_html, render_html

CONTEXT_SETTINGS = dict(help_option_names=["--help"])


def print_error(message: str):
    click.secho(message, fg='red', err=True)
    sys.exit(1)


def _build_config(ctx, **overrides) -> CheckerConfig:
    """Файл конфигурации + опции командной строки (незаданные опции не перекрывают файл)."""
    data = dict(ctx.obj['settings'])
    data.update({
        k: v for k, v in overrides.items()
        if v is not None and v is not False and v != []
    })
    try:
        return CheckerConfig(**data)
    except ValidationError as e:
        print_error(f'Ошибка конфигурации: {e}')


def source_options(func):
    func = click.option(
        '--sitemap', '-s', 'sitemap', default=None,
        help='URL или путь к файлу sitemap'
    )(func)
    func = click.option(
        '--url', '-u', 'url', default=None,
        help='Базовый URL для поиска sitemap'
    )(func)
    return func


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(__version__, '--version', '-v', message='LinkScout, version %(version)s')
@click.option(
    '--config', '-c', 'config_path',
    default=None,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help='Путь к файлу конфигурации YAML/JSON.'
)
@click.option(
    '--log-level', 'log_level',
    default='WARNING', show_default=True,
    type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']),
    help='Уровень логирования'
)
@click.option(
    '--log-file', 'log_file',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Путь к файлу логов (только stderr, если не указан)'
)
@click.option(
    '--log-format', 'log_format',
    default=None,
    help='Строка формата для логов (по умолчанию зависит от уровня)'
)
@click.pass_context
def cli(ctx, config_path, log_level, log_file, log_format):
    """Группа команд LinkScout CLI."""
    init_logging(
        level=log_level,
        log_file=str(log_file) if log_file else None,
        log_format=log_format
    )
    ctx.ensure_object(dict)
    try:
        ctx.obj['settings'] = read_config_file(config_path)
    except Exception as e:
        print_error(f'Ошибка загрузки конфигурации: {e}')


@cli.command('check', context_settings=CONTEXT_SETTINGS)
@source_options
@click.option('--concurrency', type=click.IntRange(min=1), default=None,
              help='Одновременных проверок ссылок на странице [200]')
@click.option('--page-concurrency', 'page_concurrency', type=click.IntRange(min=1), default=None,
              help='Одновременно обрабатываемых страниц [10]')
@click.option('--timeout', type=float, default=None, help='Таймаут запроса (секунд) [10]')
@click.option('--retries', type=click.IntRange(min=0), default=None,
              help='Повторы при сетевых ошибках [1]')
@click.option('--rate-limit', 'rate_limit', type=float, default=None,
              help='Лимит запросов в секунду, 0 = без лимита [0]')
@click.option('--exclude', '-e', multiple=True,
              help='Исключить URL по шаблону (* и ?, или regex с ^); можно повторять')
@click.option('--include', '-i', multiple=True,
              help='Проверять только URL по шаблону; можно повторять')
@click.option('--default-excludes', 'default_excludes', is_flag=True,
              help='Добавить стандартные исключения (*.pdf, */wp-admin/*, ...)')
@click.option('--check-external', 'check_external', is_flag=True,
              help='Проверять внешние ссылки')
@click.option('--skip-resources', 'skip_resources', is_flag=True,
              help='Не проверять теги <link> и <script>')
@click.option('--format', '-f', 'fmt', default=None,
              type=click.Choice(['text', 'json', 'csv', 'html']),
              help='Формат отчёта [text]')
@click.option('--output', '-o', 'output', default=None,
              type=click.Path(writable=True, dir_okay=False, path_type=Path),
              help='Сохранить отчёт в файл')
@click.option('--template', '-t', 'template_dir', default=None,
              type=click.Path(exists=True, file_okay=False, path_type=Path),
              help='Папка с Jinja2-шаблоном report.html.j2 (для --format html)')
@click.option('--progress', is_flag=True, help='Показывать прогресс в stderr')
@click.option('--scan-timeout', 'scan_timeout', type=float, default=None,
              help='Ограничение всего прогона (секунд)')
@click.pass_context
def check(ctx, url, sitemap, concurrency, page_concurrency, timeout, retries, rate_limit,
          exclude, include, default_excludes, check_external, skip_resources, fmt, output,
          template_dir, progress, scan_timeout):
    """Проверить ссылки на страницах из sitemap."""
    cfg = _build_config(
        ctx, url=url, sitemap=sitemap, concurrency=concurrency,
        page_concurrency=page_concurrency, timeout=timeout, retries=retries,
        rate_limit=rate_limit, exclude=list(exclude), include=list(include),
        default_excludes=default_excludes, check_external=check_external,
        skip_resources=skip_resources, format=fmt, output=output, scan_timeout=scan_timeout,
    )
    if template_dir and cfg.format != 'html':
        print_error('--template можно использовать только с --format html')

    bar = tqdm(desc='Validating links', unit='link', file=sys.stderr, disable=not progress)
    try:
        with logging_redirect_tqdm(loggers=[logger]):
            report = asyncio.run(start_scan(cfg, on_result=lambda _result: bar.update(1)))
    except (LinkScoutError, aiohttp.ClientError, OSError) as e:
        print_error(f'Ошибка при проверке: {e}')
    finally:
        bar.close()

    if report.cancelled_links:
        click.secho(
            f'Прогон прерван по таймауту: {report.cancelled_links} ссылок не проверено',
            fg='yellow', err=True
        )

    try:
        if cfg.output and cfg.format == 'html' and template_dir:
            saved = render_html(report, template_dir, cfg.output)
            click.echo(f'HTML report: {saved}', err=True)
        elif cfg.output:
            saved = write_report(report, cfg.format, cfg.output)
            click.echo(f'Report written to: {saved}', err=True)
        elif cfg.format == 'html':
            click.echo(format_html(report, template_dir), nl=False)
        else:
            click.echo(format_report(report, cfg.format), nl=False)
    except Exception as e:
        print_error(f'Ошибка при сохранении отчёта: {e}')

    if report.broken_links:
        ctx.exit(1)


@cli.command('list', context_settings=CONTEXT_SETTINGS)
@source_options
@click.option('--json', 'as_json', is_flag=True, help='Вывести список в JSON')
@click.pass_context
def list_command(ctx, url, sitemap, as_json):
    """Показать страницы из sitemap без проверки ссылок."""
    cfg = _build_config(ctx, url=url, sitemap=sitemap)
    try:
        pages = asyncio.run(list_pages(cfg))
    except Exception as e:
        print_error(f'Ошибка при чтении sitemap: {e}')

    if as_json:
        click.echo(json.dumps(pages, ensure_ascii=False, indent=2))
        return
    click.echo('URLs discovered:')
    click.echo('================')
    for i, page in enumerate(pages, 1):
        click.echo(f'{i}. {page}')
    click.echo(f'\nTotal: {len(pages)} URLs')


@cli.command('config', context_settings=CONTEXT_SETTINGS)
@source_options
@click.pass_context
def show_config(ctx, url, sitemap):
    """Показать текущую конфигурацию в JSON."""
    cfg = _build_config(ctx, url=url, sitemap=sitemap)
    click.echo(cfg.model_dump_json(indent=2))


def main():
    cli(obj={})


if __name__ == "__main__":
    main()

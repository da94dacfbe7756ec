# === FILE: site_capture/cli.py ===
#!/usr/bin/env python3
"""
Точка входа для запуска краулера SiteCapture через командную строку.

Команды:
  crawl     Обойти сайт и сохранить ответы в каталог
  config    Показать итоговую конфигурацию

Общие опции:
  --config PATH       Путь к YAML/JSON-конфигу (configs/default.yaml, если есть)
  --log-level LEVEL   Уровень логирования (DEBUG, INFO, ...)
  --log-file PATH     Файл для логов (stdout, если не указан)
  --log-format FORMAT Формат логирования

Команда crawl опции:
  -H 'Key: Value'     Дополнительный заголовок (можно несколько раз)
  --depth N           Максимальная глубина обхода (по умолчанию 5)
  --retries N         Число попыток загрузки страницы (по умолчанию 3)
  --backend NAME      browser (Playwright) или http (aiohttp)
  --crawl-timeout SEC Общий таймаут обхода (секунд)
  --html PATH         Сохранить HTML-индекс в файл
  --pretty            Преформатировать JSON-сводку (отступ 2)

Дополнительно:
  --version, -v       Показать версию SiteCapture

Пример:
  site-capture crawl https://example.com ./output --depth 2 -H 'User-Agent: MyBot'
"""
import json
import sys
from pathlib import Path
from typing import Dict, Optional, Tuple

import click
from pydantic import ValidationError

from site_capture import __version__
from site_capture.config import load_config
from site_capture.engine import Engine
from site_capture.errors import FatalConfigError
from site_capture.logger import DEFAULT_FORMAT, init_logging
from site_capture.report.html_report import render_html
from site_capture.report.json_report import render_json
from site_capture.utils import parse_header

CONTEXT_SETTINGS = dict(help_option_names=["--help"])
MANIFEST_NAME = "manifest.json"


def print_error(message: str):
    click.secho(message, fg='red', err=True)
    sys.exit(1)


def parse_headers(raw_headers: Tuple[str, ...]) -> Dict[str, str]:
    headers: Dict[str, str] = {}
    for raw in raw_headers:
        parsed = parse_header(raw)
        if parsed is not None:
            headers[parsed[0]] = parsed[1]
    return headers


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(__version__, '--version', '-v', message='SiteCapture, version %(version)s')
@click.option(
    '--config', '-c', 'config_path',
    default=None,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help='Путь к файлу конфигурации YAML/JSON.'
)
@click.option(
    '--log-level', 'log_level',
    default='INFO', show_default=True,
    type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']),
    help='Уровень логирования'
)
@click.option(
    '--log-file', 'log_file',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Путь к файлу логов (stdout, если не указан)'
)
@click.option(
    '--log-format', 'log_format',
    default=DEFAULT_FORMAT,
    show_default=True,
    help='Строка формата для логов'
)
@click.pass_context
def cli(ctx, config_path, log_level, log_file, log_format):
    """Группа команд SiteCapture CLI."""
    init_logging(
        level=log_level,
        log_file=str(log_file) if log_file else None,
        log_format=log_format
    )
    ctx.ensure_object(dict)
    ctx.obj['config_path'] = config_path


def _build_config(ctx, **overrides):
    try:
        return load_config(ctx.obj.get('config_path'), **overrides)
    except ValidationError as e:
        print_error(f'Ошибка в конфигурации: {e}')
    except (OSError, ValueError, TypeError) as e:
        print_error(f'Ошибка загрузки конфигурации: {e}')


@cli.command('crawl', context_settings=CONTEXT_SETTINGS)
@click.argument('url', required=False)
@click.argument('output_dir', required=False, type=click.Path(file_okay=False, path_type=Path))
@click.option('--url', '-u', 'url_option', default=None, help='Начальный URL (вместо аргумента)')
@click.option('--header', '-H', 'raw_headers', multiple=True, help="Заголовок 'Key: Value'")
@click.option('--depth', 'max_depth', type=click.IntRange(min=0), default=None,
              help='Максимальная глубина обхода')
@click.option('--retries', 'max_retries', type=click.IntRange(min=1), default=None,
              help='Число попыток загрузки страницы')
@click.option('--backend', type=click.Choice(['browser', 'http']), default=None,
              help='Движок рендеринга')
@click.option('--crawl-timeout', 'crawl_timeout', type=float, default=None,
              help='Таймаут всего обхода (секунд)')
@click.option(
    '--html', 'html_output',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Сохранить HTML-индекс в файл'
)
@click.option('--pretty', is_flag=True, help='Преформатировать JSON-сводку (отступ 2)')
@click.pass_context
def crawl(ctx, url, output_dir, url_option, raw_headers, max_depth, max_retries, backend,
          crawl_timeout, html_output, pretty):
    """Обойти сайт начиная с URL и сохранить ответы в OUTPUT_DIR."""
    if url_option and url and output_dir is None:
        # с -u единственный позиционный аргумент это каталог вывода
        url, output_dir = url_option, Path(url)
    elif url_option:
        url = url_option
    if url and url.startswith('-'):
        print_error(f"'{url}' похож на флаг, а не на URL")

    headers: Optional[Dict[str, str]] = parse_headers(raw_headers) or None
    cfg = _build_config(
        ctx,
        target_url=url,
        output_dir=output_dir,
        headers=headers,
        max_depth=max_depth,
        max_retries=max_retries,
        backend=backend,
        crawl_timeout=crawl_timeout,
    )
    click.echo(f'Starting crawler for: {cfg.target_url}')
    click.echo(f'Output directory: {cfg.output_dir}')
    if cfg.headers:
        click.echo(f'Custom headers: {len(cfg.headers)} configured')

    engine = Engine(cfg)
    try:
        report = engine.run()
    except FatalConfigError as e:
        print_error(f'Ошибка: {e}')
    except Exception as e:
        print_error(f'Ошибка при обходе: {e}')

    manifest = render_json(report, Path(cfg.output_dir) / MANIFEST_NAME)
    click.echo(f'Manifest: {manifest}')

    if html_output:
        try:
            saved_html = render_html(report, html_output, title=f'SiteCapture: {cfg.target_url}')
            click.echo(f'HTML index: {saved_html}')
        except Exception as e:
            print_error(f'Ошибка при сохранении HTML: {e}')

    indent = 2 if pretty else None
    click.echo(json.dumps(report.summary(), ensure_ascii=False, indent=indent))


@cli.command('config', context_settings=CONTEXT_SETTINGS)
@click.argument('url', required=False)
@click.pass_context
def show_config(ctx, url):
    """Показать итоговую конфигурацию в JSON."""
    cfg = _build_config(ctx, target_url=url)
    click.echo(cfg.model_dump_json(indent=2))


if __name__ == "__main__":
    cli()

# === FILE: site_pdf/cli.py ===
#!/usr/bin/env python3
"""
Точка входа для генерации PDF через командную строку.

Команды:
  generate  Сгенерировать PDF для собранных страниц out_dir
  config    Показать текущую конфигурацию

Общие опции:
  --config PATH       Путь к YAML/JSON-конфигу (default: configs/site_pdf.yaml)
  --log-level LEVEL   Уровень логирования (DEBUG, INFO, ...)
  --log-file PATH     Файл для логов (stdout, если не указан)
  --log-format FORMAT Формат логирования

Команда generate опции:
  PATHNAMES...          Пути страниц (по умолчанию все .html из out_dir)
  --out-dir DIR         Каталог собранного сайта (override out_dir)
  --base-url URL        URL уже запущенного сервера (override base_url)
  --max-concurrent INT  Максимум одновременных вкладок
  --hard-fail           Провал страницы прерывает весь запуск
  --json PATH           Сохранить JSON-отчёт в файл
  --html PATH           Сохранить HTML-отчёт в файл

Дополнительно:
  --version, -v       Показать версию SitePDF

Пример:
  site-pdf --config configs/site_pdf.yaml generate --max-concurrent 4 --json run.json
"""
import asyncio
import sys
from pathlib import Path

import click

from site_pdf import __version__
from site_pdf.config import load_config
from site_pdf.engine import start_generation
from site_pdf.logger import DEFAULT_FORMAT, configure

CONTEXT_SETTINGS = dict(help_option_names=["--help"])


def print_error(message: str):
    click.secho(message, fg='red', err=True)
    sys.exit(1)


def _load(ctx, **overrides):
    try:
        return load_config(ctx.obj['config_path'], **overrides)
    except Exception as e:
        print_error(f'Ошибка загрузки конфигурации: {e}')


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(__version__, '--version', '-v', message='SitePDF, version %(version)s')
@click.option(
    '--config', '-c', 'config_path',
    default='configs/site_pdf.yaml',
    show_default=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help='Путь к файлу конфигурации YAML или JSON.'
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
    """Группа команд SitePDF CLI."""
    configure(
        level=log_level,
        log_file=str(log_file) if log_file else None,
        log_format=log_format
    )
    ctx.ensure_object(dict)
    ctx.obj['config_path'] = config_path


@cli.command('generate', context_settings=CONTEXT_SETTINGS)
@click.argument('pathnames', nargs=-1)
@click.option(
    '--out-dir', '-o', 'out_dir',
    default=None,
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help='Каталог собранного сайта; туда же пишутся PDF'
)
@click.option('--base-url', '-u', 'base_url', default=None, help='URL уже запущенного сервера')
@click.option(
    '--max-concurrent', '-m', 'max_concurrent',
    type=click.IntRange(min=1),
    default=None,
    help='Максимум одновременно открытых вкладок'
)
@click.option(
    '--hard-fail/--no-hard-fail', 'hard_fail',
    default=None,
    help='Провал страницы прерывает весь запуск (override hard_fail)'
)
@click.option(
    '--json', '-j', 'json_output',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Сохранить JSON-отчёт в файл'
)
@click.option(
    '--html', '-h', 'html_output',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Сохранить HTML-отчёт в файл'
)
@click.pass_context
def generate(ctx, pathnames, out_dir, base_url, max_concurrent, hard_fail, json_output, html_output):
    """Сгенерировать PDF для страниц сайта."""
    cfg = _load(
        ctx,
        out_dir=out_dir,
        base_url=base_url,
        max_concurrent=max_concurrent,
        hard_fail=hard_fail,
        json_report=json_output,
        html_report=html_output,
    )
    click.echo(f'Generating PDFs in: {cfg.out_dir}')
    try:
        outcome = asyncio.run(start_generation(cfg, list(pathnames) or None))
    except Exception as e:
        print_error(f'Ошибка при генерации: {e}')

    click.echo(f'Generated {len(outcome.results)} of {outcome.requested} files')
    if json_output:
        click.echo(f'JSON report: {json_output}')
    if html_output:
        click.echo(f'HTML report: {html_output}')
    if outcome.fatal is not None:
        print_error(f'Генерация прервана: {outcome.fatal}')


@cli.command('config', context_settings=CONTEXT_SETTINGS)
@click.pass_context
def show_config(ctx):
    """Показать текущую конфигурацию в JSON."""
    cfg = _load(ctx)
    click.echo(cfg.model_dump_json(indent=2))


if __name__ == "__main__":
    cli()

#!/usr/bin/env python3
# === FILE: site_crawler/cli.py ===
"""
Точка входа для запуска краулера site_crawler через командную строку.

Команды:
  crawl     Обойти сайт по профилю и вывести/сохранить отчёты
  config    Показать текущий профиль запуска

Общие опции:
  --config PATH       Путь к YAML/JSON-профилю (default: configs/default.yaml)
  --log-level LEVEL   Уровень логирования (DEBUG, INFO, ...)
  --log-file PATH     Файл для логов (только консоль, если не указан)
  --log-format FORMAT Формат логирования

Команда crawl опции:
  --depth INT          Переопределить глубину обхода
  --concurrency INT    Переопределить число одновременных загрузок
  --json PATH          Сохранить JSON-отчёт в файл
  --html PATH          Сохранить HTML-отчёт в файл
  --template DIR       Папка с Jinja2-шаблонами (по умолчанию встроенный шаблон)
  --pretty             Преформатировать JSON-вывод (отступ 2)
  --crawl-timeout SEC  Таймаут всего обхода (секунд)

Ctrl-C или истечение --crawl-timeout останавливают новые загрузки;
отчёт строится по уже обойдённым страницам.

Пример:
  site_crawler --config configs/default.yaml crawl --json report.json --depth 3
"""
import asyncio
import contextlib
import signal
import sys
from pathlib import Path

import click

from site_crawler import __version__
from site_crawler.config import load_config
from site_crawler.engine import start_crawl
from site_crawler.logger import DEFAULT_FORMAT, init_logging
from site_crawler.report.html_report import render_html
from site_crawler.report.json_report import dumps_results, render_json

CONTEXT_SETTINGS = dict(help_option_names=["--help"])


def print_error(message: str):
    click.secho(message, fg='red', err=True)
    sys.exit(1)


async def _run_crawl(cfg, crawl_timeout):
    """Запускает start_crawl; Ctrl-C и истечение таймаута выставляют сигнал отмены.

    Возвращает (results, timed_out): при отмене results содержит уже обойдённые страницы.
    """
    cancel = asyncio.Event()
    loop = asyncio.get_running_loop()
    expired = []

    def _expire():
        expired.append(True)
        cancel.set()

    timer = loop.call_later(crawl_timeout, _expire) if crawl_timeout else None
    try:
        loop.add_signal_handler(signal.SIGINT, cancel.set)
        handler_installed = True
    except (NotImplementedError, RuntimeError, ValueError):
        # Windows или не главный поток
        handler_installed = False
    try:
        results = await start_crawl(cfg, cancel)
    finally:
        if timer is not None:
            timer.cancel()
        if handler_installed:
            with contextlib.suppress(NotImplementedError, RuntimeError, ValueError):
                loop.remove_signal_handler(signal.SIGINT)
    return results, bool(expired)


@click.group(context_settings=CONTEXT_SETTINGS)
@click.version_option(__version__, '--version', '-v', message='site_crawler, version %(version)s')
@click.option(
    '--config', '-c', 'config_path',
    default=None,
    type=click.Path(dir_okay=False, path_type=Path),
    help='Путь к профилю запуска YAML/JSON (по умолчанию configs/default.yaml).'
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
    help='Путь к файлу логов (только консоль, если не указан)'
)
@click.option(
    '--log-format', 'log_format',
    default=DEFAULT_FORMAT,
    show_default=True,
    help='Строка формата для логов'
)
@click.pass_context
def cli(ctx, config_path, log_level, log_file, log_format):
    """Группа команд site_crawler CLI."""
    init_logging(
        level=log_level,
        log_file=str(log_file) if log_file else None,
        log_format=log_format
    )
    try:
        cfg = load_config(config_path)
    except Exception as e:
        print_error(f'Ошибка загрузки конфигурации: {e}')
    ctx.ensure_object(dict)
    ctx.obj['config'] = cfg


@cli.command('crawl', context_settings=CONTEXT_SETTINGS)
@click.option('--depth', '-d', type=click.IntRange(min=1), default=None, help='Максимальная глубина обхода')
@click.option('--concurrency', type=click.IntRange(min=1), default=None, help='Одновременных загрузок')
@click.option(
    '--json', '-j', 'json_output',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Сохранить JSON-отчёт в файл'
)
@click.option(
    '--html', 'html_output',
    default=None,
    type=click.Path(writable=True, dir_okay=False, path_type=Path),
    help='Сохранить HTML-отчёт в файл'
)
@click.option(
    '--template', '-t', 'template_dir',
    default=None,
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    help='Папка с Jinja2-шаблонами'
)
@click.option(
    '--pretty', is_flag=True,
    help='Преформатировать JSON-вывод (отступ 2)'
)
@click.option(
    '--crawl-timeout', 'crawl_timeout',
    type=float,
    default=None,
    help='Таймаут всего обхода (секунд)'
)
@click.pass_context
def crawl(ctx, depth, concurrency, json_output, html_output, template_dir, pretty, crawl_timeout):
    """Обойти сайт и сгенерировать отчёты."""
    cfg = ctx.obj['config']
    overrides = {k: v for k, v in (('depth', depth), ('concurrency', concurrency)) if v is not None}
    if overrides:
        cfg = cfg.model_copy(update=overrides)

    try:
        results, timed_out = asyncio.run(_run_crawl(cfg, crawl_timeout))
    except Exception as e:
        print_error(f'Ошибка при обходе: {e}')
    if timed_out:
        click.secho(
            f'Обход не завершён за {crawl_timeout} секунд; отчёт содержит уже обойдённые страницы',
            fg='yellow', err=True,
        )

    # Если не сохраняем в файл, печатаем в stdout
    if not json_output and not html_output:
        click.echo(dumps_results(results, pretty=pretty))
        return

    # JSON-отчёт
    if json_output:
        try:
            saved_json = render_json(results, json_output)
            click.echo(f'JSON report: {saved_json}')
        except Exception as e:
            print_error(f'Ошибка при сохранении JSON: {e}')

    # HTML-отчёт
    if html_output:
        try:
            saved_html = render_html(results, template_dir, html_output)
            click.echo(f'HTML report: {saved_html}')
        except Exception as e:
            print_error(f'Ошибка при сохранении HTML: {e}')


@cli.command('config', context_settings=CONTEXT_SETTINGS)
@click.pass_context
def show_config(ctx):
    """Показать текущий профиль в JSON."""
    cfg = ctx.obj['config']
    click.echo(cfg.model_dump_json(indent=2))


if __name__ == "__main__":
    cli()

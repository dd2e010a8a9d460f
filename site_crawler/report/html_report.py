# File: site_crawler/report/html_report.py
"""site_crawler.report.html_report: HTML-отчёт по шаблону Jinja2."""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Sequence, Union

from jinja2 import Environment, FileSystemLoader, select_autoescape

from site_crawler.crawler.models import CrawlResult
from site_crawler.engine import format_run_time

#: Шаблоны, поставляемые вместе с пакетом.
DEFAULT_TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates"
TEMPLATE_NAME = "report.html.j2"


def build_environment(template_dir: Optional[Union[Path, str]] = None) -> Environment:
    """Окружение Jinja2 с автоэкранированием и фильтром ``run_time`` (MM:SS.hh)."""
    env = Environment(
        loader=FileSystemLoader(str(template_dir or DEFAULT_TEMPLATE_DIR)),
        autoescape=select_autoescape(["html", "xml", "j2"]),
        trim_blocks=True,
        lstrip_blocks=True,
    )
    env.filters["run_time"] = format_run_time
    return env


def render_html(
    results: Sequence[CrawlResult],
    template_dir: Optional[Union[Path, str]],
    output_path: Union[Path, str],
) -> Path:
    """Рендерит ``report.html.j2`` и сохраняет результат.

    В шаблон передаётся ``results``: список словарей ``CrawlResult.to_dict()``.
    Если ``template_dir`` не задан, берётся встроенный шаблон.
    """
    template = build_environment(template_dir).get_template(TEMPLATE_NAME)
    html_content = template.render(results=[result.to_dict() for result in results])

    target = Path(output_path)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(html_content, encoding="utf-8")
    return target

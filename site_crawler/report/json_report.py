# site_crawler/report/json_report.py

"""
JSON-представление результатов обхода.

Один элемент списка на каждую стартовую страницу; страницы внутри
идут в порядке глубины, затем ключа.
"""
import json
from pathlib import Path
from typing import Any, Dict, List, Sequence

from site_crawler.crawler.models import CrawlResult


def results_to_data(results: Sequence[CrawlResult]) -> List[Dict[str, Any]]:
    """Список словарей для json.dumps."""
    return [result.to_dict() for result in results]


def dumps_results(results: Sequence[CrawlResult], pretty: bool = False) -> str:
    """Строка JSON; ``pretty`` включает отступ 2."""
    return json.dumps(results_to_data(results), ensure_ascii=False, indent=2 if pretty else None)


def render_json(results: Sequence[CrawlResult], output_path: Path | str) -> Path:
    """
    Записывает результаты в файл JSON (UTF-8, отступ 2) и возвращает путь.

    Родительские папки создаются при необходимости.
    """
    target = Path(output_path)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(dumps_results(results, pretty=True), encoding="utf-8")
    return target

"""site_crawler.report: отчёты JSON и HTML по результатам обхода."""

from .html_report import render_html
from .json_report import dumps_results, render_json, results_to_data

__all__ = ["render_json", "render_html", "results_to_data", "dumps_results"]

# === FILE: site_crawler/config.py ===
"""
Модуль для загрузки и валидации профиля запуска краулера.
Используется Pydantic для описания схемы и проверки данных.
"""
from __future__ import annotations

import errno
import json
import os
from pathlib import Path
from typing import Any, List, Literal, Optional, Union

import yaml
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    HttpUrl,
    SecretStr,
    field_validator,
    model_validator,
)

from site_crawler.crawler.models import DEFAULT_MAX_BYTES, DownloadOptions


class StorageConfig(BaseModel):
    """Куда сохранять загруженные страницы. Наличие секции включает сохранение.

    ``local``: файлы остаются в папке ``path``.
    ``blob``: файлы собираются в папке (по умолчанию временной) и после обхода
    загружаются в контейнер Azure Blob Storage.
    """
    model_config = ConfigDict(extra="forbid", frozen=True)

    type: Literal["local", "blob"] = Field("local", description="Тип хранилища.")
    path: Optional[str] = Field(None, description="Папка для файлов; по умолчанию run-<время>.")
    connection_string: Optional[SecretStr] = Field(None, description="Строка подключения Azure Storage (для blob).")
    container: Optional[str] = Field(None, min_length=1, description="Имя контейнера (для blob).")

    @field_validator("type", mode="before")
    def _lower_type(cls, v: Any) -> Any:
        return v.strip().lower() if isinstance(v, str) else v

    @model_validator(mode="after")
    def _blob_needs_target(self) -> "StorageConfig":
        if self.type == "blob" and (self.connection_string is None or not self.container):
            raise ValueError("storage type 'blob' requires connection_string and container")
        return self


class CrawlerConfig(BaseModel):
    """Профиль одного запуска обхода."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    website: HttpUrl = Field(..., description="Корневой URL для обхода.")
    depth: int = Field(2, ge=1, description="Максимальная глубина; корень имеет глубину 1.")
    concurrency: int = Field(5, ge=1, description="Одновременных HTTP-загрузок не более.")
    use_sitemap: bool = Field(False, description="Брать стартовые страницы из /sitemap.xml.")
    ignore_links: List[str] = Field(default_factory=list, description="Ссылки, исключённые из обхода.")
    clean_content: bool = Field(False, description="Сохранять текст HTML без header/footer/nav/script/style.")
    storage: Optional[StorageConfig] = Field(None, description="Настройки сохранения файлов.")
    max_download_bytes: int = Field(DEFAULT_MAX_BYTES, gt=0, description="Лимит размера страницы (байт).")
    timeout: float = Field(5.0, gt=0, description="Таймаут на один запрос (секунд).")
    user_agent: str = Field("SiteCrawlerBot/1.0", min_length=1, description="Заголовок User-Agent.")
    retry_times: int = Field(3, ge=0, description="Повторы при сетевых ошибках.")
    retry_delay: float = Field(0.3, ge=0, description="Пауза между сетевыми повторами (секунд).")
    fetcher: Literal["http", "browser"] = Field(
        "http", description="http: aiohttp; browser: headless Chromium (Playwright) для JS-страниц."
    )

    @field_validator("ignore_links", mode="before")
    def _drop_blank_links(cls, v: Any) -> Any:
        if isinstance(v, list):
            return [link for link in v if isinstance(link, str) and link.strip()]
        return v

    def download_options(self, folder: Optional[str] = None) -> DownloadOptions:
        """Параметры сохранения для WebCrawler.run; *folder* заменяет ``storage.path``."""
        return DownloadOptions(
            enabled=self.storage is not None,
            folder=folder or (self.storage.path if self.storage else None),
            max_bytes=self.max_download_bytes,
            clean_content=self.clean_content,
        )


_DEFAULT_CFG = Path("configs/default.yaml")


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ValueError(f"Неправильный YAML в {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Верхний уровень YAML должен быть mapping, получено {type(data).__name__}")
    return data


def _read_json(path: Path) -> dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8")) or {}
    except json.JSONDecodeError as exc:
        raise ValueError(f"Неправильный JSON в {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Верхний уровень JSON должен быть mapping, получено {type(data).__name__}")
    return data


def load_config(path: Union[str, Path, None]) -> CrawlerConfig:
    """
    Читает YAML или JSON и возвращает проверенный объект CrawlerConfig.
    При отсутствии файла конфига бросает FileNotFoundError.
    """
    if path is None:
        if not _DEFAULT_CFG.exists():
            raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(_DEFAULT_CFG))
        path_obj = _DEFAULT_CFG
    else:
        path_obj = Path(path).expanduser().resolve()
        if not path_obj.is_file():
            raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(path_obj))

    suffix = path_obj.suffix.lower()
    if suffix in (".yaml", ".yml"):
        data = _read_yaml(path_obj)
    elif suffix == ".json":
        data = _read_json(path_obj)
    else:
        raise ValueError(f"Неподдерживаемый формат конфига: {suffix}")

    return CrawlerConfig(**data)


__all__ = ["CrawlerConfig", "StorageConfig", "load_config"]

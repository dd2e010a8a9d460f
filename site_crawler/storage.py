# File: site_crawler/storage.py
"""site_crawler.storage: Сохранение загруженных страниц на диск и выгрузка в Azure Blob Storage."""

from __future__ import annotations

import asyncio
import logging
import tempfile
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional, Union

from azure.core.exceptions import ResourceExistsError
from azure.storage.blob.aio import ContainerClient

__all__ = ["LocalFileStorage", "run_folder_name", "staging_folder", "upload_folder"]

logger = logging.getLogger("SiteCrawler")


def run_folder_name(now: Optional[datetime] = None) -> str:
    """Имя папки запуска вида ``run-YYYYmmddHHMMSS`` (UTC)."""
    now = now or datetime.now(timezone.utc)
    return f"run-{now:%Y%m%d%H%M%S}"


def staging_folder(now: Optional[datetime] = None) -> Path:
    """Уникальная временная папка для файлов, которые потом уйдут в blob-контейнер."""
    return Path(tempfile.gettempdir()) / f"site-crawler-{uuid.uuid4().hex}_{run_folder_name(now)}"


class LocalFileStorage:
    """Пишет байты в файлы внутри одной папки запуска."""

    def __init__(self, folder: Union[str, Path]) -> None:
        self.folder = Path(folder)

    def prepare(self) -> Path:
        """Создаёт папку, если её ещё нет."""
        self.folder.mkdir(parents=True, exist_ok=True)
        return self.folder

    async def write(self, name: str, payload: bytes) -> Path:
        """Сохраняет payload в файл name. Ошибки ОС пробрасываются вызывающему."""
        target = self.folder / name
        await asyncio.to_thread(self._write_sync, target, payload)
        return target

    def _write_sync(self, target: Path, payload: bytes) -> None:
        self.prepare()
        target.write_bytes(payload)


async def upload_folder(folder: Union[str, Path], connection_string: str, container: str) -> List[str]:
    """Загружает файлы папки (без вложенных) в контейнер, перезаписывая одноимённые blob'ы.

    Контейнер создаётся, если его нет. Возвращает имена загруженных blob'ов.
    Ошибки Azure SDK (``azure.core.exceptions.AzureError``) пробрасываются.
    """
    source = Path(folder)
    files = sorted(p for p in source.iterdir() if p.is_file()) if source.is_dir() else []

    uploaded: List[str] = []
    async with ContainerClient.from_connection_string(connection_string, container_name=container) as client:
        try:
            await client.create_container()
            logger.info("Created blob container %s", container)
        except ResourceExistsError:
            pass
        for path in files:
            payload = await asyncio.to_thread(path.read_bytes)
            await client.upload_blob(name=path.name, data=payload, overwrite=True)
            uploaded.append(path.name)
            logger.debug("Uploaded %s to container %s", path.name, container)
    logger.info("Uploaded %d files from %s to container %s", len(uploaded), source, container)
    return uploaded

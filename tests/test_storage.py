# File: tests/test_storage.py
from datetime import datetime, timezone

import pytest

from azure.core.exceptions import ResourceExistsError

import site_crawler.storage as storage_module
from site_crawler.storage import LocalFileStorage, run_folder_name, staging_folder, upload_folder


def test_run_folder_name():
    when = datetime(2024, 3, 5, 7, 8, 9, tzinfo=timezone.utc)
    assert run_folder_name(when) == "run-20240305070809"
    assert run_folder_name().startswith("run-")


@pytest.mark.asyncio()
async def test_write_creates_folder(tmp_path):
    storage = LocalFileStorage(tmp_path / "nested" / "run")
    path = await storage.write("root.html", b"<html></html>")

    assert path == tmp_path / "nested" / "run" / "root.html"
    assert path.read_bytes() == b"<html></html>"


@pytest.mark.asyncio()
async def test_write_overwrites(tmp_path):
    storage = LocalFileStorage(tmp_path)
    await storage.write("a.html", b"one")
    await storage.write("a.html", b"two")
    assert (tmp_path / "a.html").read_bytes() == b"two"


@pytest.mark.asyncio()
async def test_write_error_propagates(tmp_path):
    blocker = tmp_path / "file"
    blocker.write_text("x")
    storage = LocalFileStorage(blocker)
    with pytest.raises(OSError):
        await storage.write("a.html", b"data")


def test_staging_folder_is_unique_temp_dir():
    when = datetime(2024, 3, 5, 7, 8, 9, tzinfo=timezone.utc)
    first, second = staging_folder(when), staging_folder(when)
    assert first != second
    assert first.name.endswith("_run-20240305070809")


class FakeContainerClient:
    """Stands in for azure.storage.blob.aio.ContainerClient."""

    instances = []

    def __init__(self, container_name, exists=False):
        self.container_name = container_name
        self.exists = exists
        self.created = False
        self.closed = False
        self.blobs = {}
        self.overwrite_flags = []

    @classmethod
    def from_connection_string(cls, conn_str, container_name):
        client = cls(container_name, exists=container_name == "existing")
        client.conn_str = conn_str
        cls.instances.append(client)
        return client

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        self.closed = True

    async def create_container(self):
        if self.exists:
            raise ResourceExistsError("ContainerAlreadyExists")
        self.created = self.exists = True

    async def upload_blob(self, name, data, overwrite=False):
        self.overwrite_flags.append(overwrite)
        self.blobs[name] = data


@pytest.fixture()
def fake_container(monkeypatch):
    FakeContainerClient.instances = []
    monkeypatch.setattr(storage_module, "ContainerClient", FakeContainerClient)
    return FakeContainerClient


@pytest.mark.asyncio()
async def test_upload_folder_creates_missing_container(tmp_path, fake_container):
    (tmp_path / "root.html").write_bytes(b"<html>root</html>")
    (tmp_path / "page1.html").write_bytes(b"<html>1</html>")
    (tmp_path / "nested").mkdir()

    uploaded = await upload_folder(tmp_path, "UseDevelopmentStorage=true", "pages")

    client = fake_container.instances[0]
    assert client.conn_str == "UseDevelopmentStorage=true"
    assert client.created
    assert client.closed
    assert uploaded == ["page1.html", "root.html"]
    assert client.blobs == {"page1.html": b"<html>1</html>", "root.html": b"<html>root</html>"}
    assert client.overwrite_flags == [True, True]


@pytest.mark.asyncio()
async def test_upload_folder_uses_existing_container(tmp_path, fake_container):
    (tmp_path / "root.html").write_bytes(b"x")

    assert await upload_folder(tmp_path, "conn", "existing") == ["root.html"]
    client = fake_container.instances[0]
    assert not client.created
    assert client.blobs == {"root.html": b"x"}


@pytest.mark.asyncio()
async def test_upload_missing_folder_uploads_nothing(tmp_path, fake_container):
    assert await upload_folder(tmp_path / "absent", "conn", "pages") == []
    assert fake_container.instances[0].blobs == {}

import os
from pathlib import Path

import pytest

from ephemeral_share import config as config_module
from ephemeral_share.config import RetentionConfig, ShareConfig, StorageConfig
from ephemeral_share.hooks import HookContext, HookResult
from ephemeral_share.models import UploadRequest
from ephemeral_share.repositories import FileSystemRepository


class FakeHook:
    """Подмена внешнего хука: запоминает вызовы и отвечает заданным результатом."""

    def __init__(self, exit_code: int = 0, last_line: str = "", error: Exception | None = None):
        self.exit_code = exit_code
        self.last_line = last_line
        self.error = error
        self.calls: list[HookContext] = []
        self.file_present: list[bool] = []

    async def run(self, context: HookContext) -> HookResult:
        self.calls.append(context)
        self.file_present.append(context.stored_path.exists())
        if self.error is not None:
            raise self.error
        return HookResult(exit_code=self.exit_code, last_line=self.last_line)


def stored_names(root: Path) -> list[str]:
    """Имена файлов в хранилище без служебной папки."""
    if not root.exists():
        return []
    return sorted(p.name for p in root.iterdir() if not p.name.startswith("."))


@pytest.fixture
def storage_root(tmp_path) -> Path:
    return tmp_path / "files"


@pytest.fixture
def share_config(storage_root) -> ShareConfig:
    """Конфигурация из сценариев: 512 MiB, 31..180 дней, показатель 2."""
    return ShareConfig(
        retention=RetentionConfig(max_filesize=512 * 1024 * 1024, min_fileage=31, max_fileage=180, decay_exponent=2),
        storage=StorageConfig(root=storage_root),
    )


@pytest.fixture
def repo(share_config) -> FileSystemRepository:
    return FileSystemRepository(share_config.storage)


@pytest.fixture
def make_upload(tmp_path):
    """Фабрика запросов: кладет содержимое во временный файл вне хранилища."""
    uploads = tmp_path / "uploads"
    uploads.mkdir()
    counter = iter(range(1_000_000))

    def _make(name: str, content: bytes, id_length: int | None = None, client_address: str = "192.0.2.1"):
        tmp = uploads / f"php{next(counter)}"
        tmp.write_bytes(content)
        return UploadRequest(
            original_name=name,
            tmp_path=tmp,
            client_address=client_address,
            id_length=id_length,
        )

    return _make


@pytest.fixture
def make_hook():
    return FakeHook


@pytest.fixture
def settings_env(monkeypatch, storage_root):
    """Окружение для CLI: настройки читаются заново в каждом тесте."""
    monkeypatch.setattr(config_module, "_cached_settings", None)
    for key in list(os.environ):
        if key.startswith(("RETENTION__", "IDENTIFIERS__", "STORAGE__", "HOOK__", "SERVER__")):
            monkeypatch.delenv(key)
    monkeypatch.setenv("STORAGE__ROOT", str(storage_root))
    monkeypatch.setenv("LOG_LEVEL", "WARNING")
    yield monkeypatch
    monkeypatch.setattr(config_module, "_cached_settings", None)


@pytest.fixture
def stored(storage_root):
    return lambda: stored_names(storage_root)

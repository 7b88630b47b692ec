import errno
import logging
import os
import shutil
import tempfile
from pathlib import Path

from ephemeral_share.config import StorageConfig
from ephemeral_share.exceptions import StorageIOFailure
from ephemeral_share.utils.aio import run_io_bound

logger = logging.getLogger(__name__)

# Копии загрузок с другого устройства; скрытая папка внутри хранилища
STAGING_DIR = ".incoming"


class FileSystemRepository:
    """
    Плоское хранилище файлов в одной папке. Существование пути является
    единственным механизмом поиска и проверки коллизий.
    """

    def __init__(self, settings: StorageConfig):
        self._root = Path(settings.root)
        self._staging = self._root / STAGING_DIR

    def path_for(self, name: str) -> Path:
        return self._root / name

    async def ensure_root(self):
        try:
            await run_io_bound(self._root.mkdir, mode=0o750, parents=True, exist_ok=True)
        except OSError as e:
            raise StorageIOFailure(f"Storage directory {self._root} is unavailable: {e}") from e

    async def stage(self, src: Path) -> Path:
        """
        Возвращает путь на том же устройстве, что и хранилище, чтобы
        последующий hard link был возможен. Файл с другого устройства
        сначала полностью копируется в STAGING_DIR.
        """
        return await run_io_bound(self._stage_sync, Path(src))

    @staticmethod
    def _same_device(a: Path, b: Path) -> bool:
        return os.stat(a).st_dev == os.stat(b).st_dev

    def _stage_sync(self, src: Path) -> Path:
        try:
            if self._same_device(src, self._root):
                return src
            self._staging.mkdir(mode=0o750, exist_ok=True)
            fd, staged = tempfile.mkstemp(dir=self._staging)
            os.close(fd)
            shutil.copyfile(src, staged)
            return Path(staged)
        except OSError as e:
            raise StorageIOFailure(f"Could not stage upload: {e}") from e

    async def link_exclusive(self, src: Path, name: str) -> bool:
        """
        Атомарно создает `name`, указывающий на содержимое `src`.
        False, если имя уже занято (коллизия, не ошибка).
        """
        return await run_io_bound(self._link_sync, Path(src), self.path_for(name))

    @staticmethod
    def _link_sync(src: Path, target: Path) -> bool:
        try:
            os.link(src, target)
        except FileExistsError:
            return False
        except OSError as e:
            if e.errno == errno.EXDEV:
                raise StorageIOFailure("Upload is not staged on the storage device") from e
            raise StorageIOFailure(f"Could not store file: {e}") from e
        return True

    async def discard(self, path: Path):
        """Удаляет временный файл; отсутствующий файл не ошибка."""
        def _unlink():
            try:
                os.unlink(path)
            except FileNotFoundError:
                pass
        await run_io_bound(_unlink)

    async def remove(self, name: str):
        try:
            await run_io_bound(os.unlink, self.path_for(name))
        except FileNotFoundError:
            logger.warning(f"File {name} was already gone on removal.")

    async def list_all(self) -> list[Path]:
        """Все записи непосредственно в корне хранилища, без рекурсии."""
        def _collect():
            if not self._root.is_dir():
                return []
            with os.scandir(self._root) as it:
                return [
                    Path(entry.path)
                    for entry in it
                    if entry.name != STAGING_DIR
                ]

        return await run_io_bound(_collect)

    async def stat(self, path: Path) -> os.stat_result:
        return await run_io_bound(os.stat, path)

    async def unlink(self, path: Path):
        await run_io_bound(os.unlink, path)

    async def incoming_dir(self) -> Path:
        """Папка для временных файлов на том же устройстве, что и хранилище."""
        await self.ensure_root()
        try:
            await run_io_bound(self._staging.mkdir, mode=0o750, exist_ok=True)
        except OSError as e:
            raise StorageIOFailure(f"Staging directory {self._staging} is unavailable: {e}") from e
        return self._staging

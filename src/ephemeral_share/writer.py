import logging
import os
from functools import partial
from pathlib import Path
from typing import Optional

from ephemeral_share.config import ShareConfig
from ephemeral_share.exceptions import (
    EmptyUpload,
    PayloadTooLarge,
    StorageIOFailure,
    ValidationHookRejected,
)
from ephemeral_share.extensions import derive_extension
from ephemeral_share.hooks import HookContext, HookRunner
from ephemeral_share.identifiers import IdentifierAllocator
from ephemeral_share.models import StoredFile, UploadRequest
from ephemeral_share.repositories import FileSystemRepository
from ephemeral_share.utils.aio import run_io_bound

logger = logging.getLogger(__name__)


class StorageWriter:
    """
    Принимает загрузку: проверка размера, расширение, выбор имени,
    атомарное перемещение в хранилище и внешний хук с откатом.
    """

    def __init__(
        self,
        config: ShareConfig,
        repo: FileSystemRepository,
        allocator: IdentifierAllocator | None = None,
        hook: Optional[HookRunner] = None,
    ):
        self._config = config
        self._repo = repo
        self._allocator = allocator or IdentifierAllocator(config.identifiers)
        self._hook = hook

    async def store(self, request: UploadRequest) -> StoredFile:
        tmp_path = Path(request.tmp_path)

        # --- 1. Размер проверяется до любой работы с хранилищем ---
        size = await self._upload_size(tmp_path)
        if size == 0:
            raise EmptyUpload()
        max_filesize = self._config.retention.max_filesize
        if size > max_filesize:
            raise PayloadTooLarge.over(max_filesize)

        # --- 2. Расширение ---
        storage = self._config.storage
        ext = await run_io_bound(
            derive_extension,
            request.original_name,
            tmp_path,
            storage.auto_file_ext,
            storage.max_ext_len,
        )
        suffix = f".{ext}" if ext else ""

        # --- 3-4. Имя и атомарное перемещение ---
        await self._repo.ensure_root()
        staged = await self._repo.stage(tmp_path)
        try:
            identifier, _ = await self._allocator.claim(
                request.id_length, partial(self._repo.link_exclusive, staged), suffix
            )
            await self._repo.discard(tmp_path)
        finally:
            if staged != tmp_path:
                await self._repo.discard(staged)

        stored = StoredFile(
            id=identifier,
            extension=ext,
            path=self._repo.path_for(identifier + suffix),
            size_bytes=size,
        )

        # --- 5. Внешняя проверка ---
        if self._hook is not None:
            await self._validate(stored, request)

        logger.info(f"Stored '{request.original_name}' as {stored.basename} ({size} bytes).")
        return stored

    @staticmethod
    async def _upload_size(tmp_path: Path) -> int:
        try:
            stat = await run_io_bound(os.stat, tmp_path)
        except OSError as e:
            raise StorageIOFailure(f"Uploaded file is not readable: {e}") from e
        return stat.st_size

    async def _validate(self, stored: StoredFile, request: UploadRequest):
        context = HookContext(
            client_address=request.client_address,
            original_name=request.original_name,
            stored_path=stored.path,
        )
        # Откат безусловный: ни ошибка хука, ни отмена запроса не означают "принято"
        accepted = False
        try:
            result = await self._hook.run(context)
            accepted = result.accepted
        finally:
            if not accepted:
                await self._rollback(stored)

        if not accepted:
            logger.info(f"Validation hook rejected {stored.basename} (exit code {result.exit_code}).")
            raise ValidationHookRejected(result.last_line or None)

    async def _rollback(self, stored: StoredFile):
        try:
            await self._repo.remove(stored.basename)
        except OSError:
            logger.exception(f"Rollback of {stored.basename} failed.")

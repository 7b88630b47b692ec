import logging
from typing import Optional

from ephemeral_share.config import ShareConfig, get_settings
from ephemeral_share.hooks import HookRunner, SubprocessHookRunner
from ephemeral_share.models import PurgeSummary, StoredFile, UploadRequest
from ephemeral_share.purger import Purger
from ephemeral_share.repositories import FileSystemRepository
from ephemeral_share.upload_log import UploadLog
from ephemeral_share.writer import StorageWriter

logger = logging.getLogger(__name__)


class ShareClient:
    """
    Единая точка доступа: загрузка, очистка хранилища, ссылки на файлы.
    """

    def __init__(
        self,
        config: ShareConfig,
        repo: FileSystemRepository,
        writer: StorageWriter,
        purger: Purger,
        upload_log: Optional[UploadLog] = None,
    ):
        self.config = config
        self.repo = repo
        self.writer = writer
        self.purger = purger
        self.upload_log = upload_log

    async def upload(self, request: UploadRequest) -> StoredFile:
        stored = await self.writer.store(request)
        if self.upload_log is not None:
            try:
                await self.upload_log.append(stored, request.original_name, request.client_address)
            except OSError:
                # Файл уже сохранен и проверен; журнал не повод для отказа
                logger.exception(f"Could not write upload log entry for {stored.basename}.")
        return stored

    async def purge(self, now: Optional[float] = None) -> PurgeSummary:
        return await self.purger.purge(now)

    def build_url(self, stored: StoredFile, site_url: str) -> str:
        return site_url + self.config.server.download_path.format(stored.basename)


def create_share_client(config: Optional[ShareConfig] = None, hook: Optional[HookRunner] = None) -> ShareClient:
    """
    Фабрика ShareClient.

    :param config: Единый объект с настройками. Если не передан, читается из окружения.
    :param hook: Подмена внешнего хука (например, в тестах). По умолчанию
                 запускается HookConfig.command, если он задан.
    """
    if config is None:
        config = ShareConfig.from_settings(get_settings())

    if hook is None and config.hook.command:
        hook = SubprocessHookRunner(config.hook.command, config.hook.timeout)

    repo = FileSystemRepository(config.storage)
    writer = StorageWriter(config, repo, hook=hook)
    purger = Purger(config.retention, repo)
    upload_log = UploadLog(config.storage.upload_log) if config.storage.upload_log else None

    return ShareClient(config=config, repo=repo, writer=writer, purger=purger, upload_log=upload_log)

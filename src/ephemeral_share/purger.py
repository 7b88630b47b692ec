import logging
import stat
import time
from pathlib import Path
from typing import AsyncIterator, Optional

from ephemeral_share.config import RetentionConfig
from ephemeral_share.models import PurgeOutcome, PurgeSummary
from ephemeral_share.repositories import FileSystemRepository
from ephemeral_share.retention import max_age

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 60 * 60 * 24


class Purger:
    """
    Один проход по хранилищу: удаляет файлы старше их срока хранения.
    Ошибка на одной записи не прерывает проход.
    """

    def __init__(self, config: RetentionConfig, repo: FileSystemRepository):
        self._config = config
        self._repo = repo

    async def scan(self, now: Optional[float] = None) -> AsyncIterator[PurgeOutcome]:
        now = time.time() if now is None else now
        for path in await self._repo.list_all():
            try:
                st = await self._repo.stat(path)
            except OSError as e:
                logger.warning(f"Could not stat {path}: {e}")
                yield PurgeOutcome(path=path, action="errored", error=str(e))
                continue
            if not stat.S_ISREG(st.st_mode):
                continue
            yield await self._judge(path, st.st_size, (now - st.st_mtime) / SECONDS_PER_DAY)

    async def _judge(self, path: Path, size: int, age_days: float) -> PurgeOutcome:
        # Всё моложе min_fileage хранится при любом размере
        if age_days < self._config.min_fileage:
            return PurgeOutcome(path=path, action="retained", size_bytes=size, age_days=age_days)

        limit = max_age(size, self._config)
        if age_days <= limit:
            return PurgeOutcome(
                path=path, action="retained", size_bytes=size, age_days=age_days, max_age_days=limit
            )

        try:
            await self._repo.unlink(path)
        except OSError as e:
            logger.warning(f"Could not delete {path}: {e}")
            return PurgeOutcome(
                path=path,
                action="errored",
                size_bytes=size,
                age_days=age_days,
                max_age_days=limit,
                error=str(e),
            )
        return PurgeOutcome(
            path=path, action="deleted", size_bytes=size, age_days=age_days, max_age_days=limit
        )

    async def purge(self, now: Optional[float] = None) -> PurgeSummary:
        summary = PurgeSummary()
        async for outcome in self.scan(now):
            if outcome.action == "deleted":
                logger.info(
                    f"deleted {outcome.path}, {outcome.size_mib:.2f} MiB, {outcome.age_days:.2f} days old"
                )
            summary.add(outcome)
        logger.info(f"Deleted {summary.deleted_count} files totalling {summary.deleted_mib:.2f} MiB")
        return summary

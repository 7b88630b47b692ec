import shlex
from datetime import datetime, timezone
from pathlib import Path

from ephemeral_share.models import StoredFile
from ephemeral_share.utils.aio import run_io_bound


def format_entry(stored: StoredFile, original_name: str, client_address: str, when: datetime | None = None) -> str:
    when = when or datetime.now(tz=timezone.utc)
    return "\t".join([
        when.isoformat(timespec="seconds"),
        client_address,
        str(stored.size_bytes),
        shlex.quote(original_name),
        stored.basename,
    ]) + "\n"


class UploadLog:
    """Журнал загрузок: IP, исходное имя и итоговое имя, по строке на файл."""

    def __init__(self, path: Path):
        self._path = Path(path)

    async def append(self, stored: StoredFile, original_name: str, client_address: str):
        line = format_entry(stored, original_name, client_address)

        def _write():
            with self._path.open("a", encoding="utf-8") as fh:
                fh.write(line)

        await run_io_bound(_write)

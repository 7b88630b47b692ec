import os
import shlex
import shutil
from pathlib import Path

from ephemeral_share.config import ShareConfig


def _nearest_existing(path: Path) -> Path:
    path = path.absolute()
    while not path.exists() and path != path.parent:
        path = path.parent
    return path


def check_config(config: ShareConfig) -> list[str]:
    """
    Проверка окружения перед запуском. Возвращает список проблем,
    пустой список означает, что всё в порядке.
    """
    problems: list[str] = []

    root = Path(config.storage.root)
    if root.exists():
        if not root.is_dir():
            problems.append(f"storage root {root} is not a directory")
        elif not os.access(root, os.W_OK | os.X_OK):
            problems.append(f"storage root {root} is not writable")
    elif not os.access(_nearest_existing(root), os.W_OK):
        problems.append(f"storage root {root} does not exist and cannot be created")

    log_path = config.storage.upload_log
    if log_path is not None and not os.access(_nearest_existing(Path(log_path).parent), os.W_OK):
        problems.append(f"upload log {log_path} is not writable")

    if config.hook.command:
        argv = shlex.split(config.hook.command)
        if not argv:
            problems.append("hook command is empty")
        elif shutil.which(argv[0]) is None:
            problems.append(f"hook program {argv[0]!r} not found or not executable")
        if config.hook.timeout > config.server.upload_timeout:
            problems.append(
                f"hook timeout ({config.hook.timeout:g}s) exceeds upload timeout "
                f"({config.server.upload_timeout:g}s)"
            )

    if "{}" not in config.server.download_path:
        problems.append(f"download_path {config.server.download_path!r} has no {{}} placeholder")

    return problems

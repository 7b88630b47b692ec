from .fs_repository import FileSystemRepository, STAGING_DIR

__all__ = [
    "FileSystemRepository",
    "STAGING_DIR",
]

# Файл: src/ephemeral_share/__init__.py

from .client import ShareClient, create_share_client
from .config import (
    get_settings,
    ShareConfig,
    RetentionConfig,
    IdentifierConfig,
    StorageConfig,
    HookConfig,
    ServerConfig,
)
from .models import UploadRequest, StoredFile, PurgeOutcome, PurgeSummary
from .exceptions import *

__all__ = [
    "ShareClient", "create_share_client",
    "get_settings", "ShareConfig", "RetentionConfig", "IdentifierConfig",
    "StorageConfig", "HookConfig", "ServerConfig",
    "UploadRequest", "StoredFile", "PurgeOutcome", "PurgeSummary",
    "ShareError", "EmptyUpload", "PayloadTooLarge", "StorageIOFailure",
    "ValidationHookRejected", "ValidationHookError", "IdentifierSpaceExhausted",
]

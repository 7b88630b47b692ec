from .upload import UploadRequest, StoredFile
from .purge import PurgeOutcome, PurgeSummary

__all__ = [
    "UploadRequest",
    "StoredFile",
    "PurgeOutcome",
    "PurgeSummary",
]

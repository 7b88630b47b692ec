from ephemeral_share.config import MIB


class ShareError(Exception):
    """Base class. `status_code` is what the HTTP layer answers with."""

    status_code = 500
    default_message = "Internal error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class EmptyUpload(ShareError):
    status_code = 400
    default_message = "Uploaded file is empty"


class PayloadTooLarge(ShareError):
    status_code = 413
    default_message = "Max file size exceeded"

    @classmethod
    def over(cls, limit_bytes: int) -> "PayloadTooLarge":
        return cls(f"Max File Size ({limit_bytes / MIB:g} MiB) Exceeded")


class StorageIOFailure(ShareError):
    # 520 Unknown Error
    status_code = 520
    default_message = "Could not store the uploaded file"


class ValidationHookRejected(ShareError):
    status_code = 400
    default_message = "Upload rejected by validation hook"


class ValidationHookError(ShareError):
    status_code = 500
    default_message = "Validation hook could not be run"


class IdentifierSpaceExhausted(ShareError):
    status_code = 500
    default_message = "No free file identifier available"

"""Failure kinds surfaced by transfers.

Every error carries a readable message naming what failed and, when a part
was involved, its part number. If the multipart upload could not be aborted
afterwards, that secondary failure is kept on ``abort_error`` and appended to
the message; it never replaces the primary cause.
"""


class TransferError(Exception):
    def __init__(
        self,
        message: str,
        part_number: int | None = None,
        upload_id: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.part_number = part_number
        self.upload_id = upload_id
        self.abort_error: Exception | None = None

    def __str__(self) -> str:
        out = self.message
        if self.part_number is not None:
            out = f"{out} (part {self.part_number})"
        if self.abort_error is not None:
            out = f"{out}; abort of upload {self.upload_id} also failed: {self.abort_error}"
        return out


class ConfigurationError(TransferError):
    """Malformed credentials, region or endpoint. Not retried."""


class ConnectivityError(TransferError):
    """A round trip to the endpoint failed."""


class ProtocolInvariantError(TransferError):
    """Part bookkeeping went wrong. This is a bug, not a runtime condition."""


class ResourceError(TransferError):
    """The local source could not be read, or was shorter than planned."""

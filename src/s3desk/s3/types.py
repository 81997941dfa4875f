from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from s3desk.types import SizeSuffix

MIN_PART_SIZE = 5 * 1024 * 1024  # endpoint floor for every part but the last
DEFAULT_PART_SIZE = MIN_PART_SIZE
MAX_PART_NUMBER = 10000


class S3Provider(Enum):
    S3 = "s3"  # generic S3, MinIO and friends
    BACKBLAZE = "b2"

    @staticmethod
    def from_str(value: str) -> "S3Provider":
        """Convert string to S3Provider."""
        value = value.strip().lower()
        if value in ("s3", "aws", "minio", ""):
            return S3Provider.S3
        if value in ("b2", "backblaze"):
            return S3Provider.BACKBLAZE
        raise ValueError(f"Unknown S3Provider: {value}")


@dataclass(frozen=True)
class EndpointConfig:
    """Connection settings for one S3-compatible endpoint.

    Two configs are the same cache entry when their ``id`` matches, whatever
    the rest of the content says.
    """

    id: str
    access_key_id: str = field(compare=False)
    secret_access_key: str = field(compare=False, repr=False)
    session_token: str | None = field(default=None, compare=False, repr=False)
    region_name: str | None = field(default=None, compare=False)
    endpoint_url: str | None = field(default=None, compare=False)
    bucket: str | None = field(default=None, compare=False)
    name: str | None = field(default=None, compare=False)
    provider: S3Provider = field(default=S3Provider.S3, compare=False)

    def redacted(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "access_key_id": self.access_key_id[:4] + "...",
            "endpoint_url": self.endpoint_url,
            "provider": self.provider.value,
            "region": self.region_name,
        }


@dataclass
class S3UploadTarget:
    """Target information for S3 upload."""

    src_file: Path
    src_file_size: int | None
    bucket_name: str
    s3_key: str
    content_type: str | None = None


@dataclass
class S3MultiPartUploadConfig:
    """Knobs for a chunked upload."""

    part_size: SizeSuffix = field(default_factory=lambda: SizeSuffix(DEFAULT_PART_SIZE))
    upload_threads: int = 1
    retries: int = 0


class TransferState(Enum):
    NOT_STARTED = "not_started"
    INITIATED = "initiated"
    UPLOADING_PARTS = "uploading_parts"
    COMPLETING = "completing"
    DONE = "done"
    ABORTING = "aborting"
    ABORTED = "aborted"

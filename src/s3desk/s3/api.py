import json
import logging
import warnings
from pathlib import Path

from botocore.client import BaseClient

from s3desk.s3.basic_ops import abort_multipart_upload, upload_file
from s3desk.s3.errors import ResourceError, TransferError
from s3desk.s3.planner import Chunked, SingleShot, Strategy, plan
from s3desk.s3.registry import SessionRegistry
from s3desk.s3.types import (
    MIN_PART_SIZE,
    EndpointConfig,
    S3MultiPartUploadConfig,
    S3UploadTarget,
)
from s3desk.s3.upload_file_multipart import upload_file_multipart
from s3desk.types import SizeSuffix

logger = logging.getLogger(__name__)


def _file_size(target: S3UploadTarget) -> int:
    if target.src_file_size is not None:
        return target.src_file_size
    try:
        return target.src_file.stat().st_size
    except OSError as e:
        raise ResourceError(f"Cannot stat {target.src_file}: {e}") from e


class S3Client:
    """Uploads local files through clients shared via a SessionRegistry."""

    def __init__(self, registry: SessionRegistry | None = None) -> None:
        self.registry: SessionRegistry = (
            registry if registry is not None else SessionRegistry()
        )

    def client(self, config: EndpointConfig) -> BaseClient:
        return self.registry.acquire(config)

    def plan(
        self, target: S3UploadTarget, upload_config: S3MultiPartUploadConfig
    ) -> Strategy:
        return plan(_file_size(target), upload_config.part_size)

    def upload(
        self,
        config: EndpointConfig,
        target: S3UploadTarget,
        upload_config: S3MultiPartUploadConfig | None = None,
    ) -> str:
        """Plan the transfer and run it. Returns the stored key."""
        upload_config = upload_config or S3MultiPartUploadConfig()
        try:
            strategy = self.plan(target, upload_config)
            if isinstance(strategy, SingleShot):
                return self.upload_single(config, target, strategy.file_size)
            return self.upload_chunked(config, target, strategy, upload_config)
        except TransferError as e:
            info_json_str = json.dumps(
                {
                    "bucket": target.bucket_name,
                    "key": target.s3_key,
                    **config.redacted(),
                },
                indent=2,
            )
            logger.error(f"Error uploading file: {e}\nInfo:\n\n{info_json_str}")
            raise

    def upload_single(
        self,
        config: EndpointConfig,
        target: S3UploadTarget,
        expected_size: int | None = None,
    ) -> str:
        return upload_file(
            s3_client=self.client(config),
            bucket_name=target.bucket_name,
            file_path=target.src_file,
            object_name=target.s3_key,
            content_type=target.content_type,
            expected_size=expected_size,
        )

    def upload_chunked(
        self,
        config: EndpointConfig,
        target: S3UploadTarget,
        strategy: Chunked | None = None,
        upload_config: S3MultiPartUploadConfig | None = None,
    ) -> str:
        upload_config = upload_config or S3MultiPartUploadConfig()
        if strategy is None:
            planned = self.plan(target, upload_config)
            if isinstance(planned, SingleShot):
                warnings.warn(
                    f"File size {planned.file_size} is less than the minimum threshold for chunking ({SizeSuffix(MIN_PART_SIZE)}), switching to single shot upload."
                )
                return self.upload_single(config, target, planned.file_size)
            strategy = planned
        return upload_file_multipart(
            s3_client=self.client(config),
            bucket_name=target.bucket_name,
            file_path=target.src_file,
            object_name=target.s3_key,
            plan=strategy,
            upload_threads=upload_config.upload_threads,
            retries=upload_config.retries,
            content_type=target.content_type,
        )

    def upload_files(
        self,
        config: EndpointConfig,
        bucket_name: str,
        files: list[tuple[str, Path]],
        upload_config: S3MultiPartUploadConfig | None = None,
    ) -> list[str]:
        """Upload (key, path) pairs in order, stopping at the first failure."""
        uploaded: list[str] = []
        for key, path in files:
            target = S3UploadTarget(
                src_file=Path(path),
                src_file_size=None,
                bucket_name=bucket_name,
                s3_key=key,
            )
            try:
                uploaded.append(self.upload(config, target, upload_config))
            except TransferError as e:
                err = type(e)(
                    f"Upload failed for {key} after {len(uploaded)} of {len(files)} files: {e.message}",
                    part_number=e.part_number,
                    upload_id=e.upload_id,
                )
                err.abort_error = e.abort_error
                raise err from e
        return uploaded

    def abort_upload(
        self, config: EndpointConfig, bucket_name: str, s3_key: str, upload_id: str
    ) -> None:
        abort_multipart_upload(self.client(config), bucket_name, s3_key, upload_id)

import logging
import mimetypes
from pathlib import Path

from botocore.client import BaseClient
from botocore.exceptions import BotoCoreError, ClientError

from s3desk.s3.errors import ConnectivityError, ResourceError

logger = logging.getLogger(__name__)

ENDPOINT_ERRORS = (ClientError, BotoCoreError)


def guess_content_type(object_name: str) -> str | None:
    """Content type from the key's extension, None when unknown."""
    content_type, _ = mimetypes.guess_type(object_name, strict=True)
    return content_type


def read_file_bytes(file_path: Path, expected_size: int | None = None) -> bytes:
    try:
        data = file_path.read_bytes()
    except OSError as e:
        raise ResourceError(f"Cannot read {file_path}: {e}") from e
    if expected_size is not None and len(data) != expected_size:
        raise ResourceError(
            f"{file_path} is {len(data)} bytes, expected {expected_size}, did it change during upload?"
        )
    return data


def upload_file(
    s3_client: BaseClient,
    bucket_name: str,
    file_path: Path,
    object_name: str,
    content_type: str | None = None,
    expected_size: int | None = None,
) -> str:
    """Upload a file to the bucket with a single put request."""
    data = read_file_bytes(file_path, expected_size)
    content_type = content_type or guess_content_type(object_name)
    kwargs: dict = {"Bucket": bucket_name, "Key": object_name, "Body": data}
    if content_type:
        kwargs["ContentType"] = content_type
    try:
        s3_client.put_object(**kwargs)
    except ENDPOINT_ERRORS as e:
        raise ConnectivityError(
            f"Failed to upload {file_path} to {bucket_name}/{object_name}: {e}"
        ) from e
    logger.info(f"Uploaded {file_path} to {bucket_name}/{object_name}")
    return object_name


def abort_multipart_upload(
    s3_client: BaseClient, bucket_name: str, object_name: str, upload_id: str
) -> None:
    try:
        s3_client.abort_multipart_upload(
            Bucket=bucket_name, Key=object_name, UploadId=upload_id
        )
    except ENDPOINT_ERRORS as e:
        raise ConnectivityError(
            f"Failed to abort multipart upload for {bucket_name}/{object_name}: {e}",
            upload_id=upload_id,
        ) from e
    logger.info(f"Aborted multipart upload {upload_id} for {bucket_name}/{object_name}")

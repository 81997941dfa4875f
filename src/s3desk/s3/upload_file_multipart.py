import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path
from queue import Queue
from threading import Event
from typing import BinaryIO

from botocore.client import BaseClient

from s3desk.s3.basic_ops import (
    ENDPOINT_ERRORS,
    abort_multipart_upload,
    guess_content_type,
)
from s3desk.s3.errors import (
    ConnectivityError,
    ProtocolInvariantError,
    ResourceError,
    TransferError,
)
from s3desk.s3.multipart.finished_piece import FinishedPiece
from s3desk.s3.multipart.upload_info import UploadInfo
from s3desk.s3.multipart.upload_state import UploadState
from s3desk.s3.planner import ByteRange, Chunked
from s3desk.s3.types import MAX_PART_NUMBER, TransferState

logger = logging.getLogger(__name__)


def _read_exact(src: BinaryIO, rng: ByteRange, part_number: int, path: Path) -> bytes:
    try:
        data = src.read(rng.length)
    except OSError as e:
        raise ResourceError(
            f"Error reading {path} at offset {rng.offset}: {e}",
            part_number=part_number,
        ) from e
    if len(data) != rng.length:
        raise ResourceError(
            f"Short read from {path} at offset {rng.offset}: wanted {rng.length} bytes, got {len(data)}",
            part_number=part_number,
        )
    return data


def upload_task(
    info: UploadInfo, chunk: bytes, part_number: int, retries: int
) -> FinishedPiece:
    retries = retries + 1  # Add one for the initial attempt
    for retry in range(retries):
        try:
            if retry > 0:
                logger.info(f"Retrying part {part_number} for {info.src_file_path}")
            logger.debug(
                f"Uploading part {part_number} for {info.src_file_path} of size {len(chunk)}"
            )
            part = info.s3_client.upload_part(
                Bucket=info.bucket_name,
                Key=info.object_name,
                PartNumber=part_number,
                UploadId=info.upload_id,
                Body=chunk,
            )
        except ENDPOINT_ERRORS as e:
            if retry == retries - 1:
                raise ConnectivityError(
                    f"Failed to upload part of {info.describe()}: {e}",
                    part_number=part_number,
                    upload_id=info.upload_id,
                ) from e
            logger.warning(f"Error uploading part {part_number}: {e}, retrying")
            continue
        etag = part.get("ETag")
        if not etag:
            raise ProtocolInvariantError(
                f"Endpoint returned no ETag for {info.describe()}",
                part_number=part_number,
                upload_id=info.upload_id,
            )
        return FinishedPiece(part_number=part_number, etag=etag)
    raise ProtocolInvariantError("Should not reach here", part_number=part_number)


def prepare_upload_file_multipart(
    s3_client: BaseClient,
    bucket_name: str,
    file_path: Path,
    object_name: str,
    plan: Chunked,
    retries: int,
    content_type: str | None = None,
) -> UploadState:
    """Request an upload id. Nothing needs cleaning up if this fails."""
    logger.info(
        f"Creating multipart upload for {file_path} to {bucket_name}/{object_name}"
    )
    kwargs: dict = {"Bucket": bucket_name, "Key": object_name}
    content_type = content_type or guess_content_type(object_name)
    if content_type:
        kwargs["ContentType"] = content_type
    try:
        mpu = s3_client.create_multipart_upload(**kwargs)
    except ENDPOINT_ERRORS as e:
        raise ConnectivityError(
            f"Failed to create multipart upload for {bucket_name}/{object_name}: {e}"
        ) from e
    upload_id = mpu.get("UploadId")
    if not upload_id:
        raise ProtocolInvariantError(
            f"Endpoint returned no upload id for {bucket_name}/{object_name}"
        )

    upload_info = UploadInfo(
        s3_client=s3_client,
        bucket_name=bucket_name,
        object_name=object_name,
        src_file_path=file_path,
        upload_id=upload_id,
        plan=plan,
        retries=retries,
    )
    upload_state = UploadState(upload_info=upload_info)
    upload_state.transition(TransferState.INITIATED)
    return upload_state


def _upload_parts_sequential(upload_state: UploadState, src: BinaryIO) -> None:
    info = upload_state.upload_info
    for part_number, rng in info.plan.parts():
        data = _read_exact(src, rng, part_number, info.src_file_path)
        piece = upload_task(info, data, part_number, info.retries)
        upload_state.add_finished(piece)
        logger.info(f"{info.describe()}: {upload_state.progress_str()}")


def upload_runner(
    upload_state: UploadState, src: BinaryIO, upload_threads: int
) -> None:
    """Reads parts in order and uploads up to ``upload_threads`` at once.

    Results land in the state keyed by part number, whatever order they
    finish in. The first failure stops further submissions.
    """
    info = upload_state.upload_info
    semaphore = threading.Semaphore(upload_threads)
    errors: Queue[Exception] = Queue()
    cancel = Event()

    def done_cb(fut: Future[FinishedPiece]) -> None:
        semaphore.release()
        if fut.cancelled():
            return
        err = fut.exception()
        if err is None:
            try:
                upload_state.add_finished(fut.result())
                logger.info(f"{info.describe()}: {upload_state.progress_str()}")
                return
            except TransferError as e:
                err = e
        assert isinstance(err, Exception)
        errors.put(err)
        cancel.set()

    with ThreadPoolExecutor(max_workers=upload_threads) as executor:
        try:
            for part_number, rng in info.plan.parts():
                if cancel.is_set():
                    break
                data = _read_exact(src, rng, part_number, info.src_file_path)
                semaphore.acquire()
                if cancel.is_set():
                    semaphore.release()
                    break
                fut = executor.submit(
                    upload_task, info, data, part_number, info.retries
                )
                fut.add_done_callback(done_cb)
        except Exception:
            cancel.set()
            executor.shutdown(wait=True, cancel_futures=True)
            raise

    if not errors.empty():
        raise errors.get()


def _abort_upload(upload_state: UploadState) -> Exception | None:
    info = upload_state.upload_info
    upload_state.transition(TransferState.ABORTING)
    try:
        abort_multipart_upload(
            info.s3_client, info.bucket_name, info.object_name, info.upload_id
        )
        return None
    except ConnectivityError as e:
        logger.error(f"Error aborting upload {info.upload_id}: {e}")
        return e
    finally:
        upload_state.transition(TransferState.ABORTED)


def _as_transfer_error(e: Exception, info: UploadInfo) -> TransferError | None:
    if isinstance(e, TransferError):
        if e.upload_id is None:
            e.upload_id = info.upload_id
        return e
    if isinstance(e, OSError):
        return ResourceError(
            f"Cannot read {info.src_file_path}: {e}", upload_id=info.upload_id
        )
    if isinstance(e, ENDPOINT_ERRORS):
        return ConnectivityError(
            f"Transfer of {info.describe()} failed: {e}", upload_id=info.upload_id
        )
    return None


def upload_file_multipart(
    s3_client: BaseClient,
    bucket_name: str,
    file_path: Path,
    object_name: str,
    plan: Chunked,
    upload_threads: int = 1,
    retries: int = 0,
    content_type: str | None = None,
) -> str:
    """Upload a file to the bucket as a multipart upload following ``plan``.

    Either every part lands and the upload is completed, or the upload id is
    aborted and the original error is raised. Returns the object key.
    """
    if upload_threads < 1:
        raise ValueError(f"upload_threads must be at least 1, got {upload_threads}")
    if plan.num_parts() > MAX_PART_NUMBER:
        raise ValueError(
            f"{plan.num_parts()} parts exceeds the limit of {MAX_PART_NUMBER}, use a larger part size"
        )
    try:
        src = open(file_path, "rb")
    except OSError as e:
        raise ResourceError(f"Cannot open {file_path}: {e}") from e

    with src:
        upload_state = prepare_upload_file_multipart(
            s3_client=s3_client,
            bucket_name=bucket_name,
            file_path=file_path,
            object_name=object_name,
            plan=plan,
            retries=retries,
            content_type=content_type,
        )
        upload_info = upload_state.upload_info
        try:
            upload_state.transition(TransferState.UPLOADING_PARTS)
            if upload_threads == 1:
                _upload_parts_sequential(upload_state, src)
            else:
                upload_runner(upload_state, src, upload_threads)

            upload_state.transition(TransferState.COMPLETING)
            parts = upload_state.completed_parts()
            logger.info(f"Sending multi part completion message for {file_path}")
            try:
                s3_client.complete_multipart_upload(
                    Bucket=bucket_name,
                    Key=object_name,
                    UploadId=upload_info.upload_id,
                    MultipartUpload={"Parts": FinishedPiece.to_json_array(parts)},
                )
            except ENDPOINT_ERRORS as e:
                raise ConnectivityError(
                    f"Failed to complete multipart upload for {bucket_name}/{object_name}: {e}",
                    upload_id=upload_info.upload_id,
                ) from e
            upload_state.transition(TransferState.DONE)
        except Exception as e:
            err = _as_transfer_error(e, upload_info)
            abort_error = _abort_upload(upload_state)
            if err is None:
                raise
            err.abort_error = abort_error
            if err is e:
                raise
            raise err from e

    logger.info(f"Multipart upload completed: {upload_info.describe()}")
    return object_name

"""
In-memory stand-in for the boto3 S3 client calls used by uploads.
"""

from threading import Lock

from botocore.exceptions import ClientError


def _error(operation: str, code: str = "InternalError") -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": "boom"}}, operation)


class FakeS3Client:
    def __init__(
        self,
        fail_on_part: int | None = None,
        fail_part_times: int = 1_000_000,
        fail_create: bool = False,
        fail_complete: bool = False,
        fail_abort: bool = False,
        fail_put: bool = False,
        omit_etag: bool = False,
    ) -> None:
        self.fail_on_part = fail_on_part
        self.fail_part_times = fail_part_times
        self.fail_create = fail_create
        self.fail_complete = fail_complete
        self.fail_abort = fail_abort
        self.fail_put = fail_put
        self.omit_etag = omit_etag
        self.calls: list[tuple[str, dict]] = []
        self.objects: dict[tuple[str, str], bytes] = {}
        self.uploads: dict[str, dict[int, bytes]] = {}
        self.etags: dict[tuple[str, int], str] = {}
        self._next_id = 0
        self._lock = Lock()

    def _record(self, name: str, kwargs: dict) -> None:
        with self._lock:
            self.calls.append((name, kwargs))

    def calls_named(self, name: str) -> list[dict]:
        with self._lock:
            return [kwargs for n, kwargs in self.calls if n == name]

    def create_multipart_upload(self, **kwargs) -> dict:
        self._record("create_multipart_upload", kwargs)
        if self.fail_create:
            raise _error("CreateMultipartUpload")
        with self._lock:
            self._next_id += 1
            upload_id = f"upload-{self._next_id}"
            self.uploads[upload_id] = {}
        return {"UploadId": upload_id}

    def upload_part(self, **kwargs) -> dict:
        self._record("upload_part", kwargs)
        part_number = kwargs["PartNumber"]
        if part_number == self.fail_on_part and self.fail_part_times > 0:
            with self._lock:
                self.fail_part_times -= 1
            raise _error("UploadPart")
        upload_id = kwargs["UploadId"]
        etag = f'"etag-{upload_id}-{part_number}"'
        with self._lock:
            self.uploads[upload_id][part_number] = bytes(kwargs["Body"])
            self.etags[(upload_id, part_number)] = etag
        if self.omit_etag:
            return {}
        return {"ETag": etag}

    def complete_multipart_upload(self, **kwargs) -> dict:
        self._record("complete_multipart_upload", kwargs)
        if self.fail_complete:
            raise _error("CompleteMultipartUpload")
        upload_id = kwargs["UploadId"]
        parts = kwargs["MultipartUpload"]["Parts"]
        with self._lock:
            stored = self.uploads.pop(upload_id)
            body = b"".join(stored[p["PartNumber"]] for p in parts)
            self.objects[(kwargs["Bucket"], kwargs["Key"])] = body
        return {"Key": kwargs["Key"]}

    def abort_multipart_upload(self, **kwargs) -> dict:
        self._record("abort_multipart_upload", kwargs)
        if self.fail_abort:
            raise _error("AbortMultipartUpload", code="NoSuchUpload")
        with self._lock:
            self.uploads.pop(kwargs["UploadId"], None)
        return {}

    def put_object(self, **kwargs) -> dict:
        self._record("put_object", kwargs)
        if self.fail_put:
            raise _error("PutObject")
        with self._lock:
            self.objects[(kwargs["Bucket"], kwargs["Key"])] = bytes(kwargs["Body"])
        return {"ETag": '"put"'}

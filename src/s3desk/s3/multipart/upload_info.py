from dataclasses import dataclass
from pathlib import Path

from botocore.client import BaseClient

from s3desk.s3.planner import Chunked


@dataclass
class UploadInfo:
    s3_client: BaseClient
    bucket_name: str
    object_name: str
    src_file_path: Path
    upload_id: str
    plan: Chunked
    retries: int = 0

    @property
    def file_size(self) -> int:
        return self.plan.file_size

    @property
    def part_size(self) -> int:
        return self.plan.part_size

    def total_chunks(self) -> int:
        return self.plan.num_parts()

    def describe(self) -> str:
        return f"{self.src_file_path} -> {self.bucket_name}/{self.object_name}"

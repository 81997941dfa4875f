import logging
from dataclasses import dataclass, field
from threading import Lock

from s3desk.s3.errors import ProtocolInvariantError
from s3desk.s3.multipart.finished_piece import FinishedPiece
from s3desk.s3.multipart.upload_info import UploadInfo
from s3desk.s3.types import TransferState
from s3desk.types import SizeSuffix

logger = logging.getLogger(__name__)

_TRANSITIONS: dict[TransferState, frozenset[TransferState]] = {
    TransferState.NOT_STARTED: frozenset({TransferState.INITIATED}),
    TransferState.INITIATED: frozenset(
        {TransferState.UPLOADING_PARTS, TransferState.ABORTING}
    ),
    TransferState.UPLOADING_PARTS: frozenset(
        {TransferState.COMPLETING, TransferState.ABORTING}
    ),
    TransferState.COMPLETING: frozenset({TransferState.DONE, TransferState.ABORTING}),
    TransferState.ABORTING: frozenset({TransferState.ABORTED}),
    TransferState.DONE: frozenset(),
    TransferState.ABORTED: frozenset(),
}


@dataclass
class UploadState:
    """Bookkeeping for one multipart transfer. Lives in memory only."""

    upload_info: UploadInfo
    state: TransferState = TransferState.NOT_STARTED
    lock: Lock = field(default_factory=Lock, repr=False)
    parts: dict[int, FinishedPiece] = field(default_factory=dict)

    def transition(self, new_state: TransferState) -> None:
        with self.lock:
            if new_state not in _TRANSITIONS[self.state]:
                raise ProtocolInvariantError(
                    f"Illegal transfer transition {self.state.value} -> {new_state.value}",
                    upload_id=self.upload_info.upload_id or None,
                )
            logger.debug(
                f"{self.upload_info.describe()}: {self.state.value} -> {new_state.value}"
            )
            self.state = new_state

    def add_finished(self, part: FinishedPiece) -> None:
        num_parts = self.upload_info.total_chunks()
        with self.lock:
            if self.state != TransferState.UPLOADING_PARTS:
                raise ProtocolInvariantError(
                    f"Part finished while transfer is {self.state.value}",
                    part_number=part.part_number,
                    upload_id=self.upload_info.upload_id,
                )
            if part.part_number > num_parts:
                raise ProtocolInvariantError(
                    f"Part number out of range, only {num_parts} parts planned",
                    part_number=part.part_number,
                    upload_id=self.upload_info.upload_id,
                )
            if part.part_number in self.parts:
                raise ProtocolInvariantError(
                    "Duplicate part number",
                    part_number=part.part_number,
                    upload_id=self.upload_info.upload_id,
                )
            self.parts[part.part_number] = part

    def count(self) -> tuple[int, int]:  # count, num_chunks
        with self.lock:
            return len(self.parts), self.upload_info.total_chunks()

    def finished(self) -> int:
        count, _ = self.count()
        return count

    def remaining(self) -> int:
        count, num_chunks = self.count()
        return num_chunks - count

    def is_done(self) -> bool:
        return self.remaining() == 0

    def completed_parts(self) -> list[FinishedPiece]:
        """Parts ordered 1..n, ready for the completion request."""
        with self.lock:
            num_parts = self.upload_info.total_chunks()
            missing = [n for n in range(1, num_parts + 1) if n not in self.parts]
            if missing:
                raise ProtocolInvariantError(
                    f"Cannot complete, {len(missing)} of {num_parts} parts have no acknowledgment tag",
                    part_number=missing[0],
                    upload_id=self.upload_info.upload_id,
                )
            return [self.parts[n] for n in range(1, num_parts + 1)]

    def progress_str(self) -> str:
        with self.lock:
            done = set(self.parts)
        finished_count, total = len(done), self.upload_info.total_chunks()
        done_bytes = sum(r.length for n, r in self.upload_info.plan.parts() if n in done)
        pct = (finished_count / total) * 100 if total else 100.0
        return (
            f"{finished_count}/{total} parts, "
            f"{SizeSuffix(done_bytes)} of {SizeSuffix(self.upload_info.file_size)} ({pct:.2f}%)"
        )

"""
Unit test file.
"""

import unittest
from pathlib import Path

from fake_s3 import FakeS3Client

from s3desk.s3.errors import ProtocolInvariantError
from s3desk.s3.multipart.finished_piece import FinishedPiece
from s3desk.s3.multipart.upload_info import UploadInfo
from s3desk.s3.multipart.upload_state import UploadState
from s3desk.s3.planner import Chunked, plan
from s3desk.s3.types import TransferState

MiB = 1024 * 1024


def _state() -> UploadState:
    strategy = plan(12 * MiB)
    assert isinstance(strategy, Chunked)
    info = UploadInfo(
        s3_client=FakeS3Client(),  # type: ignore
        bucket_name="bucket",
        object_name="key",
        src_file_path=Path("src.bin"),
        upload_id="upload-1",
        plan=strategy,
    )
    state = UploadState(upload_info=info)
    state.transition(TransferState.INITIATED)
    return state


class UploadStateTests(unittest.TestCase):
    """Transfer state machine and part bookkeeping."""

    def test_happy_path_transitions(self) -> None:
        state = _state()
        state.transition(TransferState.UPLOADING_PARTS)
        for n in (1, 2, 3):
            state.add_finished(FinishedPiece(part_number=n, etag=f"tag-{n}"))
        self.assertTrue(state.is_done())
        state.transition(TransferState.COMPLETING)
        state.transition(TransferState.DONE)
        self.assertEqual(state.state, TransferState.DONE)

    def test_illegal_transitions(self) -> None:
        state = _state()
        with self.assertRaises(ProtocolInvariantError):
            state.transition(TransferState.COMPLETING)
        state.transition(TransferState.ABORTING)
        state.transition(TransferState.ABORTED)
        with self.assertRaises(ProtocolInvariantError):
            state.transition(TransferState.UPLOADING_PARTS)

    def test_parts_out_of_order_are_sorted(self) -> None:
        state = _state()
        state.transition(TransferState.UPLOADING_PARTS)
        for n in (3, 1, 2):
            state.add_finished(FinishedPiece(part_number=n, etag=f"tag-{n}"))
        parts = state.completed_parts()
        self.assertEqual([p.part_number for p in parts], [1, 2, 3])
        self.assertEqual(
            FinishedPiece.to_json_array(list(reversed(parts)))[0],
            {"PartNumber": 1, "ETag": "tag-1"},
        )

    def test_duplicate_and_out_of_range_parts(self) -> None:
        state = _state()
        state.transition(TransferState.UPLOADING_PARTS)
        state.add_finished(FinishedPiece(part_number=1, etag="a"))
        with self.assertRaises(ProtocolInvariantError):
            state.add_finished(FinishedPiece(part_number=1, etag="b"))
        with self.assertRaises(ProtocolInvariantError):
            state.add_finished(FinishedPiece(part_number=4, etag="c"))

    def test_part_before_uploading_is_rejected(self) -> None:
        state = _state()
        with self.assertRaises(ProtocolInvariantError):
            state.add_finished(FinishedPiece(part_number=1, etag="a"))

    def test_gap_blocks_completion(self) -> None:
        state = _state()
        state.transition(TransferState.UPLOADING_PARTS)
        state.add_finished(FinishedPiece(part_number=1, etag="a"))
        state.add_finished(FinishedPiece(part_number=3, etag="c"))
        self.assertEqual(state.remaining(), 1)
        with self.assertRaises(ProtocolInvariantError) as ctx:
            state.completed_parts()
        self.assertEqual(ctx.exception.part_number, 2)

    def test_progress_str(self) -> None:
        state = _state()
        state.transition(TransferState.UPLOADING_PARTS)
        state.add_finished(FinishedPiece(part_number=3, etag="c"))
        self.assertEqual(state.progress_str(), "1/3 parts, 2M of 12M (33.33%)")


if __name__ == "__main__":
    unittest.main()

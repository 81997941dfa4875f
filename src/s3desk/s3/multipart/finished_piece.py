from dataclasses import dataclass


@dataclass(frozen=True)
class FinishedPiece:
    part_number: int
    etag: str

    def to_json(self) -> dict:
        # amazon s3 style dict, the etag is passed back verbatim
        return {"PartNumber": self.part_number, "ETag": self.etag}

    def __post_init__(self):
        assert isinstance(self.part_number, int)
        assert isinstance(self.etag, str)
        assert self.part_number >= 1, f"Invalid part number {self.part_number}"

    @staticmethod
    def to_json_array(parts: list["FinishedPiece"]) -> list[dict]:
        ordered = sorted(parts, key=lambda x: x.part_number)
        return [p.to_json() for p in ordered]

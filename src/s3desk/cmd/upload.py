import argparse
import logging
from dataclasses import dataclass
from pathlib import Path

from s3desk.config import config_from_env
from s3desk.log import configure_logging
from s3desk.s3.api import S3Client
from s3desk.s3.errors import TransferError
from s3desk.s3.types import S3MultiPartUploadConfig, S3UploadTarget
from s3desk.types import SizeSuffix


@dataclass
class Args:
    src: Path
    key: str
    bucket: str | None
    part_size: SizeSuffix
    upload_threads: int
    retries: int
    content_type: str | None
    log_file: Path | None
    verbose: bool


def _parse_args(argv: list[str] | None = None) -> Args:
    parser = argparse.ArgumentParser(
        description="Upload a local file to S3-compatible storage, in parts when large."
    )
    parser.add_argument("src", help="Local file to upload", type=Path)
    parser.add_argument("key", help="Destination object key")
    parser.add_argument(
        "--bucket",
        help="Destination bucket, defaults to S3_BUCKET from the environment",
        required=False,
    )
    parser.add_argument(
        "--part-size",
        help="Part size in SizeSuffix form, at least 5MB",
        type=str,
        default="5MB",
    )
    parser.add_argument(
        "--upload-threads",
        help="Number of parts uploaded in parallel, 1 uploads strictly in order",
        type=int,
        default=1,
    )
    parser.add_argument("--retries", help="Retries per part", type=int, default=0)
    parser.add_argument("--content-type", help="Override the guessed content type")
    parser.add_argument("--log-file", help="Also write logs here", type=Path)
    parser.add_argument("-v", "--verbose", help="Verbose output", action="store_true")
    args = parser.parse_args(argv)
    return Args(
        src=args.src,
        key=args.key,
        bucket=args.bucket,
        part_size=SizeSuffix(args.part_size),
        upload_threads=args.upload_threads,
        retries=args.retries,
        content_type=args.content_type,
        log_file=args.log_file,
        verbose=args.verbose,
    )


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = _parse_args(argv)
    configure_logging(
        level=logging.DEBUG if args.verbose else logging.INFO, log_file=args.log_file
    )
    try:
        config = config_from_env()
        bucket = args.bucket or config.bucket
        if not bucket:
            print("Error: no bucket given and S3_BUCKET is not set")
            return 2
        target = S3UploadTarget(
            src_file=args.src,
            src_file_size=None,
            bucket_name=bucket,
            s3_key=args.key,
            content_type=args.content_type,
        )
        upload_config = S3MultiPartUploadConfig(
            part_size=args.part_size,
            upload_threads=args.upload_threads,
            retries=args.retries,
        )
        key = S3Client().upload(config, target, upload_config)
    except TransferError as e:
        print(f"Error: {e}")
        return 1
    print(f"Uploaded {args.src} to {bucket}/{key}")
    return 0


if __name__ == "__main__":
    import sys

    sys.exit(main())

from .config import ConfigManager, config_from_env
from .s3.api import S3Client
from .s3.errors import (
    ConfigurationError,
    ConnectivityError,
    ProtocolInvariantError,
    ResourceError,
    TransferError,
)
from .s3.planner import ByteRange, Chunked, SingleShot, plan
from .s3.registry import SessionRegistry
from .s3.types import (
    EndpointConfig,
    S3MultiPartUploadConfig,
    S3Provider,
    S3UploadTarget,
    TransferState,
)
from .types import SizeSuffix

__all__ = [
    "S3Client",
    "SessionRegistry",
    "ConfigManager",
    "config_from_env",
    "EndpointConfig",
    "S3Provider",
    "S3UploadTarget",
    "S3MultiPartUploadConfig",
    "TransferState",
    "plan",
    "ByteRange",
    "Chunked",
    "SingleShot",
    "TransferError",
    "ConfigurationError",
    "ConnectivityError",
    "ProtocolInvariantError",
    "ResourceError",
    "SizeSuffix",
]

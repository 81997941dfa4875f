import logging
from dataclasses import dataclass

import boto3
from botocore.client import BaseClient
from botocore.config import Config
from botocore.exceptions import BotoCoreError

from s3desk.s3.errors import ConfigurationError
from s3desk.s3.types import EndpointConfig, S3Provider

logger = logging.getLogger(__name__)

_DEFAULT_BACKBLAZE_ENDPOINT = "https://s3.us-west-002.backblazeb2.com"
_DEFAULT_REGION = "us-east-1"
_MAX_CONNECTIONS = 10
_TIMEOUT_READ = 120
_TIMEOUT_CONNECT = 60


@dataclass
class S3Config:
    max_pool_connections: int | None = None
    timeout_connection: int | None = None
    timeout_read: int | None = None

    def resolve_defaults(self) -> None:
        self.max_pool_connections = self.max_pool_connections or _MAX_CONNECTIONS
        self.timeout_connection = self.timeout_connection or _TIMEOUT_CONNECT
        self.timeout_read = self.timeout_read or _TIMEOUT_READ


def _normalize_endpoint(endpoint_url: str | None) -> str | None:
    if not endpoint_url:
        return None
    if not endpoint_url.startswith("http"):
        logger.warning(f"Endpoint URL is schema naive: {endpoint_url}, assuming HTTPS")
        endpoint_url = f"https://{endpoint_url}"
    return endpoint_url


def _botocore_config(
    config: EndpointConfig, s3_config: S3Config, **extra
) -> Config:
    s3_config.resolve_defaults()
    return Config(
        signature_version="s3v4",
        region_name=config.region_name or _DEFAULT_REGION,
        max_pool_connections=s3_config.max_pool_connections,
        read_timeout=s3_config.timeout_read,
        connect_timeout=s3_config.timeout_connection,
        **extra,
    )


def _create_backblaze_s3_client(
    config: EndpointConfig, s3_config: S3Config
) -> BaseClient:
    endpoint_url = _normalize_endpoint(config.endpoint_url)
    endpoint_url = endpoint_url or _DEFAULT_BACKBLAZE_ENDPOINT
    session = boto3.session.Session()  # type: ignore
    return session.client(
        service_name="s3",
        aws_access_key_id=config.access_key_id,
        aws_secret_access_key=config.secret_access_key,
        aws_session_token=config.session_token,
        endpoint_url=endpoint_url,
        # Backblaze rejects the newer checksum headers. Turning off payload
        # signing was tried for that and does not fix it on recent boto3.
        config=_botocore_config(
            config, s3_config, s3={"payload_signing_enabled": False}
        ),
    )


def _create_generic_s3_client(
    config: EndpointConfig, s3_config: S3Config
) -> BaseClient:
    session = boto3.session.Session()  # type: ignore
    return session.client(
        service_name="s3",
        aws_access_key_id=config.access_key_id,
        aws_secret_access_key=config.secret_access_key,
        aws_session_token=config.session_token,
        endpoint_url=_normalize_endpoint(config.endpoint_url),
        config=_botocore_config(config, s3_config),
    )


def create_s3_client(
    config: EndpointConfig, s3_config: S3Config | None = None
) -> BaseClient:
    """Create and return an S3 client.

    No request is sent; a bad config surfaces as ConfigurationError.
    """
    s3_config = s3_config or S3Config()
    if not config.access_key_id or not config.secret_access_key:
        raise ConfigurationError(f"Config {config.id} is missing credentials")
    try:
        if config.provider == S3Provider.BACKBLAZE:
            logger.debug(f"Creating BackBlaze S3 client for {config.id}")
            return _create_backblaze_s3_client(config=config, s3_config=s3_config)
        logger.debug(f"Creating generic S3 client for {config.id}")
        return _create_generic_s3_client(config=config, s3_config=s3_config)
    except (BotoCoreError, ValueError) as e:
        # botocore raises ValueError for unparseable endpoint urls
        raise ConfigurationError(f"Invalid config {config.id}: {e}") from e

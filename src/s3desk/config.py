import logging
import os
from threading import Lock

from dotenv import load_dotenv

from s3desk.s3.errors import ConfigurationError
from s3desk.s3.registry import SessionRegistry
from s3desk.s3.types import EndpointConfig, S3Provider

logger = logging.getLogger(__name__)


class ConfigManager:
    """In-memory store of endpoint configs keyed by id.

    When a registry is attached, updating or deleting a config releases its
    cached client so the next transfer picks up the new settings.
    """

    def __init__(self, registry: SessionRegistry | None = None) -> None:
        self._configs: dict[str, EndpointConfig] = {}
        self._lock = Lock()
        self.registry = registry

    def add_config(self, config: EndpointConfig) -> None:
        with self._lock:
            if config.id in self._configs:
                raise ConfigurationError(f"Config {config.id} already exists")
            self._configs[config.id] = config

    def get_configs(self) -> list[EndpointConfig]:
        with self._lock:
            return list(self._configs.values())

    def get_config(self, id: str) -> EndpointConfig:
        with self._lock:
            config = self._configs.get(id)
        if config is None:
            raise KeyError(f"Config {id} not found")
        return config

    def update_config(self, config: EndpointConfig) -> None:
        with self._lock:
            if config.id not in self._configs:
                raise KeyError(f"Config {config.id} not found")
            self._configs[config.id] = config
        self._release(config.id)

    def delete_config(self, id: str) -> None:
        with self._lock:
            self._configs.pop(id, None)
        self._release(id)

    def _release(self, id: str) -> None:
        if self.registry is not None:
            self.registry.release(id)


def config_from_env(id: str = "default", prefix: str = "S3_") -> EndpointConfig:
    """Build a config from ``S3_*`` environment variables, reading .env first.

    Recognized: ACCESS_KEY_ID, SECRET_ACCESS_KEY, SESSION_TOKEN, REGION,
    ENDPOINT_URL, BUCKET, PROVIDER.
    """
    load_dotenv()

    def get(name: str) -> str | None:
        return os.getenv(prefix + name) or None

    access_key_id = get("ACCESS_KEY_ID")
    secret_access_key = get("SECRET_ACCESS_KEY")
    missing = [
        prefix + name
        for name, value in (
            ("ACCESS_KEY_ID", access_key_id),
            ("SECRET_ACCESS_KEY", secret_access_key),
        )
        if not value
    ]
    if missing:
        raise ConfigurationError(
            f"Missing required environment variables: {', '.join(missing)}"
        )
    assert access_key_id is not None and secret_access_key is not None
    try:
        provider = S3Provider.from_str(get("PROVIDER") or "s3")
    except ValueError as e:
        raise ConfigurationError(str(e)) from e
    logger.debug(f"Loaded config {id} from environment")
    return EndpointConfig(
        id=id,
        access_key_id=access_key_id,
        secret_access_key=secret_access_key,
        session_token=get("SESSION_TOKEN"),
        region_name=get("REGION"),
        endpoint_url=get("ENDPOINT_URL"),
        bucket=get("BUCKET"),
        provider=provider,
    )

"""Configuration module — frozen dataclass loaded from environment variables.

Non-secret settings may also come from a YAML file named by ``CONFIG_PATH``;
environment variables always win. Credentials are read from the environment
only.
"""

import os
from dataclasses import dataclass

import yaml

from flowlog_indexer.errors import ConfigurationError

# env var -> key in the optional YAML file
_FILE_KEYS = {
    "ES_HOST": "es_host",
    "ES_REGION": "es_region",
    "ES_INDEX": "es_index",
    "ES_SERVICE": "es_service",
    "REQUEST_TIMEOUT": "request_timeout",
    "LOG_LEVEL": "log_level",
}

REQUIRED = (
    "AWS_ACCESS_KEY_ID",
    "AWS_SECRET_ACCESS_KEY",
    "ES_HOST",
    "ES_REGION",
    "ES_INDEX",
)

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class Config:
    access_key_id: str
    secret_access_key: str
    es_host: str
    es_region: str
    index_prefix: str
    session_token: str | None = None
    es_service: str = "es"
    request_timeout: float = 30.0
    log_level: str = "INFO"

    def __repr__(self) -> str:
        return (
            f"Config(es_host={self.es_host!r}, es_region={self.es_region!r}, "
            f"index_prefix={self.index_prefix!r}, es_service={self.es_service!r}, "
            f"request_timeout={self.request_timeout}, log_level={self.log_level!r})"
        )


def _load_file(path: str | None) -> dict:
    if not path:
        return {}
    with open(path, "r") as f:
        data = yaml.safe_load(f)
    return data if isinstance(data, dict) else {}


def load_config(environ=None) -> Config:
    """Build Config from environment variables (and an optional YAML file).

    Pass *environ* for testability; when None, os.environ is used.
    Raises ConfigurationError listing every missing required value.
    """
    env = os.environ if environ is None else environ
    file_values = _load_file(env.get("CONFIG_PATH"))

    def get(name: str) -> str:
        value = env.get(name)
        if value is None and name in _FILE_KEYS:
            value = file_values.get(_FILE_KEYS[name])
        return "" if value is None else str(value).strip()

    missing = [name for name in REQUIRED if not get(name)]
    if missing:
        raise ConfigurationError(missing)

    timeout = get("REQUEST_TIMEOUT")
    try:
        request_timeout = float(timeout) if timeout else Config.request_timeout
    except ValueError:
        raise ConfigurationError(
            invalid=[f"REQUEST_TIMEOUT (not a number: {timeout!r})"]
        ) from None

    log_level = (get("LOG_LEVEL") or Config.log_level).upper()
    if log_level not in LOG_LEVELS:
        raise ConfigurationError(invalid=[f"LOG_LEVEL (unknown level: {log_level!r})"])

    return Config(
        access_key_id=get("AWS_ACCESS_KEY_ID"),
        secret_access_key=get("AWS_SECRET_ACCESS_KEY"),
        session_token=get("AWS_SESSION_TOKEN") or None,
        es_host=get("ES_HOST"),
        es_region=get("ES_REGION"),
        index_prefix=get("ES_INDEX"),
        es_service=get("ES_SERVICE") or Config.es_service,
        request_timeout=request_timeout,
        log_level=log_level,
    )

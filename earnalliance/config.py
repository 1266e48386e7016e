import logging
from typing import Any, Dict

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .constants import (
    DEFAULT_BATCH_SIZE,
    DEFAULT_DSN,
    DEFAULT_FLUSH_COOLDOWN,
    DEFAULT_FLUSH_INTERVAL,
    DEFAULT_MAX_RETRY_ATTEMPTS,
    DEFAULT_REQUEST_TIMEOUT,
    ENV_CLIENT_ID,
    ENV_CLIENT_SECRET,
    ENV_DSN,
    ENV_GAME_ID,
    get_env_setting,
)
from .errors import ConfigurationError

logger = logging.getLogger(__name__)


class ClientOptions(BaseModel):
    """
    Validated options of an Earn Alliance client.

    Durations are in seconds. Build it with ``ClientOptions.create`` or
    ``ClientOptions.from_env`` to get a ``ConfigurationError`` instead of a
    pydantic ``ValidationError`` on bad input.
    """

    model_config = ConfigDict(frozen=True)

    client_id: str
    client_secret: str = Field(repr=False)
    game_id: str
    dsn: str = DEFAULT_DSN
    batch_size: int = Field(DEFAULT_BATCH_SIZE, ge=1)
    flush_interval: float = Field(DEFAULT_FLUSH_INTERVAL, ge=0)
    flush_cooldown: float = Field(DEFAULT_FLUSH_COOLDOWN, ge=0)
    max_retry_attempts: int = Field(DEFAULT_MAX_RETRY_ATTEMPTS, ge=1)
    request_timeout: float = Field(DEFAULT_REQUEST_TIMEOUT, gt=0)

    @field_validator("client_id", "client_secret", "game_id", mode="before")
    @classmethod
    def _required(cls, value: Any, info) -> Any:
        if value is None or (isinstance(value, str) and not value.strip()):
            raise ValueError(f"{info.field_name} cannot be empty")
        if isinstance(value, str):
            return value.strip()
        return value

    @field_validator("dsn", mode="before")
    @classmethod
    def _valid_dsn(cls, value: Any) -> Any:
        if value is None or (isinstance(value, str) and not value.strip()):
            raise ValueError("dsn cannot be empty")
        if not isinstance(value, str):
            return value

        dsn = value.strip()
        if dsn.endswith("/"):
            dsn = dsn[:-1]

        try:
            url = httpx.URL(dsn)
        except httpx.InvalidURL as e:
            raise ValueError(f"failed to parse dsn: {e}") from e

        if not url.is_absolute_url:
            raise ValueError(f"failed to parse dsn: {dsn!r} is not an absolute URL")

        return dsn

    @classmethod
    def create(cls, **values: Any) -> "ClientOptions":
        """
        Validate ``values`` and return the options.

        Raises:
            ConfigurationError: If a required option is missing or any option is invalid.
        """
        try:
            return cls(**values)
        except ValidationError as e:
            raise ConfigurationError(reason=_describe(e)) from e

    @classmethod
    def from_env(cls, **overrides: Any) -> "ClientOptions":
        """
        Read ALLIANCE_CLIENT_ID, ALLIANCE_CLIENT_SECRET, ALLIANCE_GAME_ID and
        ALLIANCE_DSN, then apply ``overrides`` on top.
        """
        values = env_defaults()
        values.update(overrides)
        return cls.create(**values)


def env_defaults() -> Dict[str, Any]:
    values: Dict[str, Any] = {
        "client_id": get_env_setting(ENV_CLIENT_ID),
        "client_secret": get_env_setting(ENV_CLIENT_SECRET),
        "game_id": get_env_setting(ENV_GAME_ID),
        "dsn": get_env_setting(ENV_DSN, DEFAULT_DSN),
    }
    logger.debug(
        "Loaded client defaults from environment (client id set: %s, game id set: %s)",
        values["client_id"] is not None,
        values["game_id"] is not None,
    )
    return values


def _describe(error: ValidationError) -> str:
    messages = []
    for item in error.errors():
        location = ".".join(str(part) for part in item.get("loc", ()))
        message = item.get("msg", "invalid value")
        # Custom validators are prefixed by pydantic
        message = message.replace("Value error, ", "")
        if item.get("type") == "missing":
            message = f"{location} cannot be empty"
        elif location and location not in message:
            message = f"{location}: {message}"
        messages.append(message)
    return "; ".join(messages)

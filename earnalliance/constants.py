# -*- coding: utf-8 -*-
import os
import platform
from typing import Optional

ROOT = os.path.dirname(os.path.abspath(__file__))

with open(os.path.join(ROOT, "VERSION")) as version_file:
    VERSION = version_file.read().strip()

USER_AGENT = f"earnalliance-python/{VERSION} (Python/{platform.python_version()})"

DEFAULT_DSN = "https://events.earnalliance.com/v2/custom-events"

DEFAULT_BATCH_SIZE = 100
# Seconds
DEFAULT_FLUSH_INTERVAL = 30.0
DEFAULT_FLUSH_COOLDOWN = 10.0
DEFAULT_REQUEST_TIMEOUT = 10.0
DEFAULT_MAX_RETRY_ATTEMPTS = 5

# Backoff bounds used between transport retries
RETRY_WAIT_MIN = 1.0
RETRY_WAIT_MAX = 30.0

ENV_CLIENT_ID = "ALLIANCE_CLIENT_ID"
ENV_CLIENT_SECRET = "ALLIANCE_CLIENT_SECRET"
ENV_GAME_ID = "ALLIANCE_GAME_ID"
ENV_DSN = "ALLIANCE_DSN"

HEADER_CLIENT_ID = "x-client-id"
HEADER_TIMESTAMP = "x-timestamp"
HEADER_SIGNATURE = "x-signature"

START_GAME_EVENT = "START_GAME"

SUCCESS_MESSAGE = "OK"


def get_env_setting(name: str, default: Optional[str] = None) -> Optional[str]:
    """
    Read a setting from the environment, ignoring surrounding whitespace.

    Args:
        name (str): The environment variable name.
        default (Optional[str]): Returned when the variable is unset or blank.

    Returns:
        Optional[str]: The stripped value, or the default.
    """
    value = os.getenv(name, "").strip()
    return value or default

import json
import logging
from typing import Any, Dict, Sequence

from .config import ClientOptions
from .constants import (
    HEADER_CLIENT_ID,
    HEADER_SIGNATURE,
    HEADER_TIMESTAMP,
    SUCCESS_MESSAGE,
    USER_AGENT,
)
from .errors import PayloadEncodingError, ServerRejectedError, UnexpectedResponseError
from .models import Event, IdentifierRecord
from .signing import sign, unix_millis
from .transport import ResilientSender

logger = logging.getLogger(__name__)


class PayloadSender:
    """
    Turns one drained batch into a signed request and checks the answer.
    """

    def __init__(self, options: ClientOptions, transport: ResilientSender):
        self.options = options
        self.transport = transport

    def encode(self, events: Sequence[Event], identifiers: Sequence[IdentifierRecord]) -> bytes:
        payload = {
            "gameId": self.options.game_id,
            "events": [e.to_dict() for e in events],
            "identifiers": [i.to_dict() for i in identifiers],
        }
        try:
            return json.dumps(payload, separators=(",", ":"), ensure_ascii=False).encode("utf-8")
        except (TypeError, ValueError) as e:
            raise PayloadEncodingError(reason=str(e)) from e

    def headers(self, body: bytes) -> Dict[str, str]:
        timestamp = unix_millis()
        signature = sign(self.options.client_id, self.options.client_secret, timestamp, body)

        headers = {
            "Accept": "application/json",
            "Content-Type": "application/json",
            "User-Agent": USER_AGENT,
        }
        headers[HEADER_CLIENT_ID] = self.options.client_id
        headers[HEADER_TIMESTAMP] = timestamp
        headers[HEADER_SIGNATURE] = signature
        return headers

    def send(self, events: Sequence[Event], identifiers: Sequence[IdentifierRecord]) -> None:
        """
        Send a batch to the collector.

        Raises:
            EarnAllianceError: Any failure while encoding, sending or when the
                server did not acknowledge the batch.
        """
        body = self.encode(events, identifiers)

        logger.info(
            "[Flush] -> Sending %s events and %s identifiers to %s",
            len(events),
            len(identifiers),
            self.options.dsn,
        )
        response = self.transport.post(self.options.dsn, body, self.headers(body))

        try:
            data = response.json()
        except ValueError as e:
            logger.error(f"Invalid JSON in response: {e}")
            raise UnexpectedResponseError(body=response.text) from e

        check_response(data)
        logger.info(f"Batch accepted, status: {response.status_code}")


def check_response(data: Any) -> None:
    """
    Accept ``{"message": "OK"}``; anything else is an error.
    """
    if not isinstance(data, dict):
        raise UnexpectedResponseError(body=data)

    if data.get("message") == SUCCESS_MESSAGE:
        return

    error = data.get("error")
    if isinstance(error, str):
        raise ServerRejectedError(server_message=error)

    raise UnexpectedResponseError(body=data)

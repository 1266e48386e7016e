import dataclasses
import logging
import uuid
from typing import Any, Dict, Optional

import httpx

from .config import ClientOptions, env_defaults
from .constants import START_GAME_EVENT
from .models import Event, IdentifierRecord, Identifiers, Traits, combine_traits
from .scheduler import BatchScheduler, ErrorHandler
from .sender import PayloadSender
from .transport import ResilientSender

logger = logging.getLogger(__name__)


class Client:
    """
    The gateway to the Earn Alliance API.

    Events and identifiers are queued in memory and sent in batches of
    ``batch_size`` records, either when the queue is full, when ``flush()`` is
    called (at most once per ``flush_cooldown``) or every ``flush_interval``.
    All methods but ``close()`` are thread safe.

    Errors of sends nobody waits on are passed to ``error_handler``, e.g.
    ``queue.Queue().put_nowait``; without one they are only logged.

    Usage:
        client = Client(ClientOptions.from_env())
        client.start_game("user-1")
        client.track("user-1", "KILL", value=1, traits={"weapon": "axe"})
        client.close()
    """

    def __init__(
        self,
        options: ClientOptions,
        http_client: Optional[httpx.Client] = None,
        error_handler: Optional[ErrorHandler] = None,
    ):
        self.options = options
        self._transport = ResilientSender(
            max_retry_attempts=options.max_retry_attempts,
            timeout=options.request_timeout,
            http_client=http_client,
        )
        self._sender = PayloadSender(options, self._transport)
        self._scheduler = BatchScheduler(
            deliver=self._sender.send,
            batch_size=options.batch_size,
            flush_interval=options.flush_interval,
            flush_cooldown=options.flush_cooldown,
            error_handler=error_handler,
        )
        self._scheduler.start()
        logger.info(f"Earn Alliance client created for game {options.game_id}")

    def track(
        self,
        user_id: str,
        event_name: str,
        value: Optional[int] = None,
        traits: Optional[Traits] = None,
    ) -> None:
        """
        Queue an event. Sends a batch right away if the queue is full.
        """
        self._scheduler.append_event(
            Event(
                user_id=user_id,
                event=event_name,
                value=value,
                traits=dict(traits) if traits is not None else None,
            )
        )

    def start_game(self, user_id: str) -> None:
        """
        Queue a ``START_GAME`` event without traits or value.
        """
        self._scheduler.append_event(Event(user_id=user_id, event=START_GAME_EVENT))

    def start_round(self, id: str = "", traits: Optional[Traits] = None) -> "Round":
        """
        Create a round grouping the events tracked through it.

        Args:
            id: The group ID of the round events, a fresh UUID when empty.
            traits: Default traits of the round events.
        """
        if not id:
            id = str(uuid.uuid4())
        return Round(self, id, traits)

    def set_identifiers(self, user_id: str, identifiers: Optional[Identifiers] = None) -> None:
        """
        Queue an identifier update and flush.

        The flush is subject to the cooldown, so the update may be sent a bit
        later. It is sent right away if the queue is full. ``identifiers`` is
        copied, later changes to it are not sent.
        """
        if identifiers is None:
            identifiers = Identifiers()
        else:
            identifiers = dataclasses.replace(identifiers)
        self._scheduler.append_identifier(
            IdentifierRecord(user_id=user_id, identifiers=identifiers)
        )
        self._scheduler.flush_reporting()

    def flush(self) -> None:
        """
        Send the queued records.

        When the cooldown has passed the batch is sent now and errors are
        raised. Otherwise the batch is sent once the cooldown is over, and a
        failure goes to the error handler.

        Raises:
            EarnAllianceError: The immediate send failed.
            ClientClosedError: The client was closed.
        """
        self._scheduler.flush()

    def close(self) -> None:
        """
        Stop background work. Queued records that were not sent are dropped.
        Not thread safe.
        """
        self._scheduler.close()
        self._transport.close()
        logger.info("Earn Alliance client closed")

    def __enter__(self) -> "Client":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    @property
    def scheduler(self) -> BatchScheduler:
        return self._scheduler


class Round:
    """
    Groups events: each event tracked through a round has its ``groupId`` set
    to the round ID and inherits the round traits.
    """

    def __init__(self, client: Client, id: str, traits: Optional[Traits] = None):
        self._client = client
        self.id = id
        self.traits: Traits = dict(traits) if traits else {}

    def track(
        self,
        user_id: str,
        event_name: str,
        value: Optional[int] = None,
        traits: Optional[Traits] = None,
    ) -> None:
        """
        Queue an event of this round. ``traits`` override the round traits
        with the same keys.
        """
        self._client.scheduler.append_event(
            Event(
                user_id=user_id,
                event=event_name,
                group_id=self.id,
                value=value,
                traits=combine_traits(self.traits, traits),
            )
        )

    def __repr__(self) -> str:
        return f"Round(id={self.id!r}, traits={self.traits!r})"


class ClientBuilder:
    """
    Fluent construction of a ``Client``.

    Starts from ALLIANCE_CLIENT_ID, ALLIANCE_CLIENT_SECRET, ALLIANCE_GAME_ID
    and ALLIANCE_DSN. Nothing is validated until ``build()``, which raises
    ``ConfigurationError`` listing every problem.
    """

    def __init__(self) -> None:
        self._values: Dict[str, Any] = env_defaults()
        self._http_client: Optional[httpx.Client] = None
        self._error_handler: Optional[ErrorHandler] = None

    def with_client_id(self, client_id: str) -> "ClientBuilder":
        self._values["client_id"] = client_id
        return self

    def with_client_secret(self, client_secret: str) -> "ClientBuilder":
        self._values["client_secret"] = client_secret
        return self

    def with_game_id(self, game_id: str) -> "ClientBuilder":
        self._values["game_id"] = game_id
        return self

    def with_dsn(self, dsn: str) -> "ClientBuilder":
        """
        The URL batches are posted to.
        Default: https://events.earnalliance.com/v2/custom-events
        """
        self._values["dsn"] = dsn
        return self

    def with_batch_size(self, batch_size: int) -> "ClientBuilder":
        """
        Queue length that triggers a send. Default: 100
        """
        self._values["batch_size"] = batch_size
        return self

    def with_flush_interval(self, seconds: float) -> "ClientBuilder":
        """
        Time between periodic flushes. Default: 30 seconds
        """
        self._values["flush_interval"] = seconds
        return self

    def with_flush_cooldown(self, seconds: float) -> "ClientBuilder":
        """
        Minimum time between sends started by ``flush()``. Default: 10 seconds
        """
        self._values["flush_cooldown"] = seconds
        return self

    def with_max_retry_attempts(self, attempts: int) -> "ClientBuilder":
        """
        Retries before a request is considered failed. Default: 5
        """
        self._values["max_retry_attempts"] = attempts
        return self

    def with_request_timeout(self, seconds: float) -> "ClientBuilder":
        self._values["request_timeout"] = seconds
        return self

    def with_error_handler(self, handler: ErrorHandler) -> "ClientBuilder":
        self._error_handler = handler
        return self

    def with_http_client(self, http_client: httpx.Client) -> "ClientBuilder":
        self._http_client = http_client
        return self

    def build(self) -> Client:
        """
        Validate the options and start the client.

        Raises:
            ConfigurationError: A required option is missing or an option is invalid.
        """
        options = ClientOptions.create(**self._values)
        return Client(options, http_client=self._http_client, error_handler=self._error_handler)

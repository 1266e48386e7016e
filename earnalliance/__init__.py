# -*- coding: utf-8 -*-

__author__ = """Earn Alliance"""

from .client import Client, ClientBuilder, Round
from .config import ClientOptions
from .constants import VERSION
from .errors import (
    ClientClosedError,
    ConfigurationError,
    EarnAllianceError,
    NetworkConnectionError,
    PayloadEncodingError,
    RequestBuildError,
    RequestFailedError,
    RequestTimeoutError,
    ResponseError,
    ServerError,
    ServerRejectedError,
    TooManyRequestsError,
    TransportError,
    UnexpectedResponseError,
)
from .models import (
    Event,
    Identifier,
    IdentifierRecord,
    Identifiers,
    Traits,
    combine_traits,
    identifier_from,
    remove_identifier,
)

__all__ = [
    "VERSION",
    "Client",
    "ClientBuilder",
    "ClientOptions",
    "Round",
    "Event",
    "Identifier",
    "IdentifierRecord",
    "Identifiers",
    "Traits",
    "combine_traits",
    "identifier_from",
    "remove_identifier",
    "EarnAllianceError",
    "ClientClosedError",
    "ConfigurationError",
    "PayloadEncodingError",
    "RequestBuildError",
    "RequestFailedError",
    "TransportError",
    "NetworkConnectionError",
    "RequestTimeoutError",
    "TooManyRequestsError",
    "ServerError",
    "ResponseError",
    "ServerRejectedError",
    "UnexpectedResponseError",
]

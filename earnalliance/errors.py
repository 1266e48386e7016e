from typing import Any, Optional


class EarnAllianceError(Exception):
    """
    Base class for every error raised by the Earn Alliance client.

    Args:
        message (str): The error message.
    """
    def __init__(self, message: str = "An error occurred in the Earn Alliance client."):
        self.message = message
        super().__init__(self.message)


class ConfigurationError(EarnAllianceError):
    """
    Error raised when the client options are missing or invalid.

    Args:
        reason (str): What is wrong with the options.
        message (str): The error message template.
    """
    def __init__(self, reason: str = "",
                 message: str = "Invalid Earn Alliance client configuration: {reason}"):
        self.reason = reason
        super().__init__(message.format(reason=reason))


class PayloadEncodingError(EarnAllianceError):
    """
    Error raised when a batch cannot be serialized to JSON, usually because
    a trait value is not JSON serializable.
    """
    def __init__(self, reason: str = "",
                 message: str = "Failed to marshal payload: {reason}"):
        self.reason = reason
        super().__init__(message.format(reason=reason))


class RequestBuildError(EarnAllianceError):
    """
    Error raised when the HTTP request cannot be created, e.g. the DSN uses
    a protocol the transport does not support.
    """
    def __init__(self, reason: str = "",
                 message: str = "Failed to create request: {reason}"):
        self.reason = reason
        super().__init__(message.format(reason=reason))


class TransportError(EarnAllianceError):
    """
    Base class for failures while talking to the collector. These are the
    errors the transport retries.
    """
    def __init__(self, message: str = "Failed to do request."):
        super().__init__(message)


class NetworkConnectionError(TransportError):
    """
    Error raised when the collector cannot be reached.
    """
    def __init__(self, reason: Optional[str] = None,
                 message: str = "Unable to connect to the Earn Alliance API."):
        if reason:
            message += f"\nDetails: {reason}"
        super().__init__(message)


class RequestTimeoutError(TransportError):
    """
    Error raised when a request to the collector times out.
    """
    def __init__(self, message: str = "The request to the Earn Alliance API timed out."):
        super().__init__(message)


class TooManyRequestsError(TransportError):
    """
    Error raised when the collector rate limits the client.
    """
    def __init__(self, reason: Optional[str] = None,
                 message: str = "Too many requests sent to the Earn Alliance API."):
        if reason:
            message += f"\nDetails: {reason}"
        super().__init__(message)


class ServerError(TransportError):
    """
    Error raised when the collector answers with a 5xx status.

    Args:
        status_code (Optional[int]): The HTTP status returned.
        reason (Optional[str]): The response body, if any.
    """
    def __init__(self, status_code: Optional[int] = None, reason: Optional[str] = None,
                 message: str = "The Earn Alliance API is not available right now{status}."):
        self.status_code = status_code
        status = f" (HTTP {status_code})" if status_code else ""
        message = message.format(status=status)
        if reason:
            message += f"\nDetails: {reason}"
        super().__init__(message)


class ResponseError(EarnAllianceError):
    """
    Base class for responses that did not acknowledge the batch.
    """


class ServerRejectedError(ResponseError):
    """
    Error raised when the collector answers with an ``error`` field.

    Args:
        server_message (str): The error reported by the server.
    """
    def __init__(self, server_message: str,
                 message: str = "Server returned error: {server_message}"):
        self.server_message = server_message
        super().__init__(message.format(server_message=server_message))


class UnexpectedResponseError(ResponseError):
    """
    Error raised when the response body cannot be decoded or has neither a
    ``message`` of ``OK`` nor an ``error`` field.

    Args:
        body (Any): The decoded body, or the raw text when decoding failed.
    """
    def __init__(self, body: Any = None,
                 message: str = "Unexpected response from server: {body!r}"):
        self.body = body
        super().__init__(message.format(body=body))


class RequestFailedError(EarnAllianceError):
    """
    Error raised when the HTTP client fails for a reason that retrying will
    not fix, such as an undecodable response body or a redirect loop.
    """
    def __init__(self, reason: str = "",
                 message: str = "Failed to do request: {reason}"):
        self.reason = reason
        super().__init__(message.format(reason=reason))


class ClientClosedError(EarnAllianceError):
    """
    Error raised when records are sent after the client was closed.
    """
    def __init__(self, message: str = "The Earn Alliance client is closed."):
        super().__init__(message)

import hashlib
import hmac
import time


def sign(client_id: str, client_secret: str, timestamp: str, body: bytes) -> str:
    """
    Compute the request signature expected by the Earn Alliance API.

    The message is ``client_id + timestamp + body`` keyed with the client
    secret using HMAC-SHA256.

    Args:
        client_id (str): The client ID, also sent in ``x-client-id``.
        client_secret (str): The shared secret.
        timestamp (str): Unix milliseconds, also sent in ``x-timestamp``.
        body (bytes): The exact request body.

    Returns:
        str: The lowercase hex digest.
    """
    message = client_id.encode("utf-8") + timestamp.encode("utf-8") + body
    digest = hmac.new(client_secret.encode("utf-8"), message, hashlib.sha256)
    return digest.hexdigest()


def unix_millis() -> str:
    return str(int(time.time() * 1000))

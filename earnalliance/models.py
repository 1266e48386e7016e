"""
Records queued by the client and their wire representation.
"""
from dataclasses import dataclass, field, fields
from datetime import datetime
from typing import Any, Dict, Optional

Traits = Dict[str, Any]


class Identifier(str):
    """
    A user identifier sent to Earn Alliance.

    An empty identifier is serialized as ``null``, which tells the server to
    remove that identifier from the user. Leave the field of ``Identifiers``
    as ``None`` to not touch it at all.
    """

    def to_json(self) -> Optional[str]:
        if self == "":
            return None
        return str(self)


def identifier_from(value: str) -> Identifier:
    return Identifier(value)


def remove_identifier() -> Identifier:
    return Identifier("")


# Python attribute -> JSON key
IDENTIFIER_FIELDS = {
    "apple_id": "appleId",
    "discord_id": "discordId",
    "email": "email",
    "epic_games_id": "epicGamesId",
    "steam_id": "steamId",
    "twitter_id": "twitterId",
    "wallet_address": "walletAddress",
}


@dataclass
class Identifiers:
    """
    The identifiers currently supported by Earn Alliance.

    Each field is one of three states:
      * ``None``: not sent, the server keeps its current value.
      * ``remove_identifier()`` (or ``""``): sent as ``null``, the server removes it.
      * any other string: sent as is.
    """
    apple_id: Optional[Identifier] = None
    discord_id: Optional[Identifier] = None
    email: Optional[Identifier] = None
    epic_games_id: Optional[Identifier] = None
    steam_id: Optional[Identifier] = None
    twitter_id: Optional[Identifier] = None
    wallet_address: Optional[Identifier] = None

    def __post_init__(self) -> None:
        for f in fields(self):
            value = getattr(self, f.name)
            if value is not None and not isinstance(value, Identifier):
                setattr(self, f.name, Identifier(value))

    def to_dict(self) -> Dict[str, Optional[str]]:
        data: Dict[str, Optional[str]] = {}
        for attr, key in IDENTIFIER_FIELDS.items():
            value = getattr(self, attr)
            if value is None:
                continue
            data[key] = value.to_json()
        return data


@dataclass(frozen=True)
class Event:
    """
    A single tracked event. Created by ``Client.track``, ``Client.start_game``
    and ``Round.track``; never changed once queued.
    """
    user_id: str
    event: str
    time: str = field(default_factory=lambda: now_timestamp())
    group_id: str = ""
    traits: Optional[Traits] = None
    value: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "userId": self.user_id,
            "time": self.time,
            "event": self.event,
            "groupId": self.group_id,
        }
        # Empty traits are dropped like absent ones
        if self.traits:
            data["traits"] = self.traits
        if self.value is not None:
            data["value"] = self.value
        return data


@dataclass(frozen=True)
class IdentifierRecord:
    """
    An identifier update for one user.
    """
    user_id: str
    identifiers: Identifiers = field(default_factory=Identifiers)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"userId": self.user_id}
        data.update(self.identifiers.to_dict())
        return data


def now_timestamp() -> str:
    """
    Current local time as an RFC 3339 string with seconds precision.
    """
    return datetime.now().astimezone().isoformat(timespec="seconds")


def combine_traits(a: Optional[Traits], b: Optional[Traits]) -> Traits:
    """
    Merge two trait mappings into a new one. Keys of ``b`` win over ``a``.
    """
    combined: Traits = {}
    if a:
        combined.update(a)
    if b:
        combined.update(b)
    return combined

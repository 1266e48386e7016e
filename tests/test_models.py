import json
from datetime import datetime

import pytest

from earnalliance.models import (
    Event,
    Identifier,
    IdentifierRecord,
    Identifiers,
    combine_traits,
    identifier_from,
    now_timestamp,
    remove_identifier,
)


def dumps(data):
    return json.dumps(data, separators=(",", ":"))


@pytest.mark.parametrize(
    "identifiers, expected",
    [
        (Identifiers(), "{}"),
        (Identifiers(apple_id=None), "{}"),
        (Identifiers(apple_id=identifier_from("")), '{"appleId":null}'),
        (Identifiers(apple_id=identifier_from("normal")), '{"appleId":"normal"}'),
        (
            Identifiers(apple_id=identifier_from(""), twitter_id=identifier_from("")),
            '{"appleId":null,"twitterId":null}',
        ),
        (
            Identifiers(apple_id=identifier_from("a"), twitter_id=identifier_from("b")),
            '{"appleId":"a","twitterId":"b"}',
        ),
        (Identifiers(discord_id=remove_identifier()), '{"discordId":null}'),
    ],
)
def test_identifiers_json(identifiers, expected):
    assert dumps(identifiers.to_dict()) == expected


def test_identifiers_wire_names():
    identifiers = Identifiers(
        apple_id="1",
        discord_id="2",
        email="3",
        epic_games_id="4",
        steam_id="5",
        twitter_id="6",
        wallet_address="7",
    )
    assert identifiers.to_dict() == {
        "appleId": "1",
        "discordId": "2",
        "email": "3",
        "epicGamesId": "4",
        "steamId": "5",
        "twitterId": "6",
        "walletAddress": "7",
    }


def test_plain_strings_become_identifiers():
    identifiers = Identifiers(email="", steam_id="s")
    assert isinstance(identifiers.email, Identifier)
    assert identifiers.to_dict() == {"email": None, "steamId": "s"}


def test_identifier_to_json():
    assert Identifier("").to_json() is None
    assert Identifier("x").to_json() == "x"
    assert remove_identifier() == ""


def test_identifier_escapes_quotes():
    identifiers = Identifiers(email='a"b')
    assert dumps(identifiers.to_dict()) == '{"email":"a\\"b"}'


def test_identifier_record_to_dict():
    record = IdentifierRecord("asd", Identifiers(wallet_address="yoyo"))
    assert record.to_dict() == {"userId": "asd", "walletAddress": "yoyo"}


def test_identifier_record_without_identifiers():
    assert IdentifierRecord("asd").to_dict() == {"userId": "asd"}


@pytest.mark.parametrize(
    "a, b, expected",
    [
        (None, None, {}),
        (None, {}, {}),
        ({}, None, {}),
        ({}, {}, {}),
        ({"a": "a"}, {}, {"a": "a"}),
        ({}, {"b": "b"}, {"b": "b"}),
        ({"a1": "a", "a2": "a"}, None, {"a1": "a", "a2": "a"}),
        ({"c": "c"}, {"c": "d"}, {"c": "d"}),
        ({"c": 1}, {"c": 2, "d": 3}, {"c": 2, "d": 3}),
    ],
)
def test_combine_traits(a, b, expected):
    assert combine_traits(a, b) == expected


def test_combine_traits_does_not_mutate():
    a = {"map": "wasteland"}
    b = {"map": "utopia"}
    combined = combine_traits(a, b)
    combined["extra"] = True
    assert a == {"map": "wasteland"}
    assert b == {"map": "utopia"}


class TestEvent:
    def test_minimal_event(self):
        event = Event(user_id="asd", event="KILL", time="2024-01-01T00:00:00+00:00")
        assert event.to_dict() == {
            "userId": "asd",
            "time": "2024-01-01T00:00:00+00:00",
            "event": "KILL",
            "groupId": "",
        }

    def test_traits_and_value(self):
        event = Event(user_id="asd", event="KILL", group_id="g", traits={"k": "v"}, value=3)
        data = event.to_dict()
        assert data["groupId"] == "g"
        assert data["traits"] == {"k": "v"}
        assert data["value"] == 3

    def test_zero_value_is_sent(self):
        assert Event(user_id="asd", event="KILL", value=0).to_dict()["value"] == 0

    def test_empty_traits_are_omitted(self):
        assert "traits" not in Event(user_id="asd", event="KILL", traits={}).to_dict()

    def test_event_is_frozen(self):
        event = Event(user_id="asd", event="KILL")
        with pytest.raises(Exception):
            event.user_id = "other"


def test_now_timestamp_is_rfc3339():
    parsed = datetime.fromisoformat(now_timestamp())
    assert parsed.tzinfo is not None
    assert parsed.microsecond == 0

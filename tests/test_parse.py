import pytest

from mbot.commands.parse import (
    is_self_mention,
    parse_prefixed_command,
    split_command_args,
)


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("m!ping", ("ping", "")),
        ("m!PING", ("ping", "")),
        ("m!nick  New Name ", ("nick", "New Name")),
        ("m!nick\tname", ("nick", "name")),
        ("m!help\nngg", ("help", "ngg")),
        ("m!say a\nb", ("say", "a\nb")),
        ("m!", (None, "m!")),
        ("m! ping", (None, "m! ping")),
        ("ping", (None, "ping")),
    ],
)
def test_parse_prefixed_command(text: str, expected: tuple) -> None:
    assert parse_prefixed_command(text, "m!") == expected


def test_parse_respects_custom_prefix() -> None:
    assert parse_prefixed_command("??ping", "??") == ("ping", "")
    assert parse_prefixed_command("m!ping", "??") == (None, "m!ping")


def test_split_command_args() -> None:
    assert split_command_args("") == ()
    assert split_command_args("a b") == ("a", "b")
    assert split_command_args('a "b c"') == ("a", "b c")
    assert split_command_args('a "b') == ("a", '"b')


def test_is_self_mention() -> None:
    assert is_self_mention("<@42>", 42)
    assert is_self_mention("<@!42>", 42)
    assert not is_self_mention("<@43>", 42)
    assert not is_self_mention(" <@42>", 42)
    assert not is_self_mention("<@42>", None)

from __future__ import annotations

import shlex


def is_self_mention(text: str, bot_id: int | None) -> bool:
    if bot_id is None:
        return False
    return text in (f"<@{bot_id}>", f"<@!{bot_id}>")


def parse_prefixed_command(text: str, prefix: str) -> tuple[str | None, str]:
    """Split ``<prefix><name> <args>`` into the lowered name and the raw args."""
    if not text.startswith(prefix):
        return None, text
    body = text[len(prefix) :]
    if not body or body[0].isspace():
        return None, text
    lines = body.splitlines()
    first_line = lines[0]
    token, *rest = first_line.split(maxsplit=1)
    args_text = rest[0].strip() if rest else ""
    if len(lines) > 1:
        tail = "\n".join(lines[1:])
        args_text = f"{args_text}\n{tail}" if args_text else tail
    return token.lower(), args_text


def split_command_args(text: str) -> tuple[str, ...]:
    if not text.strip():
        return ()
    try:
        return tuple(shlex.split(text))
    except ValueError:
        return tuple(text.split())

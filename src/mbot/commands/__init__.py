from .dispatch import Dispatcher, ErrorHook, format_dispatch_error, make_error_reporter
from .registry import (
    Command,
    CommandContext,
    CommandRegistry,
    DuplicateCommandError,
    Restriction,
    RestrictionContext,
    guild_only,
    owners_only,
)

__all__ = [
    "Command",
    "CommandContext",
    "CommandRegistry",
    "Dispatcher",
    "DuplicateCommandError",
    "ErrorHook",
    "Restriction",
    "RestrictionContext",
    "format_dispatch_error",
    "guild_only",
    "owners_only",
    "make_error_reporter",
]

"""Splits raw command-line tokens into a target, a command phrase and flags."""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from .errors import InputError

FLAG_PREFIX = '-'
BOOLEAN_VALUE = 'true'


@dataclass
class ParsedCommand:
    """A command phrase plus its flag -> value mapping.

    Flag names keep their leading dashes (``-id``, ``--name``).
    """
    command: str = ''
    parameters: Dict[str, str] = field(default_factory=dict)

    def has_flag(self, name: str) -> bool:
        return name in self.parameters

    def to_tokens(self) -> List[str]:
        """Flatten back into command-line tokens (command words, then flags)."""
        tokens = self.command.split()
        for flag, value in self.parameters.items():
            tokens.append(flag)
            if value != BOOLEAN_VALUE:
                tokens.append(value)
        return tokens


def is_flag(token: str) -> bool:
    return token.startswith(FLAG_PREFIX)


def tokenize_command(tokens: Sequence[str]) -> ParsedCommand:
    """Classify tokens into command words and flags.

    A flag followed by another flag (or by nothing) gets the value "true".
    A flag followed by a plain token takes that token as its value.
    ``-flag=value`` carries its value inline.
    Plain tokens before the first flag form the command phrase.
    """
    parsed = ParsedCommand()
    words = []
    pending = None
    seen_flag = False
    for token in tokens:
        if is_flag(token):
            seen_flag = True
            if pending is not None:
                parsed.parameters[pending] = BOOLEAN_VALUE
                pending = None
            name, sep, value = token.partition('=')
            if sep:
                parsed.parameters[name] = value
            else:
                pending = token
        elif pending is None:
            # stray words after the flags begin are ignored
            if not seen_flag:
                words.append(token)
        else:
            parsed.parameters[pending] = token
            pending = None
    if pending is not None:
        parsed.parameters[pending] = BOOLEAN_VALUE
    parsed.command = ' '.join(words).strip()
    return parsed


def parse(args: Sequence[str], default_target: Optional[str] = None) -> Tuple[str, ParsedCommand]:
    """Extract the target and the command from the positional arguments.

    When ``default_target`` is set and the first argument differs from it, the
    default remains the target and the first argument is read as part of the
    command. This mirrors the long-standing behavior of the CF plugin even
    though it makes a mistyped target look like an unknown command.

    Args:
        args: Tokens following the program name
        default_target: Target configured in the environment, if any

    Returns:
        Tuple of (target, ParsedCommand)

    Raises:
        InputError: If no target or no command can be extracted
    """
    if not args:
        raise InputError(
            "Your request was denied.\n"
            "The format of your request is incorrect: a target and a command are required."
        )

    target = default_target or ''
    command_start = 1
    if not target:
        target = args[0]
    elif target != args[0]:
        command_start = 0

    parsed = tokenize_command(args[command_start:])
    logging.debug(f"Parsed target={target!r} command={parsed.command!r} parameters={sorted(parsed.parameters)}")
    if not parsed.command:
        raise InputError(
            f"Your request was denied.\n"
            f"No command was given for target '{target}'."
        )
    return target, parsed

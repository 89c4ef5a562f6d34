"""Shell variables and the state shared by the command loop."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Mapping, Optional, Union

EntrySource = Union[Mapping[str, str], Iterable[tuple[str, str]], None]


def is_valid_key_start(char: str) -> bool:
    """Return True if ``char`` may start a variable name (ASCII letter or '_')."""
    return char == "_" or (len(char) == 1 and char.isascii() and char.isalpha())


def _is_key_char(char: str) -> bool:
    return char == "_" or (char.isascii() and char.isalnum())


def is_valid_key(text: str, stop: Optional[str] = None) -> bool:
    """Check that ``text`` (up to the first ``stop`` character) is a valid name.

    A valid name starts with a letter or underscore and continues with
    letters, digits or underscores.
    """
    name = text if stop is None else text.partition(stop)[0]
    if not name or not is_valid_key_start(name[0]):
        return False
    return all(_is_key_char(char) for char in name[1:])


class Environment:
    """An ordered set of shell variables.

    New variables are appended at the end; replacing a value keeps the
    variable where it was.
    """

    def __init__(self, entries: EntrySource = None) -> None:
        self._vars: dict[str, str] = dict(entries) if entries is not None else {}

    @classmethod
    def from_strings(cls, envp: Iterable[str]) -> "Environment":
        """Build an environment from ``KEY=VALUE`` strings.

        Each entry is split on '=' with empty pieces dropped: the first
        piece is the name and the second, if any, the value.
        """
        env = cls()
        for entry in envp:
            pieces = [piece for piece in entry.split("=") if piece]
            if not pieces:
                continue
            env.set(pieces[0], pieces[1] if len(pieces) > 1 else "")
        return env

    def get(self, key: str) -> Optional[str]:
        """Return the value of ``key``, or None when it is not set."""
        return self._vars.get(key)

    def set(self, key: str, value: str) -> None:
        """Set ``key`` to ``value``, replacing any previous value in place."""
        self._vars[key] = value

    def unset(self, key: str) -> None:
        """Remove ``key``; nothing happens when it is not set."""
        self._vars.pop(key, None)

    def items(self) -> list[tuple[str, str]]:
        """Return the variables as ``(key, value)`` pairs in order."""
        return list(self._vars.items())

    def to_dict(self) -> dict[str, str]:
        """Return a copy of the variables as a plain dict."""
        return dict(self._vars)

    def __contains__(self, key: object) -> bool:
        return key in self._vars

    def __len__(self) -> int:
        return len(self._vars)

    def __repr__(self) -> str:
        return f"Environment({self._vars!r})"


@dataclass
class ShellState:
    """Mutable state of a running shell: its variables and last exit status."""

    env: Environment = field(default_factory=Environment)
    last_status: int = 0
"""Splitting a command line into pipeline segments and expanded tokens."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Optional, Protocol

_QUOTES = "'\""
_REDIRECT_CHARS = "<>"
_REDIRECT_OPERATORS = frozenset({"<", "<<", ">", ">>"})


class _Lookup(Protocol):
    def get(self, key: str) -> Optional[str]: ...


class UnclosedQuoteError(ValueError):
    """Raised when a word holds a quote that is never closed."""

    def __init__(self, word: str) -> None:
        super().__init__(f"unclosed quote in {word!r}")
        self.word = word


class TokenKind(enum.IntEnum):
    """What a token is: a plain word, a redirection operator or a bad operator."""

    INVALID_REDIRECT = -1
    WORD = 0
    REDIRECT = 1


@dataclass(frozen=True)
class Token:
    """One expanded token and its kind."""

    text: str
    kind: TokenKind = TokenKind.WORD


@dataclass
class Command:
    """One segment of a pipeline."""

    tokens: list[Token] = field(default_factory=list)
    pipe_next: bool = False
    standalone: bool = True

    @property
    def name(self) -> Optional[str]:
        """The first token's text, or None for an empty segment."""
        return self.tokens[0].text if self.tokens else None

    @property
    def args(self) -> list[str]:
        """The words before the first redirection, command name included."""
        words = []
        for token in self.tokens:
            if token.kind is not TokenKind.WORD:
                break
            words.append(token.text)
        return words


def split_pipeline(line: str) -> list[str]:
    """Split ``line`` at each '|' that is not inside quotes.

    Any quote character, single or double, toggles the quoted state.
    """
    segments = []
    quoted = False
    start = 0
    for pos, char in enumerate(line):
        if char in _QUOTES:
            quoted = not quoted
        elif char == "|" and not quoted:
            segments.append(line[start:pos])
            start = pos + 1
    segments.append(line[start:])
    return segments


def _token_end(segment: str, start: int) -> int:
    if segment[start] in _REDIRECT_CHARS:
        end = start
        while end < len(segment) and segment[end] in _REDIRECT_CHARS:
            end += 1
        return end
    quote = segment[start] if segment[start] in _QUOTES else None
    for pos in range(start + 1, len(segment)):
        char = segment[pos]
        if quote is None:
            if char == " " or char in _REDIRECT_CHARS:
                return pos
            if char in _QUOTES:
                quote = char
        elif char == quote:
            quote = None
    return len(segment)


def split_tokens(segment: str) -> list[str]:
    """Split one pipeline segment into raw tokens.

    Tokens are separated by unquoted spaces; a run of '<' and '>' always
    forms a token of its own.
    """
    tokens = []
    pos = 0
    while pos < len(segment):
        if segment[pos] == " ":
            pos += 1
            continue
        end = _token_end(segment, pos)
        tokens.append(segment[pos:end])
        pos = end
    return tokens


def classify_redirect(text: str) -> TokenKind:
    """Classify a raw token as a word, a redirection or a bad redirection."""
    if not text or text[0] not in _REDIRECT_CHARS:
        return TokenKind.WORD
    if text in _REDIRECT_OPERATORS:
        return TokenKind.REDIRECT
    return TokenKind.INVALID_REDIRECT


def _is_key_char(char: str) -> bool:
    return char == "_" or (char.isascii() and char.isalnum())


def _expand_dollar(text: str, pos: int, env: _Lookup, last_status: int) -> tuple[str, int]:
    """Expand the '$' at ``pos``; return the result and the index after it."""
    following = text[pos + 1 : pos + 2]
    if following == "?":
        return str(last_status), pos + 2
    if following in ("", '"'):
        return "$", pos + 1
    end = pos + 1
    while end < len(text) and _is_key_char(text[end]):
        end += 1
    value = env.get(text[pos + 1 : end])
    return (value if value is not None else ""), end


def _expand_dollars(text: str, env: _Lookup, last_status: int) -> str:
    parts = []
    pos = 0
    while pos < len(text):
        dollar = text.find("$", pos)
        if dollar < 0:
            parts.append(text[pos:])
            break
        parts.append(text[pos:dollar])
        value, pos = _expand_dollar(text, dollar, env, last_status)
        parts.append(value)
    return "".join(parts)


def expand_word(word: str, env: _Lookup, last_status: int = 0) -> str:
    """Remove quotes from ``word`` and expand its variables.

    Single quotes keep their contents literally; inside double quotes and
    outside quotes ``$NAME`` and ``$?`` are expanded. Raises
    UnclosedQuoteError when a quote is not closed.
    """
    parts = []
    pos = 0
    while pos < len(word):
        char = word[pos]
        if char in _QUOTES:
            close = word.find(char, pos + 1)
            if close < 0:
                raise UnclosedQuoteError(word)
            inner = word[pos + 1 : close]
            parts.append(inner if char == "'" else _expand_dollars(inner, env, last_status))
            pos = close + 1
        elif char == "$":
            value, pos = _expand_dollar(word, pos, env, last_status)
            parts.append(value)
        else:
            parts.append(char)
            pos += 1
    return "".join(parts)


def parse(line: str, env: _Lookup, last_status: int = 0) -> list[Command]:
    """Parse a command line into a list of pipeline commands."""
    segments = split_pipeline(line)
    last = len(segments) - 1
    commands = []
    for index, segment in enumerate(segments):
        tokens = [
            Token(expand_word(raw, env, last_status), classify_redirect(raw))
            for raw in split_tokens(segment)
        ]
        commands.append(Command(tokens, pipe_next=index < last, standalone=last == 0))
    return commands
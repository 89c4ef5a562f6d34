"""Checking and applying the '<', '<<', '>' and '>>' redirections of a command."""

from __future__ import annotations

import os
import tempfile
from contextlib import ExitStack, contextmanager
from dataclasses import dataclass
from typing import BinaryIO, Callable, Iterator, Optional, Sequence

from minish.lexer import Token, TokenKind

SYNTAX_ERROR_STATUS = 258
FILE_ERROR_STATUS = 1

ReadLine = Callable[[str], Optional[str]]


class RedirectError(Exception):
    """A redirection that cannot be applied, with the exit status it sets."""

    def __init__(self, message: str, status: int) -> None:
        super().__init__(message)
        self.message = message
        self.status = status


def _syntax_error(text: str) -> RedirectError:
    return RedirectError(
        f"minishell: syntax error near unexpected token `{text}'", SYNTAX_ERROR_STATUS
    )


def _file_error(path: str) -> RedirectError:
    return RedirectError(f"minishell: {path}: No such file or directory", FILE_ERROR_STATUS)


@dataclass
class Redirections:
    """The last input and the last output redirection of a command."""

    input_op: Optional[str] = None
    input_target: Optional[str] = None
    output_op: Optional[str] = None
    output_target: Optional[str] = None

    @property
    def has_input(self) -> bool:
        return self.input_op is not None

    @property
    def has_output(self) -> bool:
        return self.output_op is not None


def check_tokens(tokens: Sequence[Token]) -> None:
    """Raise RedirectError for the first malformed redirection operator."""
    for token in tokens:
        if token.kind is TokenKind.INVALID_REDIRECT:
            raise _syntax_error(token.text)


def _target(tokens: Sequence[Token], index: int) -> str:
    if index + 1 >= len(tokens):
        raise _syntax_error("")
    target = tokens[index + 1]
    if target.kind is TokenKind.REDIRECT:
        raise _syntax_error(target.text)
    return target.text


def _probe(path: str, flags: int) -> None:
    try:
        fd = os.open(path, flags, 0o644)
    except OSError:
        raise _file_error(path) from None
    os.close(fd)


def collect_redirections(tokens: Sequence[Token]) -> Redirections:
    """Check every redirection of a command and keep the last of each side.

    Input files must be readable; output files are created (and truncated
    for '>') while checking. Raises RedirectError on the first failure.
    """
    check_tokens(tokens)
    found = Redirections()
    for index, token in enumerate(tokens):
        if token.kind is not TokenKind.REDIRECT:
            continue
        target = _target(tokens, index)
        if token.text.startswith("<"):
            if token.text == "<":
                _probe(target, os.O_RDONLY)
            found.input_op, found.input_target = token.text, target
        else:
            mode = os.O_TRUNC if token.text == ">" else os.O_APPEND
            _probe(target, os.O_WRONLY | os.O_CREAT | mode)
            found.output_op, found.output_target = token.text, target
    return found


def _read_line(prompt: str) -> Optional[str]:
    try:
        return input(prompt)
    except EOFError:
        return None


def read_heredoc(delimiter: str, read_line: ReadLine = _read_line) -> str:
    """Read lines until one equals ``delimiter`` (or input ends); return them."""
    lines = []
    while True:
        line = read_line("> ")
        if line is None or line == delimiter:
            break
        lines.append(line + "\n")
    return "".join(lines)


def _open(path: str, mode: str) -> BinaryIO:
    try:
        return open(path, mode)  # noqa: SIM115 - closed by the caller's ExitStack
    except OSError:
        raise _file_error(path) from None


@contextmanager
def open_streams(
    redirections: Redirections, read_line: ReadLine = _read_line
) -> Iterator[tuple[Optional[BinaryIO], Optional[BinaryIO]]]:
    """Open the files a command reads from and writes to.

    Yields ``(stdin, stdout)`` as binary files, either of which is None
    when that side is not redirected. A here-document is read first and
    served from a temporary file. Everything is closed on exit.
    """
    with ExitStack() as stack:
        stdin: Optional[BinaryIO] = None
        stdout: Optional[BinaryIO] = None
        target = redirections.input_target or ""
        if redirections.input_op == "<":
            stdin = stack.enter_context(_open(target, "rb"))
        elif redirections.input_op == "<<":
            body = read_heredoc(target, read_line)
            stdin = stack.enter_context(tempfile.TemporaryFile())
            stdin.write(body.encode())
            stdin.seek(0)
        target = redirections.output_target or ""
        if redirections.output_op == ">":
            stdout = stack.enter_context(_open(target, "wb"))
        elif redirections.output_op == ">>":
            stdout = stack.enter_context(_open(target, "ab"))
        yield stdin, stdout
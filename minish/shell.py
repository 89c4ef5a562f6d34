"""The interactive command loop."""

from __future__ import annotations

import os
import random
import signal
import sys
from contextlib import redirect_stdout
from typing import Callable, Mapping, Optional, Sequence, TextIO

from minish.builtins import ShellExit
from minish.environment import Environment, ShellState
from minish.executor import execute
from minish.lexer import UnclosedQuoteError, parse

SKY = "\001\033[1;36m\002"
WHITE = "\001\033[0m\002"
QUOTE_ERROR_STATUS = 258

ReadLine = Callable[[str], Optional[str]]

_CAT = (
    "\t\t───▄▀▀▀▄▄▄▄▄▄▄▀▀▀▄───\n"
    "\t\t───█▒▒░░░░░░░░░▒▒█─── minishell\n"
    "\t\t────█░░█░░░░░█░░█────\n"
    "\t\t─▄▄──█░░░▀█▀░░░█──▄▄─\n"
    "\t\t█░░█─▀▄░░░░░░░▄▀─█░░█"
)
_BEAR = (
    "\t\t──────▄▀▄─────▄▀▄\tminishell\n"
    "\t\t─────▄█░░▀▀▀▀▀░░█▄\n"
    "\t\t─▄▄──█░░░░░░░░░░░█──▄▄\n"
    "\t\t█▄▄█─█░░▀░░┬░░▀░░█─█▄▄█"
)


def is_blank(line: str) -> bool:
    """Return True if ``line`` holds only spaces and control whitespace."""
    return all(char == " " or "\t" <= char <= "\r" for char in line)


def banner(seed: Optional[int] = None) -> str:
    """Return the start-up picture; ``seed`` picks which one."""
    if seed is None:
        seed = random.randrange(1 << 30)
    art = _CAT if seed % 3 else _BEAR
    return f"{SKY}{art}{WHITE}\n"


def _cwd() -> str:
    try:
        return os.getcwd()
    except OSError:
        return ""


def _read_line(prompt: str) -> Optional[str]:
    try:
        return input(prompt)
    except EOFError:
        return None


class Shell:
    """A shell session: its variables, output stream and line reader."""

    def __init__(
        self,
        environ: Optional[Mapping[str, str]] = None,
        out: Optional[TextIO] = None,
        read_line: Optional[ReadLine] = None,
    ) -> None:
        source = os.environ if environ is None else environ
        env = Environment.from_strings(f"{key}={value}" for key, value in source.items())
        self.state = ShellState(env)
        self.out = out if out is not None else sys.stdout
        self.read_line = read_line if read_line is not None else _read_line

    def prompt(self) -> str:
        """The prompt: the shell's name and the current directory."""
        return f"{SKY}minish:{_cwd()} $ {WHITE}"

    def run_line(self, line: str) -> int:
        """Parse and run one line; return the resulting status.

        Blank lines leave the status as it was. ShellExit propagates when
        the line asks the shell to stop.
        """
        if is_blank(line):
            return self.state.last_status
        with redirect_stdout(self.out):
            try:
                commands = parse(line, self.state.env, self.state.last_status)
            except UnclosedQuoteError:
                self.out.write("minishell: syntax error: unclosed quote\n")
                self.state.last_status = QUOTE_ERROR_STATUS
                return QUOTE_ERROR_STATUS
            return execute(commands, self.state, self.read_line)

    def loop(self) -> int:
        """Read and run lines until input ends or ``exit``; return the exit code."""
        self.out.write(banner())
        while True:
            try:
                line = self.read_line(self.prompt())
                if line is None:
                    self.out.write(f"\x1b[1A\x1b[{len(_cwd()) + 10}Cexit\n")
                    self.out.flush()
                    return 0
                self.run_line(line)
            except ShellExit as stop:
                self.out.flush()
                return stop.status
            except KeyboardInterrupt:
                self.out.write("\n")


def _ignore(signum: int, frame: object) -> None:
    """Keep the shell alive on a quit signal; children still get the default."""


def _install_signals() -> None:
    if hasattr(signal, "SIGQUIT"):
        signal.signal(signal.SIGQUIT, _ignore)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Start an interactive shell on the process's environment."""
    _install_signals()
    try:
        import readline  # noqa: F401  (line editing and history for input())
    except ImportError:
        pass
    return Shell().loop()


if __name__ == "__main__":
    raise SystemExit(main())
"""Commands the shell runs itself: echo, cd, pwd, export, unset, env and exit."""

from __future__ import annotations

import os
import re
from typing import Callable, Optional, Sequence, TextIO

from minish.environment import Environment, is_valid_key, is_valid_key_start

_ATOI = re.compile(r"[ \t\n\r\f\v]*([+-]?)([0-9]*)")


class ShellExit(Exception):
    """Raised by ``exit`` when the whole shell has to stop."""

    def __init__(self, status: int) -> None:
        super().__init__(f"exit {status}")
        self.status = status


def _wrap(value: int, bits: int) -> int:
    value &= (1 << bits) - 1
    if value >= 1 << (bits - 1):
        value -= 1 << bits
    return value


def _c_remainder(value: int, divisor: int) -> int:
    rest = abs(value) % divisor
    return -rest if value < 0 else rest


def parse_atoi(text: str) -> int:
    """Read a leading integer the way the classic C ``atoi`` helper does.

    Leading whitespace and one sign are accepted; reading stops at the
    first non-digit. The sum wraps as a 64-bit value: a wrapped total
    gives 0 when negative and -1 otherwise. The result is a 32-bit int.
    """
    match = _ATOI.match(text)
    sign, digits = match.group(1), match.group(2)
    negative = sign == "-"
    total = 0
    for digit in digits:
        total = _wrap(total * 10 + int(digit), 64)
    if total < 0:
        return 0 if negative else -1
    return _wrap(-total if negative else total, 32)


def echo(args: Sequence[str], out: TextIO) -> int:
    """Print ``args`` separated by spaces; leading ``-n...`` words drop the newline."""
    start = 0
    newline = True
    for word in args:
        if not word.startswith("-n"):
            break
        newline = False
        start += 1
    out.write(" ".join(args[start:]))
    if newline:
        out.write("\n")
    return 0


def _chdir(path: Optional[str], out: TextIO) -> int:
    try:
        if path is None:
            raise FileNotFoundError
        os.chdir(path)
    except OSError:
        out.write(f"minishell: cd: {path or ''}: No such file or directory\n")
        return 1
    return 0


def _cd_home(home: Optional[str], out: TextIO, from_tilde: bool) -> int:
    if home is None:
        out.write("minishell: cd: HOME not set\n")
        return 1
    try:
        os.chdir(home)
    except OSError:
        if from_tilde:
            out.write("minishell: cd: HOME not set\n")
        else:
            out.write(f"minishell: cd: {home}: No such file or directory\n")
        return 1
    return 0


def cd(args: Sequence[str], env: Environment, out: TextIO) -> int:
    """Change directory; errors are written to ``out``. Returns the status.

    With no argument the shell's HOME is used; '~' and '~/...' use the
    process's own HOME, so they work even after HOME is unset.
    """
    if not args:
        return _cd_home(env.get("HOME"), out, from_tilde=False)
    target = args[0]
    if target == "":
        return 0
    if target.startswith("~"):
        if target[1:2] == "/":
            home = os.environ.get("HOME")
            return _chdir(home + target[1:] if home is not None else None, out)
        if target == "~":
            return _cd_home(os.environ.get("HOME"), out, from_tilde=True)
    return _chdir(target, out)


def pwd(out: TextIO) -> int:
    """Print the current directory."""
    out.write(os.getcwd() + "\n")
    return 0


def _not_valid(command: str, word: str, out: TextIO) -> None:
    out.write(f"minishell: {command}: `{word}': not a valid identifier\n")


def export(args: Sequence[str], env: Environment, out: TextIO) -> int:
    """Set ``KEY=VALUE`` words; with no words list every variable."""
    status = 0
    for word in args:
        if not word or not is_valid_key_start(word[0]):
            _not_valid("export", word, out)
            status = 1
            continue
        if "=" not in word[1:]:
            continue
        if not is_valid_key(word, "="):
            _not_valid("export", word, out)
            status = 1
            continue
        key, _, value = word.partition("=")
        env.set(key, value)
    if not args:
        for key, value in env.items():
            out.write(f"declare -x {key}={value}\n")
    return status


def unset(args: Sequence[str], env: Environment, out: TextIO) -> int:
    """Remove the named variables; invalid names are reported."""
    status = 0
    for word in args:
        if not is_valid_key(word):
            _not_valid("unset", word, out)
            status = 1
        else:
            env.unset(word)
    return status


def print_env(env: Environment, out: TextIO) -> int:
    """Print every variable as ``KEY=VALUE``."""
    for key, value in env.items():
        out.write(f"{key}={value}\n")
    return 0


def _exit_status(args: Sequence[str], out: TextIO) -> int:
    if not args:
        return 0
    word = args[0]
    if not all("0" <= char <= "9" for char in word):
        out.write(f"minishell: exit: {word}: numeric argument required\n")
        return 255
    if len(args) > 1:
        out.write("minishell: exit: too many arguments\n")
        return 1
    return _c_remainder(parse_atoi(word), 256)


def exit_builtin(args: Sequence[str], is_only: bool, out: TextIO) -> int:
    """Work out the exit status from ``args``.

    When the command is the only one on the line the shell stops: "exit"
    is printed and ShellExit is raised. Inside a pipeline the status is
    just returned.
    """
    if is_only:
        out.write("exit\n")
    status = _exit_status(args, out)
    if is_only:
        raise ShellExit(status & 0xFF)
    return status


_BUILTINS: dict[str, Callable[..., int]] = {
    "echo": echo,
    "cd": cd,
    "pwd": pwd,
    "export": export,
    "unset": unset,
    "env": print_env,
    "exit": exit_builtin,
}


def lookup(name: Optional[str]) -> Optional[Callable[..., int]]:
    """Return the builtin called ``name``, or None if there is none."""
    if name is None:
        return None
    return _BUILTINS.get(name)
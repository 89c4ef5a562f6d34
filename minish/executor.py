"""Running parsed pipelines: builtins, redirections and external programs."""

from __future__ import annotations

import io
import os
import subprocess
import sys
from typing import IO, Any, Callable, Mapping, Optional, Sequence, TextIO, Union

from minish.builtins import cd, echo, exit_builtin, export, print_env, pwd, unset
from minish.environment import Environment, ShellState
from minish.lexer import Command
from minish.redirect import RedirectError, collect_redirections, open_streams

NOT_FOUND_STATUS = 127
SYNTAX_ERROR_STATUS = 258
EXEC_FAILURE_STATUS = 1

ReadLine = Callable[[str], Optional[str]]
Input = Union[bytes, IO[bytes], None]

_PIPE_ERROR = "minishell: syntax error near unexpected token `|'"

_Builtin = Callable[[Sequence[str], ShellState, bool, TextIO, TextIO], int]

# Each builtin gets (args, state, standalone, output, terminal). Listings go
# to the command's output; diagnostics of cd, unset and exit go to the terminal.
_BUILTINS: dict[str, _Builtin] = {
    "echo": lambda args, state, only, out, term: echo(args, out),
    "cd": lambda args, state, only, out, term: cd(args, state.env, term),
    "pwd": lambda args, state, only, out, term: pwd(out),
    "export": lambda args, state, only, out, term: export(args, state.env, out),
    "unset": lambda args, state, only, out, term: unset(args, state.env, term),
    "env": lambda args, state, only, out, term: print_env(state.env, out),
    "exit": lambda args, state, only, out, term: exit_builtin(args, only, term),
}


def _read_line(prompt: str) -> Optional[str]:
    try:
        return input(prompt)
    except EOFError:
        return None


def _exists(path: str) -> bool:
    try:
        os.stat(path)
    except (OSError, ValueError):
        return False
    return True


def _fileno(stream: Any) -> Optional[int]:
    try:
        return stream.fileno()
    except (AttributeError, OSError, ValueError):
        return None


def _write_output(stream: Any, data: bytes) -> None:
    if isinstance(stream, io.TextIOBase):
        stream.write(data.decode(errors="replace"))
    else:
        stream.write(data)


def find_executable(name: str, env: Environment) -> Optional[str]:
    """Locate the program ``name``.

    A name that exists as given is used as it is; otherwise each non-empty
    directory of PATH is tried in order. Returns None when nothing is found.
    """
    if not name:
        return None
    if _exists(name):
        return name
    search = env.get("PATH")
    if search is None:
        return None
    for directory in (part for part in search.split(":") if part):
        candidate = f"{directory}/{name}"
        if _exists(candidate):
            return candidate
    return None


def run_external(
    argv: Sequence[str], env: Mapping[str, str], stdin: Input = None, stdout: Any = None
) -> int:
    """Run ``argv`` as a child process and return its exit status.

    ``stdin`` may be bytes, a binary file or None to inherit the terminal.
    ``stdout`` may be a text or binary stream, or None to inherit; streams
    without a file descriptor receive the captured output. A program that
    cannot be started gives status 1; one killed by a signal gives 0.
    """
    program = argv[0]
    executable = program if os.sep in program else os.path.join(os.curdir, program)
    options: dict[str, Any] = {}
    if isinstance(stdin, (bytes, bytearray)):
        options["input"] = bytes(stdin)
    elif stdin is not None:
        fd = _fileno(stdin)
        if fd is None:
            options["input"] = stdin.read()
        else:
            options["stdin"] = fd
    capture = False
    if stdout is not None:
        fd = _fileno(stdout)
        if fd is None:
            capture = True
            options["stdout"] = subprocess.PIPE
        else:
            stdout.flush()
            options["stdout"] = fd
    try:
        completed = subprocess.run(
            list(argv), executable=executable, env=dict(env), check=False, **options
        )
    except OSError:
        return EXEC_FAILURE_STATUS
    if capture and completed.stdout:
        _write_output(stdout, completed.stdout)
    if completed.returncode < 0:
        return 0
    return completed.returncode & 0xFF


def _run_builtin(
    builtin: _Builtin, command: Command, state: ShellState, sink: Any, terminal: TextIO
) -> int:
    buffer = io.StringIO() if sink is not None else None
    out = buffer if buffer is not None else terminal
    try:
        return builtin(command.args[1:], state, command.standalone, out, terminal)
    finally:
        if buffer is not None:
            sink.write(buffer.getvalue().encode())


def _run_program(
    command: Command, state: ShellState, stdin: Input, sink: Any, terminal: TextIO
) -> int:
    name = command.name or ""
    path = find_executable(name, state.env)
    if path is None:
        terminal.write(f"minishell: {name}: No such file or directory\n")
        return NOT_FOUND_STATUS
    argv = [path, *command.args[1:]]
    target = sink if sink is not None else terminal
    return run_external(argv, state.env.to_dict(), stdin, target)


def run_command(
    command: Command,
    state: ShellState,
    stdin: Input = None,
    stdout: Optional[TextIO] = None,
    read_line: ReadLine = _read_line,
) -> tuple[int, Optional[bytes]]:
    """Run one pipeline command.

    ``stdin`` is the previous command's output (or None); ``stdout`` is the
    terminal. Returns the status and, when the command feeds a pipe, the
    bytes it passes on. Raises RedirectError for an empty command or a
    redirection that cannot be applied.
    """
    terminal = stdout if stdout is not None else sys.stdout
    if command.name is None:
        raise RedirectError(_PIPE_ERROR, SYNTAX_ERROR_STATUS)
    redirections = collect_redirections(command.tokens)
    pipe_out: Optional[io.BytesIO] = None
    with open_streams(redirections, read_line) as (file_in, file_out):
        if command.pipe_next and file_out is None:
            pipe_out = io.BytesIO()
        sink = file_out if file_out is not None else pipe_out
        builtin = _BUILTINS.get(command.name)
        if builtin is not None:
            status = _run_builtin(builtin, command, state, sink, terminal)
        else:
            source = file_in if file_in is not None else stdin
            status = _run_program(command, state, source, sink, terminal)
    if pipe_out is not None:
        return status, pipe_out.getvalue()
    return status, (b"" if command.pipe_next else None)


def _restore_cwd(path: Optional[str]) -> None:
    if path is None:
        return
    try:
        os.chdir(path)
    except OSError:
        pass


def execute(
    commands: Sequence[Command], state: ShellState, read_line: ReadLine = _read_line
) -> int:
    """Run a pipeline one command after another and return the final status.

    The first command works on the shell's own state; the rest work on a
    copy, so their variable and directory changes do not last. A failing
    redirection or an empty command stops the pipeline. The status is
    also stored in ``state.last_status``.
    """
    terminal = sys.stdout
    status = state.last_status
    working = state
    saved_cwd: Optional[str] = None
    stdin: Optional[bytes] = None
    try:
        for index, command in enumerate(commands):
            if index == 1:
                working = ShellState(Environment(state.env.items()), state.last_status)
                try:
                    saved_cwd = os.getcwd()
                except OSError:
                    saved_cwd = None
            stop = False
            try:
                status, stdin = run_command(command, working, stdin, terminal, read_line)
            except RedirectError as error:
                terminal.write(error.message + "\n")
                status = error.status
                stop = True
            if index > 0:
                status &= 0xFF
            if stop:
                break
    finally:
        _restore_cwd(saved_cwd)
    state.last_status = status
    return status
# minish

A small interactive shell. It reads a line, splits it into commands at
unquoted `|`, expands `$NAME` and `$?`, honours single and double quotes,
applies `<`, `<<`, `>` and `>>` redirections, and runs either a built-in
command or a program found on `PATH`.

## Installing

```
pip install .
```

## Running

```
minish
```

The same shell starts with `python -m minish.shell`. It prints a small
picture, then a prompt showing the current directory:

```
minish:/home/me $ echo "hello $USER" > greeting.txt
minish:/home/me $ cat < greeting.txt | wc -c
```

Press Ctrl-D at the prompt to leave the shell, or type `exit`. Ctrl-C
starts a fresh line; the quit signal is ignored by the shell itself.

## What a line may hold

- Words separated by spaces. Single quotes keep their contents as they
  are; double quotes and unquoted text expand `$NAME` (empty when unset)
  and `$?` (the last status). A quote left open is reported and sets the
  status to 258.
- `|` between commands. Each command's output is fed to the next one.
- `< file`, `<< DELIMITER`, `> file` and `>> file`. When a command has
  several on one side, all are checked (output files are created on the
  way) and the last one is used. A here-document reads lines with the
  prompt `> ` until one equals the delimiter. A bad operator or a missing
  target sets the status to 258; a file that cannot be opened sets it to 1.

## Built-in commands

| Command  | What it does                                                         |
|----------|----------------------------------------------------------------------|
| `echo`   | Prints its arguments; leading words starting with `-n` drop the newline |
| `cd`     | Changes directory; no argument uses the shell's `HOME`, `~` and `~/...` use the process's `HOME` |
| `pwd`    | Prints the current directory                                         |
| `export` | Sets `KEY=value` pairs; with no arguments lists every variable as `declare -x KEY=value` |
| `unset`  | Removes variables; invalid names are reported                        |
| `env`    | Lists variables as `KEY=value`                                       |
| `exit`   | Leaves the shell with an optional status taken modulo 256; a non-numeric argument gives 255, extra arguments give 1 |

Inside a pipeline `exit` only sets the status and the shell keeps running.
Only the first command of a pipeline changes the shell's variables and
directory; the later ones work on a copy.

Any other command name is used as a path if it exists, then looked up in
each directory of `PATH`. A missing command prints
`minishell: NAME: No such file or directory` and sets the status to 127.

## Using it from Python

```python
import io
from minish.shell import Shell

out = io.StringIO()
shell = Shell({"HOME": "/tmp", "PATH": "/usr/bin:/bin"}, out=out)
shell.run_line("export GREETING=hi")
shell.run_line("echo $GREETING")
print(out.getvalue())  # hi
```

`Shell` also takes a `read_line` callable (prompt in, line or `None` out),
used for the prompt and for here-documents; `Shell.loop()` runs the
interactive loop and returns the exit code.

The parts are usable on their own:

- `minish.lexer.parse(line, env, last_status)` turns a line into `Command`
  objects made of `Token`s; `split_pipeline`, `split_tokens` and
  `expand_word` do the single steps.
- `minish.environment.Environment` holds the variables in order;
  `ShellState` pairs it with the last status.
- `minish.redirect.collect_redirections` checks a command's redirections
  and `open_streams` opens them, raising `RedirectError` with a status.
- `minish.builtins` holds the built-in commands, each writing to a given
  stream and returning its status.
- `minish.executor.execute(commands, state)` runs a pipeline and returns
  its final status.

## What it does not do

There is no `;`, `&&`, `||`, globbing, background jobs, job control,
history file or scripting. Commands in a pipeline run one after another,
not side by side: each command's output is collected in full before the
next command starts, so endless producers never finish.

## Running the tests

```
pip install .[test]
pytest
```
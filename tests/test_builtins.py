import io
from pathlib import Path

import pytest

from minish.builtins import (
    ShellExit,
    cd,
    echo,
    exit_builtin,
    export,
    lookup,
    parse_atoi,
    print_env,
    pwd,
    unset,
)
from minish.environment import Environment


@pytest.mark.parametrize(
    "text, expected",
    [("42", 42), ("  -7", -7), ("+5", 5), ("12abc", 12), ("abc", 0), ("", 0)],
)
def test_parse_atoi(text, expected):
    assert parse_atoi(text) == expected


def test_parse_atoi_wrapped_total():
    assert parse_atoi("9223372036854775808") == -1
    assert parse_atoi("-9223372036854775808") == 0


def test_echo_joins_words():
    out = io.StringIO()
    assert echo(["hello", "world"], out) == 0
    assert out.getvalue() == "hello world\n"


@pytest.mark.parametrize("flags", [["-n"], ["-nnn"], ["-n", "-n"], ["-nabc"]])
def test_echo_n_options(flags):
    out = io.StringIO()
    echo([*flags, "hi"], out)
    assert out.getvalue() == "hi"


def test_echo_other_dash_is_printed():
    out = io.StringIO()
    echo(["-x", "y"], out)
    assert out.getvalue() == "-x y\n"


def test_echo_no_args():
    out = io.StringIO()
    echo([], out)
    assert out.getvalue() == "\n"


def test_cd_into_directory(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    sub = tmp_path / "sub"
    sub.mkdir()
    out = io.StringIO()
    assert cd([str(sub)], Environment(), out) == 0
    assert Path.cwd().resolve() == sub.resolve()


def test_cd_missing_directory(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    missing = str(tmp_path / "missing")
    out = io.StringIO()
    assert cd([missing], Environment(), out) == 1
    assert out.getvalue() == f"minishell: cd: {missing}: No such file or directory\n"


def test_cd_without_args_goes_home(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    home = tmp_path / "home"
    home.mkdir()
    assert cd([], Environment({"HOME": str(home)}), io.StringIO()) == 0
    assert Path.cwd().resolve() == home.resolve()


def test_cd_without_home(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    out = io.StringIO()
    assert cd([], Environment(), out) == 1
    assert out.getvalue() == "minishell: cd: HOME not set\n"


def test_cd_empty_argument_stays(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    assert cd([""], Environment(), io.StringIO()) == 0
    assert Path.cwd().resolve() == tmp_path.resolve()


def test_cd_tilde_uses_process_home(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    home = tmp_path / "h"
    (home / "docs").mkdir(parents=True)
    monkeypatch.setenv("HOME", str(home))
    assert cd(["~"], Environment(), io.StringIO()) == 0
    assert Path.cwd().resolve() == home.resolve()
    assert cd(["~/docs"], Environment(), io.StringIO()) == 0
    assert Path.cwd().resolve() == (home / "docs").resolve()


def test_pwd(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    out = io.StringIO()
    assert pwd(out) == 0
    assert Path(out.getvalue().rstrip("\n")).resolve() == tmp_path.resolve()


def test_export_sets_value():
    env = Environment()
    assert export(["A=1", "B=x=y"], env, io.StringIO()) == 0
    assert env.get("A") == "1"
    assert env.get("B") == "x=y"


def test_export_without_equals_does_nothing():
    env = Environment()
    export(["A"], env, io.StringIO())
    assert "A" not in env


def test_export_replaces_in_place():
    env = Environment({"A": "1", "B": "2"})
    export(["A=3"], env, io.StringIO())
    assert env.items() == [("A", "3"), ("B", "2")]


@pytest.mark.parametrize("word", ["1A=2", "A-B=1", ""])
def test_export_invalid(word):
    env = Environment()
    out = io.StringIO()
    assert export([word], env, out) == 1
    assert out.getvalue() == f"minishell: export: `{word}': not a valid identifier\n"
    assert len(env) == 0


def test_export_lists_variables():
    out = io.StringIO()
    export([], Environment({"A": "1", "B": "2"}), out)
    assert out.getvalue() == "declare -x A=1\ndeclare -x B=2\n"


def test_unset_removes():
    env = Environment({"A": "1", "B": "2"})
    assert unset(["A", "C"], env, io.StringIO()) == 0
    assert env.items() == [("B", "2")]


@pytest.mark.parametrize("word", ["A=1", "1A", ""])
def test_unset_invalid(word):
    env = Environment({"A": "1"})
    out = io.StringIO()
    assert unset([word], env, out) == 1
    assert out.getvalue() == f"minishell: unset: `{word}': not a valid identifier\n"
    assert env.get("A") == "1"


def test_print_env():
    out = io.StringIO()
    assert print_env(Environment({"A": "1", "B": ""}), out) == 0
    assert out.getvalue() == "A=1\nB=\n"


def test_exit_alone_without_args():
    out = io.StringIO()
    with pytest.raises(ShellExit) as info:
        exit_builtin([], True, out)
    assert info.value.status == 0
    assert out.getvalue() == "exit\n"


def test_exit_alone_with_number():
    with pytest.raises(ShellExit) as info:
        exit_builtin(["7"], True, io.StringIO())
    assert info.value.status == 7


def test_exit_alone_non_numeric():
    out = io.StringIO()
    with pytest.raises(ShellExit) as info:
        exit_builtin(["abc"], True, out)
    assert info.value.status == 255
    assert "minishell: exit: abc: numeric argument required\n" in out.getvalue()


def test_exit_alone_too_many():
    out = io.StringIO()
    with pytest.raises(ShellExit) as info:
        exit_builtin(["1", "2"], True, out)
    assert info.value.status == 1
    assert out.getvalue().endswith("minishell: exit: too many arguments\n")


def test_exit_in_pipeline_returns_status():
    out = io.StringIO()
    assert exit_builtin(["300"], False, out) == 44
    assert exit_builtin([], False, out) == 0
    assert exit_builtin(["x"], False, out) == 255
    assert "exit\n" not in out.getvalue()


def test_lookup():
    assert lookup("echo") is echo
    assert lookup("env") is print_env
    assert lookup("ls") is None
    assert lookup(None) is None
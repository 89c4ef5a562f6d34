import pytest

from minish.environment import (
    Environment,
    ShellState,
    is_valid_key,
    is_valid_key_start,
)


def test_from_strings_keeps_order():
    env = Environment.from_strings(["A=1", "B=2", "C=3"])
    assert env.items() == [("A", "1"), ("B", "2"), ("C", "3")]


def test_from_strings_empty_value():
    env = Environment.from_strings(["EMPTY="])
    assert env.get("EMPTY") == ""
    assert "EMPTY" in env


def test_from_strings_name_without_equals():
    env = Environment.from_strings(["FLAG"])
    assert env.get("FLAG") == ""


def test_from_strings_takes_second_piece_only():
    env = Environment.from_strings(["X=a=b"])
    assert env.get("X") == "a"


def test_from_strings_skips_entries_without_pieces():
    env = Environment.from_strings(["=", "", "K=v"])
    assert env.items() == [("K", "v")]


def test_set_new_key_appends():
    env = Environment({"A": "1"})
    env.set("B", "2")
    assert env.items() == [("A", "1"), ("B", "2")]
    assert len(env) == 2


def test_set_existing_key_keeps_position():
    env = Environment([("A", "1"), ("B", "2")])
    env.set("A", "9")
    assert env.items() == [("A", "9"), ("B", "2")]
    assert len(env) == 2


def test_unset_removes_and_keeps_order():
    env = Environment([("A", "1"), ("B", "2"), ("C", "3")])
    env.unset("B")
    assert env.items() == [("A", "1"), ("C", "3")]
    assert "B" not in env
    assert env.get("B") is None


def test_unset_missing_is_noop():
    env = Environment({"A": "1"})
    env.unset("NOPE")
    assert env.items() == [("A", "1")]


def test_to_dict_is_a_copy():
    env = Environment({"A": "1"})
    snapshot = env.to_dict()
    snapshot["A"] = "changed"
    assert env.get("A") == "1"


def test_shell_state_defaults():
    state = ShellState()
    assert state.last_status == 0
    assert len(state.env) == 0


@pytest.mark.parametrize(
    "char, expected",
    [("a", True), ("Z", True), ("_", True), ("1", False), ("=", False), ("", False), ("é", False)],
)
def test_is_valid_key_start(char, expected):
    assert is_valid_key_start(char) is expected


@pytest.mark.parametrize(
    "text, stop, expected",
    [
        ("HOME", None, True),
        ("_x1", None, True),
        ("1abc", None, False),
        ("a-b", None, False),
        ("", None, False),
        ("KEY=val-ue", "=", True),
        ("K-Y=v", "=", False),
        ("=v", "=", False),
        ("A=B", None, False),
    ],
)
def test_is_valid_key(text, stop, expected):
    assert is_valid_key(text, stop) is expected
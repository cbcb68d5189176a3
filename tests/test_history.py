import pytest

from patchgate.history import ChangeHistory, ChangeSource


def test_record_and_last_change() -> None:
    history = ChangeHistory()
    history.record("a.py", "1", "2")
    history.record("b.py", "x", "y")
    history.record("a.py", "2", "3")

    last = history.last_change("a.py")
    assert last is not None
    assert (last.old_content, last.new_content) == ("2", "3")
    assert last.source == ChangeSource.ai
    assert history.last_change("missing.py") is None
    assert len(history) == 3


def test_undo_last_pops_newest_ai_change() -> None:
    history = ChangeHistory()
    history.record("a.py", "1", "2")
    history.record("a.py", "2", "3")

    assert history.undo_last("a.py") == "2"
    assert history.undo_last("a.py") == "1"
    assert history.undo_last("a.py") is None
    assert len(history) == 0


def test_undo_never_reverts_user_edits() -> None:
    history = ChangeHistory()
    history.record("a.py", "1", "2")
    history.record("a.py", "2", "typed", source=ChangeSource.user)

    assert history.undo_last("a.py") is None
    # The user record is kept.
    assert len(history) == 2
    last = history.last_change("a.py")
    assert last is not None and last.source == ChangeSource.user


def test_capacity_evicts_oldest() -> None:
    history = ChangeHistory(capacity=2)
    history.record("a.py", "0", "1")
    history.record("a.py", "1", "2")
    history.record("a.py", "2", "3")

    assert len(history) == 2
    assert [r.old_content for r in history.records()] == ["1", "2"]


def test_capacity_must_be_positive() -> None:
    with pytest.raises(ValueError):
        ChangeHistory(capacity=0)


def test_clear() -> None:
    history = ChangeHistory()
    history.record("a.py", "0", "1")
    history.clear()
    assert len(history) == 0
    assert history.records() == []

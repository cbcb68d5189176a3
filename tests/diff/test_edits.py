import pytest

from patchgate.diff import TextEdit, apply_edits, find_all, replace_all


def test_apply_edits_in_any_order() -> None:
    text = "hello world"
    edits = [TextEdit(0, 5, "goodbye"), TextEdit(6, 11, "moon")]
    assert apply_edits(text, edits) == "goodbye moon"
    assert apply_edits(text, list(reversed(edits))) == "goodbye moon"


def test_apply_edits_insertion_at_same_offset_as_replacement_end() -> None:
    assert apply_edits("abc", [TextEdit(0, 1, "X"), TextEdit(3, 3, "!")]) == "Xbc!"


def test_apply_edits_rejects_overlap() -> None:
    with pytest.raises(ValueError):
        apply_edits("abcdef", [TextEdit(0, 3, "x"), TextEdit(2, 4, "y")])


def test_apply_edits_rejects_out_of_range() -> None:
    with pytest.raises(ValueError):
        apply_edits("abc", [TextEdit(1, 10, "x")])


def test_text_edit_validates_range() -> None:
    with pytest.raises(ValueError):
        TextEdit(3, 1, "")


def test_find_all_options() -> None:
    assert find_all("Foo foo FOO", "foo") == [(4, 7)]
    assert len(find_all("Foo foo FOO", "foo", case_sensitive=False)) == 3
    assert find_all("a1b22", r"\d+", regex=True) == [(1, 2), (3, 5)]
    assert find_all("abc", "") == []


def test_find_all_skips_empty_regex_matches() -> None:
    assert find_all("abc", r"x*", regex=True) == []


def test_replace_all_counts_replacements() -> None:
    text, count = replace_all("a.b.c", ".", "::")
    assert text == "a::b::c"
    assert count == 2

from patchgate.merge import (
    AlreadyApplied,
    CleanApply,
    ConflictLabels,
    MergeConflict,
    Merged,
    reconcile,
    three_way_merge,
)


def test_untouched_document_applies_cleanly() -> None:
    outcome = reconcile("a\nb", "a\nB", "a\nb")
    assert isinstance(outcome, CleanApply)
    assert outcome.text == "a\nB"
    assert outcome.success
    assert outcome.conflicts == []


def test_document_already_matching_proposal() -> None:
    outcome = reconcile("a\nb", "a\nB", "a\nB")
    assert isinstance(outcome, AlreadyApplied)
    assert outcome.text == "a\nB"
    assert outcome.success


def test_user_appended_line_is_kept() -> None:
    outcome = reconcile("a\nb\nc", "a\nX\nc", "a\nb\nc\nd")
    assert isinstance(outcome, Merged)
    assert outcome.text == "a\nX\nc\nd"
    assert outcome.conflicts == []
    assert outcome.success


def test_changes_on_different_lines_combine() -> None:
    outcome = reconcile("1\n2", "1\nTWO", "ONE\n2")
    assert isinstance(outcome, Merged)
    assert outcome.text == "ONE\nTWO"
    assert outcome.success


def test_same_line_changed_both_sides_conflicts() -> None:
    outcome = reconcile("x", "y", "z")
    assert isinstance(outcome, Merged)
    assert not outcome.success
    assert outcome.conflicts == [MergeConflict(line=1, base="x", theirs="y", ours="z")]
    assert outcome.text == "\n".join(
        ["<<<<<<< AI Change", "y", "=======", "z", ">>>>>>> Your Change"]
    )


def test_identical_change_on_both_sides_is_not_a_conflict() -> None:
    merged = three_way_merge("a\nb\nc", "a\nB\nc", "a\nB\nc\n")
    assert merged.success
    assert merged.text == "a\nB\nc\n"


def test_deletion_against_edit_conflicts_with_empty_side() -> None:
    merged = three_way_merge("a\nb\nc", "a\nc", "a\nBEE\nc")
    assert len(merged.conflicts) == 1
    conflict = merged.conflicts[0]
    assert (conflict.line, conflict.base, conflict.theirs, conflict.ours) == (
        2,
        "b",
        "",
        "BEE",
    )
    assert merged.text.split("\n") == [
        "a",
        "<<<<<<< AI Change",
        "=======",
        "BEE",
        ">>>>>>> Your Change",
        "c",
    ]


def test_one_sided_deletion_is_applied() -> None:
    merged = three_way_merge("a\nb\nc\nd", "a\nc\nd", "a\nb\nc\nD")
    assert merged.success
    assert merged.text == "a\nc\nD"


def test_insertions_before_a_line_on_one_side() -> None:
    merged = three_way_merge("a\nb", "new\na\nb", "a\nB")
    assert merged.success
    assert merged.text == "new\na\nB"


def test_surplus_added_lines_follow_the_replaced_line() -> None:
    merged = three_way_merge("a\nb\nc", "a\nb1\nb2\nb3\nc", "A\nb\nc")
    assert merged.success
    assert merged.text == "A\nb1\nb2\nb3\nc"


def test_trailing_additions_on_both_sides_conflict() -> None:
    merged = three_way_merge("a", "a\nfrom ai", "a\nfrom user")
    assert merged.conflicts == [
        MergeConflict(line=2, base="", theirs="from ai", ours="from user")
    ]
    assert merged.text.split("\n") == [
        "a",
        "<<<<<<< AI Change",
        "from ai",
        "=======",
        "from user",
        ">>>>>>> Your Change",
    ]


def test_identical_trailing_additions_are_emitted_once() -> None:
    merged = three_way_merge("a", "a\nsame", "a\nsame")
    assert merged.success
    assert merged.text == "a\nsame"


def test_empty_base_with_two_different_texts() -> None:
    merged = three_way_merge("", "ai", "user")
    assert len(merged.conflicts) == 1
    assert merged.conflicts[0].line == 1


def test_custom_conflict_labels() -> None:
    labels = ConflictLabels(theirs="assistant", ours="me")
    merged = three_way_merge("x", "y", "z", labels=labels)
    lines = merged.text.split("\n")
    assert lines[0] == "<<<<<<< assistant"
    assert lines[-1] == ">>>>>>> me"


def test_merged_text_preserves_unrelated_regions() -> None:
    base = "\n".join(f"l{i}" for i in range(1, 11))
    theirs = base.replace("l2", "AI2")
    ours = base.replace("l9", "U9")
    merged = three_way_merge(base, theirs, ours)
    assert merged.success
    assert merged.text == base.replace("l2", "AI2").replace("l9", "U9")


def test_edits_inside_a_run_of_identical_lines() -> None:
    # The user's edit to the last "a" aligns as a deletion of the first one.
    merged = three_way_merge("c\na\na\na\na\na", "c\nX\na\na\na\na", "c\na\na\na\na\nY")
    assert merged.conflicts == [MergeConflict(line=2, base="a", theirs="X", ours="")]
    assert merged.text.split("\n") == [
        "c",
        "<<<<<<< AI Change",
        "X",
        "=======",
        ">>>>>>> Your Change",
        "a",
        "a",
        "a",
        "a",
        "Y",
    ]

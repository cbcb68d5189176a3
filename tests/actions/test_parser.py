from patchgate.actions import (
    ActionKind,
    ParseErrorCode,
    ParseFailure,
    ParseOk,
    ParsedAction,
    PlanTask,
    parse_response,
    summarize_action,
)


def _ok(text: str) -> ParseOk:
    result = parse_response(text)
    assert isinstance(result, ParseOk), result
    return result


def test_empty_response() -> None:
    result = _ok("")
    assert result.conversation == ""
    assert result.actions == []


def test_plain_conversation_is_trimmed() -> None:
    result = _ok("\n\nHello there.\n\n\n\nBye.\n")
    assert result.conversation == "Hello there.\n\nBye."
    assert result.actions == []


def test_marker_blocks_in_document_order() -> None:
    text = (
        "I'll update the app.\n"
        "FILE_EDIT: app.py\n"
        "print('hi')\n"
        "END_FILE_EDIT\n"
        "\n\n\n"
        "TERMINAL: python app.py\n"
        "CREATE_FILE: util.py\n"
        "def util():\n"
        "    pass\n"
        "END_CREATE_FILE\n"
        "PLAN:\n"
        "Phase 1: Ship\n"
        "- [ ] Release\n"
        "END_PLAN\n"
        "Done!"
    )
    result = _ok(text)
    assert [a.kind for a in result.actions] == [
        ActionKind.edit,
        ActionKind.terminal,
        ActionKind.create,
        ActionKind.plan,
    ]
    edit, terminal, create, plan = result.actions
    assert (edit.target, edit.content) == ("app.py", "print('hi')")
    assert terminal.target == "python app.py"
    assert create.content == "def util():\n    pass"
    assert plan.tasks == [PlanTask(description="Release", phase="Phase 1: Ship")]
    assert plan.content == "Phase 1: Ship\n- [ ] Release"
    assert result.conversation == "I'll update the app.\n\nDone!"


def test_markers_inside_file_content_are_content() -> None:
    text = "FILE_EDIT: run.sh\necho 'TERMINAL: not a command'\nEND_FILE_EDIT"
    result = _ok(text)
    assert len(result.actions) == 1
    assert result.actions[0].content == "echo 'TERMINAL: not a command'"


def test_tag_block_inside_file_content_is_content() -> None:
    body = (
        "# Usage\n"
        "<file-edit>\n"
        "filename: x.py\n"
        "action: modify\n"
        "```python\n"
        "print(1)\n"
        "```\n"
        "</file-edit>"
    )
    result = _ok(f"Docs update.\nFILE_EDIT: README.md\n{body}\nEND_FILE_EDIT\n")
    (edit,) = result.actions
    assert (edit.kind, edit.target) == (ActionKind.edit, "README.md")
    assert edit.content == body
    assert result.conversation == "Docs update."


def test_marker_block_inside_tag_code_is_content() -> None:
    text = (
        "<file-edit>\n"
        "filename: notes.md\n"
        "```\n"
        "PLAN:\n"
        "- [ ] not a plan\n"
        "END_PLAN\n"
        "```\n"
        "</file-edit>"
    )
    (edit,) = _ok(text).actions
    assert edit.target == "notes.md"
    assert edit.content == "PLAN:\n- [ ] not a plan\nEND_PLAN"


def test_file_edit_tag_blocks() -> None:
    text = (
        "Two changes:\n"
        "<file-edit>\n"
        "filename: src/app.py\n"
        "action: modify\n"
        "description: Fix greeting\n"
        "```python\n"
        "print('hello')\n"
        "```\n"
        "</file-edit>\n"
        "<file-edit>\n"
        "filename: old.py\n"
        "action: delete\n"
        "</file-edit>\n"
    )
    result = _ok(text)
    modify, delete = result.actions
    assert modify == ParsedAction(
        kind=ActionKind.edit,
        target="src/app.py",
        content="print('hello')",
        description="Fix greeting",
    )
    assert delete.kind == ActionKind.delete
    assert delete.target == "old.py"
    assert result.conversation == "Two changes:"


def test_malformed_blocks_are_reported_not_skipped() -> None:
    text = (
        "FILE_EDIT: \nbody\nEND_FILE_EDIT\n"
        "CREATE_FILE: ../evil.py\nx = 1\nEND_CREATE_FILE\n"
        "<file-edit>\nfilename: a.py\naction: rename\n```\nx\n```\n</file-edit>\n"
        "TERMINAL: ls\n"
    )
    result = parse_response(text)
    assert isinstance(result, ParseFailure)
    codes = [e.code for e in result.errors]
    assert codes == [
        ParseErrorCode.missing_filename,
        ParseErrorCode.invalid_filename,
        ParseErrorCode.unknown_action,
    ]


def test_missing_content_is_an_error() -> None:
    result = parse_response("FILE_EDIT: a.py\n\nEND_FILE_EDIT")
    assert isinstance(result, ParseFailure)
    assert result.errors[0].code == ParseErrorCode.missing_content


def test_unterminated_block_is_an_error() -> None:
    result = parse_response("Here:\nCREATE_FILE: a.py\nprint(1)\n")
    assert isinstance(result, ParseFailure)
    assert [e.code for e in result.errors] == [ParseErrorCode.unterminated]
    assert result.errors[0].offset == len("Here:\n")


def test_summarize_action() -> None:
    assert summarize_action(ParsedAction(kind=ActionKind.edit, target="a.py")) == "Edit a.py"
    assert summarize_action(ParsedAction(kind=ActionKind.create, target="b.py")) == "Create b.py"
    assert summarize_action(ParsedAction(kind=ActionKind.delete, target="c.py")) == "Delete c.py"
    assert summarize_action(ParsedAction(kind=ActionKind.terminal, target="ls")) == "Run: ls"
    plan = ParsedAction(
        kind=ActionKind.plan,
        tasks=[PlanTask(description="a"), PlanTask(description="b")],
    )
    assert summarize_action(plan) == "Project Plan (2 tasks)"

"""
Parse raw assistant responses into proposed actions.

Supported blocks:

    FILE_EDIT: app.py            CREATE_FILE: util.py
    <full content>               <full content>
    END_FILE_EDIT                END_CREATE_FILE

    TERMINAL: pytest -q

    PLAN:
    Phase 1: Setup
    - [ ] Create project
    END_PLAN

    <file-edit>
    filename: app.py
    action: modify
    description: optional text
    ```python
    <full content>
    ```
    </file-edit>

Everything outside the blocks is conversation text.
"""

from __future__ import annotations

import re
from enum import Enum
from typing import List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, Field

from .models import ActionKind, ParsedAction
from .plan import parse_plan_tasks

_FILE_EDIT_RE = re.compile(r"FILE_EDIT:[ \t]*([^\n]*)\n(.*?)END_FILE_EDIT", re.I | re.S)
_CREATE_FILE_RE = re.compile(
    r"CREATE_FILE:[ \t]*([^\n]*)\n(.*?)END_CREATE_FILE", re.I | re.S
)
_TERMINAL_RE = re.compile(r"TERMINAL:[ \t]*([^\n]*)", re.I)
_PLAN_RE = re.compile(r"PLAN:\n(.*?)END_PLAN", re.I | re.S)
_TAG_BLOCK_RE = re.compile(r"<file-edit>(.*?)</file-edit>", re.S)

_BLOCKS = (
    ("<file-edit>", _TAG_BLOCK_RE),
    ("FILE_EDIT", _FILE_EDIT_RE),
    ("CREATE_FILE", _CREATE_FILE_RE),
    ("PLAN", _PLAN_RE),
)

_OPENERS = (
    ("FILE_EDIT", re.compile(r"(?<![A-Z_])FILE_EDIT:", re.I), re.compile(r"END_FILE_EDIT", re.I)),
    ("CREATE_FILE", re.compile(r"(?<![A-Z_])CREATE_FILE:", re.I), re.compile(r"END_CREATE_FILE", re.I)),
    ("PLAN", re.compile(r"(?<![A-Z_])PLAN:\n", re.I), re.compile(r"END_PLAN", re.I)),
    ("<file-edit>", re.compile(r"<file-edit>"), re.compile(r"</file-edit>")),
)

_TAG_FILENAME_RE = re.compile(r"filename:[ \t]*(.+)")
_TAG_ACTION_RE = re.compile(r"action:[ \t]*(\w+)")
_TAG_DESCRIPTION_RE = re.compile(r"description:[ \t]*(.+)")
_TAG_CODE_RE = re.compile(r"```[\w+-]*\n(.*?)```", re.S)

_TAG_ACTIONS = {
    "create": ActionKind.create,
    "modify": ActionKind.edit,
    "delete": ActionKind.delete,
}


class ParseErrorCode(str, Enum):
    missing_filename = "missing_filename"
    missing_content = "missing_content"
    missing_command = "missing_command"
    unknown_action = "unknown_action"
    invalid_filename = "invalid_filename"
    unterminated = "unterminated"


class ParseError(BaseModel):
    code: ParseErrorCode
    message: str
    offset: int = Field(..., description="Character offset of the offending block.")


class ParseOk(BaseModel):
    kind: Literal["ok"] = "ok"
    conversation: str
    actions: List[ParsedAction] = Field(default_factory=list)


class ParseFailure(BaseModel):
    kind: Literal["failure"] = "failure"
    errors: List[ParseError]


ParseResult = Union[ParseOk, ParseFailure]

# (start, end, action) of each recognized block, used to cut the conversation.
_Span = Tuple[int, int, Optional[ParsedAction]]


def _has_path_traversal(filename: str) -> bool:
    return ".." in filename or "/" in filename or "\\" in filename


def _overlaps(start: int, end: int, spans: List[_Span]) -> bool:
    return any(start < s_end and s_start < end for s_start, s_end, _ in spans)


def _find_unterminated(text: str, spans: List[_Span]) -> List[ParseError]:
    errors: List[ParseError] = []
    for name, opener, closer in _OPENERS:
        for m in opener.finditer(text):
            if _overlaps(m.start(), m.end(), spans):
                continue
            if closer.search(text, m.end()) is None:
                errors.append(
                    ParseError(
                        code=ParseErrorCode.unterminated,
                        message=f"{name} block is not terminated",
                        offset=m.start(),
                    )
                )
    return errors


def _invalid_create_target(filename: str, offset: int) -> ParseError:
    return ParseError(
        code=ParseErrorCode.invalid_filename,
        message=f"Invalid filename {filename!r}: no path traversal allowed",
        offset=offset,
    )


def _parse_file_block(
    m: "re.Match[str]", kind: ActionKind, marker: str, errors: List[ParseError]
) -> Optional[ParsedAction]:
    filename = m.group(1).strip()
    content = m.group(2).strip()
    if not filename:
        errors.append(
            ParseError(
                code=ParseErrorCode.missing_filename,
                message=f"{marker} requires a filename",
                offset=m.start(),
            )
        )
        return None
    if not content:
        errors.append(
            ParseError(
                code=ParseErrorCode.missing_content,
                message=f"{marker} for {filename} has no content",
                offset=m.start(),
            )
        )
        return None
    if kind == ActionKind.create and _has_path_traversal(filename):
        errors.append(_invalid_create_target(filename, m.start()))
        return None
    return ParsedAction(kind=kind, target=filename, content=content)


def _parse_tag_block(m: "re.Match[str]", errors: List[ParseError]) -> Optional[ParsedAction]:
    block = m.group(1)
    fm = _TAG_FILENAME_RE.search(block)
    filename = fm.group(1).strip() if fm else ""
    am = _TAG_ACTION_RE.search(block)
    action_name = am.group(1).strip().lower() if am else "modify"
    dm = _TAG_DESCRIPTION_RE.search(block)
    description = dm.group(1).strip() if dm else None
    cm = _TAG_CODE_RE.search(block)
    content = cm.group(1).strip() if cm else ""

    if not filename:
        errors.append(
            ParseError(
                code=ParseErrorCode.missing_filename,
                message="<file-edit> requires a filename",
                offset=m.start(),
            )
        )
        return None
    kind = _TAG_ACTIONS.get(action_name)
    if kind is None:
        errors.append(
            ParseError(
                code=ParseErrorCode.unknown_action,
                message=f"Unknown action {action_name!r} for {filename}",
                offset=m.start(),
            )
        )
        return None
    if kind != ActionKind.delete and not content:
        errors.append(
            ParseError(
                code=ParseErrorCode.missing_content,
                message=f"<file-edit> for {filename} has no code block",
                offset=m.start(),
            )
        )
        return None
    if kind == ActionKind.create and _has_path_traversal(filename):
        errors.append(_invalid_create_target(filename, m.start()))
        return None
    return ParsedAction(
        kind=kind,
        target=filename,
        content=content,
        description=description,
    )


def _parse_plan(m: "re.Match[str]", errors: List[ParseError]) -> Optional[ParsedAction]:
    content = m.group(1).strip()
    if not content:
        errors.append(
            ParseError(
                code=ParseErrorCode.missing_content,
                message="PLAN requires content",
                offset=m.start(),
            )
        )
        return None
    return ParsedAction(
        kind=ActionKind.plan,
        content=content,
        tasks=parse_plan_tasks(content),
    )


def _parse_block(name: str, m: "re.Match[str]", errors: List[ParseError]) -> Optional[ParsedAction]:
    if name == "<file-edit>":
        return _parse_tag_block(m, errors)
    if name == "FILE_EDIT":
        return _parse_file_block(m, ActionKind.edit, name, errors)
    if name == "CREATE_FILE":
        return _parse_file_block(m, ActionKind.create, name, errors)
    return _parse_plan(m, errors)


def _outermost_blocks(text: str) -> List[Tuple[str, "re.Match[str]"]]:
    """
    Every block match in the text, minus those that start inside an earlier
    block. At equal starts the longer match wins.
    """
    found = [(name, m) for name, pattern in _BLOCKS for m in pattern.finditer(text)]
    found.sort(key=lambda f: (f[1].start(), -f[1].end()))
    kept: List[Tuple[str, "re.Match[str]"]] = []
    last_end = -1
    for name, m in found:
        if m.start() < last_end:
            continue
        kept.append((name, m))
        last_end = m.end()
    return kept


def _parse_terminals(text: str, spans: List[_Span], errors: List[ParseError]) -> None:
    for m in _TERMINAL_RE.finditer(text):
        if _overlaps(m.start(), m.end(), spans):
            continue
        command = m.group(1).strip()
        if not command:
            spans.append((m.start(), m.end(), None))
            errors.append(
                ParseError(
                    code=ParseErrorCode.missing_command,
                    message="TERMINAL requires a command",
                    offset=m.start(),
                )
            )
            continue
        spans.append(
            (m.start(), m.end(), ParsedAction(kind=ActionKind.terminal, target=command))
        )


def clean_conversation(text: str, spans: List[Tuple[int, int]]) -> str:
    for start, end in sorted(spans, reverse=True):
        text = text[:start] + text[end:]
    return re.sub(r"\n{3,}", "\n\n", text).strip()


def parse_response(text: Optional[str]) -> ParseResult:
    """
    Split an assistant response into conversation text and proposed actions.

    Actions are returned in the order they appear in the text. Blocks nested
    inside another block's content are treated as content. Any malformed
    block turns the whole result into a ParseFailure listing every problem.
    """
    if not text:
        return ParseOk(conversation="", actions=[])

    spans: List[_Span] = []
    errors: List[ParseError] = []

    for name, m in _outermost_blocks(text):
        spans.append((m.start(), m.end(), _parse_block(name, m, errors)))
    # Single-line commands last, so a TERMINAL: line inside file content stays content.
    _parse_terminals(text, spans, errors)
    errors.extend(_find_unterminated(text, spans))

    if errors:
        return ParseFailure(errors=sorted(errors, key=lambda e: e.offset))

    ordered = sorted(spans, key=lambda s: s[0])
    actions = [action for _, _, action in ordered if action is not None]
    conversation = clean_conversation(text, [(s, e) for s, e, _ in ordered])
    return ParseOk(conversation=conversation, actions=actions)


def summarize_action(action: ParsedAction) -> str:
    if action.kind == ActionKind.edit:
        return f"Edit {action.target}"
    if action.kind == ActionKind.create:
        return f"Create {action.target}"
    if action.kind == ActionKind.delete:
        return f"Delete {action.target}"
    if action.kind == ActionKind.terminal:
        return f"Run: {action.target}"
    if action.kind == ActionKind.plan:
        return f"Project Plan ({len(action.tasks)} tasks)"
    return "Unknown action"

from datetime import datetime

from patchgate.actions import PlanTask, parse_plan_tasks, render_plan_markdown

PLAN_TEXT = """Build a todo app
Phase 1: Setup
- [ ] Create repo
- [x] Pick framework
Step 2: Features
- [ ] Add items
- [X] List items
Some trailing note
"""


def test_parse_plan_tasks_tracks_phases() -> None:
    tasks = parse_plan_tasks(PLAN_TEXT)
    assert tasks == [
        PlanTask(description="Create repo", completed=False, phase="Phase 1: Setup"),
        PlanTask(description="Pick framework", completed=True, phase="Phase 1: Setup"),
        PlanTask(description="Add items", completed=False, phase="Step 2: Features"),
        PlanTask(description="List items", completed=True, phase="Step 2: Features"),
    ]


def test_tasks_before_any_phase_have_no_phase() -> None:
    tasks = parse_plan_tasks("- [ ] loose task\nPhase 1: Later\n- [ ] grouped")
    assert tasks[0].phase is None
    assert tasks[1].phase == "Phase 1: Later"


def test_render_groups_by_phase_with_unphased_last() -> None:
    tasks = [
        PlanTask(description="loose", phase=None),
        PlanTask(description="b1", phase="Phase 2: B", completed=True),
        PlanTask(description="a1", phase="Phase 1: A"),
        PlanTask(description="b2", phase="Phase 2: B"),
    ]
    markdown = render_plan_markdown(
        "ignored", tasks, title="Plan", created=datetime(2024, 1, 2, 3, 4, 5)
    )
    assert markdown == (
        "# Plan\n"
        "\n"
        "Created: 2024-01-02 03:04:05\n"
        "\n"
        "## Phase 2: B\n"
        "\n"
        "- ☑ b1\n"
        "- ☐ b2\n"
        "\n"
        "## Phase 1: A\n"
        "\n"
        "- ☐ a1\n"
        "\n"
        "- ☐ loose\n"
    )


def test_render_without_tasks_embeds_raw_text() -> None:
    markdown = render_plan_markdown(
        "Just do it.\n", [], created=datetime(2024, 1, 1)
    )
    assert markdown.startswith("# Project Plan\n\nCreated: 2024-01-01 00:00:00\n\n")
    assert markdown.endswith("Just do it.\n")

"""Test prompt and Slack message templates."""

from cisummary.schemas import Excerpt
from cisummary.services.notifications.template import SLACK_SECTION_LIMIT, SummaryTemplate


def test_build_prompt(workflow_run):
    excerpt = Excerpt(lines=("=== Job: build ===", "error: cannot find module 'left-pad'"))

    prompt = SummaryTemplate.build_prompt(workflow_run, ["build", "lint"], excerpt)

    assert "Repository: acme/widgets" in prompt
    assert "Workflow: CI" in prompt
    assert "Branch: main" in prompt
    assert "Commit: 0123456" in prompt
    assert "Author: Alex Doe" in prompt
    assert "Failed Jobs: build, lint" in prompt
    assert "LOGS:\n=== Job: build ===\nerror: cannot find module 'left-pad'\n" in prompt
    assert "**Root Cause**" in prompt


def test_format_slack(workflow_run):
    message = SummaryTemplate.format_slack(workflow_run, ["build"], "*Root Cause*: typo")

    header, fields, _, summary, _, actions = message.blocks
    assert header["text"]["text"] == "CI Failed: CI"
    assert fields["fields"][0]["text"] == "*Repository:*\n<https://github.com/acme/widgets|acme/widgets>"
    assert fields["fields"][2]["text"] == (
        "*Commit:*\n<https://github.com/acme/widgets/commit/0123456789abcdef|0123456>"
    )
    assert fields["fields"][3]["text"] == "*Failed Jobs:*\nbuild"
    assert summary["text"]["text"] == "*Root Cause*: typo"
    button = actions["elements"][0]
    assert button["text"]["text"] == "View Workflow Run"
    assert button["url"] == "https://github.com/acme/widgets/actions/runs/42"
    assert message.text == "CI Failed: CI"


def test_format_slack_enterprise_server_and_long_summary(workflow_run):
    message = SummaryTemplate.format_slack(
        workflow_run, ["build"], "x" * 5000, server_url="https://ghe.example.com/"
    )

    assert "<https://ghe.example.com/acme/widgets|acme/widgets>" in message.blocks[1]["fields"][0]["text"]
    summary = message.blocks[3]["text"]["text"]
    assert len(summary) == SLACK_SECTION_LIMIT
    assert summary.endswith("...")


def test_format_slack_without_run_url(workflow_run):
    run = workflow_run.model_copy(update={"html_url": "", "commit_url": None})

    message = SummaryTemplate.format_slack(run, ["build"], "summary")

    assert [b["type"] for b in message.blocks] == ["header", "section", "divider", "section", "divider"]
    assert "<#|0123456>" in message.blocks[1]["fields"][2]["text"]

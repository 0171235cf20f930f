"""Prompt and Slack message templates for failed workflow runs."""

from typing import List

from cisummary.schemas import Excerpt, RenderedMessage, WorkflowRun


PROMPT_TEMPLATE = """You are a CI/CD expert. Analyze these GitHub Actions logs from a failed workflow run and provide a concise summary.

Repository: {repository}
Workflow: {workflow}
Branch: {branch}
Commit: {commit}
Author: {author}
Failed Jobs: {jobs}

LOGS:
{logs}

Provide a response in this format:
1. **Root Cause**: One sentence explaining what caused the failure
2. **Error**: The specific error message (if identifiable)
3. **Suggested Fix**: Brief actionable suggestion to fix the issue
4. **Relevant Log Snippet**: The most relevant 3-5 lines from the logs (only if helpful)

Keep it concise - this will be posted to Slack. Focus on being helpful, not comprehensive."""

# Slack rejects section text longer than this
SLACK_SECTION_LIMIT = 3000


class SummaryTemplate:
    """Format run metadata, logs and summaries for the AI backend and Slack."""

    @staticmethod
    def build_prompt(run: WorkflowRun, failed_jobs: List[str], excerpt: Excerpt) -> str:
        """Build the analysis prompt sent to the AI provider."""
        return PROMPT_TEMPLATE.format(
            repository=run.repository,
            workflow=run.name,
            branch=run.head_branch or "unknown",
            commit=run.short_sha,
            author=run.author.name,
            jobs=", ".join(failed_jobs),
            logs=excerpt.text,
        )

    @staticmethod
    def format_slack(
        run: WorkflowRun,
        failed_jobs: List[str],
        summary: str,
        server_url: str = "https://github.com",
    ) -> RenderedMessage:
        """Format the AI summary as Slack blocks."""
        repo_url = f"{server_url.rstrip('/')}/{run.repository}"
        commit_url = run.commit_url or "#"
        title = f"CI Failed: {run.name}"

        if len(summary) > SLACK_SECTION_LIMIT:
            summary = summary[: SLACK_SECTION_LIMIT - 3] + "..."

        blocks = [
            {
                "type": "header",
                "text": {
                    "type": "plain_text",
                    "text": title,
                    "emoji": True,
                },
            },
            {
                "type": "section",
                "fields": [
                    {
                        "type": "mrkdwn",
                        "text": f"*Repository:*\n<{repo_url}|{run.repository}>",
                    },
                    {
                        "type": "mrkdwn",
                        "text": f"*Branch:*\n{run.head_branch or 'unknown'}",
                    },
                    {
                        "type": "mrkdwn",
                        "text": f"*Commit:*\n<{commit_url}|{run.short_sha}>",
                    },
                    {
                        "type": "mrkdwn",
                        "text": f"*Failed Jobs:*\n{', '.join(failed_jobs)}",
                    },
                ],
            },
            {"type": "divider"},
            {
                "type": "section",
                "text": {
                    "type": "mrkdwn",
                    "text": summary,
                },
            },
            {"type": "divider"},
        ]

        if run.html_url:
            blocks.append({
                "type": "actions",
                "elements": [
                    {
                        "type": "button",
                        "text": {
                            "type": "plain_text",
                            "text": "View Workflow Run",
                            "emoji": True,
                        },
                        "url": run.html_url,
                    }
                ],
            })

        return RenderedMessage(blocks=blocks, text=title)

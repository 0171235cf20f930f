"""GitHub Actions REST collector for failed workflow runs."""

import asyncio
from typing import Any, List, Optional

import aiohttp
from pydantic import ValidationError

from cisummary.exceptions import LogSourceError
from cisummary.schemas import CommitAuthor, Job, WorkflowRun
from .base import BaseCollector


class GitHubActionsCollector(BaseCollector):
    """Reads run metadata, jobs and job logs from the GitHub REST API."""

    API_URL = "https://api.github.com"

    def __init__(self, token: str, repository: str, api_url: Optional[str] = None):
        self.token = token
        self.repository = repository
        self.api_url = (api_url or self.API_URL).rstrip("/")
        self._session: Optional[aiohttp.ClientSession] = None

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            headers = {
                "Authorization": f"Bearer {self.token}",
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": "2022-11-28",
            }
            self._session = aiohttp.ClientSession(headers=headers)
        return self._session

    async def close(self) -> None:
        if self._session and not self._session.closed:
            await self._session.close()

    async def _get(self, path: str, as_text: bool = False, **params) -> Any:
        session = await self._get_session()
        url = f"{self.api_url}/repos/{self.repository}/{path}"
        try:
            async with session.get(url, params=params or None) as response:
                if response.status != 200:
                    error = await response.text()
                    raise LogSourceError(
                        f"GitHub API GET {path} failed: HTTP {response.status}",
                        detail=error or None,
                    )
                if as_text:
                    return await response.text(errors="replace")
                return await response.json()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise LogSourceError(f"GitHub API GET {path} failed", detail=str(e) or type(e).__name__) from e
        except ValueError as e:
            raise LogSourceError(f"GitHub API GET {path} returned invalid JSON", detail=str(e)) from e

    async def get_workflow_run(self, run_id: int) -> WorkflowRun:
        data = await self._get(f"actions/runs/{run_id}")
        head_commit = data.get("head_commit") or {}
        author = head_commit.get("author") or {}
        head_sha = data.get("head_sha", "")

        commit_url = head_commit.get("url")
        if not commit_url and head_sha:
            repo_url = (data.get("repository") or {}).get("html_url")
            if repo_url:
                commit_url = f"{repo_url}/commit/{head_sha}"

        return WorkflowRun(
            id=data.get("id", run_id),
            name=data.get("name") or "Unknown workflow",
            repository=self.repository,
            head_branch=data.get("head_branch"),
            head_sha=head_sha,
            commit_url=commit_url,
            html_url=data.get("html_url", ""),
            author=CommitAuthor(
                name=author.get("name") or "Unknown",
                email=author.get("email") or None,
            ),
        )

    async def list_jobs(self, run_id: int) -> List[Job]:
        data = await self._get(f"actions/runs/{run_id}/jobs", per_page=100)
        try:
            return [Job.model_validate(job) for job in data.get("jobs", [])]
        except ValidationError as e:
            raise LogSourceError(f"Unexpected job listing for run {run_id}", detail=str(e)) from e

    async def fetch_job_log(self, job: Job) -> str:
        return await self._get(f"actions/jobs/{job.id}/logs", as_text=True)

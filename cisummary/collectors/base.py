"""Base collector interface."""

from abc import ABC, abstractmethod
from typing import List

from loguru import logger

from cisummary.exceptions import LogSourceError
from cisummary.schemas import Job, JobLog, WorkflowRun


class BaseCollector(ABC):
    """Source of workflow run metadata and job logs."""

    @abstractmethod
    async def get_workflow_run(self, run_id: int) -> WorkflowRun:
        """Fetch run metadata."""
        pass

    @abstractmethod
    async def list_jobs(self, run_id: int) -> List[Job]:
        """List the run's jobs in the order the CI provider reports them."""
        pass

    @abstractmethod
    async def fetch_job_log(self, job: Job) -> str:
        """Fetch the raw log text of one job."""
        pass

    async def close(self) -> None:
        """Release network resources."""
        pass

    async def list_failed_jobs(self, run_id: int) -> List[Job]:
        return [job for job in await self.list_jobs(run_id) if job.failed]

    async def fetch_job_logs(self, jobs: List[Job]) -> List[JobLog]:
        """
        Fetch logs one job at a time, in the order given.

        A job whose log cannot be fetched is skipped with a warning; the caller
        decides what to do when nothing could be fetched.
        """
        logs: List[JobLog] = []
        for job in jobs:
            logger.info(f"Fetching logs for job: {job.name}")
            try:
                text = await self.fetch_job_log(job)
            except LogSourceError as e:
                logger.warning(f"Failed to fetch logs for job {job.name}: {e}")
                continue
            logs.append(JobLog(job_id=job.id, name=job.name, text=text))
        return logs

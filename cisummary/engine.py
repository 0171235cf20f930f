"""Main orchestration engine."""

from typing import Optional

from loguru import logger

from cisummary.collectors import BaseCollector, GitHubActionsCollector
from cisummary.config import Settings
from cisummary.exceptions import (
    ConfigurationError,
    LogSourceError,
    ProviderConfigurationError,
)
from cisummary.processors import select_excerpt
from cisummary.schemas import AnalysisResult, ExcerptStrategy, LogCorpus
from cisummary.services.notifications import (
    NotificationRouter,
    RouterConfig,
    SummaryTemplate,
    DEFAULT_MODELS,
    complete,
    resolve_provider,
)


class SummaryEngine:
    """Fetch failed job logs, summarize them and notify Slack."""

    def __init__(
        self,
        settings: Settings,
        collector: Optional[BaseCollector] = None,
        router: Optional[NotificationRouter] = None,
    ):
        self.settings = settings
        self.summary: Optional[str] = None

        # Configuration problems surface here, before any network call
        self.provider = resolve_provider(settings.ai.provider)
        self.api_key = settings.ai.api_key_for(self.provider)
        if not self.api_key:
            raise ProviderConfigurationError.missing_credential(self.provider.value)
        self.model = settings.ai.model or DEFAULT_MODELS[self.provider]

        self.router = router or NotificationRouter(
            RouterConfig(
                mode=settings.slack.notification_mode,
                webhook_url=settings.slack.webhook_url or None,
                bot_token=settings.slack.bot_token or None,
                fallback_channel=settings.slack.fallback_channel or None,
            )
        )

        if collector is None:
            if not settings.github.token:
                raise ConfigurationError("github_token is required")
            if not settings.github.repository:
                raise ConfigurationError("GITHUB_REPOSITORY is not set")
            collector = GitHubActionsCollector(
                token=settings.github.token,
                repository=settings.github.repository,
                api_url=settings.github.api_url,
            )
        self.collector = collector

    async def close(self) -> None:
        await self.collector.close()
        await self.router.close()

    async def run(self, run_id: Optional[int] = None) -> AnalysisResult:
        """Analyze one workflow run. Any failure propagates to the caller."""
        run_id = run_id or self.settings.github.run_id
        if not run_id:
            raise ConfigurationError("run_id is required")

        try:
            return await self._run(run_id)
        finally:
            await self.close()

    async def _run(self, run_id: int) -> AnalysisResult:
        logger.info(f"Analyzing workflow run {run_id} in {self.settings.github.repository}")

        run = await self.collector.get_workflow_run(run_id)
        logger.info(f"Commit author: {run.author.name} <{run.author.email}>")

        failed_jobs = await self.collector.list_failed_jobs(run_id)
        if not failed_jobs:
            logger.info("No failed jobs found in this workflow run")
            return AnalysisResult(run=run)

        job_names = [job.name for job in failed_jobs]
        logger.info(f"Found {len(failed_jobs)} failed job(s)")

        job_logs = await self.collector.fetch_job_logs(failed_jobs)
        if not job_logs:
            raise LogSourceError("Could not fetch any logs from failed jobs")

        corpus = LogCorpus.from_job_logs(job_logs)
        max_lines = self.settings.extraction.max_log_lines
        excerpt = select_excerpt(corpus, max_lines, self.settings.extraction.context_lines)
        if excerpt.strategy == ExcerptStrategy.KEYWORD:
            logger.info(
                f"Extracted relevant log sections using keyword matching ({len(excerpt)} lines)"
            )
        else:
            logger.info(f"No keyword matches found, using last {len(excerpt)} lines")

        prompt = SummaryTemplate.build_prompt(run, job_names, excerpt)
        summary = await complete(
            self.provider,
            self.api_key,
            self.model,
            prompt,
            max_tokens=self.settings.ai.max_tokens,
        )
        logger.info("Analysis complete")
        self.summary = summary

        message = SummaryTemplate.format_slack(
            run, job_names, summary, server_url=self.settings.github.server_url
        )
        notification = await self.router.notify(message, run.author)

        return AnalysisResult(
            run=run,
            failed_jobs=job_names,
            excerpt=excerpt,
            summary=summary,
            notification=notification,
        )

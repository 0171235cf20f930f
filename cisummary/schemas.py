"""Core data models."""

from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field


JOB_MARKER = "=== Job: {name} ==="
SKIPPED_MARKER = "... (skipped lines) ..."


class JobLog(BaseModel):
    """Raw log text of one failed job."""
    model_config = ConfigDict(frozen=True)

    job_id: int
    name: str
    text: str


class LogCorpus(BaseModel):
    """Concatenated log lines of every failed job in one run."""
    model_config = ConfigDict(frozen=True)

    lines: Tuple[str, ...] = ()

    @classmethod
    def from_text(cls, text: str) -> "LogCorpus":
        if not text:
            return cls()
        return cls(lines=tuple(text.split("\n")))

    @classmethod
    def from_job_logs(cls, job_logs: List[JobLog]) -> "LogCorpus":
        """Join job logs in the given order, each behind a job boundary marker."""
        text = "".join(
            f"\n\n{JOB_MARKER.format(name=log.name)}\n{log.text}" for log in job_logs
        )
        return cls.from_text(text)

    def __len__(self) -> int:
        return len(self.lines)

    @property
    def is_empty(self) -> bool:
        return not self.lines


class MatchWindow(BaseModel):
    """Inclusive range of corpus line indices kept around a match."""
    model_config = ConfigDict(frozen=True)

    start: int
    end: int

    def __len__(self) -> int:
        return self.end - self.start + 1


class ExcerptStrategy(str, Enum):
    """How an excerpt was cut from the corpus."""
    KEYWORD = "keyword"
    TAIL = "tail"


class Excerpt(BaseModel):
    """Bounded, ordered log text handed to the AI backend."""
    model_config = ConfigDict(frozen=True)

    lines: Tuple[str, ...] = ()
    strategy: ExcerptStrategy = ExcerptStrategy.KEYWORD
    truncated: bool = False

    def __len__(self) -> int:
        return len(self.lines)

    @property
    def text(self) -> str:
        return "\n".join(self.lines)


class ProviderName(str, Enum):
    """Supported AI backends."""
    ANTHROPIC = "anthropic"
    GROQ = "groq"
    GEMINI = "gemini"


class NotificationMode(str, Enum):
    CHANNEL = "channel"
    DM = "dm"


class CommitAuthor(BaseModel):
    """Head commit author, used only to look up a Slack user."""
    model_config = ConfigDict(frozen=True)

    name: str = "Unknown"
    email: Optional[str] = None


class Job(BaseModel):
    id: int
    name: str
    status: Optional[str] = None
    conclusion: Optional[str] = None
    html_url: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.conclusion == "failure"


class WorkflowRun(BaseModel):
    """Workflow run metadata shown in the prompt and the Slack message."""
    id: int
    name: str = Field(..., description="Workflow name")
    repository: str = Field(..., description="owner/repo")
    head_branch: Optional[str] = None
    head_sha: str = ""
    commit_url: Optional[str] = None
    html_url: str = Field("", description="Run page on GitHub")
    author: CommitAuthor = Field(default_factory=CommitAuthor)

    @property
    def short_sha(self) -> str:
        return self.head_sha[:7]


class DirectMessage(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["dm"] = "dm"
    user_id: str
    channel_id: Optional[str] = None


class Channel(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["channel"] = "channel"
    channel_id: str


class Webhook(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["webhook"] = "webhook"
    url: str


NotificationTarget = Annotated[Union[DirectMessage, Channel, Webhook], Field(discriminator="kind")]


class DeliveryState(str, Enum):
    """Terminal states of notification routing."""
    DELIVERED = "delivered"
    DELIVERED_VIA_FALLBACK = "delivered_via_fallback"
    FAILED = "failed"


class NotificationResult(BaseModel):
    state: DeliveryState
    target: Optional[NotificationTarget] = None
    notified_user: Optional[str] = Field(None, description="Slack user id reached by DM")
    timestamp: Optional[str] = Field(None, description="Slack message ts")
    reason: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.state != DeliveryState.FAILED


class RenderedMessage(BaseModel):
    """Slack Block Kit message."""
    blocks: List[Dict[str, Any]]
    text: Optional[str] = Field(None, description="Plain-text fallback for notifications")

    def payload(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"blocks": self.blocks}
        if self.text:
            data["text"] = self.text
        return data


class AnalysisResult(BaseModel):
    """Outcome of one pipeline run."""
    run: WorkflowRun
    failed_jobs: List[str] = Field(default_factory=list)
    excerpt: Optional[Excerpt] = None
    summary: Optional[str] = None
    notification: Optional[NotificationResult] = None

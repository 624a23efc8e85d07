"""Domain models for secret version cleanup."""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional, Tuple


class VersionState(Enum):
    """Lifecycle state of a secret version as reported by Secret Manager."""
    ENABLED = "ENABLED"
    DISABLED = "DISABLED"
    DESTROYED = "DESTROYED"


class ExecutionMode(Enum):
    """Whether mutations are applied or only reported."""
    LIVE = "live"
    DRY_RUN = "dry-run"


@dataclass(frozen=True)
class VersionRecord:
    """Read-only snapshot of one secret version."""
    name: str
    create_time_seconds: int
    create_time_nanos: int
    state: VersionState

    @property
    def sort_key(self) -> Tuple[int, int]:
        return (self.create_time_seconds, self.create_time_nanos)


@dataclass(frozen=True)
class RetentionPolicy:
    """How many of the newest disabled versions survive the destroy phase."""
    keep_disabled_count: int = 2

    def __post_init__(self):
        if not isinstance(self.keep_disabled_count, int) or isinstance(self.keep_disabled_count, bool):
            raise ValueError(f"keep_disabled_count must be an integer, got {self.keep_disabled_count!r}")
        if self.keep_disabled_count < 0:
            raise ValueError(f"keep_disabled_count must be non-negative, got {self.keep_disabled_count}")


@dataclass(frozen=True)
class CleanerConfig:
    """
    Run configuration, built once at startup and passed to the workflows.

    Attributes:
        project_id: GCP project whose secrets are swept
        retention: Disabled-version retention policy
        mode: LIVE applies mutations, DRY_RUN only reports them
        debug: Enables debug logging
        continue_on_error: Skip a failing secret instead of aborting the run
        service_account_path: Optional service account JSON for the client
        log_shipping_url: Optional HTTP endpoint receiving log records
        log_token_secret: Secret holding the log shipping token
    """
    project_id: str
    retention: RetentionPolicy = field(default_factory=RetentionPolicy)
    mode: ExecutionMode = ExecutionMode.LIVE
    debug: bool = False
    continue_on_error: bool = False
    service_account_path: Optional[str] = None
    log_shipping_url: Optional[str] = None
    log_token_secret: Optional[str] = None

    @property
    def project_path(self) -> str:
        return f"projects/{self.project_id}"

    @property
    def dry_run(self) -> bool:
        return self.mode is ExecutionMode.DRY_RUN


class EventKind(Enum):
    """Kinds of structured events emitted during a run."""
    RUN_STARTED = "run_started"
    RUN_FINISHED = "run_finished"
    SECRET_STARTED = "secret_started"
    LATEST_IDENTIFIED = "latest_identified"
    DISABLED = "disabled"
    WOULD_DISABLE = "would_disable"
    DESTROYED = "destroyed"
    WOULD_DESTROY = "would_destroy"
    SECRET_FAILED = "secret_failed"
    FATAL = "fatal"


@dataclass(frozen=True)
class SweepEvent:
    """A single structured log event."""
    kind: EventKind
    project_id: str
    message: str
    secret: Optional[str] = None
    version: Optional[str] = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass
class SweepReport:
    """Selection sets computed for one secret during a sweep."""
    secret: str
    mode: ExecutionMode
    latest: Optional[VersionRecord] = None
    to_disable: List[VersionRecord] = field(default_factory=list)
    to_destroy: List[VersionRecord] = field(default_factory=list)

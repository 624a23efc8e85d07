"""Workflow for sweeping secret versions: disable old versions, destroy surplus."""
import logging
from typing import List

from ..domains.gcp_client import StoreError
from ..domains.event_sink import EventSink
from ..domains.models import (
    CleanerConfig,
    EventKind,
    SweepEvent,
    SweepReport,
    VersionState,
)
from ..domains.selection import (
    select_for_destruction,
    select_latest_and_others,
    sort_newest_first,
)

logger = logging.getLogger(__name__)


class SweepIncompleteError(Exception):
    """One or more secrets failed while continue_on_error was set."""

    def __init__(self, failed_secrets: List[str]):
        self.failed_secrets = failed_secrets
        super().__init__(
            f"{len(failed_secrets)} secret(s) could not be swept: {', '.join(failed_secrets)}"
        )


def _disable_phase(store, secret: str, config: CleanerConfig, sink: EventSink, report: SweepReport) -> None:
    enabled = store.list_versions(secret, VersionState.ENABLED)
    latest, others = select_latest_and_others(enabled)
    if latest is None:
        logger.debug(f"No enabled versions for {secret}")
        return

    report.latest = latest
    report.to_disable = others
    sink.emit(SweepEvent(
        kind=EventKind.LATEST_IDENTIFIED,
        project_id=config.project_id,
        message=f"Latest version identified: {latest.name}",
        secret=secret,
        version=latest.name,
    ))

    for version in others:
        if config.dry_run:
            sink.emit(SweepEvent(
                kind=EventKind.WOULD_DISABLE,
                project_id=config.project_id,
                message=f"Would disable secret version: {version.name}",
                secret=secret,
                version=version.name,
            ))
            continue

        store.disable_version(version.name)
        sink.emit(SweepEvent(
            kind=EventKind.DISABLED,
            project_id=config.project_id,
            message=f"Disabled secret version: {version.name}",
            secret=secret,
            version=version.name,
        ))


def _destroy_phase(store, secret: str, config: CleanerConfig, sink: EventSink, report: SweepReport) -> None:
    disabled = store.list_versions(secret, VersionState.DISABLED)
    if config.dry_run:
        # Nothing was disabled in phase one, so account for what would have been
        listed = {v.name for v in disabled}
        disabled = disabled + [v for v in report.to_disable if v.name not in listed]

    keep = config.retention.keep_disabled_count
    report.to_destroy = select_for_destruction(sort_newest_first(disabled), keep)
    logger.debug(
        f"{secret}: {len(disabled)} disabled, keeping {keep}, destroying {len(report.to_destroy)}"
    )

    for version in report.to_destroy:
        if config.dry_run:
            sink.emit(SweepEvent(
                kind=EventKind.WOULD_DESTROY,
                project_id=config.project_id,
                message=f"Would destroy secret version: {version.name}",
                secret=secret,
                version=version.name,
            ))
            continue

        store.destroy_version(version.name)
        sink.emit(SweepEvent(
            kind=EventKind.DESTROYED,
            project_id=config.project_id,
            message=f"Destroyed secret version: {version.name}",
            secret=secret,
            version=version.name,
        ))


def sweep_secret(store, secret: str, config: CleanerConfig, sink: EventSink) -> SweepReport:
    """
    Clean up the versions of a single secret.

    Phase one disables every enabled version except the newest. Phase two
    re-lists the disabled versions and destroys all but the newest
    `keep_disabled_count` of them. In dry-run mode only listing calls are
    made and the intended actions are emitted as events.

    Args:
        store: Secret version store (see GCPSecretVersionStore)
        secret: Fully-qualified secret name
        config: Run configuration
        sink: Receives one event per decision

    Returns:
        SweepReport with the computed selection sets

    Raises:
        StoreError: If any list, disable or destroy call fails
    """
    report = SweepReport(secret=secret, mode=config.mode)
    sink.emit(SweepEvent(
        kind=EventKind.SECRET_STARTED,
        project_id=config.project_id,
        message=f"Analyzing secret: {secret}",
        secret=secret,
    ))

    _disable_phase(store, secret, config, sink, report)
    _destroy_phase(store, secret, config, sink, report)
    return report


def run_project(store, config: CleanerConfig, sink: EventSink) -> List[SweepReport]:
    """
    Sweep every secret in the configured project, one at a time.

    Secrets are processed in the order the store lists them. By default the
    first failure aborts the run. With continue_on_error the failing secret is
    reported and skipped, and SweepIncompleteError is raised at the end.

    Returns:
        One SweepReport per successfully swept secret

    Raises:
        StoreError: If listing secrets fails, or on the first failure when
            continue_on_error is off
        SweepIncompleteError: If any secret failed with continue_on_error on
    """
    sink.emit(SweepEvent(
        kind=EventKind.RUN_STARTED,
        project_id=config.project_id,
        message=(
            f"Starting {config.mode.value} cleanup of {config.project_path} "
            f"(keeping {config.retention.keep_disabled_count} disabled versions)"
        ),
    ))

    secrets = store.list_secrets(config.project_id)
    reports: List[SweepReport] = []
    failed: List[str] = []

    for secret in secrets:
        try:
            reports.append(sweep_secret(store, secret, config, sink))
        except StoreError as e:
            if not config.continue_on_error:
                raise
            failed.append(secret)
            sink.emit(SweepEvent(
                kind=EventKind.SECRET_FAILED,
                project_id=config.project_id,
                message=f"Skipping secret after error: {e}",
                secret=secret,
            ))

    sink.emit(SweepEvent(
        kind=EventKind.RUN_FINISHED,
        project_id=config.project_id,
        message=f"Finished cleanup: {len(reports)} of {len(secrets)} secrets swept",
    ))

    if failed:
        raise SweepIncompleteError(failed)
    return reports

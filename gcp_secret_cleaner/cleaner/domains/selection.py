"""Version selection rules for the disable and destroy phases."""
from typing import List, Optional, Sequence, Tuple

from .models import VersionRecord


def select_latest_and_others(
    versions: Sequence[VersionRecord],
) -> Tuple[Optional[VersionRecord], List[VersionRecord]]:
    """
    Pick the newest version and return it together with everything else.

    Versions are compared on (create_time_seconds, create_time_nanos). Input
    order does not matter for the result, except that when several versions
    share the greatest timestamp exactly, the first one in input order wins.

    Args:
        versions: Enabled versions of a single secret, in any order

    Returns:
        (latest, others) where others preserves input order. An empty input
        returns (None, []).
    """
    latest_index = None
    for index, version in enumerate(versions):
        # Strictly greater only, so ties keep the earlier record
        if latest_index is None or version.sort_key > versions[latest_index].sort_key:
            latest_index = index

    if latest_index is None:
        return None, []

    others = [v for i, v in enumerate(versions) if i != latest_index]
    return versions[latest_index], others


def sort_newest_first(versions: Sequence[VersionRecord]) -> List[VersionRecord]:
    """Stable sort by creation time, newest first."""
    return sorted(versions, key=lambda v: v.sort_key, reverse=True)


def select_for_destruction(
    disabled_newest_first: Sequence[VersionRecord],
    keep: int,
) -> List[VersionRecord]:
    """
    Return the disabled versions beyond the retention threshold.

    Args:
        disabled_newest_first: Disabled versions ordered newest first
        keep: Number of most recent disabled versions to retain

    Returns:
        Everything after the first `keep` entries (empty if there are no more
        than `keep` entries).

    Raises:
        ValueError: If keep is negative
    """
    if keep < 0:
        raise ValueError(f"keep must be non-negative, got {keep}")
    return list(disabled_newest_first[keep:])

"""Diff between two merged configuration snapshots."""

import logging
from collections.abc import Mapping

from ..models.schemas import ChangeRecord
from .structures import CaseInsensitiveDict

logger = logging.getLogger(__name__)


def diff_snapshots(before: Mapping[str, str], after: Mapping[str, str]) -> ChangeRecord:
    """Calculate the keys added, modified and removed between two snapshots.

    Keys are matched case-insensitively; values are compared exactly.
    Reported keys use the casing found in ``after`` for added and modified
    entries and the casing found in ``before`` for removed ones.

    Args:
        before: Merged snapshot prior to the change
        after: Merged snapshot after the change

    Returns:
        ChangeRecord, empty when nothing differs
    """
    old = before if isinstance(before, CaseInsensitiveDict) else CaseInsensitiveDict(before)
    new = after if isinstance(after, CaseInsensitiveDict) else CaseInsensitiveDict(after)

    added = CaseInsensitiveDict()
    modified = CaseInsensitiveDict()
    removed: list[str] = []

    for key, value in new.items():
        if key not in old:
            added[key] = value
        else:
            previous = old[key]
            if previous != value:
                modified[key] = (previous, value)

    for key in old:
        if key not in new:
            removed.append(key)

    record = ChangeRecord(added=added, modified=modified, removed=removed)
    if record:
        logger.debug(
            f"Snapshot diff: {len(added)} added, {len(modified)} modified, "
            f"{len(removed)} removed"
        )
    return record

"""
Notification Deduplication

Decides which alert candidates are genuinely new compared to the unread
notifications already in the log.

Rules:
- volatile candidates (near-full capacity) are suppressed when any unread key
  starts with the candidate's base key, so a changing occupancy count does
  not re-alert while the earlier alert is still unread;
- every other candidate is suppressed only by an exact key match;
- identical candidates within one batch are collapsed to the first.

Read notifications are not part of the unread set, so a condition that is
still true alerts again once its previous notification has been read.
"""

import logging
from collections.abc import Iterable

from app.modules.notifications.formatting import AlertCandidate

logger = logging.getLogger(__name__)


def is_suppressed(candidate: AlertCandidate, unread_keys: set[str]) -> bool:
    """Check one candidate against the unread keys."""
    if candidate.volatile:
        return any(key.startswith(candidate.dedupe_key) for key in unread_keys)
    return candidate.dedupe_key in unread_keys


def filter_new_candidates(
    candidates: Iterable[AlertCandidate],
    unread_keys: Iterable[str],
) -> tuple[list[AlertCandidate], list[AlertCandidate]]:
    """
    Split candidates into those to insert and those to drop.

    Args:
        candidates: Freshly generated candidates, in generation order
        unread_keys: Keys (or messages, for rows without a key) of unread
            notifications

    Returns:
        Tuple of (accepted, suppressed), both preserving input order
    """
    seen = set(unread_keys)
    accepted: list[AlertCandidate] = []
    suppressed: list[AlertCandidate] = []

    for candidate in candidates:
        if is_suppressed(candidate, seen):
            suppressed.append(candidate)
            continue
        accepted.append(candidate)
        seen.add(candidate.dedupe_key)

    if suppressed:
        logger.debug(f"Suppressed {len(suppressed)} notification candidate(s) already unread")

    return accepted, suppressed

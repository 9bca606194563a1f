"""
Unit tests for notification deduplication.
"""

from app.modules.notifications.dedup import filter_new_candidates, is_suppressed
from app.modules.notifications.formatting import AlertCandidate
from app.modules.notifications.models import NotificationType

LATE = AlertCandidate(
    type=NotificationType.LATE_PAYMENT,
    dedupe_key="Reminder: payment for student Ahmed Ali is overdue.",
    message="Reminder: payment for student Ahmed Ali is overdue.",
)
FULL = AlertCandidate(
    type=NotificationType.CAPACITY,
    dedupe_key="Notice: group Beginners A has reached full capacity.",
    message="Notice: group Beginners A has reached full capacity.",
)
NEAR_BASE = "Notice: group Intermediate B is nearing full capacity"


def near_full(enrolled: int, capacity: int) -> AlertCandidate:
    return AlertCandidate(
        type=NotificationType.CAPACITY,
        dedupe_key=NEAR_BASE,
        message=f"{NEAR_BASE} ({enrolled}/{capacity}).",
        volatile=True,
    )


class TestIsSuppressed:
    """Tests for is_suppressed."""

    def test_stable_exact_match_is_suppressed(self):
        assert is_suppressed(LATE, {LATE.dedupe_key}) is True

    def test_stable_prefix_match_is_not_enough(self):
        assert is_suppressed(LATE, {LATE.dedupe_key + " extra"}) is False

    def test_full_capacity_requires_exact_match(self):
        assert is_suppressed(FULL, {"Notice: group Beginners A"}) is False
        assert is_suppressed(FULL, {FULL.dedupe_key}) is True

    def test_volatile_matches_stored_base_key(self):
        assert is_suppressed(near_full(9, 10), {NEAR_BASE}) is True

    def test_volatile_matches_legacy_full_message(self):
        """Rows without a dedupe key are keyed by their full message."""
        assert is_suppressed(near_full(9, 10), {f"{NEAR_BASE} (8/10)."}) is True

    def test_volatile_other_group_not_suppressed(self):
        other = "Notice: group Advanced C is nearing full capacity"
        assert is_suppressed(near_full(9, 10), {other}) is False


class TestFilterNewCandidates:
    """Tests for filter_new_candidates."""

    def test_empty_unread_set_accepts_everything(self):
        accepted, suppressed = filter_new_candidates([LATE, FULL, near_full(8, 10)], set())
        assert accepted == [LATE, FULL, near_full(8, 10)]
        assert suppressed == []

    def test_unread_duplicates_are_dropped(self):
        accepted, suppressed = filter_new_candidates(
            [LATE, FULL, near_full(9, 10)],
            {LATE.dedupe_key, NEAR_BASE},
        )
        assert accepted == [FULL]
        assert suppressed == [LATE, near_full(9, 10)]

    def test_duplicates_within_one_batch_collapse(self):
        accepted, suppressed = filter_new_candidates([LATE, LATE, near_full(8, 10)], [])
        assert accepted == [LATE, near_full(8, 10)]
        assert suppressed == [LATE]

    def test_no_candidates(self):
        assert filter_new_candidates([], {LATE.dedupe_key}) == ([], [])

    def test_does_not_mutate_unread_input(self):
        unread = {FULL.dedupe_key}
        filter_new_candidates([LATE], unread)
        assert unread == {FULL.dedupe_key}

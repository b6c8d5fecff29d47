from datetime import datetime, timedelta, timezone

from emoji_gate.approval import check_approval, rejection_reason
from emoji_gate.models import ApprovalPolicy, Reaction

LAST_COMMIT = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)

BASE_POLICY = ApprovalPolicy(
    approve_emoji="thumbsup",
    mr_author="mr_author",
    target_path="project/staging/app",
)


def _reaction(user="approver", emoji="thumbsup", updated_at=None) -> Reaction:
    return Reaction(emoji_name=emoji, username=user, updated_at=updated_at)


def test_owner_with_approval_emoji_approves():
    assert check_approval({"approver"}, _reaction(), BASE_POLICY) is True
    assert rejection_reason({"approver"}, _reaction(), BASE_POLICY) is None


def test_wrong_emoji_is_rejected():
    reaction = _reaction(emoji="thumbsdown")
    assert check_approval({"approver"}, reaction, BASE_POLICY) is False
    assert "not 'thumbsup'" in rejection_reason({"approver"}, reaction, BASE_POLICY)


def test_non_owner_is_rejected():
    assert check_approval({"some_other_user"}, _reaction(), BASE_POLICY) is False
    assert check_approval(set(), _reaction(), BASE_POLICY) is False


def test_owner_match_is_case_sensitive():
    assert check_approval({"Approver"}, _reaction(user="approver"), BASE_POLICY) is False


def test_author_can_never_self_approve_unless_insecure():
    reaction = _reaction(user="mr_author")
    owners = {"mr_author"}
    for freshness in (False, True):
        policy = BASE_POLICY.model_copy(update={"restricted_freshness": freshness})
        assert check_approval(owners, reaction, policy, LAST_COMMIT) is False
        assert "cannot approve their own MR" in rejection_reason(owners, reaction, policy)

    insecure = BASE_POLICY.model_copy(update={"insecure_self_approval": True})
    assert check_approval(owners, reaction, insecure) is True


def test_self_approval_is_checked_before_ownership():
    reason = rejection_reason(set(), _reaction(user="mr_author"), BASE_POLICY)
    assert "cannot approve their own MR" in reason


def test_stale_reaction_is_rejected_when_freshness_is_restricted():
    policy = BASE_POLICY.model_copy(update={"restricted_freshness": True})
    stale = _reaction(updated_at=LAST_COMMIT - timedelta(hours=1))
    assert check_approval({"approver"}, stale, policy, LAST_COMMIT) is False
    assert "is stale" in rejection_reason({"approver"}, stale, policy, LAST_COMMIT)


def test_reaction_at_or_after_last_commit_is_fresh():
    policy = BASE_POLICY.model_copy(update={"restricted_freshness": True})
    same_time = _reaction(updated_at=LAST_COMMIT)
    later = _reaction(updated_at=LAST_COMMIT + timedelta(minutes=5))
    assert check_approval({"approver"}, same_time, policy, LAST_COMMIT) is True
    assert check_approval({"approver"}, later, policy, LAST_COMMIT) is True


def test_freshness_is_ignored_when_not_restricted():
    stale = _reaction(updated_at=LAST_COMMIT - timedelta(days=3))
    assert check_approval({"approver"}, stale, BASE_POLICY, LAST_COMMIT) is True


def test_unprovable_freshness_is_rejected():
    policy = BASE_POLICY.model_copy(update={"restricted_freshness": True})
    no_timestamp = _reaction(updated_at=None)
    assert check_approval({"approver"}, no_timestamp, policy, LAST_COMMIT) is False
    fresh = _reaction(updated_at=LAST_COMMIT)
    assert check_approval({"approver"}, fresh, policy, None) is False


def test_timestamps_without_offset_are_treated_as_utc():
    policy = BASE_POLICY.model_copy(update={"restricted_freshness": True})
    naive_cutoff = datetime(2024, 1, 1, 12, 0)

    stale = _reaction(updated_at=LAST_COMMIT - timedelta(minutes=1))
    assert check_approval({"approver"}, stale, policy, naive_cutoff) is False

    naive_fresh = _reaction(updated_at=datetime(2024, 1, 1, 12, 30))
    assert naive_fresh.updated_at.tzinfo is not None
    assert check_approval({"approver"}, naive_fresh, policy, LAST_COMMIT) is True
    assert check_approval({"approver"}, naive_fresh, policy, naive_cutoff) is True

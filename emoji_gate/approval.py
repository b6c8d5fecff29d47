from datetime import datetime
from typing import Collection, Optional

from emoji_gate.models import ApprovalPolicy, Reaction, as_utc


def rejection_reason(
    owners: Collection[str],
    reaction: Reaction,
    policy: ApprovalPolicy,
    freshness_cutoff: Optional[datetime] = None,
) -> Optional[str]:
    """
    Return why `reaction` is not a valid mandatory approval, or None if it is.
    Checks run in order and stop at the first failure:
    emoji, self-approval, ownership, freshness.
    """
    user = reaction.username

    if reaction.emoji_name != policy.approve_emoji:
        return f"'{user}' reacted with '{reaction.emoji_name}', not '{policy.approve_emoji}'"

    if not policy.insecure_self_approval and user == policy.mr_author:
        return f"MR author '{user}' cannot approve their own MR"

    if user not in owners:
        return f"'{user}' is not a code owner of '{policy.target_path}'"

    if policy.restricted_freshness:
        if freshness_cutoff is None:
            return f"approval by '{user}' cannot be checked for freshness: no commit timestamp"
        if reaction.updated_at is None:
            return f"approval by '{user}' has no timestamp and cannot be proven fresh"
        approved_at = as_utc(reaction.updated_at)
        cutoff = as_utc(freshness_cutoff)
        if approved_at < cutoff:
            return (
                f"approval by '{user}' at {approved_at.isoformat()} is stale; "
                f"latest commit at {cutoff.isoformat()}"
            )

    return None


def check_approval(
    owners: Collection[str],
    reaction: Reaction,
    policy: ApprovalPolicy,
    freshness_cutoff: Optional[datetime] = None,
) -> bool:
    return rejection_reason(owners, reaction, policy, freshness_cutoff) is None

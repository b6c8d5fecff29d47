from datetime import datetime
from typing import List, Optional, Sequence

import httpx

from emoji_gate.approval import rejection_reason
from emoji_gate.codeowners import CodeownersMatcher, CodeownersSource
from emoji_gate.errors import GateError, GateFetchError
from emoji_gate.models import ApprovalPolicy, Reaction, Verdict
from emoji_gate.services.platform import ReviewPlatform
from emoji_gate.settings import GateSettings


def decide(
    codeowners: CodeownersSource,
    reactions: Sequence[Reaction],
    policy: ApprovalPolicy,
    freshness_cutoff: Optional[datetime] = None,
) -> Verdict:
    """
    Resolve the owners of policy.target_path once, then evaluate every reaction
    in the order given. Any valid approval grants the gate; all approvers are
    collected so the trail is complete.
    """
    matcher = CodeownersMatcher(policy.match_policy)
    owners = matcher.resolve(codeowners, policy.target_path)
    print(f"Owners of '{policy.target_path}' ({policy.match_policy.value}): {sorted(owners)}")

    approved_by: List[str] = []
    for reaction in reactions:
        reason = rejection_reason(owners, reaction, policy, freshness_cutoff)
        if reason is not None:
            print(f"Skipping reaction: {reason}")
            continue
        if reaction.username not in approved_by:
            approved_by.append(reaction.username)
            print(f"Valid approval by '{reaction.username}'")

    return Verdict(approved=bool(approved_by), approved_by=tuple(approved_by))


async def _fetch(operation: str, coro):
    try:
        return await coro
    except (GateError, httpx.HTTPError) as e:
        raise GateFetchError(operation, e) from e


async def run_gate(platform: ReviewPlatform, settings: GateSettings) -> Verdict:
    """Fetch everything the decision needs, in sequence, then decide."""
    policy = settings.to_policy()

    project = await _fetch("project", platform.get_repository_metadata(settings.project_path))

    owners_project = project
    if settings.codeowners_repo:
        owners_project = await _fetch(
            "CODEOWNERS project", platform.get_repository_metadata(settings.codeowners_repo)
        )

    codeowners = await _fetch(
        "CODEOWNERS file",
        platform.get_file_content(
            owners_project.id, owners_project.default_branch, settings.codeowners_path
        ),
    )

    reactions = await _fetch("reactions", platform.list_reactions(project.id, settings.pull_num))

    cutoff = None
    if policy.restricted_freshness:
        cutoff = await _fetch(
            "latest commit timestamp",
            platform.get_latest_change_timestamp(project.id, settings.pull_num),
        )
        print(f"Approvals must not predate the latest commit at {cutoff.isoformat()}")

    return decide(codeowners, reactions, policy, cutoff)

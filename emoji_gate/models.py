from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict, field_validator


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Timestamps without an offset are taken to be UTC."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class MatchPolicy(str, Enum):
    LAST_MATCH = "last_match"  # last matching CODEOWNERS line wins
    PREFIX_UNION = "prefix_union"  # every matching line contributes owners


class OwnershipRule(BaseModel):
    model_config = ConfigDict(frozen=True)

    path_pattern: str
    owners: Tuple[str, ...]


class Reaction(BaseModel):
    """An emoji award left on a merge request."""

    model_config = ConfigDict(frozen=True)

    emoji_name: str
    username: str
    updated_at: Optional[datetime] = None

    @field_validator("updated_at")
    @classmethod
    def _updated_at_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return as_utc(v)

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "Reaction":
        """
        Build from a GitLab award_emoji item:
        {"name": "thumbsup", "user": {"username": "..."}, "updated_at": "..."}
        """
        user = data.get("user") or {}
        return cls(
            emoji_name=data.get("name", ""),
            username=user.get("username", ""),
            updated_at=data.get("updated_at"),
        )


class Project(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    default_branch: str


class ApprovalPolicy(BaseModel):
    model_config = ConfigDict(frozen=True)

    approve_emoji: str = "thumbsup"
    mr_author: str = ""
    insecure_self_approval: bool = False
    restricted_freshness: bool = False
    target_path: str = "."
    match_policy: MatchPolicy = MatchPolicy.LAST_MATCH


class Verdict(BaseModel):
    model_config = ConfigDict(frozen=True)

    approved: bool
    approved_by: Tuple[str, ...] = ()

from datetime import datetime
from typing import List, Protocol

from emoji_gate.models import Project, Reaction


class ReviewPlatform(Protocol):
    """What the gate needs from a code review platform."""

    async def get_repository_metadata(self, path: str) -> Project: ...

    async def get_file_content(self, repo_id: int, branch: str, path: str) -> str: ...

    async def list_reactions(self, repo_id: int, change_request_id: int) -> List[Reaction]: ...

    async def get_latest_change_timestamp(
        self, repo_id: int, change_request_id: int
    ) -> datetime: ...

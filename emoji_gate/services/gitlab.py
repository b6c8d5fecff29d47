import base64
import binascii
from datetime import datetime
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx
from pydantic import TypeAdapter, ValidationError

from emoji_gate.errors import ApiResponseError, DecodeError, NoCommitsError, NotFoundError
from emoji_gate.models import Project, Reaction, as_utc

PER_PAGE = 100

_timestamp = TypeAdapter(datetime)


class GitLabClient:
    def __init__(
        self,
        hostname: str,
        token: str,
        scheme: str = "https",
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.token = token
        self.base_url = f"{scheme}://{hostname}/api/v4"
        self.timeout = timeout
        self.transport = transport

    def _headers(self) -> Dict[str, str]:
        return {"PRIVATE-TOKEN": self.token, "Accept": "application/json"}

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self.transport)

    async def _get_json(
        self, client: httpx.AsyncClient, path: str, params: Optional[Dict[str, Any]] = None
    ) -> Any:
        url = f"{self.base_url}/{path}"
        r = await client.get(url, headers=self._headers(), params=params)
        if r.status_code == 404:
            raise NotFoundError(f"not found: {path} ({r.text.strip() or 'no body'})")
        r.raise_for_status()
        try:
            return r.json()
        except ValueError as e:
            raise ApiResponseError(f"invalid JSON from {path}: {e}") from e

    async def _get_paginated(self, path: str) -> List[Dict]:
        items: List[Dict] = []
        async with self._client() as client:
            page = 1
            while True:
                chunk = await self._get_json(
                    client, path, params={"per_page": PER_PAGE, "page": page}
                )
                if not isinstance(chunk, list):
                    raise ApiResponseError(f"expected a JSON array from {path}")
                items.extend(chunk)
                if len(chunk) < PER_PAGE:
                    break
                page += 1
        return items

    async def get_repository_metadata(self, path: str) -> Project:
        """
        GET /projects/:id where :id is the URL-encoded 'owner/name' path.
        """
        async with self._client() as client:
            data = await self._get_json(client, f"projects/{quote(path, safe='')}")
        try:
            return Project(id=data["id"], default_branch=data.get("default_branch") or "")
        except (KeyError, TypeError, ValidationError) as e:
            raise ApiResponseError(f"unexpected project payload for {path}: {e}") from e

    async def get_file_content(self, repo_id: int, branch: str, path: str) -> str:
        """
        GET /projects/:id/repository/files/:file_path?ref=branch
        The API returns the file base64-encoded in `content`.
        """
        file_path = quote(path.lstrip("/"), safe="")
        async with self._client() as client:
            data = await self._get_json(
                client,
                f"projects/{repo_id}/repository/files/{file_path}",
                params={"ref": branch},
            )
        content = data.get("content") if isinstance(data, dict) else None
        if content is None:
            raise ApiResponseError(f"no content returned for {path}")
        try:
            raw = base64.b64decode("".join(content.split()), validate=True)
            return raw.decode("utf-8")
        except (binascii.Error, UnicodeDecodeError) as e:
            raise DecodeError(f"failed to decode base64 file content of {path}: {e}") from e

    async def list_reactions(self, repo_id: int, change_request_id: int) -> List[Reaction]:
        raw = await self._get_paginated(
            f"projects/{repo_id}/merge_requests/{change_request_id}/award_emoji"
        )
        try:
            return [Reaction.from_api(item) for item in raw]
        except (AttributeError, ValidationError) as e:
            raise ApiResponseError(f"unexpected award_emoji payload: {e}") from e

    async def get_latest_change_timestamp(
        self, repo_id: int, change_request_id: int
    ) -> datetime:
        commits = await self._get_paginated(
            f"projects/{repo_id}/merge_requests/{change_request_id}/commits"
        )
        if not commits:
            raise NoCommitsError(f"merge request {change_request_id} has no commits")
        try:
            return max(as_utc(_timestamp.validate_python(c["created_at"])) for c in commits)
        except (KeyError, TypeError, ValidationError) as e:
            raise ApiResponseError(f"unexpected commits payload: {e}") from e

"""Bitbucket Cloud API client for repository and branch operations."""

from __future__ import annotations

import json
import sys
from dataclasses import dataclass
from typing import IO, Any
from urllib.parse import quote, urlencode

import requests

from branchsweep.errors import ApiError, ParseError, TransportError
from branchsweep.models import Branch, Repository

Json = Any

DEFAULT_BASE_URL = "https://api.bitbucket.org/2.0"
MAX_PAGELEN = 100


@dataclass
class ResponseData:
    """Response from a Bitbucket API request."""

    url: str
    status_code: int
    headers: dict[str, str]
    text: str

    def json(self) -> Json:
        try:
            return json.loads(self.text)
        except json.JSONDecodeError as e:
            raise ParseError(f"Response from {self.url} is not valid JSON") from e


class BitbucketClient:
    """Bitbucket API client authenticated with a bearer token.

    Collections are read from a single page only. When the API reports more
    pages, a warning is written to ``warn_stream``.
    """

    def __init__(
        self,
        token: str,
        *,
        base_url: str = DEFAULT_BASE_URL,
        user_agent: str = "branchsweep",
        timeout_s: float = 30.0,
        pagelen: int = MAX_PAGELEN,
        warn_stream: IO[str] | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.user_agent = user_agent
        self.timeout_s = timeout_s
        self.pagelen = pagelen
        self.warn_stream = warn_stream

        self._token = token
        self._session = requests.Session()

    def _build_url(self, path: str, params: dict[str, Any] | None = None) -> str:
        """Build full URL from path and parameters."""
        url = f"{self.base_url}/{path.lstrip('/')}"

        if params:
            url = f"{url}?{urlencode(sorted(params.items()))}"

        return url

    def request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        expected: tuple[int, ...] = (200,),
    ) -> ResponseData:
        """Make a single request to the Bitbucket API."""
        url = self._build_url(path, params)
        headers = {
            "Accept": "application/json",
            "Authorization": f"Bearer {self._token}",
            "User-Agent": self.user_agent,
        }

        try:
            response = self._session.request(
                method,
                url,
                headers=headers,
                timeout=self.timeout_s,
            )
        except requests.RequestException as e:
            raise TransportError(f"{method.upper()} {url} failed: {e}") from e

        if response.status_code not in expected:
            raise ApiError(
                status_code=response.status_code,
                url=url,
                response_text=response.text,
            )

        return ResponseData(
            url=url,
            status_code=response.status_code,
            headers=dict(response.headers),
            text=response.text,
        )

    def get_page(self, path: str) -> list[Json]:
        """Fetch the first page of a collection and return its items."""
        response = self.request("GET", path, params={"pagelen": self.pagelen})
        data = response.json()

        if isinstance(data, list):
            return data

        if isinstance(data, dict) and isinstance(data.get("values"), list):
            if data.get("next"):
                self._warn(
                    f"Warning: {response.url} has more results than one page; "
                    "only the first page was read"
                )
            return data["values"]

        raise ParseError(f"Unexpected collection response from {response.url}")

    def _warn(self, message: str) -> None:
        print(message, file=self.warn_stream or sys.stderr)

    def list_repositories(self, workspace: str) -> list[Repository]:
        """List repositories in a workspace."""
        items = self.get_page(f"/repositories/{quote(workspace, safe='')}")
        return [Repository.from_api(item) for item in items]

    def list_branches(self, workspace: str, repo_slug: str) -> list[Branch]:
        """List branches of a repository."""
        items = self.get_page(
            f"/repositories/{quote(workspace, safe='')}/{quote(repo_slug, safe='')}/refs/branches"
        )
        return [Branch.from_api(item) for item in items]

    def delete_branch(self, workspace: str, repo_slug: str, branch_name: str) -> None:
        """Delete a branch.

        Raises:
            ApiError: If the API does not answer 204 No Content.
            TransportError: If the request fails.
        """
        self.request(
            "DELETE",
            f"/repositories/{quote(workspace, safe='')}/{quote(repo_slug, safe='')}"
            f"/refs/branches/{quote(branch_name, safe='')}",
            expected=(204,),
        )

    def close(self) -> None:
        """Close the session."""
        self._session.close()

    def __enter__(self) -> BitbucketClient:
        return self

    def __exit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        self.close()

"""Async HTTP client for the remote repository host (GitHub contents API)."""

import logging
from typing import Any, AsyncIterator, Dict, List, Optional, Union
from urllib.parse import quote

import httpx

from repodrive.config import Settings
from repodrive.errors import RemoteError, RemoteNotFound, RemoteUnavailable

log = logging.getLogger(__name__)

# Hop-by-hop headers, not forwarded when relaying a streamed body
HOP_BY_HOP_HEADERS = frozenset({
    "connection",
    "keep-alive",
    "proxy-authenticate",
    "proxy-authorization",
    "te",
    "trailer",
    "trailers",
    "transfer-encoding",
    "upgrade",
    "set-cookie",
})

ContentsResult = Union[List[Dict[str, Any]], Dict[str, Any]]


def _error_message(r: httpx.Response) -> str:
    try:
        data = r.json()
    except ValueError:
        return r.reason_phrase or ""
    if isinstance(data, dict) and data.get("message"):
        return str(data["message"])
    return r.reason_phrase or ""


def _raise_for_status(r: httpx.Response) -> None:
    if r.is_success:
        return
    message = _error_message(r)
    log.warning("Remote %s %s -> %d %s", r.request.method, r.request.url.path, r.status_code, message)
    if r.status_code == 404:
        raise RemoteNotFound(message or "Not Found")
    raise RemoteError(r.status_code, message)


class RemoteStream:
    """An open upstream response whose body has not been read yet."""

    def __init__(self, client: httpx.AsyncClient, response: httpx.Response) -> None:
        self._client = client
        self._response = response

    @property
    def status_code(self) -> int:
        return self._response.status_code

    @property
    def headers(self) -> Dict[str, str]:
        """Upstream headers minus hop-by-hop ones."""
        return {
            k: v for k, v in self._response.headers.items()
            if k.lower() not in HOP_BY_HOP_HEADERS
        }

    async def aiter_bytes(self) -> AsyncIterator[bytes]:
        """Yield the body exactly as received (no decompression)."""
        async for chunk in self._response.aiter_raw():
            yield chunk

    async def aclose(self) -> None:
        await self._response.aclose()
        await self._client.aclose()


class RemoteContentClient:
    """
    Client for the remote repository host: contents metadata/listing,
    repository list, raw file streaming and the conditional contents write.
    Every call carries the identifying User-Agent and the token credential.
    """

    def __init__(
        self,
        owner: str,
        token: str,
        api_url: str = "https://api.github.com",
        user_agent: str = "RepoDrive-FileManager",
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._owner = owner
        self._token = token
        self._api_url = api_url.rstrip("/")
        self._user_agent = user_agent
        self._timeout = timeout
        self._transport = transport
        log.debug("Remote client api_url=%s owner=%s", self._api_url, self._owner)

    @classmethod
    def from_settings(
        cls, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None
    ) -> "RemoteContentClient":
        return cls(
            owner=settings.github_owner,
            token=settings.github_token,
            api_url=settings.github_api_url,
            user_agent=settings.user_agent,
            timeout=settings.http_timeout,
            transport=transport,
        )

    def _headers(self, json_api: bool = True) -> Dict[str, str]:
        out = {
            "Authorization": f"token {self._token}",
            "User-Agent": self._user_agent,
        }
        if json_api:
            out["Accept"] = "application/vnd.github.v3+json"
        return out

    def _client(self, timeout: Optional[httpx.Timeout] = None) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=timeout or self._timeout,
            transport=self._transport,
            follow_redirects=True,
        )

    def contents_url(self, repo: str, path: str = "") -> str:
        """URL of the contents endpoint for repo/path ('' = repository root)."""
        url = f"{self._api_url}/repos/{quote(self._owner, safe='')}/{quote(repo, safe='')}/contents"
        path = path.strip("/")
        if path:
            url += "/" + quote(path, safe="/")
        return url

    async def _get_json(self, url: str, params: Optional[Dict[str, Any]] = None) -> Any:
        try:
            async with self._client() as client:
                r = await client.get(url, params=params, headers=self._headers())
        except httpx.TransportError as e:
            log.warning("Remote GET %s failed: %s", url, e)
            raise RemoteUnavailable(str(e)) from e
        _raise_for_status(r)
        return r.json()

    async def get_contents(self, repo: str, path: str = "") -> ContentsResult:
        """
        GET /repos/{owner}/{repo}/contents/{path}.
        Returns a list of entry descriptors for a directory, or one descriptor
        (with name, sha, download_url, and base64 content) for a file.
        """
        log.debug("get_contents repo=%s path=%s", repo, path)
        return await self._get_json(self.contents_url(repo, path))

    async def list_repositories(self) -> List[Dict[str, Any]]:
        """Repositories owned by the configured identity, most recently updated first."""
        data = await self._get_json(
            f"{self._api_url}/user/repos",
            params={"per_page": 100, "sort": "updated", "visibility": "all", "affiliation": "owner"},
        )
        repos = list(data) if isinstance(data, list) else []
        repos.sort(key=lambda r: r.get("updated_at") or "", reverse=True)
        log.debug("list_repositories returned %d repos", len(repos))
        return repos

    async def open_stream(self, url: str) -> RemoteStream:
        """
        Start GET url and return the response before its body is read.
        Caller must aclose() the stream. Non-2xx statuses are returned as-is.
        """
        client = self._client(timeout=httpx.Timeout(self._timeout, read=None))
        request = client.build_request("GET", url, headers=self._headers(json_api=False))
        try:
            response = await client.send(request, stream=True)
        except httpx.TransportError as e:
            await client.aclose()
            log.warning("Remote stream %s failed: %s", url, e)
            raise RemoteUnavailable(str(e)) from e
        log.debug("open_stream url=%s status=%d", url, response.status_code)
        return RemoteStream(client, response)

    async def put_contents(
        self,
        repo: str,
        path: str,
        content_b64: str,
        sha: str,
        message: str,
    ) -> httpx.Response:
        """
        PUT /repos/{owner}/{repo}/contents/{path} with the expected sha.
        The host applies the write only if sha is still the file's current
        version. Returns the response unchecked; raises RemoteUnavailable when
        the host cannot be reached.
        """
        body = {"message": message, "content": content_b64, "sha": sha}
        try:
            async with self._client() as client:
                return await client.put(
                    self.contents_url(repo, path),
                    json=body,
                    headers={**self._headers(), "Content-Type": "application/json"},
                )
        except httpx.TransportError as e:
            log.warning("Remote PUT %s/%s failed: %s", repo, path, e)
            raise RemoteUnavailable(str(e)) from e

"""GitHub content provider using the REST Contents API via httpx.

Accepts both URL shapes people paste for a markdown file:

- ``https://raw.githubusercontent.com/<owner>/<repo>/<ref>/<path>``
  (including the ``refs/heads/<branch>`` form)
- ``https://github.com/<owner>/<repo>/blob/<ref>/<path>``

The file is fetched through ``GET /repos/{owner}/{repo}/contents/{path}``
rather than the raw host so a token raises rate limits and private
repositories work.  The API returns the body base64-encoded with embedded
newlines.
"""

from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass
from urllib.parse import urlparse

import httpx
import structlog

from cardsmith.interfaces.content_provider import IContentProvider
from cardsmith.models.document import Document, OriginKind
from cardsmith.utils.errors import AcquisitionError

logger = structlog.get_logger(logger_name=__name__)

_GITHUB_HOSTS = frozenset({"github.com", "raw.githubusercontent.com"})
_DEFAULT_TIMEOUT = 30.0


@dataclass(frozen=True)
class GitHubFileRef:
    """Location of one file in a GitHub repository."""

    owner: str
    repo: str
    path: str
    ref: str | None = None


def is_github_url(url: str) -> bool:
    """Return ``True`` if *url* points at github.com or raw.githubusercontent.com."""
    try:
        return urlparse(url).hostname in _GITHUB_HOSTS
    except ValueError:
        return False


def parse_github_url(url: str) -> GitHubFileRef:
    """Split a raw or blob GitHub URL into owner / repo / ref / path.

    Raises
    ------
    AcquisitionError
        With reason ``invalid_origin`` if the URL is not a file URL on a
        supported GitHub host.
    """
    parsed = urlparse(url)
    parts = [p for p in parsed.path.split("/") if p]

    if parsed.hostname == "raw.githubusercontent.com":
        if len(parts) < 4:
            raise AcquisitionError(
                message=f"Invalid raw GitHub URL format: {url}",
                provider_name="github",
                reason="invalid_origin",
            )
        owner, repo = parts[0], parts[1]
        if len(parts) >= 6 and parts[2] == "refs" and parts[3] == "heads":
            ref, path_parts = parts[4], parts[5:]
        else:
            ref, path_parts = parts[2], parts[3:]
        return GitHubFileRef(owner=owner, repo=repo, ref=ref, path="/".join(path_parts))

    if parsed.hostname == "github.com":
        if len(parts) < 5 or parts[2] != "blob":
            raise AcquisitionError(
                message=(
                    f"Invalid GitHub URL format: {url}. "
                    "Expected: /owner/repo/blob/branch/path"
                ),
                provider_name="github",
                reason="invalid_origin",
            )
        return GitHubFileRef(
            owner=parts[0],
            repo=parts[1],
            ref=parts[3],
            path="/".join(parts[4:]),
        )

    raise AcquisitionError(
        message=f"Unsupported GitHub URL hostname: {parsed.hostname}",
        provider_name="github",
        reason="invalid_origin",
    )


class GitHubContentProvider(IContentProvider):
    """Fetches markdown files from GitHub repositories."""

    def __init__(
        self,
        token: str = "",
        api_url: str = "https://api.github.com",
        http_client: httpx.AsyncClient | None = None,
        timeout: float = _DEFAULT_TIMEOUT,
    ) -> None:
        self._token = token
        self._api_url = api_url.rstrip("/")
        # Injected clients belong to the caller and are left open by aclose().
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=httpx.Timeout(timeout))

    # ------------------------------------------------------------------
    # IContentProvider implementation
    # ------------------------------------------------------------------

    async def fetch(self, origin: str) -> Document:
        """Fetch the file at *origin* and return it as a version-control Document."""
        file_ref = parse_github_url(origin)
        endpoint = f"{self._api_url}/repos/{file_ref.owner}/{file_ref.repo}/contents/{file_ref.path}"
        params = {"ref": file_ref.ref} if file_ref.ref else None

        try:
            response = await self._client.get(endpoint, params=params, headers=self._headers())
            response.raise_for_status()
            payload = response.json()
        except httpx.TimeoutException as exc:
            raise AcquisitionError(
                message=f"Timeout fetching {origin}: {exc}",
                provider_name=self.get_provider_name(),
                reason="fetch_failed",
            ) from exc
        except httpx.HTTPStatusError as exc:
            raise AcquisitionError(
                message=f"HTTP {exc.response.status_code} for {origin}",
                provider_name=self.get_provider_name(),
                reason="fetch_failed",
            ) from exc
        except httpx.HTTPError as exc:
            raise AcquisitionError(
                message=f"HTTP error fetching {origin}: {exc}",
                provider_name=self.get_provider_name(),
                reason="fetch_failed",
            ) from exc
        except ValueError as exc:
            raise AcquisitionError(
                message=f"GitHub returned a non-JSON body for {origin}",
                provider_name=self.get_provider_name(),
                reason="fetch_failed",
            ) from exc

        text = self._decode_file(payload, origin)
        document = Document.from_text(
            text,
            origin=origin,
            origin_kind=OriginKind.VERSION_CONTROL,
            title=file_ref.path.rsplit("/", maxsplit=1)[-1],
        )
        logger.info(
            "github_file_fetched",
            origin=origin,
            repo=f"{file_ref.owner}/{file_ref.repo}",
            chars=len(text),
            word_count=document.word_count,
        )
        return document

    def supports(self, origin: str) -> bool:
        return is_github_url(origin)

    def get_provider_name(self) -> str:
        return "github"

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _headers(self) -> dict[str, str]:
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    def _decode_file(self, payload: object, origin: str) -> str:
        """Decode the base64 body of a Contents API file response."""
        if isinstance(payload, list):
            raise AcquisitionError(
                message=f"{origin} points to a directory, not a file",
                provider_name=self.get_provider_name(),
                reason="empty_content",
            )
        if not isinstance(payload, dict) or payload.get("type") != "file" or not payload.get("content"):
            raise AcquisitionError(
                message=f"{origin} is not a file or has no content",
                provider_name=self.get_provider_name(),
                reason="empty_content",
            )
        encoded = str(payload["content"]).replace("\n", "")
        try:
            return base64.b64decode(encoded).decode("utf-8")
        except (binascii.Error, UnicodeDecodeError) as exc:
            raise AcquisitionError(
                message=f"Could not decode file content for {origin}: {exc}",
                provider_name=self.get_provider_name(),
                reason="empty_content",
            ) from exc

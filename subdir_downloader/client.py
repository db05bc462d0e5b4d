import logging
from typing import Any
from urllib.parse import quote

import aiohttp

from .exceptions import (
    FetchError,
    HttpError,
    InvalidToken,
    RateLimitExceeded,
    RepositoryNotFound,
)
from .schemas import RepoInfo, RepoMeta, SourceLocator, TreeItem, TreeResponse

API_BASE_URL = 'https://api.github.com'
RAW_BASE_URL = 'https://raw.githubusercontent.com'

logger = logging.getLogger(__name__)


class GitHubClient:
    """Thin wrapper over the REST API and the raw-content host.

    The session is owned by the caller.
    """

    def __init__(
        self,
        session: aiohttp.ClientSession,
        *,
        token: str | None = None,
        api_base_url: str = API_BASE_URL,
        raw_base_url: str = RAW_BASE_URL,
    ) -> None:
        self._session = session
        self._token = token
        self._api_base_url = api_base_url.rstrip('/')
        self._raw_base_url = raw_base_url.rstrip('/')

    def _headers(self, **extra: str) -> dict[str, str]:
        headers = dict(extra)
        if self._token:
            headers['Authorization'] = f'Bearer {self._token}'
        return headers

    async def fetch_info(self, resource: str, **params: Any) -> Any:
        url = f'{self._api_base_url}/repos/{resource}'
        logger.debug('GET %s', url)
        headers = self._headers(Accept='application/vnd.github+json')
        async with self._session.get(url, headers=headers, params=params) as resp:
            if resp.status == 401:
                raise InvalidToken()
            # https://docs.github.com/en/rest/using-the-rest-api/rate-limits-for-the-rest-api
            if resp.status == 403 and resp.headers.get('X-RateLimit-Remaining') == '0':
                raise RateLimitExceeded()
            if resp.status == 404:
                raise RepositoryNotFound()
            if not resp.ok:
                raise FetchError(
                    f'Could not obtain {resource} from the API (HTTP {resp.status})',
                    resp.status,
                )
            return await resp.json(content_type=None)

    async def get_repo_info(self, locator: SourceLocator) -> RepoInfo:
        return RepoInfo.model_validate(await self.fetch_info(locator.full_name))

    async def get_tree_files(
        self,
        locator: SourceLocator,
    ) -> tuple[list[TreeItem], bool]:
        """Blob entries under the locator directory, in API order."""
        ref = quote(locator.ref, safe='')
        contents = await self.fetch_info(
            f'{locator.full_name}/git/trees/{ref}',
            recursive='1',
        )
        if isinstance(contents, dict) and contents.get('message'):
            raise FetchError(contents['message'])
        tree = TreeResponse.model_validate(contents)
        prefix = locator.prefix
        files = [
            item for item in tree.tree
            if item.type == 'blob' and item.path.startswith(prefix)
        ]
        return files, tree.truncated

    async def get_repo_meta(self, locator: SourceLocator) -> RepoMeta:
        repo_info = await self.get_repo_info(locator)
        files, truncated = await self.get_tree_files(locator)
        return RepoMeta(
            files=files,
            repo_is_private=repo_info.private,
            truncated=truncated,
        )

    def raw_url(self, locator: SourceLocator, path: str) -> str:
        return '/'.join((
            self._raw_base_url,
            locator.owner,
            locator.repo,
            quote(locator.ref, safe=''),
            quote(path),
        ))

    async def fetch_raw(
        self,
        locator: SourceLocator,
        path: str,
    ) -> aiohttp.ClientResponse:
        """Start fetching a file. The caller must release the response."""
        resp = await self._session.get(
            self.raw_url(locator, path),
            headers=self._headers(),
        )
        if not resp.ok:
            resp.release()
            raise HttpError(resp.status, path)
        return resp

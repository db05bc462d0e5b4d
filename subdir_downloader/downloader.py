import asyncio
import logging
import os
from collections.abc import Iterable

import aiofiles
import aiofiles.os
import aiohttp

from .client import API_BASE_URL, RAW_BASE_URL, GitHubClient
from .exceptions import HttpError, InvalidUrl
from .locator import parse_url
from .retry import retry
from .schemas import Config, RepoMeta, SourceLocator, Stats, TreeItem

CHUNK_SIZE = 64 * 1024
META_RETRY_DELAY = 3.0
FILE_RETRY_DELAY = 2.0

FETCH_ERRORS = (HttpError, aiohttp.ClientError, asyncio.TimeoutError)
WRITE_ERRORS = (aiohttp.ClientError, asyncio.TimeoutError, OSError)

logger = logging.getLogger(__name__)


class AsyncDirDownloader:
    """Downloads one directory of a repository into a local directory.

    Files are spread over ``config.requests`` slots in round-robin order;
    a slot starts its next file only after the previous one settled.
    """

    def __init__(
        self,
        source: str,
        save_to: str | None = None,
        excluded_files: Iterable[str] | None = None,
        config: Config | None = None,
        *,
        api_base_url: str = API_BASE_URL,
        raw_base_url: str = RAW_BASE_URL,
        meta_retry_delay: float = META_RETRY_DELAY,
        file_retry_delay: float = FILE_RETRY_DELAY,
    ) -> None:
        self._source = source
        self._save_to = save_to
        self._excluded = frozenset(excluded_files or ())
        self._config = config or Config()
        self._api_base_url = api_base_url
        self._raw_base_url = raw_base_url
        self._meta_retry_delay = meta_retry_delay
        self._file_retry_delay = file_retry_delay
        self._locator: SourceLocator | None = None
        self._output_dir: str | None = None
        self._downloaded = 0
        self._failed = 0

    @property
    def locator(self) -> SourceLocator | None:
        return self._locator

    @property
    def output_dir(self) -> str:
        if self._output_dir is None:
            raise AttributeError('Output directory not set')
        return self._output_dir

    async def download(self) -> Stats:
        """Run the download. Never raises; failures are reported in the stats."""
        self._downloaded = 0
        self._failed = 0
        self._locator = parse_url(self._source)
        if self._locator is None:
            error = InvalidUrl(self._source)
            self.__log(logging.ERROR, '%s', error)
            return Stats(success=False, error=error)
        self._output_dir = self.__resolve_output_dir(self._locator)

        try:
            async with aiohttp.ClientSession() as session:
                client = GitHubClient(
                    session,
                    token=self._config.token,
                    api_base_url=self._api_base_url,
                    raw_base_url=self._raw_base_url,
                )
                try:
                    meta = await self.__get_repo_meta(client)
                except Exception as exc:
                    self.__log(
                        logging.ERROR,
                        'Failed to fetch repo meta info after second attempt: %s',
                        exc,
                    )
                    return Stats(success=False, error=exc)
                return await self.__download_files(client, meta.files)
        except Exception as exc:
            self.__log(
                logging.ERROR,
                'Unexpected error while downloading %s',
                self._source,
                exc_info=exc,
            )
            return Stats(
                downloaded=self._downloaded,
                failed=self._failed,
                success=False,
                error=exc,
            )

    async def __get_repo_meta(self, client: GitHubClient) -> RepoMeta:
        def on_error(attempt: int, exc: BaseException) -> None:
            if attempt == 1:
                self.__log(logging.WARNING, 'Failed to fetch repo meta info: %s', exc)

        meta = await retry(
            lambda: client.get_repo_meta(self._locator),
            attempts=2,
            delay=self._meta_retry_delay,
            on_error=on_error,
        )
        self.__log(
            logging.DEBUG,
            'Repository %s is %s',
            self._locator.full_name,
            'private' if meta.repo_is_private else 'public',
        )
        if meta.truncated:
            self.__log(
                logging.WARNING,
                'Tree listing for %s was truncated by the API, some files may be missing',
                self._locator.full_name,
            )
        return meta

    async def __download_files(
        self,
        client: GitHubClient,
        files: list[TreeItem],
    ) -> Stats:
        if not files:
            self.__log(logging.INFO, 'No files to download')
            return Stats(files_found=0, success=True)

        self.__log(logging.INFO, 'Downloading %d files...', len(files))
        slot_count = self._config.requests
        slots: list[asyncio.Task | None] = [None] * slot_count
        tasks: list[asyncio.Task] = []
        for index, item in enumerate(files):
            slot = index % slot_count
            if slots[slot] is not None:
                await asyncio.wait((slots[slot],))
            slots[slot] = asyncio.create_task(self.__download_file(client, item))
            tasks.append(slots[slot])
        results = await asyncio.gather(*tasks, return_exceptions=True)
        error = None
        for item, result in zip(files, results):
            if isinstance(result, Exception):
                self.__log(
                    logging.ERROR,
                    'Unexpected error while downloading file %s',
                    item.path,
                    exc_info=result,
                )
                self._failed += 1
                error = error or result

        self.__log(
            logging.INFO,
            'Downloaded %d/%d files',
            self._downloaded,
            len(files),
        )
        return Stats(
            files_found=len(files),
            downloaded=self._downloaded,
            failed=self._failed,
            success=self._failed == 0,
            error=error,
        )

    async def __download_file(self, client: GitHubClient, item: TreeItem) -> None:
        if item.name in self._excluded:
            self.__log(logging.DEBUG, 'Skipping excluded file %s', item.path)
            return

        def on_error(attempt: int, exc: BaseException) -> None:
            if attempt == 1:
                self.__log(logging.WARNING, 'Failed to download file %s: %s', item.path, exc)

        try:
            resp = await retry(
                lambda: client.fetch_raw(self._locator, item.path),
                attempts=2,
                delay=self._file_retry_delay,
                exceptions=FETCH_ERRORS,
                on_error=on_error,
            )
        except FETCH_ERRORS as exc:
            self.__log(
                logging.WARNING,
                'Failed to download file after second attempt %s: %s',
                item.path,
                exc,
            )
            self._failed += 1
            return

        # Counts fetched files, a failed write below does not undo it.
        self._downloaded += 1
        destination = self.__get_destination(item)
        try:
            async with resp:
                await aiofiles.os.makedirs(os.path.dirname(destination), exist_ok=True)
                await self.__write_chunks(destination, resp)
        except WRITE_ERRORS as exc:
            self.__log(logging.ERROR, 'Failed to write file %s: %s', item.path, exc)
            self._failed += 1

    async def __write_chunks(self, path: str, resp: aiohttp.ClientResponse) -> None:
        async with aiofiles.open(path, 'wb') as file_d:
            async for chunk in resp.content.iter_chunked(CHUNK_SIZE):
                await file_d.write(chunk)

    def __get_destination(self, item: TreeItem) -> str:
        relative_path = item.path[len(self._locator.prefix):]
        return os.path.join(self.output_dir, *relative_path.split('/'))

    def __resolve_output_dir(self, locator: SourceLocator) -> str:
        save_to = self._save_to
        if not save_to:
            directory = locator.directory.strip('/')
            save_to = directory.rsplit('/', maxsplit=1)[-1] if directory else locator.repo
        return os.path.abspath(save_to)

    def __log(self, level: int, msg: str, *args, **kwargs) -> None:
        if not self._config.mute_log:
            logger.log(level, msg, *args, **kwargs)


async def download(
    source: str,
    save_to: str | None = None,
    excluded_files: Iterable[str] | None = None,
    config: Config | None = None,
    **kwargs,
) -> Stats:
    """Download the directory behind ``source`` and return the stats."""
    downloader = AsyncDirDownloader(source, save_to, excluded_files, config, **kwargs)
    return await downloader.download()

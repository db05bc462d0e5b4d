from .downloader import AsyncDirDownloader, download
from .exceptions import (
    DownloaderError,
    FetchError,
    HttpError,
    InvalidToken,
    InvalidUrl,
    RateLimitExceeded,
    RepositoryNotFound,
)
from .locator import parse_url
from .schemas import Config, SourceLocator, Stats, TreeItem

__all__ = [
    'AsyncDirDownloader',
    'Config',
    'DownloaderError',
    'FetchError',
    'HttpError',
    'InvalidToken',
    'InvalidUrl',
    'RateLimitExceeded',
    'RepositoryNotFound',
    'SourceLocator',
    'Stats',
    'TreeItem',
    'download',
    'parse_url',
]

import os
from typing import Literal

from pydantic import BaseModel, ConfigDict, PositiveInt

DEFAULT_REQUESTS = 10


class SourceLocator(BaseModel):
    model_config = ConfigDict(frozen=True)

    owner: str
    repo: str
    ref: str = 'HEAD'
    directory: str

    @property
    def full_name(self) -> str:
        return f'{self.owner}/{self.repo}'

    @property
    def prefix(self) -> str:
        """Directory as a path prefix, e.g. ``docs/manual/``."""
        directory = self.directory.strip('/')
        return f'{directory}/' if directory else ''


class TreeItem(BaseModel):
    path: str
    mode: str
    type: Literal['blob', 'tree', 'commit']
    sha: str
    size: int | None = None
    url: str | None = None

    @property
    def name(self) -> str:
        return self.path.rsplit('/', maxsplit=1)[-1]


class TreeResponse(BaseModel):
    sha: str | None = None
    url: str | None = None
    tree: list[TreeItem] = []
    truncated: bool = False
    message: str | None = None


class RepoInfo(BaseModel):
    full_name: str | None = None
    private: bool = False


class RepoMeta(BaseModel):
    files: list[TreeItem]
    repo_is_private: bool
    truncated: bool = False


class Config(BaseModel):
    token: str | None = None
    requests: PositiveInt = DEFAULT_REQUESTS
    mute_log: bool = False

    @classmethod
    def from_env(cls) -> 'Config':
        return cls(
            token=os.getenv('GITHUB_TOKEN') or None,
            requests=int(os.getenv('SUBDIR_DOWNLOADER_REQUESTS', DEFAULT_REQUESTS)),
            mute_log=os.getenv('SUBDIR_DOWNLOADER_MUTE_LOG', '').lower()
            in ('1', 'true', 'yes'),
        )


class Stats(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    files_found: int = 0
    downloaded: int = 0
    failed: int = 0
    success: bool = False
    error: Exception | None = None

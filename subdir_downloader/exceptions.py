class DownloaderError(Exception):
    pass


class InvalidUrl(DownloaderError):
    def __init__(self, source: str) -> None:
        super().__init__(
            f'Invalid url {source!r}, expected '
            'https://github.com/<owner>/<repo>/tree/<ref>/<path>'
        )
        self.source = source


class FetchError(DownloaderError):
    def __init__(self, message: str = 'Fetch error', status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class InvalidToken(FetchError):
    def __init__(self) -> None:
        super().__init__('Invalid token', 401)


class RateLimitExceeded(FetchError):
    def __init__(self) -> None:
        super().__init__('Rate limit exceeded', 403)


class RepositoryNotFound(FetchError):
    def __init__(self) -> None:
        super().__init__('Repository not found', 404)


class HttpError(DownloaderError):
    def __init__(self, status: int, path: str) -> None:
        super().__init__(f'HTTP {status} for {path}')
        self.status = status
        self.path = path

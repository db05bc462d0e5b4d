import re
from urllib.parse import unquote, urlparse

from .schemas import SourceLocator

# /<owner>/<repo>/tree/<ref>/<dir>
URL_PATTERN = re.compile(r'^/([^/]+)/([^/]+)/tree/([^/]+)/(.*)')


def parse_url(source: str) -> SourceLocator | None:
    """Return the locator for a directory-view URL, or None if it doesn't match."""
    try:
        path = urlparse(source).path
    except ValueError:
        return None
    match = URL_PATTERN.match(path)
    if match is None:
        return None
    owner, repo, ref, directory = match.groups()
    return SourceLocator(
        owner=owner,
        repo=repo,
        ref=ref,
        directory=unquote(directory),
    )

import asyncio

import pytest
from aiohttp import web

TREE = [
    {'path': 'README.md', 'mode': '100644', 'type': 'blob', 'sha': 'a1', 'size': 6},
    {'path': 'docs', 'mode': '040000', 'type': 'tree', 'sha': 'b1'},
    {'path': 'docs/manual', 'mode': '040000', 'type': 'tree', 'sha': 'b2'},
    {'path': 'docs/manual/intro.html', 'mode': '100644', 'type': 'blob', 'sha': 'c1', 'size': 5},
    {'path': 'docs/manual/en', 'mode': '040000', 'type': 'tree', 'sha': 'b3'},
    {'path': 'docs/manual/en/scene.html', 'mode': '100644', 'type': 'blob', 'sha': 'c2', 'size': 5},
    {'path': 'docs/manual/en/text.html', 'mode': '100644', 'type': 'blob', 'sha': 'c3', 'size': 4},
    {'path': 'docs/manualextra/other.html', 'mode': '100644', 'type': 'blob', 'sha': 'c4', 'size': 5},
]


class FakeGitHub:
    """In-process stand-in for the REST API and the raw-content host."""

    def __init__(self) -> None:
        self.tree = list(TREE)
        self.private = False
        self.truncated = False
        self.contents = {
            item['path']: f"<{item['path']}>".encode()
            for item in TREE if item['type'] == 'blob'
        }
        self.repo_status = 200
        self.repo_headers: dict[str, str] = {}
        self.repo_failures = 0
        self.tree_message: str | None = None
        self.raw_failures: dict[str, int] = {}
        self.raw_delay = 0.0
        self.requests: list[str] = []
        self.authorization: list[str | None] = []
        self.raw_events: list[tuple[str, str]] = []
        self.in_flight = 0
        self.max_in_flight = 0

    def app(self) -> web.Application:
        app = web.Application()
        app.router.add_get('/api/repos/{owner}/{repo}', self.repo_info)
        app.router.add_get('/api/repos/{owner}/{repo}/git/trees/{ref}', self.git_tree)
        app.router.add_get('/raw/{owner}/{repo}/{ref}/{path:.+}', self.raw)
        return app

    def _record(self, request: web.Request) -> None:
        self.requests.append(request.path)
        self.authorization.append(request.headers.get('Authorization'))

    async def repo_info(self, request: web.Request) -> web.Response:
        self._record(request)
        if self.repo_failures:
            self.repo_failures -= 1
            return web.Response(status=500)
        if self.repo_status != 200:
            return web.Response(status=self.repo_status, headers=self.repo_headers)
        owner, repo = request.match_info['owner'], request.match_info['repo']
        return web.json_response({'full_name': f'{owner}/{repo}', 'private': self.private})

    async def git_tree(self, request: web.Request) -> web.Response:
        self._record(request)
        if self.tree_message:
            return web.json_response({'message': self.tree_message})
        assert request.query.get('recursive') == '1'
        return web.json_response({
            'sha': 'root',
            'url': str(request.url),
            'tree': self.tree,
            'truncated': self.truncated,
        })

    async def raw(self, request: web.Request) -> web.Response:
        self._record(request)
        path = request.match_info['path']
        self.raw_events.append(('start', path))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.raw_delay)
            if self.raw_failures.get(path):
                self.raw_failures[path] -= 1
                return web.Response(status=503)
            if path not in self.contents:
                return web.Response(status=404)
            return web.Response(body=self.contents[path])
        finally:
            self.in_flight -= 1
            self.raw_events.append(('end', path))


@pytest.fixture
def github() -> FakeGitHub:
    return FakeGitHub()


@pytest.fixture
async def github_server(github, aiohttp_server):
    return await aiohttp_server(github.app())


@pytest.fixture
def endpoints(github_server) -> dict:
    return {
        'api_base_url': str(github_server.make_url('/api')),
        'raw_base_url': str(github_server.make_url('/raw')),
        'meta_retry_delay': 0,
        'file_retry_delay': 0,
    }

"""Shared fixtures: a scriptable fake upstream and a manual clock."""
import httpx
import pytest

from app.core.config import Settings


class FakeClock:
    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeUpstream:
    """
    httpx.MockTransport handler. Map a URL path to a response, a callable
    returning one, or an exception instance to raise. Every request is recorded.
    """

    def __init__(self):
        self.routes: dict[str, object] = {}
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get(request.url.path)
        if route is None:
            return httpx.Response(404, text="not found")
        if isinstance(route, Exception):
            raise route
        if callable(route):
            return route(request)
        return route

    def paths(self) -> list[str]:
        return [r.url.path for r in self.requests]

    def count(self, path: str) -> int:
        return self.paths().count(path)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self))


WEEK_PATHS = {
    "previous": "/ff_calendar_lastweek.json",
    "current":  "/ff_calendar_thisweek.json",
    "next":     "/ff_calendar_nextweek.json",
}
QUOTES_PATH = "/v7/finance/quote"
FEED_PATH = "/rss/2.0/headline"


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture
def config() -> Settings:
    return Settings(
        _env_file=None,
        CALENDAR_BASE_URL="https://calendar.test",
        QUOTES_URL="https://quotes.test/v7/finance/quote",
        FEED_URL="https://feeds.test/rss/2.0/headline?s=%5EGSPC",
        CALENDAR_TTL=600,
        QUOTES_TTL=5,
        FEED_TTL=60,
        QUOTES_CACHE_MAXSIZE=3,
    )

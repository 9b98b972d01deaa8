from __future__ import annotations

import httpx
import pytest

from quickcart.browser.config import BrowserConfig, find_browser_executable, get_chrome_args
from quickcart.browser.session import BrowserSessionManager
from quickcart.exceptions import BrowserEnvironmentError, ConnectivityError
from quickcart.tests.fakes import FakeContext


class FakeChromium:
    def __init__(self, fail: bool = False) -> None:
        self.launches: list[dict] = []
        self.fail = fail

    async def launch_persistent_context(self, **kwargs) -> FakeContext:
        self.launches.append(kwargs)
        if self.fail:
            raise RuntimeError("profile locked")
        return FakeContext()


class FakePlaywright:
    def __init__(self, chromium: FakeChromium) -> None:
        self.chromium = chromium
        self.stopped = 0

    async def stop(self) -> None:
        self.stopped += 1


class FakePlaywrightFactory:
    def __init__(self, fail: bool = False) -> None:
        self.playwright = FakePlaywright(FakeChromium(fail=fail))
        self.starts = 0

    def __call__(self) -> "FakePlaywrightFactory":
        return self

    async def start(self) -> FakePlaywright:
        self.starts += 1
        return self.playwright


def _manager(factory=None, finder=lambda: "/usr/bin/chromium", handler=None, **config):
    http_factory = httpx.AsyncClient
    if handler is not None:
        def http_factory():
            return httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return BrowserSessionManager(
        BrowserConfig(**config),
        playwright_factory=factory or FakePlaywrightFactory(),
        executable_finder=finder,
        http_client_factory=http_factory,
    )


@pytest.mark.asyncio
async def test_context_is_launched_once() -> None:
    factory = FakePlaywrightFactory()
    manager = _manager(factory, user_data_dir="/tmp/profile", debug_port=9333)

    first = await manager.get_context()
    second = await manager.get_context()

    assert first is second
    assert factory.starts == 1
    launch = factory.playwright.chromium.launches[0]
    assert launch["user_data_dir"] == "/tmp/profile"
    assert launch["executable_path"] == "/usr/bin/chromium"
    assert launch["headless"] is False
    assert "--remote-debugging-port=9333" in launch["args"]
    assert first.default_timeout == 30000
    assert manager.is_open


@pytest.mark.asyncio
async def test_configured_executable_skips_discovery() -> None:
    def finder():
        raise AssertionError("discovery should not run")

    factory = FakePlaywrightFactory()
    manager = _manager(factory, finder=finder, executable_path="/opt/chrome/chrome")

    await manager.get_context()

    assert factory.playwright.chromium.launches[0]["executable_path"] == "/opt/chrome/chrome"


@pytest.mark.asyncio
async def test_missing_browser_raises_environment_error() -> None:
    factory = FakePlaywrightFactory()
    manager = _manager(factory, finder=lambda: None)

    with pytest.raises(BrowserEnvironmentError):
        await manager.get_context()

    assert factory.starts == 0
    assert not manager.is_open


@pytest.mark.asyncio
async def test_failed_launch_stops_playwright() -> None:
    factory = FakePlaywrightFactory(fail=True)
    manager = _manager(factory)

    with pytest.raises(RuntimeError):
        await manager.get_context()

    assert factory.playwright.stopped == 1
    assert not manager.is_open


@pytest.mark.asyncio
async def test_close_is_best_effort() -> None:
    factory = FakePlaywrightFactory()
    manager = _manager(factory)
    context = await manager.get_context()

    async def broken_close() -> None:
        raise RuntimeError("already gone")

    context.close = broken_close
    await manager.close()
    await manager.close()

    assert factory.playwright.stopped == 1
    assert not manager.is_open


@pytest.mark.asyncio
async def test_debug_endpoint_is_read_from_version_url() -> None:
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(str(request.url))
        return httpx.Response(200, json={"Browser": "Chrome/120", "webSocketDebuggerUrl": "ws://localhost:9333/devtools/browser/x"})

    manager = _manager(handler=handler, debug_port=9333)

    assert await manager.get_debug_endpoint() == "ws://localhost:9333/devtools/browser/x"
    assert seen == ["http://localhost:9333/json/version"]


@pytest.mark.asyncio
async def test_unreachable_debug_port_raises_connectivity_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    manager = _manager(handler=handler)

    with pytest.raises(ConnectivityError) as excinfo:
        await manager.get_debug_endpoint()

    assert excinfo.value.data["url"] == "http://localhost:9222/json/version"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(500, text="boom"),
        httpx.Response(200, text="not json"),
        httpx.Response(200, json={"Browser": "Chrome/120"}),
        httpx.Response(200, json=["ws://nowhere"]),
    ],
)
async def test_bad_debug_responses_raise_connectivity_error(response: httpx.Response) -> None:
    manager = _manager(handler=lambda request: response)

    with pytest.raises(ConnectivityError):
        await manager.get_debug_endpoint()


def test_chrome_args_always_expose_debug_port() -> None:
    args = get_chrome_args(debug_port=9444, extra_args=["--lang=en-IN"])

    assert "--remote-debugging-port=9444" in args
    assert args[-1] == "--lang=en-IN"


def test_find_browser_executable_uses_path_lookup(monkeypatch) -> None:
    monkeypatch.setattr(
        "quickcart.browser.config.shutil.which",
        lambda cmd: "/usr/bin/chromium" if cmd == "chromium" else None,
    )

    assert find_browser_executable("Linux") == "/usr/bin/chromium"


def test_find_browser_executable_returns_none(monkeypatch) -> None:
    monkeypatch.setattr("quickcart.browser.config.shutil.which", lambda cmd: None)

    assert find_browser_executable("Linux") is None

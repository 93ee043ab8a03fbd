import asyncio
from contextlib import asynccontextmanager

import httpx
import pytest

from osint_lookup.aggregator import Aggregator
from osint_lookup.registry import DEFAULT_REGISTRY
from osint_lookup.settings import LookupSettings


def down(request: httpx.Request) -> httpx.Response:
    raise httpx.ConnectError("source unreachable", request=request)


def routed(routes: dict, default=down):
    """Build a handler dispatching on host (optionally host + path prefix)."""

    def handler(request: httpx.Request) -> httpx.Response:
        host = request.url.host
        path = request.url.path
        for key, respond in routes.items():
            key_host, _, key_path = key.partition("/")
            if host == key_host and path.startswith("/" + key_path):
                return respond(request) if callable(respond) else respond
        return default(request)

    return handler


class CountingTransport(httpx.MockTransport):
    def __init__(self, handler):
        self.calls: list[httpx.Request] = []

        def counted(request):
            self.calls.append(request)
            return handler(request)

        super().__init__(counted)


def delayed(seconds: float, status: int = 404):
    async def handler(request: httpx.Request) -> httpx.Response:
        await asyncio.sleep(seconds)
        return httpx.Response(status)

    return handler


@pytest.fixture
def settings():
    return LookupSettings(timeout_s=2.0)


@pytest.fixture
def client_factory():
    def make(handler) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(handler), follow_redirects=True)

    return make


@pytest.fixture
def aggregator_factory(settings):
    def make(handler, registry=DEFAULT_REGISTRY) -> Aggregator:
        return Aggregator(registry, settings, transport=httpx.MockTransport(handler))

    return make


@asynccontextmanager
async def drip_server(body: bytes, interval: float):
    """Local HTTP server that answers 200 at once, then sends the body one byte per ``interval``."""

    handlers: set[asyncio.Task] = set()

    async def handle(reader: asyncio.StreamReader, writer: asyncio.StreamWriter):
        handlers.add(asyncio.current_task())
        try:
            await reader.readuntil(b"\r\n\r\n")
            writer.write(
                b"HTTP/1.1 200 OK\r\ncontent-type: application/json\r\n"
                + f"content-length: {len(body)}\r\n\r\n".encode()
            )
            await writer.drain()
            for i in range(len(body)):
                writer.write(body[i:i + 1])
                await writer.drain()
                await asyncio.sleep(interval)
        except (ConnectionError, asyncio.IncompleteReadError):
            pass
        finally:
            writer.close()

    server = await asyncio.start_server(handle, "127.0.0.1", 0)
    port = server.sockets[0].getsockname()[1]
    try:
        yield f"http://127.0.0.1:{port}"
    finally:
        server.close()
        for task in handlers:
            task.cancel()
        await asyncio.gather(*handlers, return_exceptions=True)
        await server.wait_closed()

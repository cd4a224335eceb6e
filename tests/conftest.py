# Centralized pytest configuration file (fixtures, hooks, plugins, etc.)
import pytest
from asgi_lifespan import LifespanManager
from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse
from httpx import AsyncClient, ASGITransport

from mockserver.config import Rule, Settings
from mockserver.registry import Registry
from mockserver.testing.fake_store import FakeSettingsStore
from mockserver.testing.rules import make_rule
from mockserver.main import application as gateway_app

BACKEND = 'http://backend.local'


@pytest.fixture
def rules() -> list[Rule]:
    return [
        make_rule(),
        make_rule(path='/greet/:name', content_type='text/plain', payload='hello {{name}}'),
        make_rule(method='post', path='/orders', status=201, payload={'created': True}),
    ]


@pytest.fixture
def settings_store(rules) -> FakeSettingsStore:
    return FakeSettingsStore(Settings(default_endpoint=BACKEND, endpoints=rules))


@pytest.fixture
def registry(settings_store) -> Registry:
    return Registry.from_store(settings_store)


@pytest.fixture
def upstream_app() -> FastAPI:
    app = FastAPI()     # fake backend for tests

    @app.get("/status/{code}")
    async def status(code: int):   # tests status relay
        return Response(content=f"status {code}", status_code=code,
                        headers={"x-backend": "yes"})

    async def echo(request: Request):   # tests method, url, header and body forwarding
        return JSONResponse({
            "method": request.method,
            "url": str(request.url),
            "received_headers": dict(request.headers),
            "body": (await request.body()).decode(),
        })

    app.add_route("/{path:path}", echo)    # every method, PROPFIND included

    return app


@pytest.fixture
async def upstream_client(upstream_app: FastAPI):
    """Backend client with upstream mocked via ASGITransport"""
    async with AsyncClient(transport=ASGITransport(app=upstream_app)) as client:
        yield client


@pytest.fixture
async def gateway_client(registry: Registry, upstream_client: AsyncClient):
    """Gateway test client with registry and upstream replaced by test doubles"""
    # Set before startup so the lifespan keeps them instead of reading settings.json
    gateway_app.state.registry = registry
    gateway_app.state.http_client = upstream_client

    async with LifespanManager(gateway_app):
        # client with transport to gateway app
        gateway_transport = ASGITransport(app=gateway_app)
        async with AsyncClient(
                transport=gateway_transport,
                base_url="http://gateway") as client:
            yield client

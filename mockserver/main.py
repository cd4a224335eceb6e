import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.staticfiles import StaticFiles
from starlette.routing import Route

from .admin import admin_fallback_routes, router as admin_router
from .config import config
from .dispatch import Dispatcher
from .proxy import Forwarder, create_client
from .registry import Registry
from .store import SettingsStore

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context manager for startup and shutdown logic."""
    #---- Startup ----
    logging.basicConfig(
        level=config.log_level.upper(),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )

    if not hasattr(app.state, 'registry'):
        app.state.registry = Registry.from_store(SettingsStore(config.settings_file))

    if not hasattr(app.state, 'http_client'):
        app.state.http_client = create_client(config.proxy_timeout)

    app.state.dispatcher = Dispatcher(app.state.registry, Forwarder(app.state.http_client))
    snapshot = app.state.registry.read()
    logger.info('Serving %d mock endpoints, default backend %s',
                len(snapshot.rules), snapshot.default_endpoint)

    try:
        yield
    finally:
        #---- Shutdown ----
        if hasattr(app.state, 'http_client'):
            await app.state.http_client.aclose()


application = FastAPI(lifespan=lifespan)
application.include_router(admin_router)
application.router.routes.extend(admin_fallback_routes)
application.mount(
    '/static',
    StaticFiles(directory=config.static_dir, check_dir=False),
    name='static',
)


async def dispatch(request: Request):
    return await request.app.state.dispatcher.dispatch(request)


# methods=None: every verb, including ones FastAPI has no decorator for
application.router.routes.append(Route('/{path:path}', dispatch, methods=None))

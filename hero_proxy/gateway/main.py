"""
Bandwidth Hero compatible forwarding proxy.

Fetches the image named by ``?url=`` from its origin, normalizes the
transport encoding and recompresses it, passes it through, or redirects the
client to the origin when anything goes wrong.
"""

from contextlib import asynccontextmanager
from datetime import datetime, timezone
import logging

from fastapi import FastAPI
from fastapi.responses import PlainTextResponse

from .api.deps import ProcessorDep, RequestContextDep
from .config import config
from .core.logging_config import setup_logging
from .exceptions import register_exception_handlers
from .lifecycle import manage_lifespan
from .middleware import request_id_middleware

# Logger setup
setup_logging()
logger = logging.getLogger("gateway.main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    async with manage_lifespan(app, config):
        yield


def parse_bind_addr(bind_addr: str):
    """Split ``host:port``; an empty host listens on all interfaces."""
    host, _, port = bind_addr.rpartition(":")
    return host or "0.0.0.0", int(port)


app = FastAPI(title="Hero Proxy", version="1.0.0", lifespan=lifespan, root_path=config.root_path)

app.middleware("http")(request_id_middleware)
register_exception_handlers(app)


# ===========================================
# Endpoint definitions.
# ===========================================


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "timestamp": datetime.now(timezone.utc).isoformat()}


@app.get("/")
async def proxy_handler(context: RequestContextDep, processor: ProcessorDep):
    """
    Proxy endpoint.

    Without ``url`` the proxy answers with its banner, which clients use as
    a liveness check.
    """
    if context is None:
        return PlainTextResponse("bandwidth-hero-proxy")

    return await processor.process_request(context)


def run():
    import uvicorn

    host, port = parse_bind_addr(config.UVICORN_BIND_ADDR)
    # Multiple workers need the app as an import string.
    uvicorn.run(
        "hero_proxy.gateway.main:app",
        host=host,
        port=port,
        workers=config.UVICORN_WORKERS,
    )


if __name__ == "__main__":
    run()

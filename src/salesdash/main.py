# configure logging early so library messages emitted during import go through structlog
from .logging_config import get_logger

_early_logger = get_logger(__name__)

# IMPORTANT: do NOT create engines/connections at module import time. The
# composition.wire_app() call in on_startup() handles DB initialization so
# tests can set DATABASE_URL before any engines are created.
from . import composition  # noqa: E402
from .wiring import create_app  # noqa: E402

logger = get_logger(__name__)

app = create_app()


@app.on_event("startup")
async def on_startup():
    app.state.wiring = await composition.wire_app(app)


@app.on_event("shutdown")
async def on_shutdown():
    wiring = getattr(app.state, "wiring", None)
    if wiring is not None:
        await wiring.teardown()
    logger.info("shutdown complete")


if __name__ == "__main__":
    import uvicorn

    from .config import settings

    uvicorn.run("salesdash.main:app", host=settings.server_host, port=settings.server_port)

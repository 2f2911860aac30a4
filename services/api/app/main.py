"""FastAPI application factory / entrypoint.

This service exposes HTTP endpoints for:
- parsing uploaded Slippi replays (single file, zip archive or batch)
- listing and parsing the bundled demo replays
- aggregating parsed replays into the viewer's tables and charts
- health checks

The API is consumed by the browser replay viewer.

Operational notes:
- CORS origins come from `SLP_CORS_ORIGINS` (defaults cover local dev servers).
- Every request gets a request id (taken from `X-Request-ID` or generated) that is
  attached to log lines and echoed back in the response headers.
- Demo replays are served statically under `/assets/slp-demo-data/`.
"""

import logging
import time
import uuid

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from libs.common_python.common.logging import configure_logging, request_id_var

from .routes import router
from .settings import get_settings

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


def create_app() -> FastAPI:
    """Build the API application from the current settings."""
    settings = get_settings()
    configure_logging("api", level=settings.log_level, json_logs=settings.log_json)

    app = FastAPI(title="Slippi Replay API", version="0.1.0")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[REQUEST_ID_HEADER],
    )

    @app.middleware("http")
    async def request_context(request: Request, call_next):
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        token = request_id_var.set(request_id)
        started = time.perf_counter()
        try:
            response = await call_next(request)
            elapsed_ms = (time.perf_counter() - started) * 1000
            logger.info(
                "%s %s -> %d (%.1f ms)",
                request.method,
                request.url.path,
                response.status_code,
                elapsed_ms,
            )
            response.headers[REQUEST_ID_HEADER] = request_id
            return response
        finally:
            request_id_var.reset(token)

    app.include_router(router)

    @app.get("/health")
    def health():
        """Health check endpoint.

        Returns a minimal payload used by local dev tooling and container
        orchestrators to determine whether the API process is up.

        Returns:
            dict: `{"status": "ok", "service": "api"}`.
        """
        return {"status": "ok", "service": "api"}

    # check_dir=False: the demo folder is optional in API-only deployments
    app.mount(
        "/assets/slp-demo-data",
        StaticFiles(directory=settings.sample_data_dir, check_dir=False),
        name="sample-data",
    )

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("services.api.app.main:app", host="0.0.0.0", port=8000)

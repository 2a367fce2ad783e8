"""FastAPI application factory.

``create_app()`` builds the service container from settings unless one is
passed in (tests pass a container over in-memory adapters).
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI, Request

from shift_guard import __version__


def _truthy_env(name: str) -> bool:
    return os.getenv(name, "").strip().lower() in {"1", "true", "yes", "y"}


# Prefer explicitly exported environment variables over values in `.env`.
# Tests opt out with SHIFTGUARD_SKIP_DOTENV=1.
if not _truthy_env("SHIFTGUARD_SKIP_DOTENV"):
    try:
        load_dotenv(dotenv_path=Path(__file__).resolve().parents[2] / ".env", override=False)
    except OSError as e:
        logging.getLogger(__name__).warning(
            "Failed to load .env via python-dotenv (%s); proceeding with OS env only",
            type(e).__name__,
        )

from shift_guard.api.routes.metrics import router as metrics_router  # noqa: E402
from shift_guard.api.routes.phi import router as phi_router  # noqa: E402
from shift_guard.api.routes.summary import router as summary_router  # noqa: E402
from shift_guard.api.routes.triggers import router as triggers_router  # noqa: E402
from shift_guard.bootstrap import ShiftGuardContainer, build_container  # noqa: E402


def create_app(container: ShiftGuardContainer | None = None) -> FastAPI:
    app = FastAPI(title="NICU Shift Guard API", version=__version__)
    app.state.container = container or build_container()

    app.include_router(summary_router)
    app.include_router(triggers_router)
    app.include_router(phi_router)
    app.include_router(metrics_router, tags=["metrics"])

    @app.get("/health")
    def health(request: Request) -> dict[str, object]:
        # Liveness only; keep the payload stable and minimal.
        profile = request.app.state.container.profile
        return {"ok": True, "allowListVersion": profile.allow_list.version}

    return app


__all__ = ["create_app"]

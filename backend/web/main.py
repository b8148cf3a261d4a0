"artboard"
from __future__ import annotations

import logging
import os
import sys

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware


def _should_load_dotenv() -> bool:
    """Decide if we should load a local .env file.

    - Never load under pytest to avoid contaminating test env.
    - Allow explicit opt-out via ARTBOARD_ENABLE_DOTENV (default true outside
      pytest).
    """
    if "pytest" in sys.modules or os.getenv("PYTEST_CURRENT_TEST"):
        return False
    flag = (os.getenv("ARTBOARD_ENABLE_DOTENV", "true") or "").strip().lower()
    return flag in ("1", "true", "yes")


if _should_load_dotenv():
    load_dotenv()

from backend.web import config as _cfg  # noqa: E402
from backend.web.pipeline_wiring import wire_pipeline_if_unset  # noqa: E402
from backend.web.routes.arts import arts_router  # noqa: E402

# Minimal production safety checks (fail-fast on insecure config)
_cfg.ensure_secure_config_on_startup()

logger = logging.getLogger("artboard.web")

app = FastAPI(title="Artboard", description="Art submissions with push notifications", version="0.1.0")
app.add_middleware(
    CORSMiddleware,
    allow_origins=_cfg.cors_origins(),
    allow_methods=["*"],
    allow_headers=["*"],
)
app.include_router(arts_router)

# Wire collaborators once, before the first request is routed.
wire_pipeline_if_unset()


@app.get("/health")
async def health():
    return {"status": "ok"}


def run() -> None:
    import uvicorn

    logging.basicConfig(level=(os.getenv("LOG_LEVEL") or "INFO").upper())
    port = int(os.getenv("PORT", "3000"))
    logger.info("Server running on port %s", port)
    uvicorn.run(app, host=os.getenv("HOST", "0.0.0.0"), port=port)


if __name__ == "__main__":
    run()

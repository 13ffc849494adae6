"""
API Gateway (FastAPI).

Функции:
- /health
- /metrics
- /slack/jitsi — slash-команда
- /slack/auth  — OAuth callback установки приложения
"""

from __future__ import annotations

from typing import Any

from fastapi import FastAPI

from apps.api_gateway.routers.slack import router as slack_router
from jitsi_slack.common.config import get_settings
from jitsi_slack.common.logging import get_project_logger, setup_logging
from jitsi_slack.common.metrics import setup_metrics_endpoint

log = get_project_logger()


def _create_app() -> FastAPI:
    app = FastAPI(title="Jitsi Slack", version="0.1.0")

    setup_metrics_endpoint(app)

    @app.get("/health")
    def health() -> dict[str, Any]:
        return {"ok": True}

    app.include_router(slack_router)
    return app


setup_logging()

app = _create_app()
log.info(
    "api_gateway_ready",
    extra={
        "payload": {
            "service": get_settings().service_name,
            "env": get_settings().app_env,
            "store_mode": get_settings().store_mode,
        }
    },
)

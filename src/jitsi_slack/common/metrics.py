"""
Метрики Prometheus для сервиса.

Назначение:
- Экспорт /metrics
- Счётчики slash-команд, приглашений и установок приложения
"""

from __future__ import annotations

import time

from fastapi import FastAPI, Request
from fastapi.responses import Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest

# =============================================================================
# СЧЁТЧИКИ И МЕТРИКИ
# =============================================================================

# Общее количество HTTP-запросов
REQUESTS_TOTAL = Counter(
    "jitsi_slack_requests_total",
    "Общее количество HTTP запросов",
    ["route", "method", "status"],
)

HTTP_REQUEST_LATENCY_MS = Histogram(
    "jitsi_slack_http_request_latency_ms",
    "Задержка HTTP запроса (мс)",
    ["route", "method"],
    buckets=(5, 10, 25, 50, 100, 250, 500, 1000, 2500, 5000, 10000),
)

SLASH_COMMANDS_TOTAL = Counter(
    "jitsi_slack_slash_commands_total",
    "Количество slash-команд по типу",
    ["intent"],  # help|configure_server|dispatch_invites
)

SIGNATURE_FAILURES_TOTAL = Counter(
    "jitsi_slack_signature_failures_total",
    "Запросы, не прошедшие проверку подписи Slack",
)

INVITES_TOTAL = Counter(
    "jitsi_slack_invites_total",
    "Персональные приглашения по результату",
    ["result"],  # sent|failed|aborted
)

OAUTH_INSTALLS_TOTAL = Counter(
    "jitsi_slack_oauth_installs_total",
    "Установки приложения через OAuth",
    ["result"],  # ok|error
)


def record_invite(result: str, count: int = 1) -> None:
    if count > 0:
        INVITES_TOTAL.labels(result=result).inc(count)


def setup_metrics_endpoint(app: FastAPI) -> None:
    """
    Регистрирует endpoint /metrics для Prometheus.
    """

    @app.middleware("http")
    async def http_metrics(request: Request, call_next):
        route = request.url.path
        method = request.method
        started = time.perf_counter()

        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000

        REQUESTS_TOTAL.labels(route=route, method=method, status=str(response.status_code)).inc()
        HTTP_REQUEST_LATENCY_MS.labels(route=route, method=method).observe(elapsed_ms)
        return response

    @app.get("/metrics")
    def metrics() -> Response:
        return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)

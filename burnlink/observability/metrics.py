# burnlink/observability/metrics.py
# minimal prometheus instrumentation for the message lifecycle

from __future__ import annotations

import os
from typing import Optional

from fastapi import APIRouter, Response
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    generate_latest,
)
from prometheus_client.multiprocess import MultiProcessCollector

# Detect multiprocess mode via environment.
# NOTE: PROMETHEUS_MULTIPROC_DIR must be set BEFORE importing this module in real multi-proc setups.
PROM_MP_DIR = os.environ.get("PROMETHEUS_MULTIPROC_DIR")
HAVE_MP = bool(PROM_MP_DIR and os.path.isdir(PROM_MP_DIR))

# Exposition registry; None exposes the default global one
REGISTRY: Optional[CollectorRegistry] = None
if HAVE_MP:
    REGISTRY = CollectorRegistry()
    MultiProcessCollector(REGISTRY)

MESSAGE_EVENTS = Counter(
    "burnlink_messages_total",
    "Message lifecycle events",
    labelnames=("outcome",),
)
PURGED_ROWS = Counter(
    "burnlink_purged_total",
    "Rows removed by purge sweeps",
)


def record_outcome(outcome: str) -> None:
    MESSAGE_EVENTS.labels(outcome).inc()


def record_purged(count: int) -> None:
    if count > 0:
        PURGED_ROWS.inc(count)


router = APIRouter(tags=["Metrics"])


@router.get("/metrics", include_in_schema=False)
async def prometheus_metrics() -> Response:
    """Prometheus text exposition."""
    if REGISTRY is not None:
        payload = generate_latest(REGISTRY)
    else:
        payload = generate_latest()
    return Response(content=payload, media_type=CONTENT_TYPE_LATEST)

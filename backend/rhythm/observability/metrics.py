"""Lightweight metrics helpers."""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from rhythm.observability import tracing

logger = logging.getLogger(__name__)


def log_metric(name: str, value: float | int, metadata: Optional[Dict[str, Any]] = None) -> None:
    """Record a metric as a short Opik trace; no-op when Opik is disabled."""
    payload: Dict[str, Any] = {"value": value}
    if metadata:
        payload.update(metadata)
    with tracing.trace(f"metric:{name}", metadata=payload):
        logger.debug("metric %s=%s", name, value)

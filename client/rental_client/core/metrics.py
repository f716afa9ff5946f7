"""Prometheus counters for token refresh, request replay and notification sync."""

from __future__ import annotations

from prometheus_client import Counter

OUTCOME_LABEL = "outcome"
OPERATION_LABEL = "operation"

TOKEN_REFRESH_TOTAL = Counter(
    "rental_client_token_refresh_total",
    "Access token refresh calls issued by the request gateway.",
    labelnames=(OUTCOME_LABEL,),
)

REQUESTS_REPLAYED_TOTAL = Counter(
    "rental_client_requests_replayed_total",
    "Requests re-issued with a refreshed access token.",
)

LIVE_PUSH_TOTAL = Counter(
    "rental_client_live_push_total",
    "Live notification pushes received, by how they were applied.",
    labelnames=(OUTCOME_LABEL,),
)

BEST_EFFORT_SYNC_FAILURES_TOTAL = Counter(
    "rental_client_best_effort_sync_failures_total",
    "Background persistence calls that failed and were ignored.",
    labelnames=(OPERATION_LABEL,),
)


def _normalize_label(value: str | None, fallback: str) -> str:
    normalized = (value or "").strip().lower()
    return normalized or fallback


def record_token_refresh(*, succeeded: bool) -> None:
    TOKEN_REFRESH_TOTAL.labels(**{OUTCOME_LABEL: "success" if succeeded else "failure"}).inc()


def record_replay() -> None:
    REQUESTS_REPLAYED_TOTAL.inc()


def record_live_push(*, merged: bool) -> None:
    LIVE_PUSH_TOTAL.labels(**{OUTCOME_LABEL: "merged" if merged else "deferred"}).inc()


def record_sync_failure(operation: str | None) -> None:
    """Count a swallowed background sync failure for the given operation."""
    BEST_EFFORT_SYNC_FAILURES_TOTAL.labels(
        **{OPERATION_LABEL: _normalize_label(operation, "unspecified")}
    ).inc()


__all__ = [
    "BEST_EFFORT_SYNC_FAILURES_TOTAL",
    "LIVE_PUSH_TOTAL",
    "REQUESTS_REPLAYED_TOTAL",
    "TOKEN_REFRESH_TOTAL",
    "record_live_push",
    "record_replay",
    "record_sync_failure",
    "record_token_refresh",
]

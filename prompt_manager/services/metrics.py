# -*- coding: utf-8 -*-
"""
Service for managing Prometheus metrics.

Each app gets its own CollectorRegistry so several apps (tests) can coexist
in one process. HTTP request metrics are recorded by middleware; billing code
records webhook and reconciliation outcomes through ``get_metrics_service()``.
"""

import time
from typing import Optional
from flask import Flask, request, g, current_app, has_app_context
from prometheus_client import CollectorRegistry, Counter, Histogram
from prometheus_client.exposition import generate_latest


def init_metrics(app: Flask) -> None:
    """Initialize metrics service and endpoints."""
    service = MetricsService(enabled=app.config.get('PROMPT_MANAGER_METRICS_ENABLED', True))
    app.extensions['metrics'] = service

    if service.enabled:
        @app.before_request
        def before_request():
            g.metrics_start_time = time.time()

        @app.after_request
        def after_request(response):
            start = getattr(g, 'metrics_start_time', None)
            duration = time.time() - start if start else 0.0
            service.record_http_request(
                route=request.url_rule.rule if request.url_rule else 'unmatched',
                method=request.method,
                status_code=response.status_code,
                duration_seconds=duration
            )
            return response

        @app.route("/metrics")
        def metrics():
            return service.get_metrics(), 200, {
                'Content-Type': 'text/plain; version=0.0.4; charset=utf-8'}


def get_metrics_service() -> Optional['MetricsService']:
    """Get the metrics service instance from the current app context."""
    if has_app_context():
        return current_app.extensions.get('metrics')
    return None


class MetricsService:
    """Service for managing Prometheus metrics."""

    def __init__(self, registry: Optional[CollectorRegistry] = None, enabled: bool = True):
        self.enabled = enabled
        self.registry = registry if registry is not None else CollectorRegistry()

        if self.enabled:
            self.http_requests_total = Counter(
                "prompt_manager_http_requests_total",
                "Total number of HTTP requests.",
                ["route", "method", "status"],
                registry=self.registry
            )
            self.http_request_duration_seconds = Histogram(
                "prompt_manager_http_request_duration_seconds",
                "Duration of HTTP requests in seconds.",
                ["route", "method"],
                registry=self.registry
            )
            self.webhook_events_total = Counter(
                "prompt_manager_webhook_events_total",
                "Stripe webhook deliveries by event type and outcome.",
                ["event_type", "outcome"],
                registry=self.registry
            )
            self.reconciliations_total = Counter(
                "prompt_manager_reconciliations_total",
                "Customer reconciliations by entry point and result.",
                ["entry_point", "result"],
                registry=self.registry
            )

    def record_http_request(
        self,
        route: str,
        method: str,
        status_code: int,
        duration_seconds: float
    ):
        if not self.enabled:
            return
        self.http_requests_total.labels(
            route=route, method=method, status=str(status_code)).inc()
        self.http_request_duration_seconds.labels(
            route=route, method=method).observe(duration_seconds)

    def record_webhook_event(self, event_type: Optional[str], outcome: str):
        if not self.enabled:
            return
        self.webhook_events_total.labels(
            event_type=event_type or 'unknown', outcome=outcome).inc()

    def record_reconciliation(self, entry_point: str, result: str):
        if not self.enabled:
            return
        self.reconciliations_total.labels(entry_point=entry_point, result=result).inc()

    def get_metrics(self) -> bytes:
        return generate_latest(self.registry)

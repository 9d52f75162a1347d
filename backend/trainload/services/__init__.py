"""Services package for business logic."""

from trainload.services.metrics_service import MetricsService, metrics_service
from trainload.services.pmc_service import PMCService, pmc_service
from trainload.services.adaptive_engine import AdaptiveEngine, adaptive_engine
from trainload.services.ingest_service import IngestService, ingest_service

__all__ = [
    "MetricsService",
    "metrics_service",
    "PMCService",
    "pmc_service",
    "AdaptiveEngine",
    "adaptive_engine",
    "IngestService",
    "ingest_service",
]

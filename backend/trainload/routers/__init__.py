"""API routers package."""

from trainload.routers import activities, adaptive, athletes, metrics

__all__ = ["activities", "adaptive", "athletes", "metrics"]

"""Event clustering and volume anomaly detection for news feeds."""

__all__ = [
    "cli",
    "config",
    "models",
    "items",
    "tokenize",
    "cluster",
    "summarize",
    "velocity",
    "baseline",
    "deviation",
    "pipeline",
    "render",
]

"""Budget analytics and spending insights package."""

__all__ = [
    "config",
    "periods",
    "data_loader",
    "analytics",
    "insights",
    "reports",
    "models",
    "fact_store",
    "webapp",
    "cli",
]

__version__ = "0.1.0"

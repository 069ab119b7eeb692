"""Services package - DataFrame-facing indicator services."""

from ta_engine.services.indicator_service import (
    IndicatorService,
    get_indicator_service,
    configure_indicator_service,
)

__all__ = [
    "IndicatorService",
    "get_indicator_service",
    "configure_indicator_service",
]

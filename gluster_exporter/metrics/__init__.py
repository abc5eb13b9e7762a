"""
Metrics module initialization.
"""

from .collector import (
    METRICS,
    MetricSpec,
    MetricValue,
    GlusterCollector
)
from .exposition import ObservationCollector, create_registry

__all__ = [
    'METRICS',
    'MetricSpec',
    'MetricValue',
    'GlusterCollector',
    'ObservationCollector',
    'create_registry'
]

"""
Prometheus exposition adapter.

ObservationCollector is registered in a prometheus_client CollectorRegistry.
Each registry collect() runs one scrape through GlusterCollector and groups
the resulting MetricValue observations into metric families.
"""

from typing import Dict, Iterable, List
import platform

from prometheus_client.core import CollectorRegistry, CounterMetricFamily, GaugeMetricFamily, Metric

from gluster_exporter import __version__
from gluster_exporter.metrics.collector import (
    COUNTER,
    METRICS,
    NAMESPACE,
    GlusterCollector,
    MetricValue,
)


def build_families(observations: Iterable[MetricValue]) -> List[Metric]:
    """Group observations by metric name, in catalog order, skipping empty families."""
    families: Dict[str, Metric] = {}
    for observation in observations:
        family = families.get(observation.name)
        if family is None:
            spec = METRICS[observation.name]
            family_type = CounterMetricFamily if spec.kind == COUNTER else GaugeMetricFamily
            family = family_type(observation.full_name, spec.documentation, labels=list(spec.labels))
            families[observation.name] = family
        family.add_metric([observation.labels[label] for label in METRICS[observation.name].labels],
                          observation.value)
    return [families[name] for name in METRICS if name in families]


def build_info_family() -> GaugeMetricFamily:
    family = GaugeMetricFamily(
        f"{NAMESPACE}_exporter_build_info",
        "A metric with a constant '1' value labeled by version and pyversion from which gluster_exporter was built.",
        labels=["version", "pyversion"]
    )
    family.add_metric([__version__, platform.python_version()], 1)
    return family


class ObservationCollector:
    """prometheus_client custom collector backed by GlusterCollector."""

    def __init__(self, collector: GlusterCollector):
        self.collector = collector

    def describe(self) -> List[Metric]:
        # Registration must not trigger a scrape
        return []

    def collect(self) -> Iterable[Metric]:
        yield from build_families(self.collector.collect())
        yield build_info_family()


def create_registry(collector: GlusterCollector) -> CollectorRegistry:
    """Create a registry holding only the gluster collector."""
    registry = CollectorRegistry(auto_describe=False)
    registry.register(ObservationCollector(collector))
    return registry

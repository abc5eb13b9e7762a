"""
Metrics Collection Module

GlusterCollector runs one scrape: it queries the gluster CLI and the local
mount table in a fixed order and turns the results into MetricValue
observations. Every sub-collection is best effort; a failure is logged and
only suppresses that sub-collection's metrics. The exposition layer turns the
observations into the Prometheus text format.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple
import logging
import socket

from gluster_exporter.cluster.client import GlusterClient
from gluster_exporter.cluster.mounts import MountProbe
from gluster_exporter.cluster.schemas import VolumeInfo
from gluster_exporter.config import Settings
from gluster_exporter.errors import GlusterExporterError, MountParseError

NAMESPACE = "gluster"

GAUGE = "gauge"
COUNTER = "counter"


@dataclass(frozen=True)
class MetricSpec:
    """Catalog entry describing one metric."""
    kind: str
    documentation: str
    labels: Tuple[str, ...] = ()


VOLUME = ("volume",)
BRICK = ("volume", "brick")
FOP = ("volume", "brick", "fop_name")
NODE = ("hostname", "path", "volume")
MOUNT = ("volume", "mountpoint")
QUOTA = ("path", "volume")

METRICS: Dict[str, MetricSpec] = {
    "up": MetricSpec(GAUGE, "Was the last query of Gluster successful."),
    "volumes_available": MetricSpec(GAUGE, "How many volumes were up at the last query."),
    "volume_status": MetricSpec(GAUGE, "Status code of requested volume.", VOLUME),
    "brick_available": MetricSpec(GAUGE, "Number of bricks available at last query.", VOLUME),
    "brick_duration_seconds_total": MetricSpec(COUNTER, "Time running volume brick in seconds.", BRICK),
    "brick_data_read_bytes_total": MetricSpec(COUNTER, "Total amount of bytes of data read by brick.", BRICK),
    "brick_data_written_bytes_total": MetricSpec(COUNTER, "Total amount of bytes of data written by brick.", BRICK),
    "brick_fop_hits_total": MetricSpec(COUNTER, "Total amount of file operation hits.", FOP),
    "brick_fop_latency_avg": MetricSpec(GAUGE, "Average fileoperations latency over total uptime", FOP),
    "brick_fop_latency_min": MetricSpec(GAUGE, "Minimum fileoperations latency over total uptime", FOP),
    "brick_fop_latency_max": MetricSpec(GAUGE, "Maximum fileoperations latency over total uptime", FOP),
    "peers_connected": MetricSpec(GAUGE, "Is peer connected to gluster cluster."),
    "node_size_free_bytes": MetricSpec(GAUGE, "Free bytes reported for each node on each instance. Labels are to distinguish origins", NODE),
    "node_size_bytes_total": MetricSpec(GAUGE, "Total bytes reported for each node on each instance. Labels are to distinguish origins", NODE),
    "node_inodes_total": MetricSpec(GAUGE, "Total inodes reported for each node on each instance. Labels are to distinguish origins", NODE),
    "node_inodes_free": MetricSpec(GAUGE, "Free inodes reported for each node on each instance. Labels are to distinguish origins", NODE),
    "heal_info_files_count": MetricSpec(GAUGE, "File count of files out of sync, when calling 'gluster v heal VOLNAME info'", VOLUME),
    "mount_successful": MetricSpec(GAUGE, "Checks if mountpoint exists, returns a bool value 0 or 1", MOUNT),
    "volume_writeable": MetricSpec(GAUGE, "Writes and deletes file in Volume and checks if it is writeable", MOUNT),
    "volume_quota_hardlimit": MetricSpec(GAUGE, "Quota hard limit (bytes) in a volume", QUOTA),
    "volume_quota_softlimit": MetricSpec(GAUGE, "Quota soft limit (bytes) in a volume", QUOTA),
    "volume_quota_used": MetricSpec(GAUGE, "Current data (bytes) used in a quota", QUOTA),
    "volume_quota_available": MetricSpec(GAUGE, "Current data (bytes) available in a quota", QUOTA),
    "volume_quota_softlimit_exceeded": MetricSpec(GAUGE, "Is the quota soft-limit exceeded", QUOTA),
    "volume_quota_hardlimit_exceeded": MetricSpec(GAUGE, "Is the quota hard-limit exceeded", QUOTA),
}


@dataclass
class MetricValue:
    """A single observation produced by a scrape."""
    name: str
    value: float
    labels: Dict[str, str] = field(default_factory=dict)

    @property
    def kind(self) -> str:
        return METRICS[self.name].kind

    @property
    def full_name(self) -> str:
        return f"{NAMESPACE}_{self.name}"


class GlusterCollector:
    """Collects one snapshot of gluster metrics per call to collect()."""

    def __init__(self, client: GlusterClient, settings: Settings,
                 mount_probe: Optional[MountProbe] = None,
                 hostname: Optional[str] = None,
                 logger: Optional[logging.Logger] = None):
        self.client = client
        self.settings = settings
        self.scope = settings.volume_scope
        self.mount_probe = mount_probe or MountProbe(timeout=settings.timeout, logger=logger)
        self.hostname = hostname if hostname is not None else socket.gethostname()
        self.logger = logger or logging.getLogger(__name__)

    def collect(self) -> List[MetricValue]:
        """Run a full scrape and return its observations."""
        metrics: List[MetricValue] = []

        volume_info = self._collect_volume_info(metrics)
        self._collect_peers(metrics)
        if self.settings.profile:
            self._collect_profiles(metrics, volume_info)
        self._collect_node_status(metrics)
        self._collect_heal_info(metrics)
        self._collect_mounts(metrics)
        if self.settings.quota:
            self._collect_quotas(metrics, volume_info)

        self.logger.debug(f"Scrape produced {len(metrics)} observations")
        return metrics

    def _emit(self, metrics: List[MetricValue], name: str, value: float, *label_values: str) -> None:
        labels = dict(zip(METRICS[name].labels, label_values))
        metrics.append(MetricValue(name=name, value=float(value), labels=labels))

    def _scoped_volumes(self, volume_info: Optional[VolumeInfo]) -> List[str]:
        if volume_info is None:
            return []
        return [v.name for v in volume_info.volumes if self.scope.contains(v.name)]

    def _collect_volume_info(self, metrics: List[MetricValue]) -> Optional[VolumeInfo]:
        try:
            volume_info = self.client.volume_info()
        except GlusterExporterError as e:
            self.logger.error(f"couldn't parse xml volume info: {e}")
            self._emit(metrics, "up", 0)
            return None

        if volume_info.op_errno != 0:
            self.logger.error(f"gluster volume info reported error {volume_info.op_errno}: "
                              f"{volume_info.op_errstr}")
        self._emit(metrics, "up", 1 if volume_info.op_errno == 0 else 0)
        self._emit(metrics, "volumes_available", volume_info.count)

        for volume in volume_info.volumes:
            if self.scope.contains(volume.name):
                self._emit(metrics, "brick_available", volume.brick_count, volume.name)
                self._emit(metrics, "volume_status", volume.status, volume.name)
        return volume_info

    def _collect_peers(self, metrics: List[MetricValue]) -> None:
        try:
            peers = self.client.peer_status().peers
        except GlusterExporterError as e:
            self.logger.error(f"couldn't parse xml of peer status: {e}")
            peers = []
        self._emit(metrics, "peers_connected", len(peers))

    def _collect_profiles(self, metrics: List[MetricValue], volume_info: Optional[VolumeInfo]) -> None:
        for volume_name in self._scoped_volumes(volume_info):
            try:
                profile = self.client.volume_profile(volume_name)
            except GlusterExporterError as e:
                self.logger.error(f"Error while executing or marshalling gluster profile output "
                                  f"for {volume_name}: {e}")
                continue

            # brick names embed the owning host, report local bricks only
            for brick in profile.bricks:
                if not brick.brick_name.startswith(self.hostname):
                    continue
                name = brick.brick_name
                self._emit(metrics, "brick_duration_seconds_total", brick.duration, volume_name, name)
                self._emit(metrics, "brick_data_read_bytes_total", brick.total_read, volume_name, name)
                self._emit(metrics, "brick_data_written_bytes_total", brick.total_write, volume_name, name)
                for fop in brick.fops:
                    self._emit(metrics, "brick_fop_hits_total", fop.hits, volume_name, name, fop.name)
                    self._emit(metrics, "brick_fop_latency_avg", fop.avg_latency, volume_name, name, fop.name)
                    self._emit(metrics, "brick_fop_latency_min", fop.min_latency, volume_name, name, fop.name)
                    self._emit(metrics, "brick_fop_latency_max", fop.max_latency, volume_name, name, fop.name)

    def _collect_node_status(self, metrics: List[MetricValue]) -> None:
        try:
            status = self.client.volume_status_detail()
        except GlusterExporterError as e:
            self.logger.error(f"couldn't parse xml of volume status: {e}")
            return

        for volume in status.volumes:
            for node in volume.nodes:
                labels = (node.hostname, node.path, volume.name)
                self._emit(metrics, "node_size_bytes_total", node.size_total, *labels)
                self._emit(metrics, "node_size_free_bytes", node.size_free, *labels)
                self._emit(metrics, "node_inodes_total", node.inodes_total, *labels)
                self._emit(metrics, "node_inodes_free", node.inodes_free, *labels)

    def _heal_volumes(self) -> List[str]:
        if not self.scope.all_volumes:
            return sorted(self.scope.names)
        try:
            return self.client.volume_list()
        except GlusterExporterError as e:
            self.logger.error(f"couldn't list volumes for heal info: {e}")
            return []

    def _collect_heal_info(self, metrics: List[MetricValue]) -> None:
        for volume_name in self._heal_volumes():
            try:
                files_count = self.client.heal_backlog(volume_name)
            except GlusterExporterError as e:
                self.logger.error(f"couldn't read heal info of {volume_name}: {e}")
                continue
            self._emit(metrics, "heal_info_files_count", files_count, volume_name)

    def _collect_mounts(self, metrics: List[MetricValue]) -> None:
        try:
            mounts = self.mount_probe.list_mounts()
        except MountParseError as e:
            self.logger.error(str(e))
            for mount in e.mounts:
                self._emit(metrics, "mount_successful", 0, mount.volume, mount.mountpoint)
            return
        except GlusterExporterError as e:
            self.logger.error(f"couldn't list glusterfs mounts: {e}")
            return

        for mount in mounts:
            self._emit(metrics, "mount_successful", 1, mount.volume, mount.mountpoint)
            try:
                writeable = self.mount_probe.probe_writable(mount.mountpoint)
            except GlusterExporterError as e:
                self.logger.error(str(e))
                writeable = False
            self._emit(metrics, "volume_writeable", 1 if writeable else 0, mount.volume, mount.mountpoint)

    def _collect_quotas(self, metrics: List[MetricValue], volume_info: Optional[VolumeInfo]) -> None:
        for volume_name in self._scoped_volumes(volume_info):
            try:
                quota = self.client.volume_quota(volume_name)
            except GlusterExporterError as e:
                self.logger.error(f"Cannot create quota metrics for {volume_name}, "
                                  f"quotas may not be enabled: {e}")
                continue

            for limit in quota.limits:
                labels = (limit.path, volume_name)
                self._emit(metrics, "volume_quota_hardlimit", limit.hard_limit, *labels)
                self._emit(metrics, "volume_quota_softlimit", limit.soft_limit_value, *labels)
                self._emit(metrics, "volume_quota_used", limit.used_space, *labels)
                self._emit(metrics, "volume_quota_available", limit.avail_space, *labels)
                self._emit(metrics, "volume_quota_softlimit_exceeded",
                           1 if limit.soft_limit_exceeded else 0, *labels)
                self._emit(metrics, "volume_quota_hardlimit_exceeded",
                           1 if limit.hard_limit_exceeded else 0, *labels)

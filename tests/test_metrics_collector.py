"""
Unit tests for GlusterCollector scrape orchestration.
"""
from typing import Dict, List, Optional
from unittest.mock import MagicMock

import pytest

from gluster_exporter.cluster.client import GlusterClient
from gluster_exporter.cluster.decoder import decode_xml
from gluster_exporter.cluster.mounts import Mount, MountProbe
from gluster_exporter.cluster.schemas import (
    PeerStatus,
    VolumeInfo,
    VolumeProfile,
    VolumeQuota,
    VolumeStatusDetail,
)
from gluster_exporter.config import Settings
from gluster_exporter.errors import (
    DecodeError,
    ExecutionError,
    MountParseError,
    NumericConversionError,
    ProbeIOError,
)
from gluster_exporter.metrics.collector import METRICS, GlusterCollector, MetricValue
from tests.helpers import read_fixture


def find(metrics: List[MetricValue], name: str, **labels: str) -> List[MetricValue]:
    return [m for m in metrics
            if m.name == name and all(m.labels.get(k) == v for k, v in labels.items())]


def value_of(metrics: List[MetricValue], name: str, **labels: str) -> float:
    matches = find(metrics, name, **labels)
    assert len(matches) == 1, f"expected one {name}{labels}, got {matches}"
    return matches[0].value


def failure(*args: str) -> ExecutionError:
    return ExecutionError(['gluster', *args, '--xml'], "exit status 1")


def make_client() -> MagicMock:
    client = MagicMock(spec=GlusterClient)
    client.volume_info.return_value = decode_xml(read_fixture('volume_info.xml'), VolumeInfo)
    client.peer_status.return_value = decode_xml(read_fixture('peer_status.xml'), PeerStatus)
    client.volume_profile.return_value = decode_xml(read_fixture('volume_profile.xml'), VolumeProfile)
    client.volume_status_detail.return_value = decode_xml(
        read_fixture('volume_status_detail.xml'), VolumeStatusDetail)
    client.volume_list.return_value = ['gv0', 'gv1']
    client.heal_backlog.return_value = 7
    client.volume_quota.return_value = decode_xml(read_fixture('volume_quota.xml'), VolumeQuota)
    return client


def make_probe(mounts: Optional[List[Mount]] = None) -> MagicMock:
    probe = MagicMock(spec=MountProbe)
    probe.list_mounts.return_value = mounts or []
    probe.probe_writable.return_value = True
    return probe


def make_collector(client=None, probe=None, **settings) -> GlusterCollector:
    return GlusterCollector(
        client=client or make_client(),
        settings=Settings(**settings),
        mount_probe=probe or make_probe(),
        hostname='node1',
        logger=MagicMock()
    )


class TestVolumeInfo:
    """Liveness and per-volume metrics."""

    def test_two_volumes_in_scope(self):
        metrics = make_collector().collect()

        assert value_of(metrics, 'up') == 1
        assert value_of(metrics, 'volumes_available') == 2
        assert value_of(metrics, 'brick_available', volume='gv0') == 2
        assert value_of(metrics, 'brick_available', volume='gv1') == 1
        assert value_of(metrics, 'volume_status', volume='gv0') == 1
        assert value_of(metrics, 'volume_status', volume='gv1') == 2

    def test_volume_info_failure(self):
        client = make_client()
        client.volume_info.side_effect = failure('volume', 'info')

        metrics = make_collector(client=client, quota=True, profile=True).collect()

        assert value_of(metrics, 'up') == 0
        assert find(metrics, 'volumes_available') == []
        assert find(metrics, 'brick_available') == []
        assert find(metrics, 'volume_status') == []
        client.volume_profile.assert_not_called()
        client.volume_quota.assert_not_called()
        # later steps still run
        assert value_of(metrics, 'peers_connected') == 2

    def test_volume_info_decode_failure(self):
        client = make_client()
        client.volume_info.side_effect = DecodeError("malformed XML")
        metrics = make_collector(client=client).collect()
        assert value_of(metrics, 'up') == 0

    def test_non_zero_error_code_marks_down_but_reports_volumes(self):
        client = make_client()
        client.volume_info.return_value = decode_xml(read_fixture('volume_info_error.xml'), VolumeInfo)

        metrics = make_collector(client=client).collect()

        assert value_of(metrics, 'up') == 0
        assert value_of(metrics, 'volumes_available') == 1
        assert value_of(metrics, 'brick_available', volume='gv0') == 2

    def test_scope_filters_volumes(self):
        metrics = make_collector(gluster_volumes='gv1').collect()
        assert find(metrics, 'brick_available', volume='gv0') == []
        assert value_of(metrics, 'brick_available', volume='gv1') == 1
        assert value_of(metrics, 'volumes_available') == 2

    def test_scope_uses_exact_names(self):
        metrics = make_collector(gluster_volumes='gv').collect()
        assert find(metrics, 'brick_available') == []


class TestPeers:

    def test_peer_count(self):
        assert value_of(make_collector().collect(), 'peers_connected') == 2

    def test_peer_failure_reports_zero(self):
        client = make_client()
        client.peer_status.side_effect = failure('peer', 'status')
        assert value_of(make_collector(client=client).collect(), 'peers_connected') == 0


class TestProfile:
    """Brick profiling metrics."""

    def test_disabled_by_default(self):
        client = make_client()
        metrics = make_collector(client=client).collect()
        client.volume_profile.assert_not_called()
        assert find(metrics, 'brick_duration_seconds_total') == []

    def test_only_local_bricks_are_reported(self):
        client = make_client()
        metrics = make_collector(client=client, profile=True, gluster_volumes='gv0').collect()

        client.volume_profile.assert_called_once_with('gv0')
        brick = 'node1:/data/brick1/gv0'
        assert value_of(metrics, 'brick_duration_seconds_total', volume='gv0', brick=brick) == 7200
        assert value_of(metrics, 'brick_data_read_bytes_total', brick=brick) == 1048576
        assert value_of(metrics, 'brick_data_written_bytes_total', brick=brick) == 2097152
        assert value_of(metrics, 'brick_fop_hits_total', brick=brick, fop_name='WRITE') == 58
        assert value_of(metrics, 'brick_fop_latency_avg', brick=brick, fop_name='WRITE') == 224.5
        assert value_of(metrics, 'brick_fop_latency_min', brick=brick, fop_name='LOOKUP') == 10.0
        assert value_of(metrics, 'brick_fop_latency_max', brick=brick, fop_name='LOOKUP') == 95.0
        assert find(metrics, 'brick_duration_seconds_total', brick='node2:/data/brick1/gv0') == []

    def test_profile_failure_skips_volume(self):
        client = make_client()
        client.volume_profile.side_effect = [failure('volume', 'profile'),
                                             client.volume_profile.return_value]
        metrics = make_collector(client=client, profile=True).collect()

        assert client.volume_profile.call_count == 2
        assert len(find(metrics, 'brick_duration_seconds_total')) == 1


class TestNodeStatus:

    def test_nodes_reported_without_scope_filter(self):
        metrics = make_collector(gluster_volumes='gv0').collect()

        labels = dict(hostname='node1', path='/data/brick1/gv0', volume='gv0')
        assert value_of(metrics, 'node_size_bytes_total', **labels) == 105553100800
        assert value_of(metrics, 'node_size_free_bytes', **labels) == 52776550400
        assert value_of(metrics, 'node_inodes_total', **labels) == 51380224
        assert value_of(metrics, 'node_inodes_free', **labels) == 51379000
        assert value_of(metrics, 'node_inodes_free', volume='gv1') == 60
        assert len(find(metrics, 'node_size_bytes_total')) == 3

    def test_status_failure_emits_nothing(self):
        client = make_client()
        client.volume_status_detail.side_effect = DecodeError("bad")
        metrics = make_collector(client=client).collect()
        assert find(metrics, 'node_size_bytes_total') == []


class TestHealInfo:

    def test_all_scope_uses_fresh_volume_list(self):
        client = make_client()
        client.volume_list.return_value = ['gv0', 'gv9']
        metrics = make_collector(client=client).collect()

        client.volume_list.assert_called_once_with()
        assert [c.args[0] for c in client.heal_backlog.call_args_list] == ['gv0', 'gv9']
        assert value_of(metrics, 'heal_info_files_count', volume='gv9') == 7

    def test_explicit_scope_skips_volume_list(self):
        client = make_client()
        metrics = make_collector(client=client, gluster_volumes='gv1,gv0').collect()

        client.volume_list.assert_not_called()
        assert sorted(c.args[0] for c in client.heal_backlog.call_args_list) == ['gv0', 'gv1']
        assert len(find(metrics, 'heal_info_files_count')) == 2

    def test_failed_volume_is_not_zero_filled(self):
        client = make_client()
        client.heal_backlog.side_effect = [NumericConversionError('numberOfEntries', '-'), 4]
        metrics = make_collector(client=client).collect()

        assert find(metrics, 'heal_info_files_count', volume='gv0') == []
        assert value_of(metrics, 'heal_info_files_count', volume='gv1') == 4

    def test_volume_list_failure(self):
        client = make_client()
        client.volume_list.side_effect = failure('volume', 'list')
        metrics = make_collector(client=client).collect()
        client.heal_backlog.assert_not_called()
        assert find(metrics, 'heal_info_files_count') == []


class TestMounts:
    """Mount and writability metrics."""

    def test_writable_mount(self):
        probe = make_probe([Mount(mountpoint='/mnt/data', volume='glustervol1')])
        metrics = make_collector(probe=probe).collect()

        probe.probe_writable.assert_called_once_with('/mnt/data')
        assert value_of(metrics, 'mount_successful', volume='glustervol1', mountpoint='/mnt/data') == 1
        assert value_of(metrics, 'volume_writeable', volume='glustervol1', mountpoint='/mnt/data') == 1

    def test_unwritable_mount(self):
        probe = make_probe([Mount(mountpoint='/mnt/data', volume='glustervol1')])
        probe.probe_writable.side_effect = ProbeIOError('/mnt/data', '/mnt/data/probe',
                                                        OSError(30, 'Read-only file system'))
        metrics = make_collector(probe=probe).collect()

        assert value_of(metrics, 'mount_successful', mountpoint='/mnt/data') == 1
        assert value_of(metrics, 'volume_writeable', mountpoint='/mnt/data') == 0

    def test_mount_listing_failure_skips_step(self):
        probe = make_probe()
        probe.list_mounts.side_effect = ExecutionError(['mount'], "exit status 32")
        metrics = make_collector(probe=probe).collect()

        assert find(metrics, 'mount_successful') == []
        assert find(metrics, 'volume_writeable') == []

    def test_parse_failure_marks_every_parsed_mount_failed(self):
        probe = make_probe()
        probe.list_mounts.side_effect = MountParseError(
            ['junk'], [Mount('/mnt/a', 'vol-a'), Mount('/mnt/b', 'vol-b')])
        metrics = make_collector(probe=probe).collect()

        assert value_of(metrics, 'mount_successful', mountpoint='/mnt/a') == 0
        assert value_of(metrics, 'mount_successful', mountpoint='/mnt/b') == 0
        assert find(metrics, 'volume_writeable') == []
        probe.probe_writable.assert_not_called()


class TestQuota:
    """Quota metrics."""

    def test_disabled_emits_nothing(self):
        client = make_client()
        metrics = make_collector(client=client, quota=False).collect()
        client.volume_quota.assert_not_called()
        assert not [m for m in metrics if m.name.startswith('volume_quota_')]

    def test_quota_limits(self):
        client = make_client()
        metrics = make_collector(client=client, quota=True, gluster_volumes='gv0').collect()

        client.volume_quota.assert_called_once_with('gv0')
        labels = dict(path='/projects', volume='gv0')
        assert value_of(metrics, 'volume_quota_hardlimit', **labels) == 10737418240
        assert value_of(metrics, 'volume_quota_softlimit', **labels) == 8589934592
        assert value_of(metrics, 'volume_quota_used', **labels) == 9663676416
        assert value_of(metrics, 'volume_quota_available', **labels) == 1073741824
        assert value_of(metrics, 'volume_quota_softlimit_exceeded', **labels) == 1
        assert value_of(metrics, 'volume_quota_hardlimit_exceeded', **labels) == 0
        assert value_of(metrics, 'volume_quota_softlimit_exceeded', path='/home') == 0

    def test_quota_failure_skips_volume(self):
        client = make_client()
        client.volume_quota.side_effect = [failure('volume', 'quota'),
                                           client.volume_quota.return_value]
        metrics = make_collector(client=client, quota=True).collect()

        assert find(metrics, 'volume_quota_used', volume='gv0') == []
        assert len(find(metrics, 'volume_quota_used', volume='gv1')) == 2


class TestObservations:

    def test_every_observation_is_cataloged_with_matching_labels(self):
        probe = make_probe([Mount(mountpoint='/mnt/data', volume='glustervol1')])
        metrics = make_collector(probe=probe, profile=True, quota=True).collect()

        for metric in metrics:
            spec = METRICS[metric.name]
            assert tuple(metric.labels) == spec.labels
            assert metric.kind == spec.kind
            assert metric.full_name == f"gluster_{metric.name}"

    @pytest.mark.parametrize("failing", [
        'volume_info', 'peer_status', 'volume_profile', 'volume_status_detail',
        'volume_list', 'heal_backlog', 'volume_quota',
    ])
    def test_single_failure_never_aborts_scrape(self, failing):
        client = make_client()
        getattr(client, failing).side_effect = failure(failing)
        probe = make_probe([Mount(mountpoint='/mnt/data', volume='glustervol1')])

        metrics = make_collector(client=client, probe=probe, profile=True, quota=True).collect()

        assert find(metrics, 'up')
        assert value_of(metrics, 'mount_successful', mountpoint='/mnt/data') == 1

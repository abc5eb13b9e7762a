"""
Gluster XML Schemas

Data-only records for the ``<cliOutput>`` documents returned by the gluster
CLI. Field paths follow the element names gluster emits.
"""

from dataclasses import dataclass
from typing import ClassVar, List

from gluster_exporter.cluster.decoder import element, elements


@dataclass
class CliOutput:
    """Envelope fields shared by every gluster XML response."""
    xml_root: ClassVar[str] = "cliOutput"

    op_ret: int = element("opRet", 0)
    op_errno: int = element("opErrno", 0)
    op_errstr: str = element("opErrstr")


# volume info

@dataclass
class Brick:
    name: str = element("name")
    host_uuid: str = element("hostUuid")


@dataclass
class Volume:
    name: str = element("name")
    id: str = element("id")
    status: int = element("status", 0)
    status_str: str = element("statusStr")
    brick_count: int = element("brickCount", 0)
    type_str: str = element("typeStr")
    bricks: List[Brick] = elements("bricks/brick")


@dataclass
class VolumeInfo(CliOutput):
    volumes: List[Volume] = elements("volInfo/volumes/volume")
    count: int = element("volInfo/volumes/count", 0)


# volume list

@dataclass
class VolumeList(CliOutput):
    volumes: List[str] = elements("volList/volume")
    count: int = element("volList/count", 0)


# peer status

@dataclass
class Peer:
    uuid: str = element("uuid")
    hostname: str = element("hostname")
    connected: int = element("connected", 0)
    state: int = element("state", 0)
    state_str: str = element("stateStr")


@dataclass
class PeerStatus(CliOutput):
    peers: List[Peer] = elements("peerStatus/peer")


# volume profile <name> info cumulative

@dataclass
class Fop:
    name: str = element("name")
    hits: int = element("hits", 0)
    avg_latency: float = element("avgLatency", 0.0)
    min_latency: float = element("minLatency", 0.0)
    max_latency: float = element("maxLatency", 0.0)


@dataclass
class ProfileBrick:
    brick_name: str = element("brickName")
    duration: int = element("cumulativeStats/duration", 0)
    total_read: int = element("cumulativeStats/totalRead", 0)
    total_write: int = element("cumulativeStats/totalWrite", 0)
    fops: List[Fop] = elements("cumulativeStats/fopStats/fop")


@dataclass
class VolumeProfile(CliOutput):
    volume_name: str = element("volProfile/volname")
    bricks: List[ProfileBrick] = elements("volProfile/brick")


# volume status all detail

@dataclass
class NodeStatus:
    hostname: str = element("hostname")
    path: str = element("path")
    peer_id: str = element("peerid")
    status: int = element("status", 0)
    port: str = element("port")
    pid: int = element("pid", 0)
    size_total: int = element("sizeTotal", 0)
    size_free: int = element("sizeFree", 0)
    device: str = element("device")
    block_size: int = element("blockSize", 0)
    mnt_options: str = element("mntOptions")
    fs_name: str = element("fsName")
    inodes_total: int = element("inodesTotal", 0)
    inodes_free: int = element("inodesFree", 0)


@dataclass
class VolumeStatus:
    name: str = element("volName")
    node_count: int = element("nodeCount", 0)
    nodes: List[NodeStatus] = elements("node")


@dataclass
class VolumeStatusDetail(CliOutput):
    volumes: List[VolumeStatus] = elements("volStatus/volumes/volume")


# volume heal <name> info

@dataclass
class HealBrick:
    name: str = element("name")
    host_uuid: str = element("@hostUuid")
    status: str = element("status")
    # "-" when the brick is unreachable, hence text
    number_of_entries: str = element("numberOfEntries")


@dataclass
class HealInfo(CliOutput):
    bricks: List[HealBrick] = elements("healInfo/bricks/brick")


# volume quota <name> list

@dataclass
class QuotaLimit:
    path: str = element("path")
    hard_limit: int = element("hard_limit", 0)
    soft_limit_percent: str = element("soft_limit_percent")
    soft_limit_value: int = element("soft_limit_value", 0)
    used_space: int = element("used_space", 0)
    avail_space: int = element("avail_space", 0)
    sl_exceeded: str = element("sl_exceeded")
    hl_exceeded: str = element("hl_exceeded")

    @property
    def soft_limit_exceeded(self) -> bool:
        return self.sl_exceeded != "No"

    @property
    def hard_limit_exceeded(self) -> bool:
        return self.hl_exceeded != "No"


@dataclass
class VolumeQuota(CliOutput):
    limits: List[QuotaLimit] = elements("volQuota/limit")

"""
Mount Probe Module

Lists the local glusterfs FUSE mounts and checks that each one accepts writes
by creating and deleting a probe file.
"""

from dataclasses import dataclass
from typing import List, Optional
import itertools
import logging
import os
import re
import socket
import time

from gluster_exporter.cluster.command import run_command
from gluster_exporter.errors import MountParseError, ProbeIOError

MOUNT_TYPE = "fuse.glusterfs"
PROBE_FILE_PREFIX = "gluster_mount.test"

_probe_sequence = itertools.count()


@dataclass
class Mount:
    """A glusterfs volume mounted on this host."""
    mountpoint: str
    volume: str


def parse_mount_output(output: str) -> List[Mount]:
    """
    Parse ``mount`` output lines of the form ``source on target type ...``.

    Lines shorter than 4 characters after trimming are treated as blank.
    The first token is the volume, the third the mountpoint.

    Raises:
        MountParseError: if a line has fewer than three tokens; the exception
            carries every mount that could be parsed
    """
    mounts: List[Mount] = []
    bad_lines: List[str] = []
    for line in output.splitlines():
        line = line.strip()
        if len(line) < 4:
            continue

        columns = line.split()
        if len(columns) < 3:
            bad_lines.append(line)
            continue

        mounts.append(Mount(mountpoint=columns[2], volume=columns[0]))

    if bad_lines:
        raise MountParseError(bad_lines, mounts)
    return mounts


def probe_file_name(mountpoint: str) -> str:
    """Build a probe file path unique per mountpoint, host, process and instant."""
    slug = re.sub(r"[^A-Za-z0-9._-]+", "_", mountpoint.strip("/")) or "root"
    name = f"{PROBE_FILE_PREFIX}_{slug}_{socket.gethostname()}_{os.getpid()}_{time.time_ns()}_{next(_probe_sequence)}"
    return os.path.join(mountpoint, name)


class MountProbe:
    """Checks local glusterfs mounts."""

    def __init__(self, timeout: Optional[float] = None,
                 logger: Optional[logging.Logger] = None):
        self.timeout = timeout
        self.logger = logger or logging.getLogger(__name__)

    def list_mounts(self) -> List[Mount]:
        """
        Run ``mount -t fuse.glusterfs`` and parse its output.

        Raises:
            ExecutionError: if the mount listing cannot be obtained
            MountParseError: if some lines could not be parsed
        """
        output = run_command(["mount", "-t", MOUNT_TYPE], timeout=self.timeout)
        return parse_mount_output(output.decode("utf-8", errors="replace"))

    def probe_writable(self, mountpoint: str) -> bool:
        """
        Create and delete a probe file inside ``mountpoint``.

        Returns:
            True when both steps succeed

        Raises:
            ProbeIOError: if either step fails
        """
        path = probe_file_name(mountpoint)
        try:
            with open(path, "x"):
                pass
        except OSError as e:
            raise ProbeIOError(mountpoint, path, e)

        try:
            os.remove(path)
        except OSError as e:
            raise ProbeIOError(mountpoint, path, e)

        self.logger.debug(f"Write probe succeeded on {mountpoint}")
        return True

"""
Gluster Client Module

One method per gluster CLI subcommand. Each method runs the command through
GlusterCommand, decodes the XML into its record type and returns the part the
caller needs. Failures are logged here and re-raised so the caller can decide
what to emit.
"""

from typing import List, Optional, Type, TypeVar
import logging

from gluster_exporter.cluster.command import GlusterCommand
from gluster_exporter.cluster.decoder import decode_xml
from gluster_exporter.cluster.schemas import (
    HealInfo,
    PeerStatus,
    VolumeInfo,
    VolumeList,
    VolumeProfile,
    VolumeQuota,
    VolumeStatusDetail,
)
from gluster_exporter.errors import DecodeError, NumericConversionError

T = TypeVar("T")


class GlusterClient:
    """Typed access to the gluster management CLI."""

    def __init__(self, command: GlusterCommand,
                 logger: Optional[logging.Logger] = None):
        self.command = command
        self.logger = logger or logging.getLogger(__name__)

    def _query(self, record_type: Type[T], *args: str) -> T:
        output = self.command.execute(*args)
        try:
            return decode_xml(output, record_type)
        except DecodeError as e:
            self.logger.error(f"Something went wrong while unmarshalling xml of "
                              f"'{' '.join(args)}': {e}")
            raise

    def volume_info(self) -> VolumeInfo:
        """gluster volume info"""
        return self._query(VolumeInfo, "volume", "info")

    def volume_list(self) -> List[str]:
        """gluster volume list"""
        return self._query(VolumeList, "volume", "list").volumes

    def peer_status(self) -> PeerStatus:
        """gluster peer status"""
        return self._query(PeerStatus, "peer", "status")

    def volume_profile(self, volume_name: str) -> VolumeProfile:
        """gluster volume profile <volume> info cumulative"""
        return self._query(VolumeProfile, "volume", "profile", volume_name, "info", "cumulative")

    def volume_status_detail(self) -> VolumeStatusDetail:
        """gluster volume status all detail"""
        return self._query(VolumeStatusDetail, "volume", "status", "all", "detail")

    def heal_backlog(self, volume_name: str) -> int:
        """
        Count the files waiting to be healed on a volume.

        Sums ``numberOfEntries`` over every brick of ``gluster volume heal
        <volume> info``. A single non-numeric count (gluster reports "-" for
        unreachable bricks) fails the whole volume.

        Raises:
            ExecutionError, DecodeError, NumericConversionError
        """
        heal_info = self._query(HealInfo, "volume", "heal", volume_name, "info")
        entries_out_of_sync = 0
        for brick in heal_info.bricks:
            try:
                entries_out_of_sync += int(brick.number_of_entries)
            except ValueError:
                error = NumericConversionError(
                    f"{volume_name}/{brick.name}/numberOfEntries", brick.number_of_entries)
                self.logger.error(str(error))
                raise error
        return entries_out_of_sync

    def volume_quota(self, volume_name: str) -> VolumeQuota:
        """gluster volume quota <volume> list"""
        return self._query(VolumeQuota, "volume", "quota", volume_name, "list")

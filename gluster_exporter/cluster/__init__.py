"""
Cluster module initialization.
"""

from .command import GlusterCommand, run_command
from .decoder import decode_xml
from .client import GlusterClient
from .mounts import Mount, MountProbe, parse_mount_output

__all__ = [
    'GlusterCommand',
    'run_command',
    'decode_xml',
    'GlusterClient',
    'Mount',
    'MountProbe',
    'parse_mount_output'
]

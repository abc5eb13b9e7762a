"""
Exporter Errors

Exception types raised by the command invoker, the XML decoder, the gluster
client and the mount probe. The metrics collector catches all of them per
sub-collection so a failing command never fails a scrape.
"""

from typing import List, Optional, Sequence


class GlusterExporterError(Exception):
    """Base class for all exporter errors."""


class ConfigError(GlusterExporterError):
    """Invalid configuration value."""


class ExecutionError(GlusterExporterError):
    """An external command could not be started, timed out or exited non-zero."""

    def __init__(self, args: Sequence[str], message: str,
                 returncode: Optional[int] = None, stderr: str = ""):
        self.command_args: List[str] = list(args)
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(f"tried to execute {self.command_args} and got error: {message}")


class DecodeError(GlusterExporterError):
    """Command output did not match the expected XML structure."""


class NumericConversionError(GlusterExporterError):
    """A field expected to hold integer text did not."""

    def __init__(self, field_name: str, value: str):
        self.field_name = field_name
        self.value = value
        super().__init__(f"{field_name}: {value!r} is not a valid integer")


class ProbeIOError(GlusterExporterError):
    """Creating or deleting the writability probe file failed."""

    def __init__(self, mountpoint: str, path: str, cause: OSError):
        self.mountpoint = mountpoint
        self.path = path
        self.cause = cause
        super().__init__(f"write probe failed on {mountpoint} ({path}): {cause}")


class MountParseError(GlusterExporterError):
    """The mount listing contained lines that could not be parsed.

    ``mounts`` holds every mount that was parsed before and after the bad lines.
    """

    def __init__(self, bad_lines: List[str], mounts: list):
        self.bad_lines = bad_lines
        self.mounts = mounts
        super().__init__(f"could not parse {len(bad_lines)} mount line(s): {bad_lines}")

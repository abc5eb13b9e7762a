"""
Command Invoker

Runs external commands synchronously and returns their standard output.
GlusterCommand wraps the gluster management binary and always requests XML
output.
"""

from typing import List, Optional, Sequence
import logging
import subprocess

from gluster_exporter.errors import ExecutionError

XML_FLAG = "--xml"


def run_command(argv: Sequence[str], timeout: Optional[float] = None) -> bytes:
    """
    Execute a command and capture its stdout.

    Args:
        argv: Command and arguments
        timeout: Seconds before the process is killed, None to wait forever

    Returns:
        Raw stdout bytes

    Raises:
        ExecutionError: if the process cannot start, times out or exits non-zero
    """
    argv = list(argv)
    try:
        result = subprocess.run(
            argv,
            capture_output=True,
            timeout=timeout,
            check=False
        )
    except subprocess.TimeoutExpired:
        raise ExecutionError(argv, f"timed out after {timeout}s")
    except OSError as e:
        raise ExecutionError(argv, str(e))

    if result.returncode != 0:
        stderr = result.stderr.decode("utf-8", errors="replace").strip()
        raise ExecutionError(
            argv,
            f"exit status {result.returncode}",
            returncode=result.returncode,
            stderr=stderr
        )
    return result.stdout


class GlusterCommand:
    """Invokes the gluster CLI with XML output enabled."""

    def __init__(self, binary: str, timeout: Optional[float] = None,
                 logger: Optional[logging.Logger] = None):
        self.binary = binary
        self.timeout = timeout
        self.logger = logger or logging.getLogger(__name__)

    def build_args(self, *args: str) -> List[str]:
        return [self.binary, *args, XML_FLAG]

    def execute(self, *args: str) -> bytes:
        """Run ``gluster <args> --xml`` and return stdout."""
        argv = self.build_args(*args)
        self.logger.debug(f"Executing {' '.join(argv)}")
        try:
            return run_command(argv, timeout=self.timeout)
        except ExecutionError as e:
            self.logger.error(f"{e} {e.stderr}".strip())
            raise

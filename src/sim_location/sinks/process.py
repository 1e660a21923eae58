"""Running platform tools (xcrun, idevicelocation, adb) for the sinks."""

import logging
import subprocess

from sim_location.core.exceptions import SinkError

logger = logging.getLogger(__name__)


def format_coordinate(value: float) -> str:
    """Render a degree value the way the platform tools expect it."""
    return f"{float(value):.7f}"


def run_tool(args: list[str], timeout: float = 10.0, fail_on_stderr: bool = True) -> str:
    """Run a tool to completion and return its stdout.

    A missing executable, a timeout or a non-zero exit is a failure. The
    location tools also report problems on stderr with a zero exit status,
    so by default any stderr output is a failure too.
    """
    logger.debug(f"Running: {' '.join(args)}")
    try:
        result = subprocess.run(args, capture_output=True, text=True, timeout=timeout)
    except FileNotFoundError as e:
        raise SinkError(f"Executable not found: {args[0]}", details={"command": args}) from e
    except subprocess.TimeoutExpired as e:
        raise SinkError(
            f"{args[0]} timed out after {timeout}s", details={"command": args}
        ) from e
    except OSError as e:
        raise SinkError(f"Failed to run {args[0]}: {e}", details={"command": args}) from e

    stderr = (result.stderr or "").strip()
    if result.returncode != 0 or (fail_on_stderr and stderr):
        raise SinkError(
            stderr or f"{args[0]} exited with status {result.returncode}",
            details={"command": args, "returncode": result.returncode, "stderr": stderr},
        )
    return result.stdout

"""Run the external programs ustripe relies on."""

import subprocess
import time
from dataclasses import dataclass
from typing import Sequence

import structlog

from .exceptions import CommandError

logger = structlog.get_logger(__name__)


@dataclass
class CommandResult:
    """Result of an external command execution"""
    stdout: str
    stderr: str
    return_code: int
    duration_seconds: float


def run_command(
    args: Sequence[str],
    stdin: str | None = None,
    timeout_seconds: float = 60,
    error_class: type[CommandError] = CommandError,
) -> CommandResult:
    """Run a command to completion, feeding stdin and capturing output.

    Raises:
        error_class: when the program cannot be started or times out.
            A nonzero exit status is returned to the caller, not raised.
    """
    start = time.monotonic()
    try:
        completed = subprocess.run(
            list(args),
            input=stdin,
            capture_output=True,
            text=True,
            timeout=timeout_seconds,
            check=False,
        )
    except FileNotFoundError as e:
        logger.error("command_not_found", command=args[0])
        raise error_class(
            f"{args[0]}: command not found",
            details={"command": args[0]},
            original_error=e,
        )
    except subprocess.TimeoutExpired as e:
        logger.error("command_timed_out", command=args[0], timeout=timeout_seconds)
        raise error_class(
            f"{args[0]}: timed out after {timeout_seconds}s",
            details={"command": args[0]},
            original_error=e,
        )
    except OSError as e:
        logger.error("command_failed_to_start", command=args[0], error=str(e))
        raise error_class(
            f"{args[0]}: {e}",
            details={"command": args[0]},
            original_error=e,
        )

    result = CommandResult(
        stdout=completed.stdout,
        stderr=completed.stderr,
        return_code=completed.returncode,
        duration_seconds=time.monotonic() - start,
    )
    logger.debug(
        "command_finished",
        command=args[0],
        return_code=result.return_code,
        duration_seconds=round(result.duration_seconds, 3),
    )
    return result


def check_result(
    args: Sequence[str],
    result: CommandResult,
    error_class: type[CommandError] = CommandError,
) -> CommandResult:
    """Raise error_class when result has a nonzero exit status."""
    if result.return_code != 0:
        message = result.stderr.strip() or f"exit status {result.return_code}"
        raise error_class(
            f"{args[0]}: {message}",
            details={"command": args[0], "return_code": result.return_code},
        )
    return result

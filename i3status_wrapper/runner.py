"""Custom command execution with a per-command deadline."""

import asyncio
import json
import logging
import os
import signal

from pydantic import ValidationError

from .errors import CommandError
from .models import CommandSpec, StatusBlock, reject_json_constant

logger = logging.getLogger(__name__)


def parse_output(executable: str, text: str) -> StatusBlock:
    """Turn trimmed command output into a status block.

    Output that is a JSON object with valid i3bar fields is used as the
    block itself. Anything else becomes the full text of a customCmd block.

    Args:
        executable: Executable name, used as instance of synthesized blocks
        text: Trimmed command output
    """
    try:
        return StatusBlock.from_json(json.loads(text, parse_constant=reject_json_constant))
    except (ValueError, ValidationError):
        return StatusBlock.custom(executable, text)


class CommandRunner:
    """Runs a custom command and produces exactly one status block."""

    async def run(self, spec: CommandSpec) -> StatusBlock:
        """Execute the command, bounded by its timeout.

        A command that runs past its deadline is killed (with everything it
        started) and reported as a "Timed out" block.

        Args:
            spec: Command to execute

        Returns:
            Status block for the command

        Raises:
            CommandError: If the command cannot be launched or exits non-zero
        """
        command = spec.display_command
        logger.debug(f"Running [{spec.slot}] {command}")

        try:
            # New session so a timeout can kill the whole process group
            proc = await asyncio.create_subprocess_exec(
                *spec.argv,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                start_new_session=True,
            )
        except OSError as e:
            raise CommandError(command, str(e)) from e

        try:
            stdout, stderr = await asyncio.wait_for(
                proc.communicate(),
                timeout=spec.timeout
            )
        except asyncio.TimeoutError:
            logger.warning(f"Command timed out after {spec.timeout}s: {command}")
            await self._terminate(proc)
            return StatusBlock.timed_out()
        except asyncio.CancelledError:
            await self._terminate(proc)
            raise

        stderr_text = stderr.decode("utf-8", errors="replace").strip()

        if proc.returncode != 0:
            if proc.returncode < 0:
                reason = f"terminated by signal {-proc.returncode}"
            else:
                reason = f"exit status {proc.returncode}"
            raise CommandError(command, reason, returncode=proc.returncode, stderr=stderr_text)

        if stderr_text:
            logger.debug(f"stderr from {command}: {stderr_text}")

        text = stdout.decode("utf-8", errors="replace").strip()
        return parse_output(spec.executable, text)

    @staticmethod
    async def _terminate(proc: asyncio.subprocess.Process) -> None:
        """Kill the command's process group and reap the command."""
        try:
            os.killpg(proc.pid, signal.SIGKILL)
        except ProcessLookupError:
            pass  # Already exited together with all of its children
        await proc.wait()

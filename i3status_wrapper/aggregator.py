"""Per-cycle aggregation of custom command blocks and i3status blocks.

All custom commands of a cycle run concurrently. Each one writes its block
into a result slot reserved for it and then reports its slot index on a
completion queue. Once every slot has reported, the custom blocks are
emitted in slot order, followed by the blocks received from i3status.
"""

import asyncio
import logging
from typing import Optional, Sequence

from .models import CommandSpec, StatusBlock
from .runner import CommandRunner

logger = logging.getLogger(__name__)


async def wait_for_completions(done: asyncio.Queue, expected: int) -> set[int]:
    """Wait until `expected` distinct slot indices have been reported.

    Duplicate reports are ignored and do not count towards the total.
    There is no timeout: each command already bounds its own runtime.

    Args:
        done: Completion queue receiving slot indices
        expected: Number of distinct slots to wait for

    Returns:
        The set of slots that reported completion
    """
    finished: set[int] = set()
    while len(finished) < expected:
        slot = await done.get()
        if slot in finished:
            logger.warning(f"Ignoring duplicate completion for slot {slot}")
            continue
        finished.add(slot)
    return finished


class CycleAggregator:
    """Runs one cycle: every custom command plus the upstream blocks."""

    def __init__(self, commands: Sequence[CommandSpec], runner: Optional[CommandRunner] = None):
        """Initialize the aggregator.

        Args:
            commands: Custom commands; slots must be 0..N-1
            runner: Command runner (default: CommandRunner())

        Raises:
            ValueError: If the command slots are not exactly 0..N-1
        """
        self.commands = tuple(commands)
        self.runner = runner or CommandRunner()

        slots = sorted(spec.slot for spec in self.commands)
        if slots != list(range(len(self.commands))):
            raise ValueError(f"Command slots must be 0..{len(self.commands) - 1}, got {slots}")

    async def run_cycle(self, upstream: Sequence[StatusBlock]) -> list[StatusBlock]:
        """Run all custom commands and merge their blocks with upstream blocks.

        Args:
            upstream: Blocks decoded from i3status for this cycle

        Returns:
            Custom blocks in slot order followed by the upstream blocks

        Raises:
            CommandError: If any command fails; the remaining commands are
                cancelled and no partial cycle is returned
        """
        start = asyncio.get_running_loop().time()
        results: list[Optional[StatusBlock]] = [None] * len(self.commands)
        done: asyncio.Queue[int] = asyncio.Queue()

        try:
            async with asyncio.TaskGroup() as group:
                for spec in self.commands:
                    group.create_task(
                        self._run_job(spec, results, done),
                        name=f"command-{spec.slot}"
                    )
                await wait_for_completions(done, len(self.commands))
        except ExceptionGroup as eg:
            # Report the failing command itself, not the task group
            raise eg.exceptions[0] from None

        combined: list[StatusBlock] = [block for block in results if block is not None]
        combined.extend(upstream)

        elapsed_ms = (asyncio.get_running_loop().time() - start) * 1000
        logger.debug(
            f"Cycle complete: {len(self.commands)} custom + {len(upstream)} upstream blocks "
            f"in {elapsed_ms:.1f}ms"
        )
        return combined

    async def _run_job(
        self,
        spec: CommandSpec,
        results: list[Optional[StatusBlock]],
        done: asyncio.Queue,
    ) -> None:
        results[spec.slot] = await self.runner.run(spec)
        done.put_nowait(spec.slot)

"""Main loop merging custom command blocks into the i3status stream."""

import asyncio
import logging
from typing import Optional

from .aggregator import CycleAggregator
from .config import WrapperConfig
from .protocol import ProtocolReader, ProtocolWriter

logger = logging.getLogger(__name__)


class StatusWrapper:
    """Reads i3status output, adds custom blocks and writes it for i3bar."""

    def __init__(
        self,
        config: WrapperConfig,
        reader: ProtocolReader,
        writer: ProtocolWriter,
        aggregator: Optional[CycleAggregator] = None,
    ):
        """Initialize status wrapper.

        Args:
            config: Wrapper configuration
            reader: Reader for the i3status stream
            writer: Writer for the i3bar stream
            aggregator: Cycle aggregator (default: built from config.commands)
        """
        self.config = config
        self.reader = reader
        self.writer = writer
        self.aggregator = aggregator or CycleAggregator(config.commands)

    async def run(self) -> int:
        """Process cycles until the input ends.

        Reads block the calling thread, so they run in the default executor
        to keep the event loop free for the command subprocesses.

        Returns:
            Number of cycles written

        Raises:
            WrapperError: On any framing or command failure
        """
        loop = asyncio.get_running_loop()

        header = await loop.run_in_executor(None, self.reader.read_header)
        self.writer.write_header(header)

        await loop.run_in_executor(None, self.reader.read_array_start)
        self.writer.write_array_start()

        cycles = 0
        while True:
            upstream = await loop.run_in_executor(None, self.reader.read_blocks)
            if upstream is None:
                break

            blocks = await self.aggregator.run_cycle(upstream)
            self.writer.write_blocks(blocks)
            cycles += 1

        logger.info(f"Input ended after {cycles} cycles")
        return cycles

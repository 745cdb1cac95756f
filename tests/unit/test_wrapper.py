"""Unit tests for the main wrapper loop."""

import io

import pytest

from i3status_wrapper.aggregator import CycleAggregator
from i3status_wrapper.config import WrapperConfig
from i3status_wrapper.errors import CommandError, ProtocolError
from i3status_wrapper.models import StatusBlock
from i3status_wrapper.protocol import ProtocolReader, ProtocolWriter
from i3status_wrapper.wrapper import StatusWrapper


def make_wrapper(config: WrapperConfig, text: str, aggregator=None):
    out = io.StringIO()
    wrapper = StatusWrapper(
        config,
        ProtocolReader(io.StringIO(text)),
        ProtocolWriter(out),
        aggregator=aggregator,
    )
    return wrapper, out


class CountingRunner:
    """Runner returning the number of times each slot has run."""

    def __init__(self):
        self.calls = {}

    async def run(self, spec):
        self.calls[spec.slot] = self.calls.get(spec.slot, 0) + 1
        return StatusBlock(full_text=f"{spec.executable} #{self.calls[spec.slot]}")


class TestStatusWrapper:
    """Test StatusWrapper.run."""

    @pytest.mark.asyncio
    async def test_merges_every_cycle(self, mock_i3status_output):
        """Test each i3status cycle gets fresh custom blocks in front."""
        config = WrapperConfig.from_commands(["first", "second"])
        runner = CountingRunner()
        wrapper, out = make_wrapper(
            config, mock_i3status_output, aggregator=CycleAggregator(config.commands, runner=runner)
        )

        cycles = await wrapper.run()

        assert cycles == 3
        lines = out.getvalue().split("\n")
        assert lines[0] == '{"version":1}'
        assert lines[1] == "["
        assert lines[2] == (
            '[{"full_text":"first #1"},{"full_text":"second #1"},'
            '{"name":"load","full_text":"0.52"},{"name":"tztime","full_text":"12:00"}]'
        )
        assert lines[4].startswith(',[{"full_text":"first #3"},{"full_text":"second #3"}')
        assert out.getvalue().endswith("]\n,")

    @pytest.mark.asyncio
    async def test_end_to_end_with_real_commands(self):
        """Test a fast command and a timed out command around an upstream block."""
        config = WrapperConfig.from_commands(["echo hi", "sleep 10"], timeout=0.5)
        wrapper, out = make_wrapper(config, '{"version":1}\n[\n[{"name":"upstream1"}]\n')

        assert await wrapper.run() == 1
        assert out.getvalue() == (
            '{"version":1}\n'
            '[\n'
            '[{"name":"customCmd","instance":"echo","full_text":"hi"},'
            '{"full_text":"Timed out"},{"name":"upstream1"}]\n'
            ','
        )

    @pytest.mark.asyncio
    async def test_no_cycles(self):
        config = WrapperConfig.from_commands(["echo hi"])
        wrapper, out = make_wrapper(config, '{"version":1}\n[\n')

        assert await wrapper.run() == 0
        assert out.getvalue() == '{"version":1}\n[\n'

    @pytest.mark.asyncio
    async def test_command_failure_writes_no_partial_cycle(self):
        """Test a failing command aborts before anything of the cycle is written."""
        config = WrapperConfig.from_commands(["echo hi", "no-such-command-i3sw"])
        wrapper, out = make_wrapper(config, '{"version":1}\n[\n[{"name":"a"}]\n,[{"name":"b"}]\n')

        with pytest.raises(CommandError):
            await wrapper.run()

        assert out.getvalue() == '{"version":1}\n[\n'

    @pytest.mark.asyncio
    async def test_framing_error_after_valid_cycles(self):
        config = WrapperConfig.from_commands([])
        wrapper, out = make_wrapper(config, '{"version":1}\n[\n[{"name":"a"}]\n,{oops}\n')

        with pytest.raises(ProtocolError):
            await wrapper.run()

        assert out.getvalue() == '{"version":1}\n[\n[{"name":"a"}]\n,'

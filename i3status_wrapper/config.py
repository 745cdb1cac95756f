"""Configuration for i3status-wrapper.

The command list and timeout are fixed at startup and shared, read-only,
by every cycle.
"""

import logging
import math
import re
from typing import Sequence

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import ConfigError
from .models import CommandSpec

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 5.0  # Seconds

# Go-style duration units ("300ms", "1m30s") in seconds
_DURATION_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,  # U+00B5 micro sign
    "μs": 1e-6,  # U+03BC greek mu
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}
_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|μs|ms|s|m|h)")


def parse_duration(text: str) -> float:
    """Parse a timeout duration into seconds.

    Accepts Go-style durations ("5s", "250ms", "1m30s", "1.5h") and bare
    numbers, which are read as seconds.

    Args:
        text: Duration string

    Returns:
        Duration in seconds

    Raises:
        ConfigError: If the duration is malformed, zero or negative
    """
    value = text.strip()
    try:
        seconds = float(value)
    except ValueError:
        seconds = _parse_unit_duration(value)

    if not math.isfinite(seconds) or seconds <= 0:
        raise ConfigError(f"Timeout must be a positive duration: {text!r}")
    return seconds


def _parse_unit_duration(value: str) -> float:
    if not value:
        raise ConfigError("Empty timeout duration")

    seconds = 0.0
    pos = 0
    while pos < len(value):
        match = _DURATION_PART.match(value, pos)
        if not match:
            raise ConfigError(f"Invalid timeout duration: {value!r}")
        seconds += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        pos = match.end()
    return seconds


class WrapperConfig(BaseModel):
    """Complete wrapper configuration.

    Built once from the command line and never mutated.
    """

    model_config = ConfigDict(frozen=True)

    timeout: float = Field(default=DEFAULT_TIMEOUT, gt=0, description="Per-command deadline in seconds")
    commands: tuple[CommandSpec, ...] = Field(default=(), description="Custom commands in slot order")

    @classmethod
    def from_commands(cls, commands: Sequence[str], timeout: float = DEFAULT_TIMEOUT) -> "WrapperConfig":
        """Build the configuration from command strings.

        Args:
            commands: Command strings; the i-th string gets slot i
            timeout: Deadline in seconds shared by all commands

        Raises:
            ConfigError: If a command is blank or the timeout is not positive
        """
        try:
            specs = tuple(
                CommandSpec.parse(command, slot, timeout)
                for slot, command in enumerate(commands)
            )
            config = cls(timeout=timeout, commands=specs)
        except ValidationError as e:
            raise ConfigError(f"Invalid configuration: {e}") from e

        logger.info(
            f"Loaded configuration: {len(config.commands)} custom commands, "
            f"timeout={config.timeout}s"
        )
        return config

"""Core data models for i3bar protocol status blocks and custom commands.

See: https://i3wm.org/docs/i3bar-protocol.html
"""

from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from .errors import ConfigError

# Block name used for plain-text output of custom commands
CUSTOM_COMMAND_NAME = "customCmd"

TIMED_OUT_TEXT = "Timed out"


def reject_json_constant(name: str) -> Any:
    """parse_constant hook refusing NaN and Infinity, which JSON does not allow."""
    raise ValueError(f"{name} is not valid JSON")


class ProtocolModel(BaseModel):
    """Base for i3bar protocol objects.

    Keys the model does not know about are kept, so objects read from
    i3status are written back without losing anything.
    """

    model_config = ConfigDict(extra="allow")

    @classmethod
    def from_json(cls, data: Any):
        """Validate a decoded JSON value without coercing any field.

        Raises:
            pydantic.ValidationError: If data is not an object or a
                recognized field has the wrong JSON type
        """
        return cls.model_validate(data, strict=True)

    def to_json(self) -> dict:
        """Convert to i3bar protocol JSON format.

        Only keys present at construction are emitted; absent fields are
        omitted rather than written as null or zero.
        """
        return self.model_dump(exclude_unset=True)


class StatusBlock(ProtocolModel):
    """A single status block in the i3bar protocol format.

    All fields are optional. Blocks from i3status pass through untouched;
    blocks for custom commands are either parsed from the command output
    or synthesized from its text.
    """

    name: Optional[str] = None              # Block identifier
    instance: Optional[str] = None          # Block instance identifier
    markup: Optional[str] = None            # Markup type (none, pango)
    full_text: Optional[str] = None         # Full text to display
    short_text: Optional[str] = None        # Abbreviated text for small displays
    color: Optional[str] = None             # Hex color code (#RRGGBB)
    background: Optional[str] = None
    border: Optional[str] = None
    min_width: Optional[Union[int, str]] = None  # Pixels or a sample string
    align: Optional[str] = None             # left, center, right
    urgent: Optional[bool] = None
    separator: Optional[bool] = None
    separator_block_width: Optional[int] = None

    @classmethod
    def timed_out(cls) -> "StatusBlock":
        """Block reported for a command that ran past its deadline."""
        return cls(full_text=TIMED_OUT_TEXT)

    @classmethod
    def custom(cls, executable: str, text: str) -> "StatusBlock":
        """Block wrapping the plain-text output of a custom command.

        Args:
            executable: Executable name, used as the block instance
            text: Trimmed command output
        """
        return cls(name=CUSTOM_COMMAND_NAME, instance=executable, full_text=text)


class ProtocolHeader(ProtocolModel):
    """The i3bar protocol header sent once before the endless array.

    Optional keys such as click_events or stop_signal are kept as extras
    and re-emitted verbatim.
    """

    version: int


class CommandSpec(BaseModel):
    """A custom command run once per cycle.

    Commands are immutable and shared by every cycle for the lifetime of
    the process. The slot decides where the command's block is placed in
    the output, independently of when the command finishes.
    """

    model_config = ConfigDict(frozen=True)

    executable: str = Field(..., min_length=1, description="Program to execute")
    args: tuple[str, ...] = Field(default=(), description="Program arguments")
    timeout: float = Field(..., gt=0, description="Deadline in seconds")
    slot: int = Field(..., ge=0, description="Output position among custom blocks")

    @classmethod
    def parse(cls, command: str, slot: int, timeout: float) -> "CommandSpec":
        """Build a command from a command-line string.

        The string is split on whitespace, so arguments containing spaces
        cannot be expressed.

        Args:
            command: Command string, e.g. "date +%H:%M"
            slot: Output position of the command's block
            timeout: Deadline in seconds

        Raises:
            ConfigError: If the command string is blank
        """
        parts = command.split()
        if not parts:
            raise ConfigError(f"Empty custom command at position {slot}")
        return cls(executable=parts[0], args=tuple(parts[1:]), timeout=timeout, slot=slot)

    @property
    def argv(self) -> list[str]:
        return [self.executable, *self.args]

    @property
    def display_command(self) -> str:
        return " ".join(self.argv)

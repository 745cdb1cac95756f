"""Error types for i3status-wrapper.

Timeouts and unstructured command output are not errors; they produce
valid status blocks. Everything defined here is fatal to the process.
"""

from typing import Optional


class WrapperError(Exception):
    """Base exception for unrecoverable wrapper errors."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ConfigError(WrapperError):
    """Raised when the command list or timeout cannot be parsed."""
    pass


class CommandError(WrapperError):
    """Raised when a custom command fails for a reason other than its timeout.

    Covers launch failures (executable missing, not executable) and
    non-zero exit statuses.
    """

    def __init__(
        self,
        command: str,
        reason: str,
        returncode: Optional[int] = None,
        stderr: str = ""
    ):
        """
        Initialize command error.

        Args:
            command: Command string as given on the command line
            reason: Underlying error text
            returncode: Exit status if the process ran to completion
            stderr: Captured standard error of the command
        """
        self.command = command
        self.reason = reason
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(f"Cannot run command: {command} : {reason}")


class ProtocolError(WrapperError):
    """Raised on framing, decoding or encoding failures of the i3bar streams."""
    pass

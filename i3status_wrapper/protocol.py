"""Framing of the i3bar protocol streams.

The input (from i3status) and the output (to i3bar/swaybar) share the same
shape:

    {"version": 1}
    [
    [{"full_text": "..."}, ...]
    ,[{"full_text": "..."}, ...]
    ...

A header object, then an endless array whose elements are arrays of status
blocks. The array is never closed on output.

Protocol: https://i3wm.org/docs/i3bar-protocol.html
"""

import json
import logging
import re
from typing import Any, Optional, Sequence, TextIO

from pydantic import ValidationError

from .errors import ProtocolError
from .models import ProtocolHeader, StatusBlock, reject_json_constant

logger = logging.getLogger(__name__)

_WHITESPACE = re.compile(r"[ \t\n\r]*")


class ProtocolReader:
    """Incremental reader for the i3bar protocol input stream.

    Reads the stream line by line and decodes one JSON value at a time, so
    a cycle is processed as soon as its element has arrived.
    """

    def __init__(self, stream: TextIO):
        """Initialize reader.

        Args:
            stream: Text stream to read, usually sys.stdin
        """
        self.stream = stream
        self._decoder = json.JSONDecoder(parse_constant=reject_json_constant)
        self._buffer = ""
        self._pos = 0
        self._eof = False
        self._elements = 0

    def read_header(self) -> ProtocolHeader:
        """Read the protocol header object.

        Raises:
            ProtocolError: If the input ends or the header is invalid
        """
        if self._peek() is None:
            raise ProtocolError("Cannot read input: unexpected end of input before header")

        data = self._decode_value()
        try:
            header = ProtocolHeader.from_json(data)
        except ValidationError as e:
            raise ProtocolError(f"Cannot read input: invalid header: {e}") from e

        logger.info(f"Protocol header: version={header.version}")
        return header

    def read_array_start(self) -> None:
        """Consume the '[' opening the endless array.

        Raises:
            ProtocolError: If the next token is not '['
        """
        char = self._peek()
        if char != "[":
            found = "end of input" if char is None else repr(char)
            raise ProtocolError(f"Cannot read input: expected '[', found {found}")
        self._pos += 1

    def read_blocks(self) -> Optional[list[StatusBlock]]:
        """Read the next array element.

        Returns:
            The element's status blocks, or None once the input has ended
            (end of stream or a closing ']')

        Raises:
            ProtocolError: If the element is malformed
        """
        char = self._peek()
        if char is None:
            return None
        if char == "]":
            self._pos += 1
            return None

        if self._elements > 0:
            if char != ",":
                raise ProtocolError(
                    f"Cannot decode input json: expected ',' after array element, found {char!r}"
                )
            self._pos += 1
            char = self._peek()
            if char is None:
                return None

        data = self._decode_value()
        self._elements += 1

        if data is None:
            return []
        if not isinstance(data, list):
            raise ProtocolError(
                f"Cannot decode input json: expected an array of blocks, got {type(data).__name__}"
            )

        try:
            return [StatusBlock.from_json(item) for item in data]
        except ValidationError as e:
            raise ProtocolError(f"Cannot decode input json: {e}") from e

    def _peek(self) -> Optional[str]:
        """Skip whitespace and return the next character, or None at EOF."""
        while True:
            self._pos = _WHITESPACE.match(self._buffer, self._pos).end()
            if self._pos < len(self._buffer):
                return self._buffer[self._pos]
            if not self._fill():
                return None

    def _fill(self) -> bool:
        """Append the next input line to the buffer.

        Returns:
            False once the stream is exhausted
        """
        if self._eof:
            return False
        try:
            line = self.stream.readline()
        except UnicodeDecodeError as e:
            raise ProtocolError(f"Cannot read input: {e}") from e
        if not line:
            self._eof = True
            return False
        self._buffer = self._buffer[self._pos:] + line
        self._pos = 0
        return True

    def _decode_value(self) -> Any:
        """Decode one JSON value at the current position.

        A value that is only incomplete (its remainder has not arrived yet)
        is retried after reading more input.
        """
        while True:
            try:
                value, end = self._decoder.raw_decode(self._buffer, self._pos)
            except json.JSONDecodeError as e:
                incomplete = not self._buffer[e.pos:].strip()
                if incomplete and self._fill():
                    continue
                if incomplete:
                    raise ProtocolError("Cannot decode input json: unexpected end of input") from e
                raise ProtocolError(f"Cannot decode input json: {e}") from e
            except ValueError as e:
                raise ProtocolError(f"Cannot decode input json: {e}") from e
            self._pos = end
            return value


class ProtocolWriter:
    """Writer for the i3bar protocol output stream."""

    def __init__(self, stream: TextIO):
        """Initialize writer.

        Args:
            stream: Text stream to write, usually sys.stdout
        """
        self.stream = stream

    def write_header(self, header: ProtocolHeader) -> None:
        self._write(self._encode(header.to_json()) + "\n")

    def write_array_start(self) -> None:
        self._write("[\n")

    def write_blocks(self, blocks: Sequence[StatusBlock]) -> None:
        """Write one array element followed by the ',' announcing the next one."""
        self._write(self._encode([block.to_json() for block in blocks]) + "\n,")

    @staticmethod
    def _encode(value: Any) -> str:
        try:
            text = json.dumps(value, separators=(",", ":"), ensure_ascii=False, allow_nan=False)
        except (TypeError, ValueError) as e:
            raise ProtocolError(f"Cannot encode output json: {e}") from e
        # Lone surrogates from \ud83d-style escapes cannot be written as UTF-8;
        # they only occur inside strings, where a \uXXXX escape is valid JSON
        return text.encode("utf-8", errors="backslashreplace").decode("utf-8")

    def _write(self, text: str) -> None:
        try:
            self.stream.write(text)
            self.stream.flush()
        except (OSError, UnicodeError) as e:
            raise ProtocolError(f"Cannot write output: {e}") from e

"""
Content-Length framing for JSON-RPC over stdio.

Wire format (one frame per message):

    Content-Length: <byte-count>\\r\\n
    \\r\\n
    <byte-count bytes of UTF-8 JSON>

The decoder works on an accumulating byte buffer: bytes are appended as they
arrive, complete frames are sliced off the front, and a partial frame stays
in the buffer untouched until more bytes arrive.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple, Union

logger = logging.getLogger("service.ipc_framing")

HEADER_SEPARATOR = b"\r\n\r\n"
CONTENT_LENGTH = b"content-length"


@dataclass
class InvalidMessage:
    """A complete frame whose body is not a JSON value."""

    body: bytes
    error: str


DecodedMessage = Union[Any, InvalidMessage]


class FrameHeaderError(ValueError):
    """Header block is present but unusable."""


def encode_frame(message: Dict[str, Any]) -> bytes:
    """Serialize a message and prefix it with its byte length."""
    body = json.dumps(message, ensure_ascii=False).encode("utf-8")
    header = f"Content-Length: {len(body)}\r\n\r\n".encode("ascii")
    return header + body


def parse_content_length(header_block: bytes) -> int:
    """
    Extract the declared body length from a header block.

    Raises FrameHeaderError if the header is missing or not a
    non-negative integer.
    """
    for line in header_block.split(b"\r\n"):
        name, sep, value = line.partition(b":")
        if not sep or name.strip().lower() != CONTENT_LENGTH:
            continue
        value = value.strip()
        if not value.isdigit():
            raise FrameHeaderError(f"invalid content length: {value!r}")
        return int(value)
    raise FrameHeaderError("missing content length")


def _parse_body(body: bytes) -> DecodedMessage:
    try:
        return json.loads(body.decode("utf-8"))
    except UnicodeDecodeError as e:
        return InvalidMessage(body=body, error=f"invalid utf-8: {e}")
    except json.JSONDecodeError as e:
        return InvalidMessage(body=body, error=f"invalid json: {e}")


@dataclass
class _DecodeResult:
    messages: List[DecodedMessage]
    consumed: int
    error: Optional[str] = None
    # Size of the next frame when its header is parsed but its body is short
    next_frame_size: int = 0


def decode_frames(buffer: bytes) -> Tuple[List[DecodedMessage], bytes]:
    """
    Decode every complete frame at the front of `buffer`.

    Returns the decoded messages in order and the unconsumed remainder.
    Decoding stops, leaving the remainder untouched, when the header
    terminator is absent, the header is malformed, or the body is incomplete.
    """
    result = _decode(buffer)
    return result.messages, bytes(buffer[result.consumed :])


def _decode(buffer: Union[bytes, bytearray]) -> _DecodeResult:
    messages: List[DecodedMessage] = []
    offset = 0

    while True:
        header_end = buffer.find(HEADER_SEPARATOR, offset)
        if header_end == -1:
            return _DecodeResult(messages, offset)

        try:
            length = parse_content_length(bytes(buffer[offset:header_end]))
        except FrameHeaderError as e:
            return _DecodeResult(messages, offset, error=str(e))

        start = header_end + len(HEADER_SEPARATOR)
        end = start + length
        if len(buffer) < end:
            return _DecodeResult(messages, offset, next_frame_size=end - offset)

        messages.append(_parse_body(bytes(buffer[start:end])))
        offset = end


class FrameDecoder:
    """
    Stateful decoder owning the pending byte buffer.

    The buffer only grows by `feed` and only shrinks by the exact bytes of
    completed frames. While a frame's body is still arriving the buffer is
    not rescanned.
    """

    def __init__(self):
        self._buffer = bytearray()
        self._awaiting = 0
        self.header_error: Optional[str] = None

    @property
    def pending(self) -> bytes:
        """Bytes received but not yet consumed by a complete frame."""
        return bytes(self._buffer)

    def feed(self, chunk: bytes) -> List[DecodedMessage]:
        """Append a chunk and return every message it completes."""
        self._buffer.extend(chunk)
        if len(self._buffer) < self._awaiting:
            return []

        result = _decode(self._buffer)
        del self._buffer[: result.consumed]
        self._awaiting = result.next_frame_size

        if result.error and result.error != self.header_error:
            logger.warning(f"Frame decoding stalled: {result.error}")
        self.header_error = result.error
        return result.messages

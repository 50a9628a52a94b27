"""
Stdio Transport - drives the frame decoder against a byte stream.

Reads chunks from an input stream, feeds them to one FrameDecoder for the
lifetime of the loop, and hands each decoded request to an async handler.
Handlers run one at a time in decode order, so responses leave in the same
order requests arrived even when a backend call suspends.
"""

import asyncio
import logging
import sys
from typing import Any, Awaitable, Callable, Dict, Optional, Protocol, Tuple

from .framing import FrameDecoder, InvalidMessage, encode_frame

logger = logging.getLogger("service.stdio_transport")

READ_CHUNK_BYTES = 64 * 1024

PARSE_ERROR = -32700
INTERNAL_ERROR = -32603

# Returns None for notifications
RequestHandler = Callable[[Any], Awaitable[Optional[Dict[str, Any]]]]


class ByteReader(Protocol):
    async def read(self, n: int = -1) -> bytes: ...


class ByteWriter(Protocol):
    def write(self, data: bytes) -> None: ...

    async def drain(self) -> None: ...


def _error_response(request_id: Any, code: int, message: str) -> Dict[str, Any]:
    return {"jsonrpc": "2.0", "id": request_id, "error": {"code": code, "message": message}}


async def _write(writer: ByteWriter, message: Dict[str, Any]) -> None:
    writer.write(encode_frame(message))
    await writer.drain()


async def _handle(message: Any, on_request: RequestHandler) -> Optional[Dict[str, Any]]:
    if isinstance(message, InvalidMessage):
        logger.warning(f"Dropping undecodable frame ({len(message.body)} bytes): {message.error}")
        return _error_response(None, PARSE_ERROR, "Parse error")

    try:
        return await on_request(message)
    except Exception as e:
        logger.exception(f"Request handler failed: {e}")
        if isinstance(message, dict) and message.get("id") is not None:
            return _error_response(message["id"], INTERNAL_ERROR, "Internal error")
        return None


async def run_stdio_server(
    reader: ByteReader,
    writer: ByteWriter,
    on_request: RequestHandler,
    chunk_size: int = READ_CHUNK_BYTES,
) -> None:
    """
    Serve framed requests until the input stream reaches end-of-input.

    Bytes still pending at end-of-input belong to a truncated frame and
    are discarded with a warning.
    """
    decoder = FrameDecoder()
    handled = 0

    while True:
        chunk = await reader.read(chunk_size)
        if not chunk:
            break

        for message in decoder.feed(chunk):
            response = await _handle(message, on_request)
            handled += 1
            if response is not None:
                await _write(writer, response)

    if decoder.pending:
        logger.warning(
            f"Discarding {len(decoder.pending)} bytes of an incomplete frame at end of input"
        )
    logger.info(f"Input closed after {handled} messages")


class StdinReader:
    """Fallback reader for stdin that is not a pipe (regular file, tty)."""

    async def read(self, n: int = -1) -> bytes:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, sys.stdin.buffer.read1, n)


class StdoutWriter:
    """Fallback writer for stdout that is not a pipe."""

    def write(self, data: bytes) -> None:
        sys.stdout.buffer.write(data)
        sys.stdout.buffer.flush()

    async def drain(self) -> None:
        pass


async def connect_stdio() -> Tuple[ByteReader, ByteWriter]:
    """Open non-blocking stream wrappers around the process stdin/stdout."""
    loop = asyncio.get_running_loop()

    reader: ByteReader
    try:
        stream_reader = asyncio.StreamReader()
        await loop.connect_read_pipe(
            lambda: asyncio.StreamReaderProtocol(stream_reader), sys.stdin
        )
        reader = stream_reader
    except ValueError as e:
        logger.debug(f"Falling back to blocking stdin reads: {e}")
        reader = StdinReader()

    writer: ByteWriter
    try:
        w_transport, w_protocol = await loop.connect_write_pipe(
            asyncio.streams.FlowControlMixin, sys.stdout
        )
        writer = asyncio.StreamWriter(w_transport, w_protocol, None, loop)
    except ValueError as e:
        logger.debug(f"Falling back to blocking stdout writes: {e}")
        writer = StdoutWriter()

    return reader, writer

"""
Stdio IPC: Content-Length framing and the transport loop.
"""

from .framing import (
    FrameDecoder,
    FrameHeaderError,
    InvalidMessage,
    decode_frames,
    encode_frame,
    parse_content_length,
)
from .stdio_transport import connect_stdio, run_stdio_server

__all__ = [
    "FrameDecoder",
    "FrameHeaderError",
    "InvalidMessage",
    "decode_frames",
    "encode_frame",
    "parse_content_length",
    "connect_stdio",
    "run_stdio_server",
]

"""Wire codec: one JSON value per direction over a Unix stream socket.

Each message is compact JSON followed by a newline. A reader collects bytes
up to the first newline, or until the peer closes its side, and only then
decodes them, so a value split anywhere across writes is reassembled.
"""

import json
import socket
from typing import Any

from pydantic import BaseModel, ValidationError

from easyshot.shared.errors import ConnectionClosed, ProtocolError
from easyshot.shared.models import Request, Response

MAX_MESSAGE_BYTES = 1024 * 1024
RECV_CHUNK_SIZE = 4096
TERMINATOR = b"\n"


def encode_message(message: BaseModel) -> bytes:
    return message.model_dump_json(by_alias=True).encode("utf-8") + TERMINATOR


def send_message(sock: socket.socket, message: BaseModel) -> None:
    sock.sendall(encode_message(message))


def read_json(sock: socket.socket, max_bytes: int = MAX_MESSAGE_BYTES) -> Any:
    """Read exactly one JSON value from ``sock``.

    Raises:
        ConnectionClosed: the peer sent nothing before closing (or timing out).
        ProtocolError: the bytes received are not valid JSON.
    """
    buffer = b""
    # Blank lines ahead of the message are skipped.
    while TERMINATOR not in buffer.lstrip():
        try:
            chunk = sock.recv(RECV_CHUNK_SIZE)
        except socket.timeout as exc:
            if not buffer.strip():
                raise ConnectionClosed("timed out before any data arrived") from exc
            raise ProtocolError("timed out before a complete message arrived") from exc
        if not chunk:
            break
        buffer += chunk
        if len(buffer) > max_bytes:
            raise ProtocolError(f"message exceeds {max_bytes} bytes")

    line = buffer.lstrip().split(TERMINATOR, 1)[0]
    text = line.decode("utf-8", errors="replace").strip()
    if not text:
        raise ConnectionClosed("connection closed with no data")
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise ProtocolError(str(exc)) from exc


def decode_request(payload: Any) -> Request:
    try:
        return Request.model_validate(payload)
    except ValidationError as exc:
        errors = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'request'}: {err['msg']}"
            for err in exc.errors()
        )
        raise ProtocolError(errors) from exc


def decode_response(payload: Any) -> Response:
    try:
        return Response.model_validate(payload)
    except ValidationError as exc:
        raise ProtocolError(f"invalid response: {exc.error_count()} validation error(s)") from exc


def read_request(sock: socket.socket) -> Request:
    return decode_request(read_json(sock))


def read_response(sock: socket.socket) -> Response:
    return decode_response(read_json(sock))

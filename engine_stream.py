"""
Engine Stream Module

Consumers for the newline-delimited JSON responses of build, pull and push.
Each consumer reads the stream to EOF (or to its terminal line) so success is
only reported once the engine has finished.
"""

import json
from typing import Any, Dict, Iterable, Optional, Union
from utils import logger, StreamError, IncompleteResponse

StreamItem = Union[Dict[str, Any], str, bytes]


def _decode(item: StreamItem) -> Dict[str, Any]:
    """Accept already-decoded chunks or raw JSON lines"""
    if isinstance(item, dict):
        return item
    try:
        if isinstance(item, bytes):
            item = item.decode("utf-8")
        decoded = json.loads(item)
    except ValueError as e:
        raise StreamError(f"Malformed line in engine response: {e}")
    if not isinstance(decoded, dict):
        raise StreamError(f"Unexpected line in engine response: {item!r}")
    return decoded


def _lines(stream: Iterable[StreamItem]):
    for item in stream:
        if isinstance(item, (str, bytes)) and not item.strip():
            continue
        yield _decode(item)


def _raise_on_error(line: Dict[str, Any]):
    error = line.get("error")
    if error:
        raise StreamError(error)


def consume_build_stream(stream: Iterable[StreamItem]) -> Optional[str]:
    """Drain a build response. Returns the built image id when the engine reports it."""
    image_id = None
    for line in _lines(stream):
        _raise_on_error(line)
        if "stream" in line:
            logger.debug("Build output", line=line["stream"].rstrip())
        aux = line.get("aux") or {}
        if aux.get("ID"):
            image_id = aux["ID"]
    return image_id


def consume_pull_stream(stream: Iterable[StreamItem]) -> Optional[str]:
    """Drain a pull response. Returns the digest from the final status line, if any."""
    digest = None
    for line in _lines(stream):
        _raise_on_error(line)
        status = line.get("status") or ""
        if status.startswith("Digest: "):
            digest = status[len("Digest: "):]
    return digest


def consume_push_stream(stream: Iterable[StreamItem]) -> str:
    """Read a push response until its digest line.

    A stream that ends without a digest and without an error is an
    IncompleteResponse, never a success.
    """
    for line in _lines(stream):
        _raise_on_error(line)
        aux = line.get("aux") or {}
        if aux.get("Digest"):
            return aux["Digest"]

    raise IncompleteResponse("Push response ended without a digest")

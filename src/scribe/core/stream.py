"""Reassembly of line-framed streaming responses.

The chat endpoint answers with a body like::

    data: Decl
    data: ares x
    data: [DONE]

Every ``data: `` record contributes its payload, in arrival order, to one
result string. Chunks may split records (and multi-byte characters)
anywhere, so the partial tail of each chunk is buffered until the next one.
"""

from __future__ import annotations

import codecs
from typing import AsyncIterable

import structlog

logger = structlog.get_logger()

DATA_PREFIX = "data: "
DONE_SENTINEL = "[DONE]"
DEFAULT_ENCODING = "utf-8"


def resolve_encoding(name: str | None) -> str:
    """Return the codec name for *name*, or UTF-8 when Python does not know it."""
    if not name:
        return DEFAULT_ENCODING
    try:
        return codecs.lookup(name).name
    except LookupError:
        logger.warning("stream_encoding_unknown", encoding=name, using=DEFAULT_ENCODING)
        return DEFAULT_ENCODING


class StreamCollector:
    """Incrementally decode chunks and accumulate ``data: `` payloads."""

    def __init__(self, encoding: str | None = DEFAULT_ENCODING) -> None:
        self.encoding = resolve_encoding(encoding)
        self._decoder = codecs.getincrementaldecoder(self.encoding)(errors="replace")
        self._tail = ""
        self._parts: list[str] = []
        self._records = 0
        self._finished = False

    @property
    def text(self) -> str:
        """Payload accumulated so far (untrimmed)."""
        return "".join(self._parts)

    @property
    def finished(self) -> bool:
        return self._finished

    def feed(self, chunk: bytes | str) -> None:
        if self._finished:
            raise RuntimeError("StreamCollector already finished")
        if isinstance(chunk, bytes):
            chunk = self._decoder.decode(chunk)
        if not chunk:
            return

        lines = (self._tail + chunk).split("\n")
        self._tail = lines.pop()
        for line in lines:
            self._consume(line)

    def finish(self) -> str:
        """Flush buffered input and return the trimmed result."""
        if not self._finished:
            remainder = self._decoder.decode(b"", final=True)
            tail = self._tail + remainder
            self._tail = ""
            for line in tail.split("\n"):
                self._consume(line)
            self._finished = True
            logger.debug(
                "stream_collected",
                records=self._records,
                fragments=len(self._parts),
            )
        return self.text.strip()

    def _consume(self, line: str) -> None:
        if line.endswith("\r"):
            line = line[:-1]
        self._records += 1
        if not line.startswith(DATA_PREFIX):
            return
        payload = line[len(DATA_PREFIX):]
        if payload == DONE_SENTINEL:
            return
        self._parts.append(payload)


async def collect_stream(
    chunks: AsyncIterable[bytes | str],
    encoding: str | None = DEFAULT_ENCODING,
) -> str:
    """Drain *chunks* through a fresh collector and return the result."""
    collector = StreamCollector(encoding)
    async for chunk in chunks:
        collector.feed(chunk)
    return collector.finish()

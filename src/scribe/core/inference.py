"""Streaming client for the local chat endpoint.

One ``complete()`` call is one POST, no retry. The response body is a
line-framed stream that ``StreamCollector`` reassembles. The whole call,
headers and body, runs under a single deadline; when it expires the
request task is cancelled.

Callers never see an exception: every failure (timeout, transport error,
non-2xx status, broken stream) comes back as ``Messages.FALLBACK_TEXT``.
"""

from __future__ import annotations

import asyncio
import time
from typing import Any

import certifi
import httpx
import structlog

from scribe.config import Messages, settings
from scribe.core.errors import InferenceError
from scribe.core.stream import StreamCollector
from scribe.observability.metrics import get_metrics

logger = structlog.get_logger()

FALLBACK_TEXT = Messages.FALLBACK_TEXT


def is_fallback(text: str) -> bool:
    return text == FALLBACK_TEXT


class InferenceClient:
    """HTTP client for the streaming chat endpoint."""

    def __init__(
        self,
        endpoint: str | None = None,
        timeout_s: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.endpoint = endpoint or settings.chat_endpoint
        self.timeout_s = timeout_s if timeout_s is not None else settings.request_timeout_s

        client_kwargs: dict[str, Any] = {
            "headers": {"Content-Type": "application/json"},
            # The outer deadline governs; httpx only bounds the connect phase.
            "timeout": httpx.Timeout(
                connect=settings.connect_timeout_s,
                read=None,
                write=None,
                pool=None,
            ),
        }
        if transport is not None:
            client_kwargs["transport"] = transport
        else:
            client_kwargs["verify"] = certifi.where()
        self._client = httpx.AsyncClient(**client_kwargs)

        logger.info(
            "inference_client_initialized",
            endpoint=self.endpoint,
            timeout_s=self.timeout_s,
        )

    async def close(self) -> None:
        await self._client.aclose()
        logger.info("inference_client_closed")

    async def __aenter__(self) -> "InferenceClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def complete(self, prompt: str) -> str:
        """Send *prompt* and return the assembled reply, or the fallback text."""
        metrics = get_metrics()
        metrics.inc("inference_requests_total")
        logger.info("inference_request", prompt_length=len(prompt))

        t0 = time.monotonic()
        try:
            with metrics.timer("inference_latency_ms"):
                text = await asyncio.wait_for(
                    self._stream_completion(prompt),
                    timeout=self.timeout_s,
                )
        except asyncio.TimeoutError:
            logger.warning("inference_timeout", timeout_s=self.timeout_s)
            metrics.inference_failed("timeout")
            return FALLBACK_TEXT
        except InferenceError as e:
            logger.error("inference_failed", status_code=e.status_code, error=str(e))
            metrics.inference_failed("status")
            return FALLBACK_TEXT
        except httpx.HTTPError as e:
            logger.error("inference_network_error", error=str(e) or e.__class__.__name__)
            metrics.inference_failed("network")
            return FALLBACK_TEXT

        logger.info(
            "inference_success",
            latency_ms=round((time.monotonic() - t0) * 1000),
            content_length=len(text),
        )
        return text

    async def _stream_completion(self, prompt: str) -> str:
        async with self._client.stream(
            "POST", self.endpoint, json={"message": prompt},
        ) as response:
            if not response.is_success:
                raise InferenceError(
                    f"Chat endpoint answered {response.status_code}",
                    status_code=response.status_code,
                )
            collector = StreamCollector(response.charset_encoding)
            async for chunk in response.aiter_bytes():
                collector.feed(chunk)
            return collector.finish()

"""
Generation client for a local Ollama server.

POSTs {"model", "prompt"} to /api/generate and reads the newline-delimited
JSON stream that comes back, concatenating each chunk's "response" fragment
until a chunk reports done=true or the stream ends.

Usage:
    client = GenerationClient()
    text = await client.generate(model, url, prompt, timeout=300)
"""
from __future__ import annotations

import asyncio
import json
import logging

import httpx

from cardsmith.errors import GenerationTimeout, ServiceError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 300.0


class GenerationClient:
    def __init__(
        self,
        http_client: httpx.AsyncClient | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._http_client = http_client
        self._transport = transport

    async def generate(
        self,
        model: str,
        url: str,
        prompt: str,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> str:
        """
        Run one generation request under ``timeout`` seconds.

        Raises ServiceError on a non-200 status or transport failure and
        GenerationTimeout when the deadline passes.
        """
        try:
            return await asyncio.wait_for(
                self._generate(model, url, prompt, timeout), timeout
            )
        except asyncio.TimeoutError as e:
            raise GenerationTimeout(
                f"Generation with {model} exceeded {timeout:g}s"
            ) from e

    async def _generate(
        self, model: str, url: str, prompt: str, timeout: float
    ) -> str:
        payload = {"model": model, "prompt": prompt}
        if self._http_client is not None:
            return await self._stream(self._http_client, url, payload)
        async with httpx.AsyncClient(
            transport=self._transport, timeout=timeout
        ) as client:
            return await self._stream(client, url, payload)

    async def _stream(
        self, client: httpx.AsyncClient, url: str, payload: dict
    ) -> str:
        fragments: list[str] = []
        try:
            async with client.stream("POST", url, json=payload) as res:
                if res.status_code != 200:
                    raise ServiceError(
                        f"Unexpected status code: {res.status_code}",
                        status_code=res.status_code,
                    )
                async for line in res.aiter_lines():
                    chunk = _decode_chunk(line)
                    if chunk is None:
                        continue
                    fragment = chunk.get("response")
                    if isinstance(fragment, str):
                        fragments.append(fragment)
                    if chunk.get("done") is True:
                        break
        except httpx.TimeoutException as e:
            raise GenerationTimeout(f"Generation request timed out: {e}") from e
        except httpx.HTTPError as e:
            raise ServiceError(f"Failed to reach generation service: {e}") from e
        return "".join(fragments)


def _decode_chunk(line: str) -> dict | None:
    line = line.strip()
    if not line:
        return None
    try:
        chunk = json.loads(line)
    except json.JSONDecodeError:
        logger.debug("Skipping undecodable chunk: %.80s", line)
        return None
    if not isinstance(chunk, dict):
        logger.debug("Skipping non-object chunk: %.80s", line)
        return None
    return chunk

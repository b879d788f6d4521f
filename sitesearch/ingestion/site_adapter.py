"""
External site adapter.

Each configured endpoint exports its searchable documents as a JSON array:

    GET <endpoint>?secret=<token>
    [{"source": ..., "extid": ..., "title": ..., "url": ..., "audiences": ...,
      "keywords": ..., "content": ..., "timecreated": ..., "timemodified": ...}]

Documents are stored under `site:<endpoint>` so two endpoints can never
reconcile (and delete) each other's rows. The raw content body is reduced
to a bounded plain-text excerpt; the body itself is never kept.
"""

import logging
from collections.abc import AsyncIterator
from typing import Any

import httpx

from sitesearch.documents.schemas import Document, build_document, site_source
from sitesearch.errors import FetchError, ParseError, ValidationError
from sitesearch.ingestion.base_adapter import BaseSourceAdapter, html_to_text, shorten_text
from sitesearch.ingestion.http_client import HTTPClient, HTTPClientError

logger = logging.getLogger(__name__)

DEFAULT_EXCERPT_LENGTH = 300


def _decode_payload(response: httpx.Response) -> list[Any]:
    """
    Decode a site export into a list of raw items.

    Raises:
        ParseError: body is not JSON or not a JSON array
    """
    try:
        payload = response.json()
    except ValueError as e:
        raise ParseError(f"Response is not valid JSON: {e}") from e

    if payload is None:
        return []
    if not isinstance(payload, list):
        raise ParseError(f"Expected a JSON array, got {type(payload).__name__}")
    return payload


def _join_keywords(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return ", ".join(str(v) for v in value if v)
    return str(value)


class ExternalSiteAdapter(BaseSourceAdapter):
    """
    Adapter for one external site endpoint.

    The HTTP client is owned by the caller so several endpoints can share
    one connection pool.
    """

    def __init__(
        self,
        endpoint: str,
        secret: str,
        http_client: HTTPClient,
        excerpt_length: int = DEFAULT_EXCERPT_LENGTH,
    ):
        super().__init__()
        self._endpoint = endpoint.strip()
        self._secret = secret
        self._client = http_client
        self._excerpt_length = excerpt_length

    @property
    def source(self) -> str:
        return site_source(self._endpoint)

    @property
    def endpoint(self) -> str:
        return self._endpoint

    async def _fetch_raw(self) -> AsyncIterator[dict[str, Any]]:
        logger.info(f"Processing endpoint: {self._endpoint}")

        try:
            response = await self._client.get(
                self._endpoint,
                params={"secret": self._secret},
            )
        except HTTPClientError as e:
            raise FetchError(
                str(e),
                source=self.source,
                status_code=e.status_code,
            ) from e

        items = _decode_payload(response)
        logger.debug(
            f"Found external ids for {self._endpoint}: "
            + ", ".join(str(i.get("extid")) for i in items if isinstance(i, dict))
        )
        for item in items:
            yield item

    def _transform(self, raw: dict[str, Any]) -> Document:
        if not isinstance(raw, dict):
            raise ValidationError(
                f"Expected an object, got {type(raw).__name__}",
                source=self.source,
            )

        return build_document(
            source=self.source,
            extid=raw.get("extid"),
            author="",
            title=raw.get("title"),
            url=raw.get("url"),
            audiences=raw.get("audiences"),
            keywords=_join_keywords(raw.get("keywords")),
            content="",
            excerpt=shorten_text(html_to_text(raw.get("content")), self._excerpt_length),
            timecreated=raw.get("timecreated"),
            timemodified=raw.get("timemodified"),
        )

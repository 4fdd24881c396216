"""Zotero Web API (v3) implementation of the DocumentStore protocol."""

import logging
from typing import Any, Optional

import httpx

from tagsmith.lib.retry import RETRYABLE_EXCEPTIONS, retry_on_failure_async

from .models import ChildItem, Document
from .protocols import DocumentNotFoundError, StoreError, VersionConflictError

logger = logging.getLogger(__name__)

PAGE_SIZE = 100


class RetryableStatusError(StoreError):
    """429 / 5xx from the API; worth another attempt."""


def _check(response: httpx.Response, what: str) -> httpx.Response:
    if response.status_code == 404:
        raise DocumentNotFoundError(f"{what}: not found")
    if response.status_code == 412:
        raise VersionConflictError(f"{what}: library version changed")
    if response.status_code == 429 or response.status_code >= 500:
        raise RetryableStatusError(f"{what}: HTTP {response.status_code}")
    if response.status_code >= 400:
        raise StoreError(f"{what}: HTTP {response.status_code} {response.text[:200]}")
    return response


class ZoteroWebStore:
    """DocumentStore talking to api.zotero.org.

    Tag objects (with their Zotero ``type``) are remembered per document
    between ``get_document`` and ``save`` so existing tags keep their type
    when the tag list is written back.
    """

    def __init__(
        self,
        library_id: str,
        api_key: str,
        library_type: str = "user",
        api_url: str = "https://api.zotero.org",
        timeout: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """Initialize the store.

        Args:
            library_id: Numeric user or group ID
            api_key: Zotero API key with write access
            library_type: "user" or "group"
            api_url: API base URL
            timeout: Request timeout in seconds
            client: Pre-built httpx client (tests)
        """
        if library_type not in ("user", "group"):
            raise ValueError(f"library_type must be 'user' or 'group', got {library_type!r}")
        self.prefix = f"/{library_type}s/{library_id}"
        self.api_url = api_url
        self.api_key = api_key
        self.timeout = timeout
        self._client = client
        self._tag_objects: dict[str, dict[str, dict[str, Any]]] = {}

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.api_url,
                headers={
                    "Zotero-API-Key": self.api_key,
                    "Zotero-API-Version": "3",
                },
                timeout=self.timeout,
            )
        return self._client

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    @retry_on_failure_async(
        max_retries=2,
        base_delay=1.0,
        exceptions=RETRYABLE_EXCEPTIONS + (RetryableStatusError,),
    )
    async def _get(self, path: str, what: str, params: Optional[dict] = None) -> httpx.Response:
        response = await self._get_client().get(self.prefix + path, params=params)
        return _check(response, what)

    async def list_all_tags(self) -> list[str]:
        tags: list[str] = []
        start = 0
        while True:
            response = await self._get(
                "/tags", "tag listing", params={"limit": PAGE_SIZE, "start": start}
            )
            page = response.json()
            for entry in page:
                name = entry.get("tag", "")
                if not name:
                    continue
                occurrences = max(int(entry.get("meta", {}).get("numItems", 1) or 1), 1)
                tags.extend([name] * occurrences)

            start += len(page)
            total = int(response.headers.get("Total-Results", start))
            if not page or start >= total:
                break
        logger.debug(f"Enumerated {len(tags)} tag occurrences from Zotero")
        return tags

    async def list_document_ids(self) -> list[str]:
        response = await self._get("/items/top", "item listing", params={"format": "keys"})
        return [line.strip() for line in response.text.splitlines() if line.strip()]

    async def get_document(self, document_id: str) -> Document:
        response = await self._get(f"/items/{document_id}", f"item {document_id}")
        payload = response.json()
        data = payload.get("data", {})

        tag_objects = {t["tag"]: t for t in data.get("tags", []) if t.get("tag")}
        self._tag_objects[document_id] = tag_objects

        return Document(
            id=payload.get("key", document_id),
            item_type=data.get("itemType", ""),
            title=data.get("title", "") or "",
            abstract=data.get("abstractNote", "") or "",
            extra=data.get("extra", "") or "",
            tags=list(tag_objects),
            version=int(payload.get("version", data.get("version", 0)) or 0),
            parent_id=data.get("parentItem"),
        )

    async def get_children(self, document_id: str) -> list[ChildItem]:
        response = await self._get(f"/items/{document_id}/children", f"children of {document_id}")
        children = []
        for payload in response.json():
            data = payload.get("data", {})
            children.append(
                ChildItem(
                    id=payload.get("key", ""),
                    item_type=data.get("itemType", ""),
                    note=data.get("note", "") or "",
                    content_type=data.get("contentType", "") or "",
                )
            )
        return children

    async def get_fulltext(self, attachment_id: str) -> str:
        try:
            response = await self._get(f"/items/{attachment_id}/fulltext", f"fulltext {attachment_id}")
        except DocumentNotFoundError:
            return ""
        return response.json().get("content", "") or ""

    async def save(self, document: Document) -> None:
        known = self._tag_objects.get(document.id, {})
        tags = [known.get(tag, {"tag": tag}) for tag in document.tags]

        response = await self._get_client().patch(
            f"{self.prefix}/items/{document.id}",
            json={"tags": tags, "extra": document.extra},
            headers={"If-Unmodified-Since-Version": str(document.version)},
        )
        _check(response, f"save {document.id}")

        new_version = response.headers.get("Last-Modified-Version")
        if new_version is not None:
            document.version = int(new_version)
        self._tag_objects[document.id] = {t["tag"]: t for t in tags}


def create_zotero_store(
    library_id: str,
    api_key: str,
    library_type: str = "user",
    api_url: str = "https://api.zotero.org",
) -> ZoteroWebStore:
    """Create a Zotero Web API store."""
    return ZoteroWebStore(
        library_id=library_id,
        api_key=api_key,
        library_type=library_type,
        api_url=api_url,
    )

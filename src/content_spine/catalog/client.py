"""
Constructor.io catalog client.

Three operations share one HTTP client and Basic auth (API token as the
username, empty password):

- ``upload``: full-catalog replace of one section from an in-memory JSONL (or
  CSV) file part. Never retried; a failed replace is terminal for the run.
- ``patch_items``: merge a batch of items into the index (``/v2/items``).
  Retried up to 3 attempts on 429, 5xx, timeouts and connection errors, with
  quadratic backoff (0.3s, 1.2s).
- ``get_task`` / ``poll_task``: follow the background task a bulk ingest
  returns.

Every request has its own timeout (20s by default).
"""

from __future__ import annotations

import time
from typing import Any, Callable, Iterable, Literal

import httpx

from content_spine.catalog.payload import CONTENT_TYPES, UploadFormat, items_filename, serialize
from content_spine.errors import (
    CatalogRequestError,
    CatalogUploadError,
    MissingConfigError,
    RateLimitError,
    TaskTimeoutError,
    TransientError,
    ValidationError,
)
from content_spine.logging import get_logger, redact
from content_spine.models import CatalogItem, LocaleCredentials
from content_spine.retry import QuadraticBackoff, RetryContext, RetryStrategy

logger = get_logger(__name__)

DEFAULT_BASE_URL = "https://ac.cnstrc.com"
DEFAULT_CLIENT_TAG = "contentful-index-app/1.0"
TERMINAL_TASK_STATUSES = frozenset({"completed", "failed"})

OnMissing = Literal["CREATE", "IGNORE", "FAIL"]


def parse_body(response: httpx.Response) -> Any:
    """JSON body when possible, else ``{"raw": text}``."""
    text = response.text
    if not text:
        return {"raw": text}
    try:
        return response.json()
    except ValueError:
        return {"raw": text}


def task_id_of(response: Any) -> str | None:
    """Task identifier of a bulk ingest response (``task_id`` or ``id``)."""
    if not isinstance(response, dict):
        return None
    task_id = response.get("task_id") or response.get("id")
    return str(task_id) if task_id is not None else None


def _bool(value: bool) -> str:
    return "true" if value else "false"


def _require_credentials(creds: LocaleCredentials, *, section: bool = True) -> None:
    if not creds.key:
        raise MissingConfigError("constructor.key", "Constructor key is required")
    if not creds.token:
        raise MissingConfigError("constructor.token", "Constructor token is required")
    if section and not creds.section:
        raise MissingConfigError("constructor.section", "Constructor section is required")


class CatalogClient:
    """HTTP client for the catalog ingest and task APIs."""

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        *,
        client_tag: str = DEFAULT_CLIENT_TAG,
        timeout: float = 20.0,
        upload_method: Literal["PUT", "PATCH"] = "PUT",
        notification_email: str | None = None,
        retry_strategy: RetryStrategy | None = None,
        http_client: httpx.Client | None = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.base_url = base_url.rstrip("/")
        self.client_tag = client_tag
        self.upload_method = upload_method
        self.notification_email = notification_email
        self.retry_strategy = retry_strategy or QuadraticBackoff(max_attempts=3, base_delay=0.3)
        self._client = http_client or httpx.Client(timeout=timeout)
        self._sleep = sleep
        self._clock = clock

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> CatalogClient:
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    @staticmethod
    def _auth(token: str) -> httpx.BasicAuth:
        return httpx.BasicAuth(token, "")

    # ------------------------------------------------------------------ #
    # Full catalog replace
    # ------------------------------------------------------------------ #

    def upload(
        self,
        items: list[CatalogItem],
        creds: LocaleCredentials,
        *,
        format: UploadFormat = "jsonl",
    ) -> dict[str, Any]:
        """
        Replace the whole section with ``items``.

        Returns:
            The parsed response; ``task_id_of()`` extracts the ingest task id.

        Raises:
            MissingConfigError: Key, token or section missing.
            ValidationError: Empty item list.
            CatalogUploadError: Non-success status (message carries status and body).
        """
        _require_credentials(creds)
        if not items:
            raise ValidationError("items must be a non-empty list", field="items")

        payload = serialize(items, format)
        if not payload.strip():
            raise ValidationError(f"items {format.upper()} must be a non-empty string", field="items")

        params = {
            "key": creds.key,
            "section": creds.section,
            "force": "true",
            "c": self.client_tag,
            "format": format,
        }
        if self.notification_email:
            params["notification_email"] = self.notification_email

        url = f"{self.base_url}/v1/catalog"
        files = {"items": (items_filename(format), payload.encode("utf-8"), CONTENT_TYPES[format])}

        logger.info(
            "catalog_upload_started",
            method=self.upload_method,
            url=url,
            key=redact(creds.key),
            section=creds.section,
            items=len(items),
            bytes=len(files["items"][1]),
        )

        try:
            response = self._client.request(
                self.upload_method,
                url,
                params=params,
                files=files,
                auth=self._auth(creds.token),
                headers={"Accept": "application/json"},
            )
        except httpx.HTTPError as e:
            raise CatalogUploadError(f"Catalog upload failed: {e}", cause=e).with_context(
                url=url, section=creds.section
            )

        body = parse_body(response)
        if response.is_error:
            logger.error("catalog_upload_failed", status=response.status_code, section=creds.section)
            raise CatalogUploadError(
                f"Catalog upload failed: {response.status_code} {body}",
                status=response.status_code,
                body=body,
            ).with_context(url=url, section=creds.section)

        logger.info("catalog_upload_accepted", section=creds.section, task_id=task_id_of(body))
        return body if isinstance(body, dict) else {"raw": body}

    # ------------------------------------------------------------------ #
    # Per-item patch
    # ------------------------------------------------------------------ #

    def patch_items(
        self,
        items: Iterable[CatalogItem | dict[str, Any]],
        creds: LocaleCredentials,
        *,
        force: bool = True,
        on_missing: OnMissing | None = None,
        patch_delta: bool | None = None,
        dry_run: bool | None = None,
    ) -> dict[str, Any]:
        """
        Merge ``items`` into existing catalog items.

        ``on_missing`` only takes effect together with ``patch_delta=True``.

        Raises:
            CatalogRequestError: Non-transient error status (no retry).
            TransientError: 429/5xx/network failure on the last attempt.
        """
        _require_credentials(creds)
        payload_items = [item.to_dict() if isinstance(item, CatalogItem) else dict(item) for item in items]
        if not payload_items:
            raise ValidationError("payload.items must be a non-empty array", field="items")
        if any(not item.get("id") for item in payload_items):
            raise ValidationError("every item needs an id", field="items")

        params = {"key": creds.key, "section": creds.section, "force": _bool(force), "c": self.client_tag}
        if self.notification_email:
            params["notification_email"] = self.notification_email
        if patch_delta is not None:
            params["patch_delta"] = _bool(patch_delta)
        if on_missing:
            params["on_missing"] = on_missing
        if dry_run is not None:
            params["dry_run"] = _bool(dry_run)

        url = f"{self.base_url}/v2/items"

        def attempt() -> dict[str, Any]:
            return self._send_json("PATCH", url, params, creds.token, {"items": payload_items})

        def on_retry(attempt_no: int, error: Exception, delay: float) -> None:
            logger.warning(
                "catalog_patch_retry",
                attempt=attempt_no,
                delay_seconds=delay,
                status=getattr(error, "status", None),
                error=str(error),
            )

        ctx = RetryContext(self.retry_strategy, on_retry=on_retry, sleep=self._sleep)
        body = ctx.run(attempt)
        logger.info("catalog_patch_accepted", items=len(payload_items), attempts=ctx.attempts)
        return body

    def _send_json(
        self,
        method: str,
        url: str,
        params: dict[str, str],
        token: str,
        payload: dict[str, Any],
    ) -> dict[str, Any]:
        try:
            response = self._client.request(
                method,
                url,
                params=params,
                json=payload,
                auth=self._auth(token),
                headers={"Accept": "application/json"},
            )
        except httpx.TimeoutException as e:
            raise TransientError(f"{method} {url} timed out", cause=e).with_context(url=url)
        except httpx.TransportError as e:
            raise TransientError(f"{method} {url} failed: {e}", cause=e).with_context(url=url)

        body = parse_body(response)
        status = response.status_code
        if status == 429:
            raise RateLimitError(f"{method} {url}: 429 {body}", body=body).with_context(url=url)
        if status >= 500:
            raise TransientError(f"{method} {url}: {status} {body}", status=status, body=body).with_context(url=url)
        if response.is_error:
            raise CatalogRequestError(f"{method} {url}: {status} {body}", status=status, body=body).with_context(
                url=url
            )
        return body if isinstance(body, dict) else {"raw": body}

    # ------------------------------------------------------------------ #
    # Tasks
    # ------------------------------------------------------------------ #

    def get_task(self, task_id: str, token: str) -> dict[str, Any]:
        """Fetch the current state of a background task."""
        url = f"{self.base_url}/v1/tasks/{task_id}"
        response = self._client.get(url, auth=self._auth(token), headers={"Accept": "application/json"})
        body = parse_body(response)
        if response.is_error:
            raise CatalogRequestError(
                f"Task poll failed: {response.status_code} {body}",
                status=response.status_code,
                body=body,
            ).with_context(url=url)
        return body if isinstance(body, dict) else {"raw": body}

    def poll_task(
        self,
        task_id: str,
        token: str,
        *,
        interval: float = 3.0,
        timeout: float | None = None,
    ) -> dict[str, Any]:
        """
        Poll a task until it is ``completed`` or ``failed``.

        With ``timeout=None`` polling never gives up; callers that need a
        deadline pass one.

        Raises:
            TaskTimeoutError: The deadline passed before a terminal status.
        """
        started = self._clock()
        while True:
            task = self.get_task(task_id, token)
            status = task.get("status") or task.get("state")
            logger.info("catalog_task_status", task_id=task_id, status=status)

            if isinstance(status, str) and status.lower() in TERMINAL_TASK_STATUSES:
                return task

            if timeout is not None and self._clock() - started + interval > timeout:
                raise TaskTimeoutError(task_id, timeout, last_status=status)
            self._sleep(interval)

"""
Unit tests for the catalog client.

Tests cover:
- Full-catalog replace request shape (method, params, auth, multipart part)
- Upload failures are terminal (no retry)
- Per-item patch retry with quadratic backoff
- Task polling and its optional deadline
"""

import base64

import httpx
import pytest

from content_spine.catalog.client import CatalogClient, parse_body, task_id_of
from content_spine.errors import (
    CatalogRequestError,
    CatalogUploadError,
    MissingConfigError,
    RateLimitError,
    TaskTimeoutError,
    TransientError,
    ValidationError,
)
from content_spine.models import CatalogItem, LocaleCredentials, ShowcaseData

from conftest import RequestLog, json_response


# =============================================================================
# Fixtures
# =============================================================================


class FakeClock:
    """Monotonic clock advanced by sleep()."""

    def __init__(self):
        self.now = 0.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def creds():
    return LocaleCredentials(key="key_en_abc", token="tok_secret", section="Content")


@pytest.fixture
def items():
    return [
        CatalogItem(id="a", name="A", data=ShowcaseData(description="first")),
        CatalogItem(id="b", name="B", data=ShowcaseData(description="second")),
    ]


@pytest.fixture
def clock():
    return FakeClock()


def make_client(log: RequestLog, clock: FakeClock | None = None, **kwargs) -> CatalogClient:
    clock = clock or FakeClock()
    return CatalogClient(
        "https://ac.example.com/",
        http_client=log.client(),
        sleep=clock.sleep,
        clock=clock,
        **kwargs,
    )


# =============================================================================
# Helpers
# =============================================================================


class TestHelpers:
    """Tests for the auth and URL helpers."""

    def test_parse_body_json(self):
        """JSON bodies are decoded."""
        assert parse_body(json_response(200, {"ok": True})) == {"ok": True}

    def test_parse_body_raw_text(self):
        """Non-JSON bodies come back under "raw"."""
        assert parse_body(httpx.Response(502, text="Bad Gateway")) == {"raw": "Bad Gateway"}

    def test_task_id_of(self):
        """task_id or id is read, stringified; otherwise None."""
        assert task_id_of({"task_id": 42}) == "42"
        assert task_id_of({"id": "t-1"}) == "t-1"
        assert task_id_of({"raw": ""}) is None
        assert task_id_of(None) is None


# =============================================================================
# Upload (full replace)
# =============================================================================


class TestUpload:
    """Tests for the catalog file upload."""

    def test_request_shape(self, creds, items):
        """PUT /v1/catalog with key, section, force, client tag, format and Basic auth."""
        log = RequestLog(json_response(200, {"task_id": 777}))
        body = make_client(log).upload(items, creds)

        assert task_id_of(body) == "777"
        (request,) = log.requests
        assert request.method == "PUT"
        assert request.url.path == "/v1/catalog"
        params = request.url.params
        assert params["key"] == "key_en_abc"
        assert params["section"] == "Content"
        assert params["force"] == "true"
        assert params["c"] == "contentful-index-app/1.0"
        assert params["format"] == "jsonl"
        assert "notification_email" not in params

        expected_auth = base64.b64encode(b"tok_secret:").decode()
        assert request.headers["Authorization"] == f"Basic {expected_auth}"

    def test_multipart_items_part(self, creds, items):
        """The body is one "items" file part holding compact JSONL."""
        log = RequestLog(json_response(200, {}))
        make_client(log).upload(items, creds)

        request = log.requests[0]
        content = request.read()
        assert request.headers["Content-Type"].startswith("multipart/form-data")
        assert b'name="items"' in content
        assert b'filename="items.jsonl"' in content
        assert b"application/jsonl" in content
        assert b'{"id":"a","name":"A"' in content

    def test_csv_format(self, creds, items):
        """CSV uploads change the format param and file name."""
        log = RequestLog(json_response(200, {}))
        make_client(log).upload(items, creds, format="csv")

        request = log.requests[0]
        assert request.url.params["format"] == "csv"
        assert b'filename="items.csv"' in request.read()

    def test_patch_method_and_notification_email(self, creds, items):
        """Upload method and notification email are configurable."""
        log = RequestLog(json_response(200, {}))
        make_client(log, upload_method="PATCH", notification_email="ops@example.com").upload(items, creds)

        request = log.requests[0]
        assert request.method == "PATCH"
        assert request.url.params["notification_email"] == "ops@example.com"

    def test_failure_is_terminal(self, creds, items, clock):
        """A rejected replace raises with status and body, without retry."""
        log = RequestLog(json_response(400, {"message": "bad section"}))

        with pytest.raises(CatalogUploadError) as exc_info:
            make_client(log, clock).upload(items, creds)

        assert exc_info.value.status == 400
        assert "Catalog upload failed: 400" in exc_info.value.message
        assert "bad section" in exc_info.value.message
        assert len(log.requests) == 1
        assert clock.sleeps == []

    def test_server_error_not_retried(self, creds, items, clock):
        """5xx on the bulk replace is not retried either."""
        log = RequestLog(httpx.Response(503, text="unavailable"))

        with pytest.raises(CatalogUploadError):
            make_client(log, clock).upload(items, creds)
        assert len(log.requests) == 1

    def test_empty_items_rejected(self, creds):
        """An empty item list is rejected before any request."""
        log = RequestLog(json_response(200, {}))

        with pytest.raises(ValidationError):
            make_client(log).upload([], creds)
        assert log.requests == []

    @pytest.mark.parametrize("field", ["key", "token", "section"])
    def test_missing_credentials(self, creds, items, field):
        """Missing key, token or section is rejected before any request."""
        log = RequestLog(json_response(200, {}))
        incomplete = LocaleCredentials(**{**creds.__dict__, field: ""})

        with pytest.raises(MissingConfigError):
            make_client(log).upload(items, incomplete)
        assert log.requests == []


# =============================================================================
# Patch (retry)
# =============================================================================


class TestPatchItems:
    """Tests for item patching and its retries."""

    def test_retries_rate_limit_then_succeeds(self, creds, items, clock):
        """429, 429, 200 succeeds on the third attempt after 0.3s and 1.2s."""
        log = RequestLog(
            json_response(429, {"message": "slow down"}),
            json_response(429, {"message": "slow down"}),
            json_response(200, {"ok": True}),
        )
        body = make_client(log, clock).patch_items(items, creds)

        assert body == {"ok": True}
        assert len(log.requests) == 3
        assert clock.sleeps == pytest.approx([0.3, 1.2])

    def test_client_error_fails_immediately(self, creds, items, clock):
        """A 400 raises at once with no sleep."""
        log = RequestLog(json_response(400, {"message": "invalid item"}))

        with pytest.raises(CatalogRequestError) as exc_info:
            make_client(log, clock).patch_items(items, creds)

        assert exc_info.value.status == 400
        assert len(log.requests) == 1
        assert clock.sleeps == []

    def test_gives_up_after_three_attempts(self, creds, items, clock):
        """Persistent 5xx re-raises the last error after three attempts."""
        log = RequestLog(httpx.Response(503, text="unavailable"))

        with pytest.raises(TransientError) as exc_info:
            make_client(log, clock).patch_items(items, creds)

        assert exc_info.value.status == 503
        assert len(log.requests) == 3
        assert clock.sleeps == pytest.approx([0.3, 1.2])

    def test_timeout_is_retried(self, creds, items, clock):
        """A read timeout counts as transient."""
        log = RequestLog(httpx.ReadTimeout("slow"), json_response(200, {"ok": True}))

        assert make_client(log, clock).patch_items(items, creds) == {"ok": True}
        assert clock.sleeps == pytest.approx([0.3])

    def test_rate_limit_error_type(self, creds, items, clock):
        """Exhausted 429s surface as RateLimitError."""
        log = RequestLog(json_response(429, {}))

        with pytest.raises(RateLimitError):
            make_client(log, clock).patch_items(items, creds)

    def test_request_body_and_params(self, creds, items):
        """PATCH /v2/items sends the items body and optional flags."""
        log = RequestLog(json_response(200, {}))
        make_client(log).patch_items(items, creds, force=False, patch_delta=True, on_missing="IGNORE", dry_run=True)

        request = log.requests[0]
        assert request.method == "PATCH"
        assert request.url.path == "/v2/items"
        assert request.url.params["force"] == "false"
        assert request.url.params["patch_delta"] == "true"
        assert request.url.params["on_missing"] == "IGNORE"
        assert request.url.params["dry_run"] == "true"
        assert b'"items"' in request.read()

    def test_items_need_ids(self, creds):
        """Empty batches and items without ids are rejected."""
        log = RequestLog(json_response(200, {}))

        with pytest.raises(ValidationError):
            make_client(log).patch_items([{"name": "no id"}], creds)
        with pytest.raises(ValidationError):
            make_client(log).patch_items([], creds)


# =============================================================================
# Tasks
# =============================================================================


class TestTasks:
    """Tests for task lookup and polling."""

    def test_get_task(self):
        """get_task reads /v1/tasks/{id}."""
        log = RequestLog(json_response(200, {"id": 9, "status": "IN_PROGRESS"}))
        task = make_client(log).get_task("9", "tok_secret")

        assert task["status"] == "IN_PROGRESS"
        assert log.requests[0].url.path == "/v1/tasks/9"

    def test_get_task_error(self):
        """An error status raises CatalogRequestError."""
        log = RequestLog(json_response(404, {"message": "not found"}))

        with pytest.raises(CatalogRequestError):
            make_client(log).get_task("9", "tok_secret")

    def test_poll_until_completed(self, clock):
        """Polling sleeps between non-terminal statuses."""
        log = RequestLog(
            json_response(200, {"status": "QUEUED"}),
            json_response(200, {"status": "IN_PROGRESS"}),
            json_response(200, {"status": "COMPLETED"}),
        )
        task = make_client(log, clock).poll_task("9", "tok_secret", interval=3.0)

        assert task["status"] == "COMPLETED"
        assert clock.sleeps == [3.0, 3.0]

    def test_failed_is_terminal(self, clock):
        """A failed task ends polling without sleeping."""
        log = RequestLog(json_response(200, {"status": "failed"}))

        assert make_client(log, clock).poll_task("9", "tok_secret")["status"] == "failed"
        assert clock.sleeps == []

    def test_poll_deadline(self, clock):
        """Polling past the timeout raises TaskTimeoutError."""
        log = RequestLog(json_response(200, {"status": "IN_PROGRESS"}))

        with pytest.raises(TaskTimeoutError) as exc_info:
            make_client(log, clock).poll_task("9", "tok_secret", interval=3.0, timeout=5.0)

        assert exc_info.value.last_status == "IN_PROGRESS"
        assert len(log.requests) == 2

"""
Endpoint tests for the redirect and info endpoints.
"""

from unittest.mock import AsyncMock
from urllib.parse import parse_qs, urlsplit

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import text

from redirector.core.exceptions import RecordMissing, StoreUnavailable
from redirector.core.service_state import get_stats_service
from redirector.db.store import DurableStore
from redirector.main import create_app
from redirector.services.stats_service import StatsService

from helpers import STARTED_AT, TARGET_URL, run_async


def redirect_count(response) -> int:
    return int(parse_qs(urlsplit(response.headers["location"]).query)["cnt"][0])


async def durable_state(database_url: str) -> tuple[int, int]:
    store = DurableStore.from_url(database_url)
    try:
        return await store.read_counter(), await store.count_all_log_entries()
    finally:
        await store.close()


class TestRedirect:
    """GET / and friends."""

    def test_redirects_with_counter(self, client: TestClient):
        response = client.get("/")
        assert response.status_code == 307
        assert response.headers["location"] == f"{TARGET_URL}?cnt=1"
        assert response.content == b""

    def test_counter_increases_per_request(self, client: TestClient):
        counts = [redirect_count(client.get("/")) for _ in range(5)]
        assert counts == [1, 2, 3, 4, 5]

    @pytest.mark.parametrize("method", ["POST", "PUT", "PATCH", "DELETE"])
    def test_any_method_redirects(self, client: TestClient, method):
        response = client.request(method, "/")
        assert response.status_code == 307
        assert redirect_count(response) == 1

    def test_durable_store_catches_up(self, client: TestClient, database_url):
        for _ in range(3):
            client.get("/")

        assert run_async(durable_state(database_url)) == (3, 3)

    def test_counter_survives_restart(self, settings, database_url):
        with TestClient(create_app(settings), follow_redirects=False) as first:
            first.get("/")
            first.get("/")

        with TestClient(create_app(settings), follow_redirects=False) as second:
            assert second.app.state.counter_cache.get() == 2
            assert redirect_count(second.get("/")) == 3

    def test_one_increment_and_one_log_per_redirect(self, client: TestClient):
        store = client.app.state.store
        store.increment_counter = AsyncMock(wraps=store.increment_counter)
        store.append_log_entry = AsyncMock(wraps=store.append_log_entry)

        response = client.get(
            "/?from=test",
            headers={"User-Agent": "pytest-agent", "Referer": "https://ref.example/"},
        )
        assert response.status_code == 307

        store.increment_counter.assert_awaited_once()
        store.append_log_entry.assert_awaited_once()
        entry = store.append_log_entry.await_args.args[0]
        assert entry.request_method == "GET"
        assert entry.request_uri == "/?from=test"
        assert entry.status_code == 307
        assert entry.protocol == "HTTP/1.1"
        assert entry.user_agent == "pytest-agent"
        assert entry.referer == "https://ref.example/"

    def test_durable_failure_does_not_affect_response(self, client: TestClient, database_url):
        store = client.app.state.store
        store.increment_counter = AsyncMock(side_effect=StoreUnavailable("increment_counter"))

        first = client.get("/")
        second = client.get("/")

        assert (first.status_code, second.status_code) == (307, 307)
        assert [redirect_count(first), redirect_count(second)] == [1, 2]
        assert client.app.state.counter_cache.get() == 2
        # durable counter under-counts, the log still has both rows
        assert run_async(durable_state(database_url)) == (0, 2)

    def test_unexpected_increment_error_still_logs_request(self, client: TestClient, database_url):
        store = client.app.state.store
        store.increment_counter = AsyncMock(side_effect=RuntimeError("boom"))

        response = client.get("/")

        assert response.status_code == 307
        assert redirect_count(response) == 1
        assert run_async(durable_state(database_url)) == (0, 1)

    @pytest.mark.parametrize("path", ["/some/page", "/info/extra", "/favicon.ico?x=1"])
    def test_any_path_redirects(self, client: TestClient, path):
        store = client.app.state.store
        store.append_log_entry = AsyncMock(wraps=store.append_log_entry)

        assert redirect_count(client.get("/")) == 1
        response = client.get(path)

        assert response.status_code == 307
        assert response.headers["location"] == f"{TARGET_URL}?cnt=2"
        assert store.append_log_entry.await_args.args[0].request_uri == path

    def test_other_methods_on_info_do_not_redirect(self, client: TestClient):
        response = client.post("/info")
        assert response.status_code == 200
        assert response.json()["db_status"] == "ok"
        assert client.app.state.counter_cache.get() == 0


class TestCORS:

    @pytest.mark.parametrize("path", ["/", "/info", "/some/page"])
    def test_preflight(self, client: TestClient, path):
        response = client.options(path)
        assert response.status_code == 204
        assert response.content == b""
        assert response.headers["access-control-allow-methods"] == "GET, OPTIONS"
        assert client.app.state.counter_cache.get() == 0

    def test_headers_on_every_response(self, client: TestClient):
        for response in (client.get("/"), client.get("/info")):
            assert response.headers["access-control-allow-origin"] == "https://a.example,https://b.example"
            assert response.headers["access-control-allow-methods"] == "GET, OPTIONS"
            assert response.headers["access-control-allow-headers"] == (
                "Accept, Authorization, Content-Type, X-CSRF-Token"
            )
            assert response.headers["access-control-allow-credentials"] == "false"
            assert "x-process-time" in response.headers


class TestInfo:

    def test_fresh_service(self, client: TestClient):
        response = client.get("/info")
        assert response.status_code == 200
        assert response.json() == {
            "db_status": "ok",
            "since_start": 0,
            "last_24_hours": 0,
            "service_started_at": STARTED_AT,
        }

    def test_counts_after_redirects(self, client: TestClient):
        for _ in range(3):
            client.get("/")

        body = client.get("/info").json()
        assert body["db_status"] == "ok"
        assert body["since_start"] == 3
        assert body["last_24_hours"] == 3

    def test_info_does_not_touch_counter(self, client: TestClient):
        client.get("/info")
        assert client.app.state.counter_cache.get() == 0

    def test_unreachable_store_degrades_fields(self, app, unreachable_database_url):
        broken = StatsService(DurableStore.from_url(unreachable_database_url))
        app.dependency_overrides[get_stats_service] = lambda: broken

        with TestClient(app, follow_redirects=False) as client:
            response = client.get("/info")

        assert response.status_code == 200
        assert response.json() == {
            "db_status": "error",
            "since_start": -1,
            "last_24_hours": -1,
            "service_started_at": STARTED_AT,
        }

    def test_start_marker_defaults_to_process_start(self, settings):
        settings.SERVICE_STARTED_AT = None
        with TestClient(create_app(settings)) as client:
            marker = client.get("/info").json()["service_started_at"]
        # e.g. "2026-10-19 00:30"
        assert len(marker) == 16
        assert marker[4] == "-" and marker[10] == " " and marker[13] == ":"

    def test_unexpected_store_error_degrades_fields(self, client: TestClient):
        store = client.app.state.store
        store.health_check = AsyncMock(side_effect=RuntimeError("boom"))
        store.count_log_entries = AsyncMock(side_effect=KeyError("timestamp"))
        client.get("/")

        response = client.get("/info")

        assert response.status_code == 200
        assert response.json() == {
            "db_status": "error",
            "since_start": 1,
            "last_24_hours": -1,
            "service_started_at": STARTED_AT,
        }

    def test_rate_limited(self, settings):
        settings.RATE_LIMIT_ENABLED = True
        settings.INFO_RATE_LIMIT = "2/minute"

        with TestClient(create_app(settings)) as client:
            statuses = [client.get("/info").status_code for _ in range(3)]
            # redirects are never rate limited
            assert client.get("/", follow_redirects=False).status_code == 307

        assert statuses == [200, 200, 429]

    def test_rate_limits_are_per_app(self, settings):
        def limited(limit: str):
            return create_app(
                settings.model_copy(update={"RATE_LIMIT_ENABLED": True, "INFO_RATE_LIMIT": limit})
            )

        # all three exist before any serves a request
        strict = limited("1/minute")
        loose = limited("3/minute")
        unlimited = create_app(settings)

        with TestClient(strict) as client:
            strict_statuses = [client.get("/info").status_code for _ in range(2)]
        with TestClient(loose) as client:
            loose_statuses = [client.get("/info").status_code for _ in range(4)]
        with TestClient(unlimited) as client:
            unlimited_statuses = [client.get("/info").status_code for _ in range(5)]

        assert strict_statuses == [200, 429]
        assert loose_statuses == [200, 200, 200, 429]
        assert unlimited_statuses == [200] * 5


class TestStartup:

    def test_missing_seed_row_is_fatal(self, settings, database_url):
        async def prepare():
            store = DurableStore.from_url(database_url)
            try:
                await store.initialize()
                async with store.engine.begin() as conn:
                    await conn.execute(text("DELETE FROM redirects_count"))
            finally:
                await store.close()

        run_async(prepare())

        with pytest.raises(RecordMissing):
            with TestClient(create_app(settings)):
                pass

    def test_unreachable_store_is_fatal(self, settings, unreachable_database_url):
        settings.DATABASE_URL = unreachable_database_url
        with pytest.raises(StoreUnavailable):
            with TestClient(create_app(settings)):
                pass

    def test_cache_matches_durable_counter(self, settings, database_url):
        async def prepare():
            store = DurableStore.from_url(database_url)
            try:
                await store.initialize()
                for _ in range(7):
                    await store.increment_counter()
            finally:
                await store.close()

        run_async(prepare())

        with TestClient(create_app(settings)) as client:
            assert client.app.state.counter_cache.get() == 7
            assert run_async(durable_state(database_url))[0] == 7

"""
Tests for the sync engine, against fakes and against the real server app
"""
import json

import pytest
import requests

from conftest import ServerSession, StaticToken
from talentbook.config import Config
from talentbook.sync import SyncEngine, SyncState
from talentbook.transform import WireValidationError

SERVER_URL = "http://testserver/api"


class FakeHttp:
    """Records posts and answers with a fixed status, or raises"""

    def __init__(self, status_code=200, error=None):
        self.status_code = status_code
        self.error = error
        self.calls = []

    def post(self, url, json=None, headers=None, timeout=None):
        self.calls.append({"url": url, "json": json, "headers": headers, "timeout": timeout})
        if self.error:
            raise self.error
        response = requests.Response()
        response.status_code = self.status_code
        response._content = b"{}"
        response.reason = "OK" if self.status_code < 400 else "Error"
        response.url = url
        return response


def add_data(store, clock):
    category_id = store.categories.ordered()[0].id
    talent = store.talents.create(name="Amal", category_id=category_id, gender="female", price_per_project=500)
    store.projects.create(name="Campaign", status="completed", talents=[{"talent_id": talent.id}])
    store.bookings.create(talent_id=talent.id, title="Shoot", start_date=clock.now(), end_date=clock.now())
    return talent


class TestPushAll:

    def test_without_token_succeeds_without_network(self, store):
        http = FakeHttp()
        engine = SyncEngine(SERVER_URL, store, StaticToken(None), http=http)
        assert engine.push_all() is True
        assert http.calls == []

    def test_successful_push(self, store, clock):
        add_data(store, clock)
        http = FakeHttp()
        state = SyncState()
        state.sync_pending = True
        engine = SyncEngine(SERVER_URL + "/", store, StaticToken("abc"), state=state, http=http, clock=clock)

        assert engine.push_all() is True

        call = http.calls[0]
        assert call["url"] == "http://testserver/api/sync/push"
        assert call["headers"] == {"Authorization": "Bearer abc"}
        assert call["timeout"] == 30
        assert len(call["json"]["talents"]) == 1
        assert len(call["json"]["categories"]) == 4
        assert call["json"]["settings"]["defaultProfitMargin"] == "15"
        assert state.last_sync == clock.now().isoformat()
        assert state.sync_pending is False

    def test_connection_error_returns_false(self, store):
        state = SyncState()
        state.sync_pending = True
        engine = SyncEngine(SERVER_URL, store, StaticToken("abc"), state=state,
                            http=FakeHttp(error=requests.ConnectionError("refused")))

        assert engine.push_all() is False
        assert state.last_sync is None
        assert state.sync_pending is True

    def test_timeout_returns_false(self, store):
        engine = SyncEngine(SERVER_URL, store, StaticToken("abc"), http=FakeHttp(error=requests.Timeout()))
        assert engine.push_all() is False

    def test_invalid_persisted_settings_still_push(self, store, kv):
        kv.data["@talent_manager_settings"] = json.dumps({"viewMode": "tiles", "defaultProfitMargin": 20})
        http = FakeHttp()
        engine = SyncEngine(SERVER_URL, store, StaticToken("abc"), http=http)

        assert engine.push_all() is True
        settings = http.calls[0]["json"]["settings"]
        assert settings["viewMode"] == "grid"
        assert settings["defaultProfitMargin"] == "20"

    @pytest.mark.parametrize("status_code", [401, 422, 500])
    def test_error_status_returns_false(self, store, status_code):
        engine = SyncEngine(SERVER_URL, store, StaticToken("abc"), http=FakeHttp(status_code))
        assert engine.push_all() is False
        assert engine.status().last_sync is None

    def test_invalid_record_propagates(self, store, clock, monkeypatch):
        talent = add_data(store, clock)
        talent.gender = "unknown"
        monkeypatch.setattr(store.talents, "list", lambda: [talent])
        http = FakeHttp()
        engine = SyncEngine(SERVER_URL, store, StaticToken("abc"), http=http)

        with pytest.raises(WireValidationError):
            engine.push_all()
        assert http.calls == []
        assert engine.status().in_progress is False

    def test_push_while_pushing_returns_false(self, store):
        http = FakeHttp()
        engine = SyncEngine(SERVER_URL, store, StaticToken("abc"), http=http)
        engine._push_lock.acquire()
        try:
            assert engine.status().in_progress is True
            assert engine.push_all() is False
        finally:
            engine._push_lock.release()
        assert http.calls == []


class TestSyncState:

    def test_mark_pending(self, store):
        engine = SyncEngine(SERVER_URL, store, StaticToken(None))
        assert engine.status().pending is False
        engine.mark_pending("@talent_manager_talents")
        assert engine.status().pending is True

    def test_pull_not_supported(self, store):
        engine = SyncEngine(SERVER_URL, store, StaticToken("abc"), http=FakeHttp())
        assert engine.supports_pull is False
        assert engine.pull_all() is False

    def test_full_sync_reports_both(self, store):
        engine = SyncEngine(SERVER_URL, store, StaticToken("abc"), http=FakeHttp())
        assert engine.full_sync() == {"pushed": True, "pulled": False}

    def test_config_keeps_state_on_disk(self, store, clock, tmp_path):
        config = Config(config_dir=str(tmp_path))
        config.session_token = "abc"
        engine = SyncEngine(SERVER_URL, store, config, state=config, http=FakeHttp(), clock=clock)
        engine.mark_pending()

        assert engine.push_all() is True

        reloaded = Config(config_dir=str(tmp_path))
        assert reloaded.last_sync == clock.now().isoformat()
        assert reloaded.sync_pending is False
        assert reloaded.get_session_token() == "abc"


class TestPushToServer:

    def test_push_reaches_server(self, store, clock, client, auth_headers, token):
        talent = add_data(store, clock)
        engine = SyncEngine(SERVER_URL, store, StaticToken(token), http=ServerSession(client))

        assert engine.push_all() is True

        data = client.get("/api/sync/pull", headers=auth_headers).json()
        assert [t["odId"] for t in data["talents"]] == [talent.id]
        assert len(data["categories"]) == 4
        assert len(data["bookings"]) == 1
        assert data["settings"]["defaultCurrency"] == "KWD"

    def test_repeated_push_is_idempotent(self, store, clock, client, auth_headers, token):
        add_data(store, clock)
        engine = SyncEngine(SERVER_URL, store, StaticToken(token), http=ServerSession(client))

        assert engine.push_all() is True
        assert engine.push_all() is True

        data = client.get("/api/sync/pull", headers=auth_headers).json()
        assert len(data["talents"]) == 1
        assert len(data["projects"]) == 1
        assert len(data["bookings"]) == 1
        assert len(data["categories"]) == 4

    def test_unknown_token_returns_false(self, store, client):
        engine = SyncEngine(SERVER_URL, store, StaticToken("nope"), http=ServerSession(client))
        assert engine.push_all() is False

    def test_end_to_end_costs(self, store, clock, client, auth_headers, token):
        add_data(store, clock)
        engine = SyncEngine(SERVER_URL, store, StaticToken(token), http=ServerSession(client))
        project = store.projects.list()[0]

        local = store.project_costs(project)
        assert (local.subtotal, local.profit, local.total) == (500, 75, 575)

        assert engine.push_all() is True
        stats = client.get("/api/stats", headers=auth_headers).json()
        assert stats["totalRevenue"] == pytest.approx(575)
        assert stats["totalProfit"] == pytest.approx(75)

"""Unit tests for gcal_dashboard.token_bootstrap."""

from __future__ import annotations

import asyncio
import io
from pathlib import Path
from types import SimpleNamespace
from typing import Any, Optional
from unittest.mock import MagicMock
from urllib.parse import parse_qs, urlparse

import aiohttp
import pytest
from aiohttp.test_utils import TestClient, TestServer, unused_port

from gcal_dashboard import token_bootstrap
from gcal_dashboard.core.exceptions import ConfigError
from gcal_dashboard.token_bootstrap import (
    FAILURE_TEXT,
    SUCCESS_TEXT,
    BootstrapResult,
    _make_callback_app,
    authorization_url,
    create_flow,
    listener_address,
    run_bootstrap,
)

pytestmark = pytest.mark.unit


class FakeFlow:
    """Stands in for google_auth_oauthlib's Flow."""

    def __init__(self, refresh_token: Optional[str] = "1//fresh-token", error: Optional[Exception] = None):
        self.refresh_token = refresh_token
        self.error = error
        self.codes: list[str] = []
        self.credentials: Any = None

    def authorization_url(self, **kwargs: Any) -> tuple[str, str]:
        self.auth_kwargs = kwargs
        return "https://accounts.example.test/auth?x=1", "state-123"

    def fetch_token(self, code: str) -> None:
        self.codes.append(code)
        if self.error is not None:
            raise self.error
        self.credentials = SimpleNamespace(refresh_token=self.refresh_token)


@pytest.fixture
async def callback_client():
    """Build a TestClient around the callback app for a given flow."""
    clients: list[TestClient] = []

    async def _make(flow: FakeFlow) -> tuple[TestClient, BootstrapResult, asyncio.Event, io.StringIO]:
        result = BootstrapResult()
        stop_event = asyncio.Event()
        out = io.StringIO()
        app = _make_callback_app(flow, "/oauth2callback", result, stop_event, out)
        client = TestClient(TestServer(app))
        await client.start_server()
        clients.append(client)
        return client, result, stop_event, out

    yield _make

    for client in clients:
        await client.close()


class TestCreateFlow:
    def test_authorization_url_when_real_flow_then_offline_consent_readonly(self) -> None:
        flow = create_flow("client-id.apps.googleusercontent.com", "secret", "http://localhost:3000/oauth2callback")

        url = authorization_url(flow)

        parsed = urlparse(url)
        query = parse_qs(parsed.query)
        assert parsed.netloc == "accounts.google.com"
        assert query["client_id"] == ["client-id.apps.googleusercontent.com"]
        assert query["access_type"] == ["offline"]
        assert query["prompt"] == ["consent"]
        assert query["redirect_uri"] == ["http://localhost:3000/oauth2callback"]
        assert query["scope"] == ["https://www.googleapis.com/auth/calendar.readonly"]

    def test_authorization_url_when_fake_flow_then_requests_offline_consent(self) -> None:
        flow = FakeFlow()

        assert authorization_url(flow) == "https://accounts.example.test/auth?x=1"
        assert flow.auth_kwargs == {"access_type": "offline", "prompt": "consent"}


class TestListenerAddress:
    def test_listener_address_when_default_uri_then_localhost_3000(self) -> None:
        assert listener_address("http://localhost:3000/oauth2callback") == ("localhost", 3000, "/oauth2callback")

    def test_listener_address_when_no_port_then_scheme_default(self) -> None:
        assert listener_address("http://127.0.0.1/cb") == ("127.0.0.1", 80, "/cb")

    def test_listener_address_when_no_path_then_root(self) -> None:
        assert listener_address("http://localhost:8080") == ("localhost", 8080, "/")

    @pytest.mark.parametrize("uri", ["", "urn:ietf:wg:oauth:2.0:oob", "ftp://localhost/cb"])
    def test_listener_address_when_not_http_then_config_error(self, uri: str) -> None:
        with pytest.raises(ConfigError):
            listener_address(uri)


class TestCallbackApp:
    async def test_callback_when_code_exchanged_then_token_printed_and_stop_set(self, callback_client) -> None:
        flow = FakeFlow()
        client, result, stop_event, out = await callback_client(flow)

        response = await client.get("/oauth2callback", params={"code": "4/abc"})

        assert response.status == 200
        assert await response.text() == SUCCESS_TEXT
        assert flow.codes == ["4/abc"]
        assert result.refresh_token == "1//fresh-token"
        assert stop_event.is_set()
        printed = out.getvalue()
        assert "SUCCESS! Your refresh token:" in printed
        assert "1//fresh-token" in printed
        assert "Copy this token to your .env file" in printed

    async def test_callback_when_exchange_fails_then_error_text_and_stop_set(
        self, callback_client, capsys: pytest.CaptureFixture[str]
    ) -> None:
        flow = FakeFlow(error=RuntimeError("invalid_grant"))
        client, result, stop_event, out = await callback_client(flow)

        response = await client.get("/oauth2callback", params={"code": "4/expired"})

        assert response.status == 200
        assert await response.text() == FAILURE_TEXT
        assert result.refresh_token is None
        assert result.error == "invalid_grant"
        assert stop_event.is_set()
        assert "Error getting token: invalid_grant" in capsys.readouterr().err
        assert out.getvalue() == ""

    async def test_callback_when_no_code_then_failure_without_exchange(self, callback_client) -> None:
        flow = FakeFlow()
        client, result, stop_event, _out = await callback_client(flow)

        response = await client.get("/oauth2callback", params={"error": "access_denied"})

        assert await response.text() == FAILURE_TEXT
        assert flow.codes == []
        assert result.error == "access_denied"
        assert stop_event.is_set()

    async def test_callback_when_no_refresh_token_issued_then_failure(self, callback_client) -> None:
        flow = FakeFlow(refresh_token=None)
        client, result, stop_event, _out = await callback_client(flow)

        response = await client.get("/oauth2callback", params={"code": "4/abc"})

        assert await response.text() == FAILURE_TEXT
        assert result.refresh_token is None
        assert stop_event.is_set()

    async def test_callback_when_other_path_then_404_and_still_waiting(self, callback_client) -> None:
        client, _result, stop_event, _out = await callback_client(FakeFlow())

        response = await client.get("/favicon.ico")

        assert response.status == 404
        assert not stop_event.is_set()


class TestRunBootstrap:
    async def test_run_bootstrap_when_callback_arrives_then_returns_token(self) -> None:
        port = unused_port()
        redirect_uri = f"http://127.0.0.1:{port}/oauth2callback"
        out = io.StringIO()

        task = asyncio.create_task(run_bootstrap(FakeFlow(), redirect_uri, out=out))
        for _ in range(200):
            if "Waiting for authentication" in out.getvalue():
                break
            await asyncio.sleep(0.01)

        async with aiohttp.ClientSession() as session:
            async with session.get(redirect_uri, params={"code": "4/abc"}) as response:
                assert await response.text() == SUCCESS_TEXT

        result = await asyncio.wait_for(task, timeout=5)

        assert result.refresh_token == "1//fresh-token"
        printed = out.getvalue()
        assert "STEP 1: Visit this URL in your browser:" in printed
        assert "https://accounts.example.test/auth?x=1" in printed


class TestMain:
    def test_main_when_client_credentials_missing_then_exit_one(
        self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        monkeypatch.chdir(tmp_path)
        monkeypatch.setattr(token_bootstrap, "configure_dashboard_logging", MagicMock())

        with pytest.raises(SystemExit) as exc_info:
            token_bootstrap.main()

        assert exc_info.value.code == 1
        assert "GOOGLE_CLIENT_ID and GOOGLE_CLIENT_SECRET must be set" in capsys.readouterr().err

    def test_main_when_token_obtained_then_exit_zero(
        self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path
    ) -> None:
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("GOOGLE_CLIENT_ID", "client-id")
        monkeypatch.setenv("GOOGLE_CLIENT_SECRET", "client-secret")
        monkeypatch.setattr(token_bootstrap, "configure_dashboard_logging", MagicMock())

        async def fake_bootstrap(flow: Any, redirect_uri: str) -> BootstrapResult:
            assert redirect_uri == "http://localhost:3000/oauth2callback"
            return BootstrapResult(refresh_token="1//token")

        monkeypatch.setattr(token_bootstrap, "run_bootstrap", fake_bootstrap)

        with pytest.raises(SystemExit) as exc_info:
            token_bootstrap.main()

        assert exc_info.value.code == 0

    def test_main_when_no_token_obtained_then_exit_one(
        self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path
    ) -> None:
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("GOOGLE_CLIENT_ID", "client-id")
        monkeypatch.setenv("GOOGLE_CLIENT_SECRET", "client-secret")
        monkeypatch.setattr(token_bootstrap, "configure_dashboard_logging", MagicMock())

        async def fake_bootstrap(flow: Any, redirect_uri: str) -> BootstrapResult:
            return BootstrapResult(error="access_denied")

        monkeypatch.setattr(token_bootstrap, "run_bootstrap", fake_bootstrap)

        with pytest.raises(SystemExit) as exc_info:
            token_bootstrap.main()

        assert exc_info.value.code == 1

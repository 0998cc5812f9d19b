from __future__ import annotations

from fastapi.testclient import TestClient

from appybot.config import WebAppConfig
from webapp.server import app, build_server


def test_root_reports_alive() -> None:
    client = TestClient(app)

    response = client.get("/")

    assert response.status_code == 200
    assert response.text == "Bot is alive!"
    assert response.headers["content-type"].startswith("text/plain")


def test_build_server_uses_configured_address() -> None:
    server = build_server(WebAppConfig(host="127.0.0.1", port=3456))

    assert server.config.host == "127.0.0.1"
    assert server.config.port == 3456

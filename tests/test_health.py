from fastapi.testclient import TestClient

from walletwatch.health import ALIVE_PAYLOAD, EmbeddedServer, build_health_server, create_health_app


def test_root_reports_alive():
    client = TestClient(create_health_app())
    response = client.get("/")
    assert response.status_code == 200
    assert response.json() == ALIVE_PAYLOAD


def test_health_route():
    client = TestClient(create_health_app())
    assert client.get("/health").json() == {"ok": True}


def test_build_health_server_uses_embedded_server():
    server = build_health_server("127.0.0.1", 3999)
    assert isinstance(server, EmbeddedServer)
    assert server.config.port == 3999

from fastapi.testclient import TestClient

from app.core.config import get_settings
from app.db.engine import get_engine
from app.main import create_app


def test_health_reports_store_and_assets(client):
    response = client.get("/api/health")

    assert response.status_code == 200
    body = response.json()
    assert body["ok"] is True
    assert body["worker"] == "lesson-invoices"
    assert body["hasDB"] is True
    assert body["dbTest"] == "ok"
    assert body["hasAssets"] is False
    assert body["time"]


def test_health_reports_unreachable_store_without_failing(app, client, settings):
    broken = settings.model_copy(
        update={"database_url": "sqlite:////nonexistent-dir/nested/db.sqlite"}
    )
    app.dependency_overrides[get_settings] = lambda: broken

    response = client.get("/api/health")

    assert response.status_code == 200
    body = response.json()
    assert body["ok"] is True
    assert body["hasDB"] is True
    assert body["dbTest"] != "ok"
    assert "unable to open database file" in body["dbTest"]


def test_missing_database_is_a_configuration_error(app, client, settings):
    app.dependency_overrides[get_settings] = lambda: settings.model_copy(update={"database_url": ""})
    del app.dependency_overrides[get_engine]

    response = client.get("/api/customers")

    assert response.status_code == 500
    assert response.json() == {"ok": False, "error": "Database not configured"}
    assert response.headers["access-control-allow-origin"] == "*"

    health = client.get("/api/health").json()
    assert health["hasDB"] is False
    assert health["dbTest"] is None


def test_api_responses_carry_cors_headers(client):
    response = client.get("/api/customers")

    assert response.headers["access-control-allow-origin"] == "*"
    assert response.headers["access-control-allow-methods"] == "GET,POST,PUT,DELETE,OPTIONS"
    assert response.headers["access-control-allow-headers"] == "content-type,authorization"


def test_preflight_short_circuits(client):
    response = client.options("/api/invoices/1/mark-paid")

    assert response.status_code == 204
    assert response.content == b""
    assert response.headers["access-control-allow-origin"] == "*"


def test_preflight_on_unknown_api_path_is_still_204(client):
    assert client.options("/api/does-not-exist").status_code == 204


def test_trailing_slash_is_ignored(client):
    response = client.get("/api/customers/")

    assert response.status_code == 200
    assert response.json()["ok"] is True


def test_unknown_api_route_is_structured_404(client):
    response = client.get("/api/nope")

    assert response.status_code == 404
    assert response.json() == {"ok": False, "error": "Not found"}
    assert response.headers["access-control-allow-origin"] == "*"


def test_wrong_method_on_api_route_is_404(client):
    response = client.delete("/api/customers")

    assert response.status_code == 404
    assert response.json()["ok"] is False


def test_non_numeric_invoice_id_is_404(client):
    response = client.get("/api/invoices/abc")

    assert response.status_code == 404
    assert response.json() == {"ok": False, "error": "Not found"}


def test_non_api_paths_fall_through_to_assets(tmp_path, settings, engine):
    public = tmp_path / "public"
    public.mkdir()
    (public / "index.html").write_text("<h1>Invoices</h1>", encoding="utf-8")
    (public / "app.js").write_text("console.log('hi')", encoding="utf-8")

    with_assets = settings.model_copy(update={"assets_dir": str(public)})
    application = create_app(with_assets)
    application.dependency_overrides[get_settings] = lambda: with_assets
    application.dependency_overrides[get_engine] = lambda: engine
    client = TestClient(application)

    index = client.get("/")
    assert index.status_code == 200
    assert "<h1>Invoices</h1>" in index.text
    assert "access-control-allow-origin" not in index.headers

    assert client.get("/app.js").status_code == 200
    assert client.get("/missing.png").status_code == 404

    api_miss = client.get("/api/nope")
    assert api_miss.status_code == 404
    assert api_miss.json() == {"ok": False, "error": "Not found"}

    assert client.get("/api/health").json()["hasAssets"] is True


def test_api_misses_skip_the_sites_404_page(tmp_path, settings, engine):
    public = tmp_path / "public"
    public.mkdir()
    (public / "index.html").write_text("<h1>Invoices</h1>", encoding="utf-8")
    (public / "404.html").write_text("<h1>Lost?</h1>", encoding="utf-8")

    with_assets = settings.model_copy(update={"assets_dir": str(public)})
    application = create_app(with_assets)
    application.dependency_overrides[get_settings] = lambda: with_assets
    application.dependency_overrides[get_engine] = lambda: engine
    client = TestClient(application)

    for path in ("/api/nope", "/api/invoices/1/refund", "/api"):
        response = client.get(path)
        assert response.status_code == 404, path
        assert response.json() == {"ok": False, "error": "Not found"}

    deleted = client.delete("/api/customers")
    assert deleted.status_code == 404
    assert deleted.json() == {"ok": False, "error": "Not found"}

    site_miss = client.get("/missing.png")
    assert site_miss.status_code == 404
    assert "Lost?" in site_miss.text

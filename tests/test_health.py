from fastapi.testclient import TestClient

from appgen.main import app

client = TestClient(app)


def test_health_ok():
    r = client.get("/api/health")
    assert r.status_code == 200
    body = r.json()
    assert body["status"] == "ok"
    assert body["environment"] == "test"
    assert isinstance(body["version"], str)
    assert body["dbOk"] is True
    assert "totalFiles" in body["storage"]
    assert "totalKeys" in body["cache"]


def test_api_info_lists_endpoints():
    r = client.get("/api")
    assert r.status_code == 200
    body = r.json()
    assert body["message"] == "AI App Generator API"
    assert body["endpoints"]["generate"].startswith("POST /api/generate")
    assert "Mock AI responses" in body["features"]


def test_unknown_route_is_404():
    r = client.get("/api/does-not-exist")
    assert r.status_code == 404
    assert r.json() == {"error": "Route not found", "code": "NOT_FOUND"}


def test_demo_users_are_seeded():
    from appgen.db.session import SessionLocal
    from appgen.services.users import get_user_by_email

    db = SessionLocal()
    try:
        demo = get_user_by_email(db, "demo@example.com")
        assert demo is not None
        assert demo.id == "user_demo"
        assert get_user_by_email(db, "test@example.com") is not None
    finally:
        db.close()

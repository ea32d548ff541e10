"""Health endpoint tests."""


class TestHealth:
    def test_liveness(self, client):
        response = client.get("/health")

        assert response.json() == {"status": "ok"}
        assert response.headers["x-request-id"]

    def test_request_id_is_echoed(self, client):
        response = client.get("/health", headers={"X-Request-ID": "req-123"})
        assert response.headers["x-request-id"] == "req-123"

    def test_readiness(self, client):
        response = client.get("/health/ready")

        assert response.status_code == 200
        assert response.json() == {
            "status": "ready",
            "checks": {"database": True, "read_model": True, "cache": True},
        }

    def test_not_ready_without_database(self, client):
        from ubika.db import db

        db.reset()
        response = client.get("/health/ready")

        assert response.status_code == 503
        assert response.json()["checks"]["database"] is False

from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session


def test_health_check(client):
    response = client.get("/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert body["database"] == {"status": "healthy", "connected": True}


def test_health_check_database_down(client, override_session, mocker):
    session = mocker.MagicMock(spec=Session)
    session.execute.side_effect = OperationalError("SELECT 1", {}, Exception("no route to host"))
    override_session(session)

    response = client.get("/health")

    assert response.status_code == 503
    assert response.json()["database"]["connected"] is False


def test_lifespan_starts_reconcile_worker(app, mocker):
    start = mocker.patch("headcount.services.reconciler.ReconcileWorker.start")
    stop = mocker.patch("headcount.services.reconciler.ReconcileWorker.stop")

    with TestClient(app):
        assert app.state.reconcile_worker is not None

    start.assert_awaited_once()
    stop.assert_awaited_once()


def test_root(client):
    body = client.get("/").json()

    assert body["usercount"] == "/api/usercount"
    assert body["health"] == "/health"

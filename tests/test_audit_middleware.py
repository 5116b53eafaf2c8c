from conftest import make_token
from fastapi import FastAPI
from starlette.testclient import TestClient

from mentorship.errors import NotFound
from mentorship.middleware import audit


class RecordingLogger:
    def __init__(self):
        self.records = []

    def audit(self, payload):
        self.records.append(payload)

    def error(self, message):
        self.records.append({"error": message})


def _app():
    app = FastAPI()
    app.add_middleware(audit.AuditMiddleware)

    @app.get("/ok")
    def ok():
        return {"audit": {"event": "login", "userId": "u1"}, "value": 1}

    @app.get("/missing")
    def missing():
        raise NotFound("Nothing here")

    return app


def test_audit_records_identity_and_response_audit(monkeypatch):
    recorder = RecordingLogger()
    monkeypatch.setattr(audit, "logger", recorder)
    client = TestClient(_app())

    response = client.get("/ok", headers={"Authorization": f"Bearer {make_token('u1', 'org-1', 'MENTOR')}"})
    assert response.status_code == 200
    assert response.json()["value"] == 1

    record = recorder.records[-1]
    assert record["path"] == "/ok"
    assert record["status"] == 200
    assert record["jwt_sub"] == "u1"
    assert record["jwt_org"] == "org-1"
    assert record["response_audit"] == {"event": "login", "userId": "u1"}


def test_audit_records_error_detail(monkeypatch):
    recorder = RecordingLogger()
    monkeypatch.setattr(audit, "logger", recorder)
    client = TestClient(_app())

    response = client.get("/missing", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 404
    record = recorder.records[-1]
    assert record["status"] == 404
    assert record["message"] == "Nothing here"
    assert record["jwt_present"] is True
    assert "jwt_sub" not in record


def test_token_identity_ignores_garbage():
    assert audit.token_identity("Bearer") == {"jwt_present": True}

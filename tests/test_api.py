"""
Tests for the FastAPI job endpoints (pipeline mocked).
"""
import asyncio
import json
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from scenariogen.api import app as app_module
from scenariogen.orchestrator.orchestrator import Orchestrator
from scenariogen.utils.errors import ConfigError
from scenariogen.utils.schema import GenerationRequest, GenerationResult


@pytest.fixture
def client():
    app_module.jobs.clear()
    return TestClient(app_module.app)


class StubOrchestrator:
    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error
        self.calls = []
        self.settings = SimpleNamespace(language="python", artifacts_dir="logs")

    def run(self, url, scenario, **kwargs):
        self.calls.append((url, scenario, kwargs))
        if self.error:
            raise self.error
        return self.result


def _new_job(job_id="job-1"):
    app_module.jobs[job_id] = {"job_id": job_id, "status": "pending", "result": None, "error": None}
    return job_id


def test_health(client):
    assert client.get("/api/health").json() == {"status": "ok"}


def test_generate_creates_pending_job(client, monkeypatch):
    started = []

    async def fake_run_job(job_id, request):
        started.append((job_id, request.url))

    monkeypatch.setattr(app_module, "run_job", fake_run_job)
    resp = client.post("/api/generate", json={"url": "https://example.com", "scenario": "login"})

    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "pending"
    job = client.get(f"/api/jobs/{body['job_id']}").json()
    assert job["url"] == "https://example.com"
    assert job["scenario"] == "login"


def test_generate_validates_input(client):
    assert client.post("/api/generate", json={"url": "https://example.com"}).status_code == 422
    assert client.post("/api/generate", json={"url": " ", "scenario": "login"}).status_code == 422


@pytest.mark.parametrize("output_path", ["/etc/cron.d/evil.py", "../outside.py", "tests/../../x.py", "C:\\temp\\t.py"])
def test_generate_rejects_unsafe_output_path(client, monkeypatch, output_path):
    monkeypatch.setattr(app_module, "run_job", lambda job_id, request: None)
    resp = client.post("/api/generate", json={"url": "https://example.com", "scenario": "login",
                                               "output_path": output_path})

    assert resp.status_code == 422
    assert app_module.jobs == {}


def test_generate_rejects_unknown_language(client):
    resp = client.post("/api/generate", json={"url": "https://example.com", "scenario": "login",
                                               "language": "ruby"})
    assert resp.status_code == 422
    assert app_module.jobs == {}


def test_job_output_path_is_confined_to_job_dir():
    assert app_module.job_output_path("j1", None, "python") == str(app_module.OUTPUT_ROOT / "j1" / "test_generated.py")
    assert app_module.job_output_path("j1", None, "javascript").endswith("test_generated.js")
    assert app_module.job_output_path("j1", "smoke/test_login.py", "python") == \
        str(app_module.OUTPUT_ROOT / "j1" / "smoke" / "test_login.py")


def test_jobs_do_not_share_files(client, monkeypatch, tmp_path, settings, fake_client_factory):
    monkeypatch.chdir(tmp_path)
    page = '<input id="search"><button id="go">Go</button>'
    codes = {"a": "def test_a():\n    pass", "b": "def test_b():\n    pass"}
    orchestrators = []

    def make_orchestrator():
        name = "ab"[len(orchestrators)]
        client_ = fake_client_factory([json.dumps({"tags": [{"tag": "input", "id": "search"}]}), codes[name]])
        orch = Orchestrator(settings, client=client_, scraper=SimpleNamespace(scrape=lambda url: page),
                            verbose=False)
        orchestrators.append(orch)
        return orch

    monkeypatch.setattr(app_module, "get_orchestrator", make_orchestrator)

    request = GenerationRequest(url="https://example.com", scenario="search")
    job_a, job_b = _new_job("job-a"), _new_job("job-b")
    asyncio.run(app_module.run_job(job_a, request))
    asyncio.run(app_module.run_job(job_b, request))

    path_a = app_module.jobs[job_a]["result"]["output_path"]
    path_b = app_module.jobs[job_b]["result"]["output_path"]
    assert path_a != path_b
    assert (tmp_path / path_a).read_text(encoding="utf-8").startswith("def test_a")
    assert (tmp_path / path_b).read_text(encoding="utf-8").startswith("def test_b")

    logs = tmp_path / "logs"
    assert "test_a" in json.loads((logs / job_a / "result.json").read_text())["code"]
    assert "test_b" in json.loads((logs / job_b / "result.json").read_text())["code"]


def test_unknown_job_is_404(client):
    assert client.get("/api/jobs/nope").status_code == 404
    assert client.get("/api/jobs/nope/code").status_code == 404


def test_run_job_completed(client, monkeypatch):
    result = GenerationResult(url="https://example.com", scenario="login", ok=True,
                              code="def test_login():\n    pass\n", output_path="generated/t.py")
    stub = StubOrchestrator(result=result)
    monkeypatch.setattr(app_module, "get_orchestrator", lambda: stub)

    job_id = _new_job()
    request = GenerationRequest(url="https://example.com", scenario="login", language="python")
    asyncio.run(app_module.run_job(job_id, request))

    job = client.get(f"/api/jobs/{job_id}").json()
    assert job["status"] == "completed"
    assert job["result"]["output_path"] == "generated/t.py"
    assert stub.calls[0][2]["language"] == "python"

    code = client.get(f"/api/jobs/{job_id}/code")
    assert code.status_code == 200
    assert code.text.startswith("def test_login")


def test_run_job_failed_result(client, monkeypatch):
    result = GenerationResult(url="https://example.com", scenario="login", ok=False, error="scrape: timeout")
    monkeypatch.setattr(app_module, "get_orchestrator", lambda: StubOrchestrator(result=result))

    job_id = _new_job()
    asyncio.run(app_module.run_job(job_id, GenerationRequest(url="https://example.com", scenario="login")))

    job = client.get(f"/api/jobs/{job_id}").json()
    assert job["status"] == "failed"
    assert job["error"] == "scrape: timeout"
    assert client.get(f"/api/jobs/{job_id}/code").status_code == 404


def test_run_job_config_error(client, monkeypatch):
    def broken():
        raise ConfigError("GROQ_API_KEY not set")

    monkeypatch.setattr(app_module, "get_orchestrator", broken)

    job_id = _new_job()
    asyncio.run(app_module.run_job(job_id, GenerationRequest(url="https://example.com", scenario="login")))

    job = app_module.jobs[job_id]
    assert job["status"] == "failed"
    assert "GROQ_API_KEY" in job["error"]
    assert job["finished_at"] is not None


if __name__ == "__main__":
    pytest.main([__file__, "-v"])

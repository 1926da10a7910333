"""HTTP and serverless entry points."""

from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from drivenmicro import FrameworkConfig, bootstrap
from drivenmicro.adapters import (
    ApiConfig,
    LambdaConfig,
    create_api_entrypoint,
    create_lambda_handler,
    start_api_server,
)
from drivenmicro.config import ApplicationConfig, Environment
from drivenmicro.persistence.memory import MemoryStore, bind_memory_persistence

from .fakes import CreateJob, CreateJobHandler, ExplodingHandler, JobRequest, create_job_command


@pytest.fixture
def jobs_store():
    return MemoryStore()


@pytest.fixture
def bus(app_config, jobs_store):
    return bootstrap(FrameworkConfig(
        command_handlers={CreateJob: CreateJobHandler},
        dependencies=lambda c: bind_memory_persistence(c, jobs_store),
        app_config=app_config,
    ))


@pytest.fixture
def failing_bus(app_config):
    return bootstrap(FrameworkConfig(
        command_handlers={CreateJob: ExplodingHandler},
        dependencies=bind_memory_persistence,
        app_config=app_config,
    ))


def api_client(message_bus, base_path="/process"):
    app = create_api_entrypoint(ApiConfig(
        message_bus=message_bus,
        request_constructor=JobRequest,
        create_command=create_job_command,
        base_path=base_path,
    ))
    return TestClient(app)


class TestApiEntrypoint:

    def test_processes_request(self, bus, jobs_store):
        response = api_client(bus).post("/process", json={"external_job_id": "job-1", "priority": 2})

        assert response.status_code == 200
        assert response.json() == {
            "message": "Request processed successfully",
            "status": "completed",
            "external_job_id": "job-1",
        }
        _, payload = jobs_store.load("job-1")
        assert payload["data"] == {"priority": 2}

    def test_validation_failure(self, bus, jobs_store):
        response = api_client(bus).post("/process", json={"priority": "high"})

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "Validation failed"
        assert len(body["details"]) == 2
        assert len(jobs_store) == 0

    def test_malformed_json(self, bus):
        response = api_client(bus).post(
            "/process", content=b"{not json", headers={"content-type": "application/json"}
        )

        assert response.status_code == 400
        assert response.json()["details"] == ["Request body is not valid JSON"]

    def test_chain_failure(self, failing_bus):
        response = api_client(failing_bus).post("/process", json={"external_job_id": "job-1"})

        assert response.status_code == 500
        assert response.json() == {"error": "Internal server error", "message": "boom"}

    def test_custom_base_path(self, bus):
        client = api_client(bus, base_path="/jobs")
        assert client.post("/jobs", json={"external_job_id": "job-1"}).status_code == 200
        assert client.post("/process", json={"external_job_id": "job-2"}).status_code in (404, 405)

    def test_health(self, bus):
        response = api_client(bus).get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["timestamp"].endswith("+00:00")

    def test_server_not_started_in_production(self, bus, monkeypatch):
        calls = []
        monkeypatch.setattr("drivenmicro.adapters.api.uvicorn.run", lambda *a, **kw: calls.append(kw))
        app = api_client(bus).app

        start_api_server(app, config=ApplicationConfig.for_environment(Environment.PRODUCTION))
        assert calls == []

        start_api_server(app, port=4100, config=ApplicationConfig.for_environment(Environment.DEVELOPMENT))
        assert calls == [{"host": "localhost", "port": 4100}]


class TestLambdaEntrypoint:

    def make_handler(self, message_bus):
        return create_lambda_handler(LambdaConfig(
            message_bus=message_bus,
            request_constructor=JobRequest,
            create_command=create_job_command,
        ))

    def test_processes_event(self, bus, jobs_store):
        handler = self.make_handler(bus)
        result = handler({"external_job_id": "job-1"}, SimpleNamespace(aws_request_id="req-1"))

        assert result == {
            "statusCode": 200,
            "external_job_id": "job-1",
            "message": "Request processed successfully",
            "requestId": "req-1",
        }
        assert "job-1" in jobs_store

    def test_validation_failure(self, bus):
        handler = self.make_handler(bus)
        result = handler({"external_job_id": ""}, SimpleNamespace(aws_request_id="req-2"))

        assert result["statusCode"] == 400
        assert result["error"].startswith("Validation failed: external_job_id:")
        assert result["external_job_id"] == ""
        assert result["message"] == "Request validation failed"
        assert result["requestId"] == "req-2"

    def test_chain_failure(self, failing_bus):
        handler = self.make_handler(failing_bus)
        result = handler({"external_job_id": "job-1"}, SimpleNamespace(aws_request_id="req-3"))

        assert result == {
            "statusCode": 500,
            "error": "boom",
            "external_job_id": "job-1",
            "message": "Request processing failed",
            "requestId": "req-3",
        }

    def test_context_without_request_id(self, bus):
        handler = self.make_handler(bus)
        result = handler({"external_job_id": "job-1"}, None)

        assert result["statusCode"] == 200
        assert result["requestId"] is None

    def test_non_mapping_event(self, bus):
        handler = self.make_handler(bus)
        result = handler("job-1", SimpleNamespace(aws_request_id="req-4"))

        assert result["statusCode"] == 400
        assert result["external_job_id"] is None

    @pytest.mark.asyncio
    async def test_rejects_call_inside_running_loop(self, bus, jobs_store):
        handler = self.make_handler(bus)

        with pytest.raises(RuntimeError, match="outside a running event loop"):
            handler({"external_job_id": "job-1"}, SimpleNamespace(aws_request_id="req-5"))
        assert "job-1" not in jobs_store

# tests/services/test_background_check_app.py
"""
Тесты HTTP API Background Check Service.
"""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch
from uuid import UUID

import pytest
from fastapi.testclient import TestClient

from src.common.constants import ApplicationStatus, UserRole
from src.core.onboarding.authorization import AdminContext, AuthorizationGate
from src.core.onboarding.errors import Forbidden, NotFound, Unauthenticated, UpstreamFailure
from src.core.onboarding.models import ApplicationStats, DriverApplication, ReviewOutcome, SecondaryEffect
from src.core.onboarding.service import BackgroundCheckWorkflow
from src.core.onboarding.verification import evaluate_background_check
from src.services.background_check.app import create_app
from src.services.background_check.dependencies import get_gate, get_workflow

APP_ID = "00000000-0000-0000-0000-00000000c001"
PATHS = ["/functions/v1/background-check", "/api/v1/background-check"]
AUTH = {"Authorization": "Bearer admin-token"}


@pytest.fixture
def gate(admin_context: AdminContext) -> MagicMock:
    gate = MagicMock(spec=AuthorizationGate)
    gate.authorize = AsyncMock(return_value=admin_context)
    return gate


@pytest.fixture
def workflow() -> MagicMock:
    workflow = MagicMock(spec=BackgroundCheckWorkflow)
    workflow.execute = AsyncMock(
        return_value=ReviewOutcome(
            message="Background check initiated",
            status=ApplicationStatus.BACKGROUND_CHECK_IN_PROGRESS,
        )
    )
    workflow.list_applications = AsyncMock(return_value=[])
    workflow.application_stats = AsyncMock(return_value=ApplicationStats())
    return workflow


@pytest.fixture
def client(gate: MagicMock, workflow: MagicMock) -> TestClient:
    app = create_app(use_lifespan=False)
    app.dependency_overrides[get_gate] = lambda: gate
    app.dependency_overrides[get_workflow] = lambda: workflow
    return TestClient(app)


class TestPreflight:
    @pytest.mark.parametrize("path", PATHS)
    def test_options(self, client: TestClient, path: str) -> None:
        response = client.options(path)

        assert response.status_code == 200
        assert response.content == b""
        assert response.headers["access-control-allow-origin"] == "*"
        assert response.headers["access-control-allow-headers"] == (
            "authorization, x-client-info, apikey, content-type"
        )


class TestBackgroundCheckEndpoint:
    @pytest.mark.parametrize("path", PATHS)
    def test_initiate(self, client: TestClient, workflow: MagicMock, path: str) -> None:
        response = client.post(path, json={"applicationId": APP_ID, "action": "initiate"}, headers=AUTH)

        assert response.status_code == 200
        assert response.json() == {
            "message": "Background check initiated",
            "status": "background_check_in_progress",
        }
        assert response.headers["access-control-allow-origin"] == "*"

        action = workflow.execute.call_args.args[0]
        assert action.name == "initiate"
        assert action.application_id == UUID(APP_ID)

    def test_complete_includes_report(
        self,
        client: TestClient,
        workflow: MagicMock,
        sample_application: DriverApplication,
    ) -> None:
        report = evaluate_background_check(sample_application)
        workflow.execute.return_value = ReviewOutcome(
            message="Background check passed",
            status=ApplicationStatus.APPROVED,
            report=report,
            secondary=[SecondaryEffect(name="driver_role_promotion", succeeded=True)],
        )

        response = client.post(PATHS[0], json={"applicationId": APP_ID, "action": "complete"}, headers=AUTH)

        body = response.json()
        assert response.status_code == 200
        assert body["status"] == "approved"
        assert body["report"]["passed"] is True
        assert body["report"]["report_id"] == report.report_id
        assert set(body["report"]["checks"]) >= {"identityVerified", "drivingRecordCheck"}
        assert "warnings" not in body

    def test_complete_with_failed_promotion_returns_warnings(
        self,
        client: TestClient,
        workflow: MagicMock,
        sample_application: DriverApplication,
    ) -> None:
        workflow.execute.return_value = ReviewOutcome(
            message="Background check passed",
            status=ApplicationStatus.APPROVED,
            report=evaluate_background_check(sample_application),
            secondary=[
                SecondaryEffect(name="driver_role_promotion", succeeded=False, error="permission denied")
            ],
        )

        response = client.post(PATHS[0], json={"applicationId": APP_ID, "action": "complete"}, headers=AUTH)

        assert response.status_code == 200
        assert response.json()["warnings"] == ["driver_role_promotion failed: permission denied"]

    def test_unknown_action(self, client: TestClient, workflow: MagicMock) -> None:
        response = client.post(PATHS[0], json={"applicationId": APP_ID, "action": "finalize"}, headers=AUTH)

        assert response.status_code == 400
        assert response.json() == {"error": "Unknown action: finalize"}
        workflow.execute.assert_not_called()

    def test_missing_application_id(self, client: TestClient, workflow: MagicMock) -> None:
        response = client.post(PATHS[0], json={"action": "initiate"}, headers=AUTH)

        assert response.status_code == 400
        assert response.json() == {"error": "Application ID is required"}
        workflow.execute.assert_not_called()

    def test_invalid_json(self, client: TestClient) -> None:
        response = client.post(
            PATHS[0],
            content=b"{not json",
            headers={**AUTH, "Content-Type": "application/json"},
        )

        assert response.status_code == 400
        assert response.json()["error"].startswith("Invalid request body")

    def test_non_object_body(self, client: TestClient, workflow: MagicMock) -> None:
        response = client.post(PATHS[0], json=["initiate"], headers=AUTH)

        assert response.status_code == 400
        assert response.json()["error"].startswith("Invalid request body")
        workflow.execute.assert_not_called()

    def test_empty_body(self, client: TestClient, workflow: MagicMock) -> None:
        response = client.post(PATHS[0], content=b"", headers=AUTH)

        assert response.status_code == 400
        assert response.json() == {"error": "Application ID is required"}
        workflow.execute.assert_not_called()

    def test_unauthenticated(self, client: TestClient, gate: MagicMock, workflow: MagicMock) -> None:
        gate.authorize.side_effect = Unauthenticated("Authorization header is missing")

        response = client.post(PATHS[0], json={"applicationId": APP_ID, "action": "initiate"})

        assert response.status_code == 400
        assert response.json() == {"error": "Authorization header is missing"}
        assert response.headers["access-control-allow-origin"] == "*"
        workflow.execute.assert_not_called()

    def test_forbidden_makes_no_mutation(self, client: TestClient, gate: MagicMock, workflow: MagicMock) -> None:
        gate.authorize.side_effect = Forbidden("Only admins can perform background checks")

        response = client.post(PATHS[0], json={"applicationId": APP_ID, "action": "complete"}, headers=AUTH)

        assert response.status_code == 400
        assert response.json() == {"error": "Only admins can perform background checks"}
        workflow.execute.assert_not_called()

    def test_gate_receives_header(self, client: TestClient, gate: MagicMock) -> None:
        client.post(PATHS[0], json={"applicationId": APP_ID, "action": "check_status"}, headers=AUTH)

        gate.authorize.assert_awaited_once_with("Bearer admin-token")

    def test_not_found(self, client: TestClient, workflow: MagicMock) -> None:
        workflow.execute.side_effect = NotFound(f"Application not found: {APP_ID}")

        response = client.post(PATHS[0], json={"applicationId": APP_ID, "action": "check_status"}, headers=AUTH)

        assert response.status_code == 400
        assert response.json() == {"error": f"Application not found: {APP_ID}"}

    def test_upstream_failure(self, client: TestClient, workflow: MagicMock) -> None:
        workflow.execute.side_effect = UpstreamFailure("Failed to update application: timeout")

        response = client.post(PATHS[0], json={"applicationId": APP_ID, "action": "complete"}, headers=AUTH)

        assert response.status_code == 400
        assert response.json() == {"error": "Failed to update application: timeout"}

    def test_unexpected_error_is_400(self, client: TestClient, workflow: MagicMock) -> None:
        workflow.execute.side_effect = RuntimeError("pool is closed")

        response = client.post(PATHS[0], json={"applicationId": APP_ID, "action": "complete"}, headers=AUTH)

        assert response.status_code == 400
        assert response.json() == {"error": "pool is closed"}


class TestAdminReadEndpoints:
    def test_list_applications(
        self,
        client: TestClient,
        workflow: MagicMock,
        sample_application: DriverApplication,
    ) -> None:
        workflow.list_applications.return_value = [sample_application]

        response = client.get("/api/v1/applications?limit=5", headers=AUTH)

        assert response.status_code == 200
        items = response.json()["applications"]
        assert items[0]["id"] == APP_ID
        assert items[0]["driver"]["email"] == "driver@example.com"
        workflow.list_applications.assert_awaited_once_with(5)

    def test_list_applications_requires_admin(
        self,
        client: TestClient,
        gate: MagicMock,
        workflow: MagicMock,
    ) -> None:
        gate.authorize.side_effect = Forbidden("Only admins can perform background checks")

        response = client.get("/api/v1/applications", headers=AUTH)

        assert response.status_code == 400
        workflow.list_applications.assert_not_called()

    def test_list_applications_bad_limit(self, client: TestClient) -> None:
        response = client.get("/api/v1/applications?limit=abc", headers=AUTH)

        assert response.status_code == 400
        assert "error" in response.json()

    def test_stats(self, client: TestClient, workflow: MagicMock) -> None:
        workflow.application_stats.return_value = ApplicationStats(
            total=4, pending=3, by_status={"pending": 2, "documents_submitted": 1, "approved": 1}
        )

        response = client.get("/api/v1/applications/stats", headers=AUTH)

        assert response.status_code == 200
        assert response.json() == {
            "total": 4,
            "pending": 3,
            "by_status": {"pending": 2, "documents_submitted": 1, "approved": 1},
        }

    def test_list_applications_unexpected_error_is_400(self, client: TestClient, workflow: MagicMock) -> None:
        workflow.list_applications.side_effect = ValueError("'archived' is not a valid ApplicationStatus")

        response = client.get("/api/v1/applications", headers=AUTH)

        assert response.status_code == 400
        assert response.json() == {"error": "'archived' is not a valid ApplicationStatus"}
        assert response.headers["access-control-allow-origin"] == "*"

    def test_stats_unexpected_error_is_400(self, client: TestClient, workflow: MagicMock) -> None:
        workflow.application_stats.side_effect = RuntimeError("pool is closed")

        response = client.get("/api/v1/applications/stats", headers=AUTH)

        assert response.status_code == 400
        assert response.json() == {"error": "pool is closed"}


class TestHealth:
    def test_health_without_dependencies(self, client: TestClient) -> None:
        with patch("src.services.background_check.dependencies._db", None), \
             patch("src.services.background_check.dependencies._event_bus", None):
            response = client.get("/health")

        body = response.json()
        assert response.status_code == 200
        assert body["service"] == "background_check"
        assert body["dependencies"]["postgres"] == "unhealthy"
        assert body["status"] == "degraded"

    def test_health_with_database(self, client: TestClient) -> None:
        db = MagicMock()
        db.health_check = AsyncMock(return_value=True)

        with patch("src.services.background_check.dependencies._db", db), \
             patch("src.config.settings.rabbitmq.RABBITMQ_ENABLED", False):
            response = client.get("/health")

        body = response.json()
        assert body["dependencies"] == {"postgres": "healthy"}
        assert body["status"] == "healthy"

# src/services/background_check/routes.py
"""
HTTP API проверки биографии водителей.

Любая ошибка возвращается как 400 {"error": "..."}.
CORS заголовки добавляются ко всем ответам в app.py.
"""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Depends, Header, Query, Request, Response
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, ValidationError

from src.common.constants import DEFAULT_APPLICATIONS_LIMIT
from src.common.logger import log_error
from src.core.onboarding.actions import parse_action, parse_application_id
from src.core.onboarding.authorization import AuthorizationGate
from src.core.onboarding.errors import InvalidInput, OnboardingError
from src.core.onboarding.models import ReviewOutcome
from src.core.onboarding.service import BackgroundCheckWorkflow
from src.services.background_check.dependencies import get_gate, get_workflow
from src.shared.models.common import ErrorResponse

BACKGROUND_CHECK_PATHS = ("/functions/v1/background-check", "/api/v1/background-check")

router = APIRouter(tags=["Background check"])


class BackgroundCheckRequest(BaseModel):
    """Тело запроса действия над заявкой."""

    model_config = ConfigDict(extra="ignore")

    applicationId: Optional[str] = None
    action: Optional[str] = None


def error_response(message: str) -> JSONResponse:
    """Единый ответ с ошибкой."""
    return JSONResponse(status_code=400, content=ErrorResponse(error=message).model_dump())


def outcome_to_body(outcome: ReviewOutcome) -> dict[str, Any]:
    """Тело успешного ответа: message, status, report и warnings (если есть)."""
    body: dict[str, Any] = {"message": outcome.message, "status": outcome.status.value}
    if outcome.report is not None:
        body["report"] = outcome.report.model_dump(mode="json")
    if outcome.warnings:
        body["warnings"] = outcome.warnings
    return body


async def _read_request(request: Request) -> BackgroundCheckRequest:
    raw = await request.body()
    try:
        return BackgroundCheckRequest.model_validate_json(raw or b"{}")
    except ValidationError as e:
        raise InvalidInput(f"Invalid request body: {e}") from None


# =============================================================================
# ДЕЙСТВИЯ НАД ЗАЯВКОЙ
# =============================================================================

async def background_check_preflight() -> Response:
    """CORS preflight."""
    return Response(status_code=200)


async def background_check(
    request: Request,
    authorization: Optional[str] = Header(None),
    gate: AuthorizationGate = Depends(get_gate),
    workflow: BackgroundCheckWorkflow = Depends(get_workflow),
) -> JSONResponse:
    """Выполняет действие initiate / check_status / complete над заявкой."""
    payload: Optional[BackgroundCheckRequest] = None
    try:
        context = await gate.authorize(authorization)
        payload = await _read_request(request)
        application_id = parse_application_id(payload.applicationId)
        action = parse_action(payload.action, application_id)
        outcome = await workflow.execute(action, context)
    except OnboardingError as e:
        await log_error(
            e.message,
            extra={
                "kind": e.kind,
                "action": payload.action if payload else None,
                "application_id": payload.applicationId if payload else None,
                "step": "request",
            },
        )
        return error_response(e.message)
    except Exception as e:
        await log_error(
            f"Необработанная ошибка проверки биографии: {e}",
            extra={
                "action": payload.action if payload else None,
                "application_id": payload.applicationId if payload else None,
                "step": "request",
            },
            exc_info=True,
        )
        return error_response(str(e))

    return JSONResponse(status_code=200, content=outcome_to_body(outcome))


for _path in BACKGROUND_CHECK_PATHS:
    router.add_api_route(
        _path,
        background_check,
        methods=["POST"],
        responses={400: {"model": ErrorResponse}},
    )
    router.add_api_route(_path, background_check_preflight, methods=["OPTIONS"])


# =============================================================================
# ЧТЕНИЕ ДЛЯ АДМИНИСТРАТОРА
# =============================================================================

@router.get("/api/v1/applications", responses={400: {"model": ErrorResponse}})
async def list_applications(
    limit: int = Query(DEFAULT_APPLICATIONS_LIMIT),
    authorization: Optional[str] = Header(None),
    gate: AuthorizationGate = Depends(get_gate),
    workflow: BackgroundCheckWorkflow = Depends(get_workflow),
) -> JSONResponse:
    """Последние заявки водителей, новые первыми."""
    try:
        await gate.authorize(authorization)
        applications = await workflow.list_applications(limit)
    except OnboardingError as e:
        await log_error(e.message, extra={"kind": e.kind, "step": "list_applications"})
        return error_response(e.message)
    except Exception as e:
        await log_error(
            f"Необработанная ошибка чтения заявок: {e}",
            extra={"step": "list_applications"},
            exc_info=True,
        )
        return error_response(str(e))

    return JSONResponse(
        status_code=200,
        content={"applications": [a.model_dump(mode="json") for a in applications]},
    )


@router.get("/api/v1/applications/stats", responses={400: {"model": ErrorResponse}})
async def application_stats(
    authorization: Optional[str] = Header(None),
    gate: AuthorizationGate = Depends(get_gate),
    workflow: BackgroundCheckWorkflow = Depends(get_workflow),
) -> JSONResponse:
    """Количество заявок по статусам."""
    try:
        await gate.authorize(authorization)
        stats = await workflow.application_stats()
    except OnboardingError as e:
        await log_error(e.message, extra={"kind": e.kind, "step": "application_stats"})
        return error_response(e.message)
    except Exception as e:
        await log_error(
            f"Необработанная ошибка подсчёта заявок: {e}",
            extra={"step": "application_stats"},
            exc_info=True,
        )
        return error_response(str(e))

    return JSONResponse(status_code=200, content=stats.model_dump(mode="json"))

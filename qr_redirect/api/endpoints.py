"""
FastAPI Endpoints for QR Redirect Service

This module defines all REST API endpoints with minimal logic.
Endpoints only handle:
- Request validation (Pydantic models)
- Authentication (bearer token dependency)
- Error handling and HTTP responses
- Delegating to service layer

Routes:
- GET    /r/{slug}                        public redirect + visit recording
- POST   /api/qr-codes                    create
- GET    /api/qr-codes                    list caller's QR codes
- GET    /api/qr-codes/{id}               get one
- GET    /api/qr-codes/{id}/analytics     analytics summary
- PUT    /api/qr-codes/{id}/update        update title/targetUrl/color
- DELETE /api/qr-codes/{id}/delete        delete with all visits
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from qr_redirect.api.schemas import (
    AnalyticsResponse,
    QRCodeCreateRequest,
    QRCodeResponse,
    QRCodeUpdateRequest,
)
from qr_redirect.core.client_manager import get_geolocation_service
from qr_redirect.core.exceptions import (
    ForbiddenError,
    NotFoundError,
    QRServiceException,
    ValidationError,
)
from qr_redirect.core.request_context import build_request_context
from qr_redirect.core.security import AuthenticatedUser, get_current_user
from qr_redirect.core.setting import settings
from qr_redirect.db.session import get_session
from qr_redirect.db.sql_storage import SQLStorage
from qr_redirect.services.analytics_service import AnalyticsService
from qr_redirect.services.geolocation import GeolocationService
from qr_redirect.services.qr_code_service import QRCodeService
from qr_redirect.services.redirect_service import RedirectService, SlugResolver
from qr_redirect.services.visit_recorder import VisitRecorderService

logger = logging.getLogger(__name__)

router = APIRouter()


def get_storage(session: AsyncSession = Depends(get_session)) -> SQLStorage:
    return SQLStorage(session)


def _http_error(action: str, error: Exception) -> HTTPException:
    """
    Map a service error to an HTTPException.

    Unexpected failures get a generic message; the underlying error is
    only appended outside production.
    """
    if isinstance(error, ValidationError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(error))
    if isinstance(error, ForbiddenError):
        return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(error))
    if isinstance(error, NotFoundError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="QR code not found")

    logger.error(f"Failed to {action}: {str(error)}", exc_info=error)
    detail = f"Failed to {action}"
    if not settings.is_production:
        detail = f"{detail}: {str(error)}"
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail)


@router.get(
    "/r/{slug}",
    status_code=status.HTTP_302_FOUND,
    summary="Redirect to target URL",
    description="Resolves a QR code slug, records the visit and redirects to the target URL",
    tags=["Redirect"],
)
async def redirect_to_target(
    slug: str,
    request: Request,
    storage: SQLStorage = Depends(get_storage),
    geolocation: GeolocationService = Depends(get_geolocation_service),
) -> RedirectResponse:
    """
    Redirect to the target URL of a QR code.

    Raises:
        HTTPException 404: If the slug is unknown
        HTTPException 500: On unexpected failure
    """
    redirect_service = RedirectService(
        resolver=SlugResolver(storage),
        recorder=VisitRecorderService(storage, geolocation),
    )

    try:
        target_url = await redirect_service.handle_redirect(slug, build_request_context(request))
    except NotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="QR code not found"
        )
    except Exception as e:
        logger.error(f"Redirect error for {slug}: {str(e)}", exc_info=True)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error processing redirect"
        )

    return RedirectResponse(url=target_url, status_code=status.HTTP_302_FOUND)


@router.post(
    "/api/qr-codes",
    response_model=QRCodeResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a QR code",
    tags=["QR Codes"],
)
async def create_qr_code(
    body: QRCodeCreateRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    storage: SQLStorage = Depends(get_storage),
) -> QRCodeResponse:
    """
    Create a QR code owned by the caller.

    Raises:
        HTTPException 400: If validation fails or the slug is taken
    """
    service = QRCodeService(storage, default_color=settings.DEFAULT_QR_COLOR)
    try:
        qr_code = await service.create(
            user_id=user.uid,
            title=body.title,
            target_url=body.target_url,
            slug=body.slug,
            color=body.color,
        )
    except QRServiceException as e:
        raise _http_error("create QR code", e)

    return QRCodeResponse.from_record(qr_code, settings.BASE_URL)


@router.get(
    "/api/qr-codes",
    response_model=List[QRCodeResponse],
    summary="List the caller's QR codes",
    tags=["QR Codes"],
)
async def list_qr_codes(
    user: AuthenticatedUser = Depends(get_current_user),
    storage: SQLStorage = Depends(get_storage),
) -> List[QRCodeResponse]:
    try:
        qr_codes = await QRCodeService(storage).list_for_user(user.uid)
    except QRServiceException as e:
        raise _http_error("list QR codes", e)

    return [QRCodeResponse.from_record(q, settings.BASE_URL) for q in qr_codes]


@router.get(
    "/api/qr-codes/{qr_code_id}",
    response_model=QRCodeResponse,
    summary="Get a QR code",
    tags=["QR Codes"],
)
async def get_qr_code(
    qr_code_id: str,
    user: AuthenticatedUser = Depends(get_current_user),
    storage: SQLStorage = Depends(get_storage),
) -> QRCodeResponse:
    try:
        qr_code = await QRCodeService(storage).get_owned(qr_code_id, user.uid)
    except QRServiceException as e:
        raise _http_error("load QR code", e)

    return QRCodeResponse.from_record(qr_code, settings.BASE_URL)


@router.get(
    "/api/qr-codes/{qr_code_id}/analytics",
    response_model=AnalyticsResponse,
    summary="Get QR code analytics",
    description="Visit totals, unique visitors and breakdowns by date, country and device",
    tags=["QR Codes"],
)
async def get_qr_code_analytics(
    qr_code_id: str,
    user: AuthenticatedUser = Depends(get_current_user),
    storage: SQLStorage = Depends(get_storage),
) -> AnalyticsResponse:
    try:
        qr_code = await QRCodeService(storage).get_owned(qr_code_id, user.uid)
        summary = await AnalyticsService(
            storage, recent_limit=settings.RECENT_VISITS_LIMIT
        ).aggregate(qr_code)
    except QRServiceException as e:
        raise _http_error("compute analytics", e)

    return AnalyticsResponse.from_summary(summary, settings.BASE_URL)


@router.put(
    "/api/qr-codes/{qr_code_id}/update",
    response_model=QRCodeResponse,
    summary="Update a QR code",
    tags=["QR Codes"],
)
async def update_qr_code(
    qr_code_id: str,
    body: QRCodeUpdateRequest,
    user: AuthenticatedUser = Depends(get_current_user),
    storage: SQLStorage = Depends(get_storage),
) -> QRCodeResponse:
    try:
        qr_code = await QRCodeService(storage).update(
            qr_code_id,
            user.uid,
            title=body.title,
            target_url=body.target_url,
            color=body.color,
        )
    except QRServiceException as e:
        raise _http_error("update QR code", e)

    return QRCodeResponse.from_record(qr_code, settings.BASE_URL)


@router.delete(
    "/api/qr-codes/{qr_code_id}/delete",
    response_model=QRCodeResponse,
    summary="Delete a QR code and its visits",
    tags=["QR Codes"],
)
async def delete_qr_code(
    qr_code_id: str,
    user: AuthenticatedUser = Depends(get_current_user),
    storage: SQLStorage = Depends(get_storage),
) -> QRCodeResponse:
    try:
        qr_code = await QRCodeService(storage).delete(qr_code_id, user.uid)
    except QRServiceException as e:
        raise _http_error("delete QR code", e)

    return QRCodeResponse.from_record(qr_code, settings.BASE_URL)

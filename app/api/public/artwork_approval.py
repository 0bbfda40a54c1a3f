"""Artwork link: the customer reviews an artwork proof and, once it is
approved, the quote itself."""
from typing import Annotated

from fastapi import APIRouter, Depends, Request
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError

from app.api.deps import DbSession
from app.schemas.artwork import ArtworkResponseRequest, ArtworkResponseResult, PublicArtworkView
from app.schemas.common import ApiResponse, ApiMessageResponse
from app.security.rate_limiter import rate_limit_public
from app.services import quote_workflow
from app.services.activity_tracker import get_client_ip
from app.services.email_service import EmailService, get_email_service

router = APIRouter()


async def _read_response(request: Request) -> ArtworkResponseRequest:
    """Parse the customer's answer. Called only once the link is known good."""
    try:
        payload = await request.json()
    except ValueError:
        payload = None
    try:
        return ArtworkResponseRequest.model_validate(payload)
    except ValidationError as e:
        raise RequestValidationError(e.errors(include_url=False), body=payload)


@router.get("/{artwork_token}", response_model=ApiResponse[PublicArtworkView])
async def get_artwork(artwork_token: str, db: DbSession):
    quote = await quote_workflow.get_artwork_view(db, artwork_token)
    return ApiResponse[PublicArtworkView](data=PublicArtworkView.from_quote(quote))


@router.post(
    "/{artwork_token}",
    response_model=ApiMessageResponse[ArtworkResponseResult],
    dependencies=[Depends(rate_limit_public)],
    openapi_extra={
        "requestBody": {
            "required": True,
            "content": {
                "application/json": {
                    "schema": ArtworkResponseRequest.model_json_schema(by_alias=True),
                },
            },
        },
    },
)
async def respond_to_artwork(
    artwork_token: str,
    request: Request,
    db: DbSession,
    email_service: Annotated[EmailService, Depends(get_email_service)],
):
    # Unknown or unshared links answer 404 / NOT_SHARED before the body is read
    await quote_workflow.get_artwork_view(db, artwork_token)
    body = await _read_response(request)

    outcome = await quote_workflow.respond_to_artwork(
        db,
        artwork_token,
        body.action,
        body.notes,
        body.type,
        email_service=email_service,
        ip_address=get_client_ip(request),
    )
    return ApiMessageResponse[ArtworkResponseResult](
        data=ArtworkResponseResult(
            action=outcome.action,
            type=outcome.type,
            responded_at=outcome.responded_at,
        ),
        message=outcome.message,
    )

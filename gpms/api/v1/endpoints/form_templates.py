"""Form template endpoints."""

from uuid import UUID

from fastapi import APIRouter, Query, status

from gpms.dependencies import DatabaseSession, Tenant
from gpms.schemas.enums import FormTemplateCategory, FormTemplateStatus
from gpms.schemas.form_templates import (
    FormTemplateCreate,
    FormTemplateListResponse,
    FormTemplateResponse,
    FormTemplateUpdate,
)
from gpms.services.form_template_service import FormTemplateService

router = APIRouter()


@router.get(
    "",
    response_model=FormTemplateListResponse,
    status_code=status.HTTP_200_OK,
    summary="List form templates",
)
async def list_templates(
    ctx: Tenant,
    db: DatabaseSession,
    search: str | None = Query(None, min_length=1, description="Name or description"),
    category: FormTemplateCategory | None = Query(None),
    template_status: FormTemplateStatus | None = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100, alias="pageSize"),
) -> FormTemplateListResponse:
    """List the practice's form templates."""
    service = FormTemplateService(db)
    return await service.list_templates(
        ctx,
        search=search,
        category=category,
        status=template_status,
        page=page,
        page_size=page_size,
    )


@router.get(
    "/{template_id}",
    response_model=FormTemplateResponse,
    status_code=status.HTTP_200_OK,
    summary="Get form template by ID",
)
async def get_template(
    template_id: UUID,
    ctx: Tenant,
    db: DatabaseSession,
) -> FormTemplateResponse:
    """Get a form template with its questions."""
    service = FormTemplateService(db)
    return await service.get_template(ctx, template_id)


@router.post(
    "",
    response_model=FormTemplateResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create form template",
)
async def create_template(
    data: FormTemplateCreate,
    ctx: Tenant,
    db: DatabaseSession,
) -> FormTemplateResponse:
    """Create a form template."""
    service = FormTemplateService(db)
    return await service.create_template(ctx, data)


@router.put(
    "/{template_id}",
    response_model=FormTemplateResponse,
    status_code=status.HTTP_200_OK,
    summary="Update form template",
)
async def update_template(
    template_id: UUID,
    data: FormTemplateUpdate,
    ctx: Tenant,
    db: DatabaseSession,
) -> FormTemplateResponse:
    """Edit a form template."""
    service = FormTemplateService(db)
    return await service.update_template(ctx, template_id, data)


@router.post(
    "/{template_id}/duplicate",
    response_model=FormTemplateResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Duplicate form template",
)
async def duplicate_template(
    template_id: UUID,
    ctx: Tenant,
    db: DatabaseSession,
) -> FormTemplateResponse:
    """Copy a template as a new draft."""
    service = FormTemplateService(db)
    return await service.duplicate_template(ctx, template_id)


@router.delete(
    "/{template_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete form template",
)
async def delete_template(template_id: UUID, ctx: Tenant, db: DatabaseSession) -> None:
    """Delete a form template."""
    service = FormTemplateService(db)
    await service.delete_template(ctx, template_id)

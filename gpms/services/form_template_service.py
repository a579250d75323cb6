"""Form template service."""

import math
from datetime import UTC, datetime
from uuid import UUID

import structlog
from sqlalchemy import Select, and_, delete, func, insert, or_, select, update
from sqlalchemy.engine import RowMapping
from sqlalchemy.ext.asyncio import AsyncSession

from gpms.core.exceptions import BadRequestException, NotFoundException
from gpms.models.form_templates import form_templates
from gpms.models.users import users
from gpms.schemas.auth import TenantContext
from gpms.schemas.enums import FormTemplateCategory, FormTemplateStatus
from gpms.schemas.form_templates import (
    FormTemplateCreate,
    FormTemplateListResponse,
    FormTemplateResponse,
    FormTemplateUpdate,
)

logger = structlog.get_logger(__name__)


def _detail_query() -> Select:
    return select(
        form_templates,
        (users.c.first_name + " " + users.c.last_name).label("created_by_name"),
    ).select_from(form_templates.join(users, users.c.id == form_templates.c.created_by_id))


class FormTemplateService:
    """Service for the practice's library of patient forms."""

    def __init__(self, db: AsyncSession):
        """Initialize service with database session."""
        self.db = db

    async def _get_row(self, ctx: TenantContext, template_id: UUID) -> RowMapping:
        query = select(form_templates).where(
            and_(
                form_templates.c.id == template_id,
                form_templates.c.practice_id == ctx.practice_id,
            )
        )
        result = await self.db.execute(query)
        row = result.mappings().first()

        if not row:
            raise NotFoundException("Form template not found")

        return row

    async def list_templates(
        self,
        ctx: TenantContext,
        search: str | None = None,
        category: FormTemplateCategory | None = None,
        status: FormTemplateStatus | None = None,
        page: int = 1,
        page_size: int = 20,
    ) -> FormTemplateListResponse:
        """List templates, most recently edited first."""
        conditions = [form_templates.c.practice_id == ctx.practice_id]

        if search:
            pattern = f"%{search}%"
            conditions.append(
                or_(
                    form_templates.c.name.ilike(pattern),
                    form_templates.c.description.ilike(pattern),
                )
            )

        if category:
            conditions.append(form_templates.c.category == category.value)

        if status:
            conditions.append(form_templates.c.status == status.value)

        count_query = select(func.count()).select_from(form_templates).where(and_(*conditions))
        total = (await self.db.execute(count_query)).scalar() or 0

        query = (
            _detail_query()
            .where(and_(*conditions))
            .order_by(form_templates.c.updated_at.desc(), form_templates.c.name)
            .offset((page - 1) * page_size)
            .limit(page_size)
        )
        result = await self.db.execute(query)

        return FormTemplateListResponse(
            items=[FormTemplateResponse.model_validate(row) for row in result.mappings().all()],
            total=total,
            page=page,
            page_size=page_size,
            total_pages=math.ceil(total / page_size),
        )

    async def get_template(self, ctx: TenantContext, template_id: UUID) -> FormTemplateResponse:
        """Get a template by ID."""
        query = _detail_query().where(
            and_(
                form_templates.c.id == template_id,
                form_templates.c.practice_id == ctx.practice_id,
            )
        )
        result = await self.db.execute(query)
        row = result.mappings().first()

        if not row:
            raise NotFoundException("Form template not found")

        return FormTemplateResponse.model_validate(row)

    async def create_template(
        self,
        ctx: TenantContext,
        data: FormTemplateCreate,
    ) -> FormTemplateResponse:
        """Create a template authored by the caller."""
        result = await self.db.execute(
            insert(form_templates)
            .values(
                practice_id=ctx.practice_id,
                created_by_id=ctx.user_id,
                name=data.name,
                description=data.description,
                category=data.category.value,
                status=data.status.value,
                language=data.language,
                is_public=data.is_public,
                questions=data.questions,
                question_count=len(data.questions),
            )
            .returning(form_templates.c.id)
        )
        template_id = result.scalar_one()
        await self.db.commit()

        logger.info(
            "form_template_created",
            practice_id=str(ctx.practice_id),
            template_id=str(template_id),
            questions=len(data.questions),
        )

        return await self.get_template(ctx, template_id)

    async def update_template(
        self,
        ctx: TenantContext,
        template_id: UUID,
        data: FormTemplateUpdate,
    ) -> FormTemplateResponse:
        """
        Edit a template.

        Replacing ``questions`` also refreshes ``question_count``.

        Raises:
            NotFoundException: If the template is not in the practice
            BadRequestException: If null is sent for a field
        """
        await self._get_row(ctx, template_id)

        values = data.model_dump(exclude_unset=True)

        for field, value in values.items():
            if value is None:
                raise BadRequestException(f"{field} cannot be null")

        if not values:
            return await self.get_template(ctx, template_id)

        for field in ("category", "status"):
            if field in values:
                values[field] = values[field].value

        if "questions" in values:
            values["question_count"] = len(values["questions"])

        values["updated_at"] = datetime.now(UTC)

        await self.db.execute(
            update(form_templates)
            .where(
                and_(
                    form_templates.c.id == template_id,
                    form_templates.c.practice_id == ctx.practice_id,
                )
            )
            .values(**values)
        )
        await self.db.commit()

        return await self.get_template(ctx, template_id)

    async def duplicate_template(
        self,
        ctx: TenantContext,
        template_id: UUID,
    ) -> FormTemplateResponse:
        """
        Copy a template as a new private draft owned by the caller.

        The copy is named ``"<name> (Copy)"``.
        """
        source = await self._get_row(ctx, template_id)

        result = await self.db.execute(
            insert(form_templates)
            .values(
                practice_id=ctx.practice_id,
                created_by_id=ctx.user_id,
                name=f"{source['name']} (Copy)",
                description=source["description"],
                category=source["category"],
                status=FormTemplateStatus.DRAFT.value,
                language=source["language"],
                is_public=False,
                questions=source["questions"],
                question_count=source["question_count"],
            )
            .returning(form_templates.c.id)
        )
        copy_id = result.scalar_one()
        await self.db.commit()

        logger.info(
            "form_template_duplicated",
            practice_id=str(ctx.practice_id),
            source_id=str(template_id),
            template_id=str(copy_id),
        )

        return await self.get_template(ctx, copy_id)

    async def delete_template(self, ctx: TenantContext, template_id: UUID) -> None:
        """Delete a template."""
        await self._get_row(ctx, template_id)

        await self.db.execute(
            delete(form_templates).where(
                and_(
                    form_templates.c.id == template_id,
                    form_templates.c.practice_id == ctx.practice_id,
                )
            )
        )
        await self.db.commit()

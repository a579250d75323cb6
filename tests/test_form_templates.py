"""Tests for the form template library."""

import pytest
from httpx import AsyncClient

from gpms.core.exceptions import BadRequestException, NotFoundException
from gpms.schemas.enums import FormTemplateCategory, FormTemplateStatus
from gpms.schemas.form_templates import FormTemplateCreate, FormTemplateUpdate
from gpms.services.form_template_service import FormTemplateService

PHQ9_QUESTIONS = [
    {"id": "q1", "type": "scale", "label": "Little interest or pleasure in doing things"},
    {"id": "q2", "type": "scale", "label": "Feeling down, depressed, or hopeless"},
]


@pytest.fixture
def phq9() -> FormTemplateCreate:
    """A published assessment with two questions."""
    return FormTemplateCreate(
        name="PHQ-9 Depression Screening",
        description="Patient Health Questionnaire",
        category=FormTemplateCategory.ASSESSMENT,
        status=FormTemplateStatus.ACTIVE,
        is_public=True,
        questions=PHQ9_QUESTIONS,
    )


@pytest.mark.asyncio
async def test_create_template_defaults(db_session, ctx):
    """A bare template is a private English custom draft with no questions."""
    template = await FormTemplateService(db_session).create_template(
        ctx, FormTemplateCreate(name="New Patient Registration")
    )

    assert template.category == FormTemplateCategory.CUSTOM
    assert template.status == FormTemplateStatus.DRAFT
    assert template.language == "English"
    assert template.is_public is False
    assert template.questions == []
    assert template.question_count == 0
    assert template.created_by_id == ctx.user_id
    assert template.created_by_name == "Test Receptionist"


@pytest.mark.asyncio
async def test_question_count_follows_questions(db_session, ctx, phq9):
    """Replacing the questions refreshes the count."""
    service = FormTemplateService(db_session)
    template = await service.create_template(ctx, phq9)
    assert template.question_count == 2

    updated = await service.update_template(
        ctx, template.id, FormTemplateUpdate(questions=PHQ9_QUESTIONS[:1])
    )

    assert updated.question_count == 1
    assert updated.questions == PHQ9_QUESTIONS[:1]
    assert updated.name == phq9.name


@pytest.mark.asyncio
async def test_update_rejects_null(db_session, ctx, phq9):
    """Template fields cannot be cleared with null."""
    service = FormTemplateService(db_session)
    template = await service.create_template(ctx, phq9)

    with pytest.raises(BadRequestException):
        await service.update_template(
            ctx, template.id, FormTemplateUpdate.model_validate({"name": None})
        )


@pytest.mark.asyncio
async def test_duplicate_template(db_session, ctx, other_ctx, phq9):
    """The copy is a private draft owned by whoever duplicated it."""
    service = FormTemplateService(db_session)
    template = await service.create_template(other_ctx, phq9)

    with pytest.raises(NotFoundException):
        await service.duplicate_template(ctx, template.id)

    copy = await service.duplicate_template(other_ctx, template.id)

    assert copy.id != template.id
    assert copy.name == "PHQ-9 Depression Screening (Copy)"
    assert copy.status == FormTemplateStatus.DRAFT
    assert copy.is_public is False
    assert copy.category == FormTemplateCategory.ASSESSMENT
    assert copy.questions == PHQ9_QUESTIONS
    assert copy.question_count == 2


@pytest.mark.asyncio
async def test_list_templates(db_session, ctx, other_ctx, phq9):
    """Listing is per practice and filters by search, category and status."""
    service = FormTemplateService(db_session)
    await service.create_template(ctx, phq9)
    await service.create_template(
        ctx,
        FormTemplateCreate(name="Minor Surgery Consent", category=FormTemplateCategory.CONSENT),
    )
    await service.create_template(other_ctx, FormTemplateCreate(name="Other practice form"))

    everything = await service.list_templates(ctx)
    assert everything.total == 2

    consent = await service.list_templates(ctx, category=FormTemplateCategory.CONSENT)
    assert [t.name for t in consent.items] == ["Minor Surgery Consent"]

    by_description = await service.list_templates(ctx, search="questionnaire")
    assert [t.name for t in by_description.items] == [phq9.name]

    drafts = await service.list_templates(ctx, status=FormTemplateStatus.DRAFT)
    assert [t.name for t in drafts.items] == ["Minor Surgery Consent"]


@pytest.mark.asyncio
async def test_form_templates_over_http(client: AsyncClient, auth_headers: dict):
    """Create, duplicate, edit and delete through the API."""
    response = await client.post(
        "/api/v1/form-templates",
        json={"name": "Asthma Review", "category": "ASSESSMENT", "questions": PHQ9_QUESTIONS},
        headers=auth_headers,
    )
    assert response.status_code == 201
    template_id = response.json()["id"]

    response = await client.post(
        f"/api/v1/form-templates/{template_id}/duplicate", headers=auth_headers
    )
    assert response.status_code == 201
    copy_id = response.json()["id"]
    assert response.json()["name"] == "Asthma Review (Copy)"

    response = await client.put(
        f"/api/v1/form-templates/{copy_id}", json={"status": "ACTIVE"}, headers=auth_headers
    )
    assert response.status_code == 200
    assert response.json()["status"] == "ACTIVE"

    response = await client.get(
        "/api/v1/form-templates", params={"status": "ACTIVE"}, headers=auth_headers
    )
    assert [t["id"] for t in response.json()["items"]] == [copy_id]

    response = await client.delete(f"/api/v1/form-templates/{template_id}", headers=auth_headers)
    assert response.status_code == 204

    response = await client.get(f"/api/v1/form-templates/{template_id}", headers=auth_headers)
    assert response.status_code == 404

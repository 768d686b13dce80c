"""Moderation rules router -- list, create, and tune rules."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from contentguard.errors import ContentGuardError
from contentguard.models import ModerationRule
from contentguard.service import ModerationService
from web.backend.app.deps import get_service, http_error
from web.backend.app.models.api import CreateRuleRequest, RuleResponse, UpdateRuleRequest

router = APIRouter(prefix="/api", tags=["rules"])


def _rule_response(rule: ModerationRule) -> RuleResponse:
    return RuleResponse(**rule.to_dict())


@router.get(
    "/ai-rules",
    response_model=list[RuleResponse],
    summary="List moderation rules",
)
async def list_rules(service: ModerationService = Depends(get_service)):
    return [_rule_response(r) for r in await service.list_rules()]


@router.post(
    "/ai-rules",
    response_model=RuleResponse,
    summary="Create a moderation rule",
    status_code=status.HTTP_201_CREATED,
)
async def create_rule(
    body: CreateRuleRequest,
    service: ModerationService = Depends(get_service),
):
    try:
        rule = await service.create_rule(ModerationRule(**body.model_dump()))
    except ContentGuardError as exc:
        raise http_error(exc) from exc
    return _rule_response(rule)


@router.patch(
    "/ai-rules/{rule_id}",
    response_model=RuleResponse,
    summary="Update a moderation rule",
)
async def update_rule(
    rule_id: int,
    body: UpdateRuleRequest,
    service: ModerationService = Depends(get_service),
):
    """Change sensitivity, action, or activation; takes effect for the next item."""
    patch = body.model_dump(exclude_unset=True)
    if not patch:
        raise HTTPException(status_code=400, detail="No fields to update")
    try:
        rule = await service.update_rule(rule_id, patch)
    except ContentGuardError as exc:
        raise http_error(exc) from exc
    return _rule_response(rule)

# compliance/service.py
import logging
from typing import List, Sequence

from .errors import TransportError
from .models import ApprovedIngredient, IngredientResult
from .normalize import normalize_approvals, normalize_result
from .query import build_approvals_request, build_audit_request, validate_query

logger = logging.getLogger(__name__)


def search_ingredient(backend, ingredient_name: str) -> IngredientResult:
    """
    Audit one ingredient.
    Raises ValidationError for an empty query (nothing is sent); every
    backend or parse failure comes back as the fallback result instead.
    """
    name = validate_query(ingredient_name)
    settings = backend.settings
    request = build_audit_request(name, grounding=settings.enable_grounding, model=settings.model)
    try:
        response = backend.generate(request)
    except TransportError as e:
        logger.warning("Audit for %r degraded to fallback (%s)", name, e.reason)
        return normalize_result(e, name)
    return normalize_result(response, name)


async def asearch_ingredient(backend, ingredient_name: str) -> IngredientResult:
    name = validate_query(ingredient_name)
    settings = backend.settings
    request = build_audit_request(name, grounding=settings.enable_grounding, model=settings.model)
    try:
        response = await backend.agenerate(request)
    except TransportError as e:
        logger.warning("Audit for %r degraded to fallback (%s)", name, e.reason)
        return normalize_result(e, name)
    return normalize_result(response, name)


def refresh_approvals(backend) -> List[ApprovedIngredient]:
    """
    Recent approval events. Any failure gives [], which callers must read as
    "keep what you have" (see apply_feed_refresh).
    """
    settings = backend.settings
    request = build_approvals_request(settings.approvals_batch_size, model=settings.approvals_model)
    try:
        response = backend.generate(request)
    except TransportError as e:
        logger.warning("Approvals refresh failed (%s); keeping previous feed", e.reason)
        return []
    return normalize_approvals(response, limit=settings.approvals_batch_size)


async def arefresh_approvals(backend) -> List[ApprovedIngredient]:
    settings = backend.settings
    request = build_approvals_request(settings.approvals_batch_size, model=settings.approvals_model)
    try:
        response = await backend.agenerate(request)
    except TransportError as e:
        logger.warning("Approvals refresh failed (%s); keeping previous feed", e.reason)
        return []
    return normalize_approvals(response, limit=settings.approvals_batch_size)


def apply_feed_refresh(
    previous: Sequence[ApprovedIngredient],
    latest: Sequence[ApprovedIngredient],
) -> List[ApprovedIngredient]:
    """An empty refresh never clears the feed."""
    return list(latest) if latest else list(previous)

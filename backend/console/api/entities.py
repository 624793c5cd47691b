"""
Branch-owned entities API — agents, applications, policy holders, claims,
loans, premium payments, KYC documents and users.

Every handler goes through EntityService, so a branch admin only ever sees
or touches records of their own branch. Reads outside scope look exactly
like missing records (empty list / 404).
"""

from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, Request

from console.api.deps import get_entity_service
from console.auth.scoping import EntityKind
from console.services.entity_service import AccessOutcome, EntityResult, EntityService

router = APIRouter(prefix="/api/entities", tags=["entities"])


def _result_or_raise(result: EntityResult) -> dict:
    if result.outcome == AccessOutcome.NOT_FOUND:
        raise HTTPException(status_code=404, detail="Record not found")
    if result.outcome == AccessOutcome.DENIED:
        raise HTTPException(status_code=403, detail="Not allowed to modify this record")
    return result.record


@router.get("/{kind}")
async def list_entities(kind: EntityKind, request: Request,
                        service: EntityService = Depends(get_entity_service)):
    """List records; query parameters are passed on as equality filters."""
    filters = dict(request.query_params)
    return await service.list(kind, filters)


@router.get("/{kind}/{entity_id}")
async def get_entity(kind: EntityKind, entity_id: int,
                     service: EntityService = Depends(get_entity_service)):
    record = await service.get(kind, entity_id)
    if record is None:
        raise HTTPException(status_code=404, detail="Record not found")
    return record


@router.patch("/{kind}/{entity_id}")
async def update_entity(kind: EntityKind, entity_id: int,
                        patch: dict[str, Any] = Body(...),
                        service: EntityService = Depends(get_entity_service)):
    return _result_or_raise(await service.update(kind, entity_id, patch))


@router.post("/{kind}", status_code=201)
async def create_entity(kind: EntityKind,
                        payload: dict[str, Any] = Body(...),
                        service: EntityService = Depends(get_entity_service)):
    return _result_or_raise(await service.create(kind, payload))

"""Catalog API — branches and insurance products. Not branch-owned; permission gated."""

from fastapi import APIRouter, Depends

from console.api.deps import get_data_source, require_permission
from console.auth.permissions import Permission
from console.auth.session import SessionStore
from console.datasource.base import DataSource

router = APIRouter(prefix="/api", tags=["catalog"])


@router.get("/branches")
async def list_branches(store: SessionStore = Depends(require_permission(Permission.VIEW_ALL_BRANCHES)),
                        data_source: DataSource = Depends(get_data_source)):
    return await data_source.fetch_branches(token=store.token)


@router.get("/policies")
async def list_policies(store: SessionStore = Depends(require_permission(Permission.VIEW_POLICIES)),
                        data_source: DataSource = Depends(get_data_source)):
    return await data_source.fetch_policies(token=store.token)

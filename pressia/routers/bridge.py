from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, status

from pressia.bridge import Bridge
from pressia.dependencies import get_bridge

router = APIRouter(prefix='/bridge', tags=['bridge'])


@router.get('')
def list_operations() -> list[str]:
    return sorted(Bridge.OPERATIONS)


@router.post('/{operation}')
def call_operation(
    operation: str,
    args: list[Any] = Body(default=[], embed=True),
    bridge: Bridge = Depends(get_bridge),
):
    if operation not in Bridge.OPERATIONS:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f'Unknown operation: {operation}')
    return bridge.call(operation, *args)

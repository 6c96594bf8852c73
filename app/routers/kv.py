from typing import List, Union

from fastapi import APIRouter, Depends, Query

from app.core.exceptions import NotFoundError
from app.core.schemas import ApiResponse
from app.routers.auth_deps import platform_result, require_user
from app.schemas.platform import KVItem, KVSetRequest
from app.services.platform_store import PlatformStore

router = APIRouter(prefix="/kv", tags=["key-value"])


@router.get("", response_model=ApiResponse[Union[List[KVItem], List[str]]])
def list_keys(
    pattern: str = Query("*"),
    return_values: bool = Query(False),
    store: PlatformStore = Depends(require_user),
):
    items = platform_result(store, store.kv.list(pattern, return_values), "Failed to list keys")
    return ApiResponse.ok(items)


@router.delete("", response_model=ApiResponse[bool])
def flush(store: PlatformStore = Depends(require_user)):
    return ApiResponse.ok(platform_result(store, store.kv.flush(), "Failed to flush keys"))


@router.get("/{key:path}", response_model=ApiResponse[KVItem])
def get_value(key: str, store: PlatformStore = Depends(require_user)):
    value = platform_result(store, store.kv.get(key), "Failed to read key")
    if value is None:
        raise NotFoundError(f"Key not found: {key}")
    return ApiResponse.ok(KVItem(key=key, value=value))


@router.put("/{key:path}", response_model=ApiResponse[bool])
def set_value(key: str, payload: KVSetRequest, store: PlatformStore = Depends(require_user)):
    return ApiResponse.ok(platform_result(store, store.kv.set(key, payload.value), "Failed to write key"))


@router.delete("/{key:path}", response_model=ApiResponse[bool])
def delete_value(key: str, store: PlatformStore = Depends(require_user)):
    return ApiResponse.ok(platform_result(store, store.kv.delete(key), "Failed to delete key"))

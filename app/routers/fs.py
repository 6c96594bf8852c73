import mimetypes
from typing import List

from fastapi import APIRouter, Depends, File, Query, UploadFile
from fastapi.responses import Response

from app.core.schemas import ApiResponse
from app.routers.auth_deps import platform_result, require_user
from app.schemas.platform import FSItem, FileWriteRequest
from app.services.platform_store import PlatformStore

router = APIRouter(prefix="/fs", tags=["files"])


@router.get("/read")
def read_file(path: str = Query(...), store: PlatformStore = Depends(require_user)):
    data = platform_result(store, store.fs.read(path), "Failed to read file")
    media_type = mimetypes.guess_type(path)[0] or "application/octet-stream"
    return Response(content=data, media_type=media_type)


@router.post("/write", response_model=ApiResponse[FSItem])
def write_file(payload: FileWriteRequest, store: PlatformStore = Depends(require_user)):
    item = platform_result(store, store.fs.write(payload.path, payload.data), "Failed to write file")
    return ApiResponse.ok(item)


@router.post("/upload", response_model=ApiResponse[FSItem])
async def upload_files(files: List[UploadFile] = File(...), store: PlatformStore = Depends(require_user)):
    contents = [(f.filename or "file", await f.read()) for f in files]
    item = platform_result(store, store.fs.upload(contents), "Failed to upload file")
    return ApiResponse.ok(item)


@router.delete("", response_model=ApiResponse[bool])
def delete_file(path: str = Query(...), store: PlatformStore = Depends(require_user)):
    deleted = platform_result(store, store.fs.delete(path), "Failed to delete file")
    return ApiResponse.ok(deleted)


@router.get("/readdir", response_model=ApiResponse[List[FSItem]])
def read_dir(path: str = Query("/"), store: PlatformStore = Depends(require_user)):
    items = platform_result(store, store.fs.read_dir(path), "Failed to read directory")
    return ApiResponse.ok(items or [])

from fastapi import APIRouter, Depends, File, Request, UploadFile

from app.core.exceptions import ValidationError
from app.core.limiter import limiter
from app.core.schemas import ApiResponse
from app.routers.auth_deps import platform_result, require_user
from app.schemas.platform import AIResponse, ChatRequest, FeedbackRequest
from app.services.platform_store import PlatformStore

router = APIRouter(prefix="/ai", tags=["ai"])


@router.post("/chat", response_model=AIResponse)
@limiter.limit("10/minute")
def chat(request: Request, payload: ChatRequest, store: PlatformStore = Depends(require_user)):
    return platform_result(store, store.ai.chat(payload.prompt, payload.options), "AI chat failed")


@router.post("/feedback", response_model=AIResponse)
@limiter.limit("10/minute")
def feedback(request: Request, payload: FeedbackRequest, store: PlatformStore = Depends(require_user)):
    return platform_result(store, store.ai.feedback(payload.path, payload.message), "AI feedback failed")


@router.post("/img2txt", response_model=ApiResponse[str])
@limiter.limit("10/minute")
async def img2txt(request: Request, image: UploadFile = File(...), store: PlatformStore = Depends(require_user)):
    if not (image.content_type or "").startswith("image/"):
        raise ValidationError("Expected an image upload")
    text = platform_result(store, store.ai.img2txt(await image.read(), image.content_type), "Image to text failed")
    return ApiResponse.ok(text)

from datetime import datetime
from typing import List, Optional, Union

from pydantic import BaseModel, Field


# --- FILE SYSTEM ---

class FSItem(BaseModel):
    name: str
    path: str
    is_dir: bool = False
    size: int = 0
    mime_type: Optional[str] = None
    modified: Optional[datetime] = None

class FileWriteRequest(BaseModel):
    path: str
    data: str


# --- KEY-VALUE ---

class KVItem(BaseModel):
    key: str
    value: str

class KVSetRequest(BaseModel):
    value: str


# --- AI ---

class ContentBlock(BaseModel):
    type: str = "text"
    text: Optional[str] = None
    image_url: Optional[dict] = None
    puter_path: Optional[str] = None

class ChatMessage(BaseModel):
    role: str
    content: Union[str, List[ContentBlock]]

class ChatOptions(BaseModel):
    model: Optional[str] = None
    max_tokens: Optional[int] = None
    temperature: Optional[float] = None

class AIMessage(BaseModel):
    role: str = "assistant"
    content: Union[str, List[ContentBlock]] = ""

class AIUsage(BaseModel):
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0

class AIResponse(BaseModel):
    message: AIMessage
    finish_reason: Optional[str] = None
    model: Optional[str] = None
    usage: Optional[AIUsage] = None

class ChatRequest(BaseModel):
    prompt: Union[str, List[ChatMessage]]
    options: ChatOptions = Field(default_factory=ChatOptions)

class FeedbackRequest(BaseModel):
    path: str
    message: str

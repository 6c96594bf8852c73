from pydantic import BaseModel, EmailStr, ConfigDict, Field
from typing import Optional

class PlatformUser(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    uuid: str
    username: str
    email: EmailStr

class SignUpRequest(BaseModel):
    email: EmailStr
    username: str = Field(min_length=1, max_length=64)
    password: str = Field(min_length=8)

class SignInRequest(BaseModel):
    email: EmailStr
    password: str

class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: Optional[PlatformUser] = None

class AuthStatus(BaseModel):
    is_authenticated: bool
    user: Optional[PlatformUser] = None

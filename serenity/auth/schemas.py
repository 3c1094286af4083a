from pydantic import BaseModel, ConfigDict
from uuid import UUID


class BaseSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class UserBase(BaseSchema):
    email: str
    name: str


class UserCreate(UserBase):
    password: str


class UserOut(UserBase):
    id: UUID


class LoginRequest(BaseSchema):
    email: str
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserOut

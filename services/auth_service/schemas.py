from pydantic import BaseModel, ConfigDict, EmailStr, Field


class UserCreate(BaseModel):
    email: EmailStr
    password: str


class UserLogin(BaseModel):
    # Not EmailStr: an address that was never registered is a 401, whatever its shape.
    email: str = Field(min_length=1)
    password: str


class AuthResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    token: str
    email: str


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str

from pydantic import BaseModel


class LoginRequest(BaseModel):
    email: str
    password: str


class RefreshRequest(BaseModel):
    refreshToken: str


class ApiKeyUpdate(BaseModel):
    # null clears the stored key
    apiKey: str | None = None

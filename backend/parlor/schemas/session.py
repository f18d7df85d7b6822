from pydantic import BaseModel, ConfigDict, Field


class LoginRequest(BaseModel):
    passcode: str = ""
    username: str | None = None


class LoginResponse(BaseModel):
    ok: bool
    user_id: str = Field(serialization_alias="userId")
    username: str
    token: str

    model_config = ConfigDict(populate_by_name=True)


class SessionData(BaseModel):
    """Session record as stored by the login collaborator."""

    user_id: str
    username: str
    authenticated: bool = False


class SessionResponse(BaseModel):
    authenticated: bool
    user_id: str | None = Field(None, serialization_alias="userId")
    username: str | None = None

    model_config = ConfigDict(populate_by_name=True)


class Identity(BaseModel):
    """Point-in-time (user_id, username) bound to one connection."""

    user_id: str
    username: str

    model_config = ConfigDict(frozen=True)

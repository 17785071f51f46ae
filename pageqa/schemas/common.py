from pydantic import BaseModel


class ErrorResponse(BaseModel):
    error: dict[str, str | None]


class ProviderState(BaseModel):
    name: str
    configured: bool


class HealthResponse(BaseModel):
    status: str
    name: str
    version: str
    active_provider: str | None = None
    providers: list[ProviderState] = []

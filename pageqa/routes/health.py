from fastapi import APIRouter, Request

from pageqa.schemas.common import HealthResponse, ProviderState

SERVICE_NAME = "page-qa-service"
SERVICE_VERSION = "0.1.0"

router = APIRouter()


def build_health(request: Request) -> HealthResponse:
    """Service identity plus which AI providers are configured and active."""
    selector = getattr(request.app.state, "selector", None)
    providers: list[ProviderState] = []
    active = None
    if selector is not None:
        providers = [
            ProviderState(name=p.name, configured=p.has_credentials())
            for p in selector.providers
        ]
        active = selector.active.name if selector.active else None
    return HealthResponse(
        status="ok",
        name=SERVICE_NAME,
        version=SERVICE_VERSION,
        active_provider=active,
        providers=providers,
    )


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request) -> HealthResponse:
    return build_health(request)

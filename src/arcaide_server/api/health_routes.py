from fastapi import APIRouter, Request

router = APIRouter(tags=["health"])


@router.get("/health")
def health(request: Request):
    settings = request.app.state.settings
    return {"status": "ok", "fuzzy": settings.fuzzy_backend_enabled}

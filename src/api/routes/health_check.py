from fastapi import APIRouter

router = APIRouter()


@router.get("/health")
async def health():
    """Health check for load balancers."""
    return {"status": "ok"}

"""Public-facing routes (APP_ROLE=public)."""

from fastapi import APIRouter

from hotelbook.api.routes import reservations, rooms, webhooks_stripe

router = APIRouter()


@router.get("/health")
def health() -> dict:
    """Health check endpoint."""
    return {"status": "ok"}


router.include_router(rooms.router)
router.include_router(reservations.router)
router.include_router(webhooks_stripe.router)

"""ASGI entrypoint; APP_ROLE selects public or worker routes."""

from hotelbook.api.factory import create_app

app = create_app()

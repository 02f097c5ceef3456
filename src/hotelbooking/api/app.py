"""ASGI application (role from APP_ROLE)."""

from hotelbooking.api.factory import create_app

app = create_app()

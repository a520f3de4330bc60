"""ASGI entrypoint for the cooking session API."""

from cooking_sessions.api.app import create_app
from cooking_sessions.containers import build_container

app = create_app(build_container())

"""ASGI entrypoint for the landing generator API."""

from landing_forge.api.app import create_app
from landing_forge.containers import build_container

app = create_app(build_container())

"""ASGI entrypoint for the macroscan API."""

from macroscan.api.app import create_app
from macroscan.containers import build_container

app = create_app(build_container())

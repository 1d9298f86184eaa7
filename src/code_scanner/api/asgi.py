"""ASGI entrypoint for the code scanner API."""

from code_scanner.api.app import create_app
from code_scanner.containers import build_container

app = create_app(build_container())

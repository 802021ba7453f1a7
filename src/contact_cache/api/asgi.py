"""ASGI entrypoint for the contact cache API."""

from contact_cache.api.app import create_app
from contact_cache.containers import build_container

app = create_app(build_container())

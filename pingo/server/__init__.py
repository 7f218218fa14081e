"""Server side of Pingo: holds the service credential and proxies model calls."""

from .app import create_app, run_server
from .upstream import OpenAIUpstream

__all__ = ["create_app", "run_server", "OpenAIUpstream"]

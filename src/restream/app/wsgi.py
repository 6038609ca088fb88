"""Gunicorn entrypoint for the restream service.

Relay teardown on worker exit runs from the ``atexit`` hook that
:func:`restream.app.create_app` registers.
"""
from __future__ import annotations

from . import create_app


app = create_app()


__all__ = ["app"]

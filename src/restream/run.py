"""Development entrypoint that serves the relay with signal-driven shutdown."""
from __future__ import annotations

import logging
import os

from .app import create_app
from .app.extensions import SHUTDOWN_KEY
from .utils import coerce_int

LOGGER = logging.getLogger(__name__)


def main() -> None:
    app = create_app()
    app.extensions[SHUTDOWN_KEY].install()

    host = os.getenv("HOST", "0.0.0.0")
    port = coerce_int(os.getenv("PORT"), 3001)
    LOGGER.info("Serving restream on %s:%s", host, port)
    app.run(host=host, port=port, threaded=True, use_reloader=False)


if __name__ == "__main__":
    main()

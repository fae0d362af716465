#!/usr/bin/env python3
"""
SpotiRelay Runner - Starts the relay with Waitress (or Flask's dev server in debug mode)
"""

import os

from waitress import serve

from spotirelay.app import create_app
from spotirelay.config import load_config
from spotirelay.utils.logger import setup_logger

if __name__ == "__main__":
    logger = setup_logger("spotirelay.runner")
    config = load_config()
    app = create_app(config)

    logger.info("🚀 Starting SpotiRelay on %s:%s", config.host, config.port)
    logger.info("🌍 Environment: %s", config.environment)
    logger.info("🔧 Debug mode: %s", config.debug)

    if config.debug:
        app.run(host=config.host, port=config.port, debug=True)
    else:
        threads = int(os.environ.get("SPOTIRELAY_WAITRESS_THREADS", "4"))
        logger.info("🍽️ Using Waitress WSGI server (threads=%s)", threads)
        serve(app, host=config.host, port=config.port, threads=threads)

#!/usr/bin/env python3
"""fieldar - geographic vector overlay for camera and map views.

Starts the Flask server that receives position/heading samples and serves
the heads-up layout and the 3D overlay scene.
"""

import logging

from fieldar.config import HOST, LOG_LEVEL, PORT
from fieldar.server import app


if __name__ == "__main__":
    logging.basicConfig(
        level=LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app.run(host=HOST, port=PORT, debug=False)

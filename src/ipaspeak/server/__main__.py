"""Module entrypoint to run the ipaspeak HTTP service with uvicorn.

Example:
    IPASPEAK_HTTP_PORT=8080 python -m ipaspeak.server
"""

import logging

import uvicorn
from uvicorn.config import Config

from ..config import IpaspeakConfig, load_config
from .app import create_app

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def serve(config: IpaspeakConfig, debug: bool = False) -> None:
    """Run the HTTP service until interrupted."""
    level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(level=level, format=LOG_FORMAT)

    app = create_app(config)
    server = uvicorn.Server(
        Config(
            app=app,
            host=config.http.host,
            port=config.http.port,
            log_level=logging.getLevelName(level).lower(),
            log_config=None,
        )
    )
    server.run()


def main() -> None:
    serve(load_config())


if __name__ == "__main__":
    main()

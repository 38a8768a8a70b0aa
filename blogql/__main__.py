import logging
import os
import sys

import uvicorn

from .applications import create_app
from .config import load_settings
from .exceptions import ConfigurationError

logger = logging.getLogger('blogql')


def main() -> None:
    settings = load_settings('.env' if os.path.exists('.env') else None)
    logging.basicConfig(
        level=settings.log_level, format='%(asctime)s %(levelname)s %(name)s: %(message)s'
    )
    try:
        app = create_app(settings)
    except ConfigurationError as exc:
        logger.error('Cannot start blogs subgraph: %s', exc)
        sys.exit(1)

    logger.info('Blogs subgraph running at http://%s:%d%s', settings.host, settings.port, settings.path)
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == '__main__':
    main()

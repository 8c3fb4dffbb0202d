'''
Logging setup for the webhook server.
'''

import logging

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def setup_logging(level: str | int = logging.INFO) -> None:
    '''
    Installs a single stream handler on the package logger.
    Calling it twice does not duplicate output.
    '''
    root = logging.getLogger("workflow_guard")
    root.setLevel(level)
    root.handlers.clear()

    handler = logging.StreamHandler()
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(handler)

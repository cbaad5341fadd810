from __future__ import annotations

import logging

LOG_FORMAT = '%(asctime)s %(levelname)s %(name)s: %(message)s'


def configure_logging(level: str = 'INFO') -> None:
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)
    # basicConfig leaves a configured root alone; the level still follows settings.
    logging.getLogger().setLevel(level.upper())

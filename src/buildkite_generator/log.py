import logging
import sys

logger = logging.getLogger("buildkite_generator")


def configure_logging(level: str) -> None:
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")
    )
    logger.handlers = [handler]
    logger.propagate = False
    logger.setLevel(level)

import logging, os

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
_DEFAULT_LEVEL = os.getenv("SAASBASIC_LOG_LEVEL", "INFO").upper()

def setup_logging():
    # Package logger only; the app installs the JSON handlers via dictConfig
    logger = logging.getLogger("saasbasic")
    logger.setLevel(getattr(logging, _DEFAULT_LEVEL, logging.INFO))

    # Fall back to a plain console handler when nothing upstream is configured
    if not logger.handlers and not logging.getLogger().handlers:
        ch = logging.StreamHandler()
        ch.setFormatter(logging.Formatter(LOG_FORMAT))
        ch.setLevel(logger.level)
        logger.addHandler(ch)
        logger.propagate = False
    return logger

def get_logger(name: str | None = None) -> logging.Logger:
    base = logging.getLogger("saasbasic")
    if name and name.startswith("saasbasic."):
        name = name[len("saasbasic."):]
    return base.getChild(name) if name else base

logger = setup_logging()

import logging

from breathpacer.config import settings

_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
_configured = False

def _configure_root():
    global _configured
    if _configured:
        return
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(_FORMAT))
    root = logging.getLogger("breathpacer")
    root.addHandler(handler)
    root.setLevel(settings.LOG_LEVEL.upper())
    _configured = True

def get_logger(name: str) -> logging.Logger:
    """
    Returns a logger living under the "breathpacer" hierarchy so that every
    module shares one handler and the LOG_LEVEL setting.
    """
    _configure_root()
    if name != "breathpacer" and not name.startswith("breathpacer."):
        name = f"breathpacer.{name}"
    return logging.getLogger(name)

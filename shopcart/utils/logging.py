# shopcart/utils/logging.py
import logging
import sys

from shopcart.utils.settings import LOG_LEVEL

_root = logging.getLogger("shopcart")
_root.setLevel(LOG_LEVEL)

if not _root.handlers:
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    _root.addHandler(handler)

#no propagation to root, uvicorn would print everything twice
_root.propagate = False


def get_logger(name: str | None = None) -> logging.Logger:
    if not name:
        return _root
    if name == "shopcart" or name.startswith("shopcart."):
        return logging.getLogger(name)
    return logging.getLogger(f"shopcart.{name}")

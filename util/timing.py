# util/timing.py
import time
from contextlib import contextmanager
from typing import Any, Iterator
import logging


@contextmanager
def timed(logger: logging.Logger, name: str, /, **kv: Any) -> Iterator[None]:
    """
    Usage:
      with timed(logger, "upload.stage.stream", bytes=1024):
          ...
    Emits one line on exit: "<name>.done ms=<int> key=val ..." at INFO,
    or "<name>.failed ms=<int> err=<type> ..." at WARNING if the block raised.
    """
    t0 = time.perf_counter()
    try:
        yield
    except BaseException as e:
        dt_ms = int((time.perf_counter() - t0) * 1000)
        suffix = "".join(f" {k}={v}" for k, v in kv.items())
        logger.warning("%s.failed ms=%d err=%s%s", name, dt_ms, type(e).__name__, suffix)
        raise
    dt_ms = int((time.perf_counter() - t0) * 1000)
    suffix = "".join(f" {k}={v}" for k, v in kv.items())
    logger.info("%s.done ms=%d%s", name, dt_ms, suffix)

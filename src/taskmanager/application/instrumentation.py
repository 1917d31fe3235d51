import functools
import inspect
import logging
import time

logger = logging.getLogger(__name__)


def _finished(method: str, start: float) -> None:
    elapsed_ms = (time.perf_counter() - start) * 1000
    logger.info(
        "%s finished in %.1f ms",
        method,
        elapsed_ms,
        extra={"method": method, "elapsed_ms": elapsed_ms},
    )


def _failed(method: str, start: float, exc: Exception) -> None:
    elapsed_ms = (time.perf_counter() - start) * 1000
    logger.warning(
        "%s raised %s after %.1f ms",
        method,
        type(exc).__name__,
        elapsed_ms,
        extra={"method": method, "elapsed_ms": elapsed_ms},
    )


def logged(func):
    """Log the call, its outcome and its wall time; exceptions are re-raised."""
    method = func.__qualname__

    if inspect.iscoroutinefunction(func):

        @functools.wraps(func)
        async def async_wrapper(*args, **kwargs):
            logger.info("Calling %s", method)
            start = time.perf_counter()
            try:
                result = await func(*args, **kwargs)
            except Exception as exc:
                _failed(method, start, exc)
                raise
            _finished(method, start)
            return result

        return async_wrapper

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        logger.info("Calling %s", method)
        start = time.perf_counter()
        try:
            result = func(*args, **kwargs)
        except Exception as exc:
            _failed(method, start, exc)
            raise
        _finished(method, start)
        return result

    return wrapper

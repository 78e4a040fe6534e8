import logging
from contextlib import asynccontextmanager

from errors import AuthServiceError
from models import AuthResponse

logger = logging.getLogger("auth_service_api.response")


class ResultSlot:
    """Holds the one result a request may produce. Later writes are ignored."""

    def __init__(self):
        self._result: AuthResponse | None = None

    @property
    def filled(self) -> bool:
        return self._result is not None

    @property
    def result(self) -> AuthResponse | None:
        return self._result

    def set(self, result: AuthResponse) -> bool:
        if self._result is not None:
            logger.debug(f"Result already produced for this request; dropping {result!r}")
            return False
        self._result = result
        return True


@asynccontextmanager
async def guarded(slot: ResultSlot, operation: str):
    """
    Run one request's work and turn any failure into the failure envelope.

    Errors never escape to the transport, and once the slot holds a result
    nothing raised afterwards replaces it.
    """
    try:
        yield slot
    except AuthServiceError as e:
        logger.warning(f"{operation} failed: {e.message}")
        slot.set(AuthResponse(ok=False, message=e.message))
    except Exception as e:
        logger.exception(f"Unexpected error during {operation}")
        slot.set(AuthResponse(ok=False, message=str(e)))

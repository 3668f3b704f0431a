import functools

from sqlalchemy.exc import DBAPIError, IntegrityError, InterfaceError, OperationalError

from ...exceptions import DuplicateError, StoreUnavailableError
from ...logging_config import get_logger

logger = get_logger(__name__)


def translate_db_errors(func):
    """Surface connection-level database failures as ``StoreUnavailableError``.

    Unique-constraint violations that slip past the service-level checks
    (concurrent writers) become ``DuplicateError``.
    """

    @functools.wraps(func)
    async def wrapper(*args, **kwargs):
        try:
            return await func(*args, **kwargs)
        except IntegrityError as e:
            logger.info("store_integrity_error", extra={"op": func.__name__, "error": str(e.orig)})
            raise DuplicateError("Record violates a uniqueness constraint") from e
        except (OperationalError, InterfaceError) as e:
            logger.warning("store_unavailable", extra={"op": func.__name__, "error": str(e)})
            raise StoreUnavailableError("Data store unavailable") from e
        except DBAPIError as e:
            if e.connection_invalidated:
                logger.warning("store_connection_lost", extra={"op": func.__name__})
                raise StoreUnavailableError("Data store unavailable") from e
            raise

    return wrapper

import logging
from dataclasses import dataclass
from typing import Callable, Generic, Optional, Sequence, TypeVar

from favicon_api.errors import ResolutionError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class Attempt(Generic[T]):
    """One strategy in an ordered list; ``fatal`` errors stop the sequence."""

    name: str
    run: Callable[[], Optional[T]]
    fatal: bool = False


def first_success(attempts: Sequence[Attempt[T]], label: str) -> Optional[T]:
    """
    Run attempts in order and return the first non-None result.
    Recoverable failures are logged and the next attempt is tried.
    Returns None when every attempt failed or came back empty.
    """
    for index, attempt in enumerate(attempts, start=1):
        try:
            logger.debug(f"{label}: attempt ({index}) {attempt.name}")
            result = attempt.run()
        except ResolutionError as e:
            if attempt.fatal:
                raise
            logger.warning(f"{label}: attempt {attempt.name} failed: {e}")
            continue
        if result is not None:
            return result
        logger.info(f"{label}: attempt {attempt.name} produced nothing")
    return None

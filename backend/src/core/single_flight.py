"""In-flight guards that reject duplicate user-triggered writes."""
import logging
from collections.abc import Hashable, Iterator
from contextlib import contextmanager

from services.exceptions import DuplicateSubmissionError

logger = logging.getLogger(__name__)


class SingleFlightGuard:
    """
    Tracks which keys have a write in progress for one logical operation.

    A second `acquire()` for a key that is still in flight fails fast with
    DuplicateSubmissionError instead of queueing. The key is released when the
    block exits, whether it succeeded or raised.

    All callers share one event loop, so a plain set is enough: the check and
    the insert happen without an await in between.
    """

    def __init__(self, operation: str) -> None:
        self.operation = operation
        self._in_flight: set[Hashable] = set()

    def is_in_flight(self, key: Hashable) -> bool:
        """Check whether a write for `key` is currently running."""
        return key in self._in_flight

    @contextmanager
    def acquire(self, key: Hashable) -> Iterator[None]:
        """
        Mark `key` as in flight for the duration of the block.

        Raises:
            DuplicateSubmissionError: If `key` is already in flight.
        """
        if key in self._in_flight:
            logger.info("Rejected duplicate %s for %r", self.operation, key)
            raise DuplicateSubmissionError(self.operation)
        self._in_flight.add(key)
        try:
            yield
        finally:
            self._in_flight.discard(key)


create_bookmark_guard = SingleFlightGuard("create-bookmark")
sign_in_guard = SingleFlightGuard("sign-in")
sign_up_guard = SingleFlightGuard("sign-up")

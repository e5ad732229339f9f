"""
Progress Channel

Publish/subscribe of AnalysisProgress events. Observers are keyed by a
subscription handle, so one callable may be registered more than once.
"""

import itertools
import threading
from typing import Callable, Dict, Optional

from .types import AnalysisProgress

ProgressObserver = Callable[[AnalysisProgress], None]


class ProgressChannel:
    """
    Synchronous fan-out of progress events.

    Each emit() notifies a snapshot of the registry taken when the emission
    starts. Observers added during an emission wait for the next event;
    observers removed during an emission are skipped if not yet called.
    """

    def __init__(self):
        self._observers: Dict[int, ProgressObserver] = {}
        self._handles = itertools.count(1)
        self._lock = threading.Lock()

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._observers)

    def subscribe(self, observer: ProgressObserver) -> Callable[[], None]:
        """
        Register an observer.

        Returns:
            Function removing this registration. Calling it more than once
            is a no-op.
        """
        with self._lock:
            handle = next(self._handles)
            self._observers[handle] = observer

        def unsubscribe() -> None:
            with self._lock:
                self._observers.pop(handle, None)

        return unsubscribe

    def emit(self, progress: AnalysisProgress) -> None:
        """
        Notify every registered observer once.

        An observer that raises does not stop the fan-out; the first
        error is re-raised after all observers have been called.
        """
        with self._lock:
            snapshot = list(self._observers.items())

        first_error: Optional[Exception] = None
        for handle, observer in snapshot:
            with self._lock:
                still_registered = handle in self._observers
            if not still_registered:
                continue
            try:
                observer(progress)
            except Exception as e:
                if first_error is None:
                    first_error = e

        if first_error is not None:
            raise first_error

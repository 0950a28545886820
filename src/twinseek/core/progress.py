"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

core/progress.py
Cancellation and progress reporting shared by every pipeline stage.

- CancellationToken: thread-safe stop signal; callable, so it can be passed
  anywhere a `stopped_flag: Callable[[], bool]` is expected
- ScanObserverBase: no-op observer to subclass in UI layers
- CallbackObserver: observer assembled from plain callables
- ProgressController: the object stages talk to; drops every notification
  once cancellation was requested and shields the pipeline from observer errors
"""

import threading
import logging
from typing import Callable, Optional

from twinseek.core.models import FileRecord, ImageGroup
from twinseek.core.interfaces import ScanObserver

logger = logging.getLogger(__name__)


class CancellationToken:
    """Cooperative stop signal observed by all stages."""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def __call__(self) -> bool:
        return self._event.is_set()


class ScanObserverBase(ScanObserver):
    """Observer with empty handlers; override what you need."""

    def on_status(self, message: str) -> None:
        pass

    def on_progress(self, current: int, total: int) -> None:
        pass

    def on_group_created(self, group: ImageGroup) -> None:
        pass

    def on_member_added(self, group_id: str, image: FileRecord) -> None:
        pass

    def on_groups_merged(self, target: ImageGroup, absorbed_id: str) -> None:
        pass


class CallbackObserver(ScanObserverBase):
    """Adapts separate callables to the observer interface."""

    def __init__(
            self,
            status: Optional[Callable[[str], None]] = None,
            progress: Optional[Callable[[int, int], None]] = None,
            group_created: Optional[Callable[[ImageGroup], None]] = None,
            member_added: Optional[Callable[[str, FileRecord], None]] = None,
            groups_merged: Optional[Callable[[ImageGroup, str], None]] = None,
    ):
        self._status = status
        self._progress = progress
        self._group_created = group_created
        self._member_added = member_added
        self._groups_merged = groups_merged

    def on_status(self, message: str) -> None:
        if self._status:
            self._status(message)

    def on_progress(self, current: int, total: int) -> None:
        if self._progress:
            self._progress(current, total)

    def on_group_created(self, group: ImageGroup) -> None:
        if self._group_created:
            self._group_created(group)

    def on_member_added(self, group_id: str, image: FileRecord) -> None:
        if self._member_added:
            self._member_added(group_id, image)

    def on_groups_merged(self, target: ImageGroup, absorbed_id: str) -> None:
        if self._groups_merged:
            self._groups_merged(target, absorbed_id)


class ProgressController:
    """
    Routes stage notifications to an observer.

    Notifications are best-effort: nothing is delivered after cancellation,
    and an exception raised by the observer is logged, never propagated.
    Calls may arrive from worker threads; a lock serializes delivery.
    """

    def __init__(
            self,
            observer: Optional[ScanObserver] = None,
            stopped_flag: Optional[Callable[[], bool]] = None
    ):
        self.observer = observer or ScanObserverBase()
        self._stopped_flag = stopped_flag
        self._lock = threading.Lock()

    def is_cancelled(self) -> bool:
        return bool(self._stopped_flag and self._stopped_flag())

    def status(self, message: str) -> None:
        logger.debug(message)
        self._deliver(self.observer.on_status, message)

    def progress(self, current: int, total: int) -> None:
        self._deliver(self.observer.on_progress, current, total)

    def group_created(self, group: ImageGroup) -> None:
        self._deliver(self.observer.on_group_created, group)

    def member_added(self, group_id: str, image: FileRecord) -> None:
        self._deliver(self.observer.on_member_added, group_id, image)

    def groups_merged(self, target: ImageGroup, absorbed_id: str) -> None:
        self._deliver(self.observer.on_groups_merged, target, absorbed_id)

    def _deliver(self, handler: Callable, *args) -> None:
        if self.is_cancelled():
            return
        with self._lock:
            try:
                handler(*args)
            except Exception as e:
                logger.warning(f"Error in observer handler {getattr(handler, '__name__', handler)}: {e}")

"""
Copyright (c) 2025 initumX (initum.x@gmail.com)
Licensed under the MIT License

Qt worker runnables following the modern Qt pattern: QRunnable + QThreadPool.
Each worker runs one command and re-emits pipeline notifications as Qt signals,
so a UI can render similar-image groups while verification is still running.
"""
from PySide6.QtCore import QRunnable, QObject, Signal

from twinseek.core.models import DuplicateSearchParams, SimilarSearchParams, FileRecord, ImageGroup
from twinseek.core.progress import CancellationToken, ScanObserverBase
from twinseek.commands import DuplicateSearchCommand, SimilarImageCommand


class WorkerSignals(QObject):
    """Separate QObject to hold signals (QRunnable cannot emit signals directly)."""
    status = Signal(str)
    progress = Signal(int, int)              # current, total
    group_created = Signal(object)           # ImageGroup
    member_added = Signal(str, object)       # group_id, FileRecord
    groups_merged = Signal(object, str)      # target ImageGroup, absorbed group_id
    finished = Signal(list, object)          # groups, stats
    error = Signal(str)


class SignalObserver(ScanObserverBase):
    """Forwards observer calls to WorkerSignals. Emission is thread-safe in Qt."""

    def __init__(self, signals: WorkerSignals):
        self.signals = signals

    def on_status(self, message: str) -> None:
        self.signals.status.emit(message)

    def on_progress(self, current: int, total: int) -> None:
        self.signals.progress.emit(current, total)

    def on_group_created(self, group: ImageGroup) -> None:
        self.signals.group_created.emit(group)

    def on_member_added(self, group_id: str, image: FileRecord) -> None:
        self.signals.member_added.emit(group_id, image)

    def on_groups_merged(self, target: ImageGroup, absorbed_id: str) -> None:
        self.signals.groups_merged.emit(target, absorbed_id)


class _CommandWorker(QRunnable):
    """
    Shared run/stop logic. Automatically deleted after execution (setAutoDelete=True).
    """
    def __init__(self, command, params):
        super().__init__()
        self.command = command
        self.params = params
        self.signals = WorkerSignals()
        self.token = CancellationToken()
        self.setAutoDelete(True)  # Critical: auto-delete after run() completes

    def stop(self):
        """Request cooperative cancellation; the pipeline stops at its next check."""
        self.token.cancel()

    def is_stopped(self) -> bool:
        """Returns True if the worker has been requested to stop."""
        return self.token.is_cancelled

    def run(self):
        """Main execution method. Runs in thread pool thread."""
        try:
            if self.is_stopped():
                return

            groups, stats = self.command.execute(
                self.params,
                stopped_flag=self.token,
                observer=SignalObserver(self.signals)
            )

            # Partial similar-image results are still delivered after a stop
            self.signals.finished.emit(groups, stats)
        except Exception as e:
            if not self.is_stopped():
                self.signals.error.emit(f"{type(e).__name__}: {str(e)}")


class DuplicateSearchWorker(_CommandWorker):
    """Runs DuplicateSearchCommand in a thread pool thread."""
    def __init__(self, params: DuplicateSearchParams):
        super().__init__(DuplicateSearchCommand(), params)


class SimilarImageWorker(_CommandWorker):
    """Runs SimilarImageCommand in a thread pool thread; group events stream as signals."""
    def __init__(self, params: SimilarSearchParams):
        super().__init__(SimilarImageCommand(), params)

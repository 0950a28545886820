"""
Unit tests for the Qt worker runnables: thread integration layer.
Verifies cancellation, signal emission, and error handling.
Skipped when PySide6 (the [gui] extra) is not installed.
"""
import pytest

pytest.importorskip("PySide6")

from unittest.mock import Mock

from twinseek.core import DuplicateSearchParams, SimilarSearchParams, ScanStats
from twinseek.gui.worker import DuplicateSearchWorker, SimilarImageWorker, SignalObserver, WorkerSignals


class TestDuplicateSearchWorker:
    """Test worker stop flag and signal emission."""

    def test_stop_sets_stopped_flag(self):
        """stop() must cancel the worker's token."""
        worker = DuplicateSearchWorker(DuplicateSearchParams(roots=["/tmp"]))

        assert worker.is_stopped() is False
        worker.stop()
        assert worker.is_stopped() is True
        assert worker.token() is True

    def test_run_emits_finished_with_results(self, duplicate_tree):
        worker = DuplicateSearchWorker(DuplicateSearchParams(
            roots=[str(duplicate_tree["root1"]), str(duplicate_tree["root2"])]))
        finished = []
        worker.signals.finished.connect(lambda groups, stats: finished.append((groups, stats)))

        worker.run()

        assert len(finished) == 1
        groups, stats = finished[0]
        assert len(groups) == 2
        assert isinstance(stats, ScanStats)

    def test_run_does_nothing_when_stopped_before_start(self, duplicate_tree):
        worker = DuplicateSearchWorker(DuplicateSearchParams(roots=[str(duplicate_tree["root1"])]))
        finished = []
        worker.signals.finished.connect(lambda groups, stats: finished.append(groups))

        worker.stop()
        worker.run()

        assert finished == []

    def test_command_errors_are_emitted(self):
        """Exceptions inside the command become an error signal, not a crash."""
        worker = DuplicateSearchWorker(DuplicateSearchParams(roots=["/tmp"]))
        worker.command = Mock()
        worker.command.execute.side_effect = RuntimeError("disk on fire")
        errors = []
        worker.signals.error.connect(errors.append)

        worker.run()

        assert errors == ["RuntimeError: disk on fire"]


class TestSimilarImageWorker:

    def test_group_events_become_signals(self, photo_tree):
        worker = SimilarImageWorker(SimilarSearchParams(roots=[str(r) for r in photo_tree["roots"]], workers=2))
        created = []
        statuses = []
        worker.signals.group_created.connect(lambda group: created.append(group.group_id))
        worker.signals.status.connect(statuses.append)

        worker.run()

        assert created == ["group_0"]
        assert statuses


class TestSignalObserver:

    def test_forwards_merge_events(self):
        signals = WorkerSignals()
        merged = []
        signals.groups_merged.connect(lambda target, absorbed: merged.append(absorbed))

        SignalObserver(signals).on_groups_merged(Mock(), "group_3")

        assert merged == ["group_3"]

"""
Unit tests for cancellation and observer routing.
"""
from twinseek.core import CancellationToken, ProgressController, CallbackObserver, ScanObserverBase
from twinseek.core import ImageGroup, FileRecord


class TestCancellationToken:

    def test_starts_not_cancelled(self):
        token = CancellationToken()
        assert token.is_cancelled is False
        assert token() is False

    def test_cancel_is_visible_through_call(self):
        """The token can be passed wherever a stopped_flag callable is expected."""
        token = CancellationToken()
        token.cancel()
        assert token.is_cancelled is True
        assert token() is True


class TestProgressController:

    def test_routes_every_notification(self):
        received = []
        observer = CallbackObserver(
            status=lambda m: received.append(("status", m)),
            progress=lambda c, t: received.append(("progress", c, t)),
            group_created=lambda g: received.append(("created", g.group_id)),
            member_added=lambda gid, image: received.append(("added", gid, image.name)),
            groups_merged=lambda target, absorbed: received.append(("merged", target.group_id, absorbed)),
        )
        controller = ProgressController(observer)
        group = ImageGroup(group_id="group_0")

        controller.status("hello")
        controller.progress(1, 10)
        controller.group_created(group)
        controller.member_added("group_0", FileRecord.from_path("/a/b.png", 1))
        controller.groups_merged(group, "group_1")

        assert received == [
            ("status", "hello"),
            ("progress", 1, 10),
            ("created", "group_0"),
            ("added", "group_0", "b.png"),
            ("merged", "group_0", "group_1"),
        ]

    def test_nothing_is_delivered_after_cancel(self):
        messages = []
        token = CancellationToken()
        controller = ProgressController(CallbackObserver(status=messages.append), stopped_flag=token)

        controller.status("before")
        token.cancel()
        controller.status("after")

        assert messages == ["before"]
        assert controller.is_cancelled()

    def test_observer_errors_do_not_propagate(self):
        """A failing observer must never break the pipeline."""
        def explode(message):
            raise RuntimeError("UI gone")

        controller = ProgressController(CallbackObserver(status=explode))
        controller.status("still fine")  # no exception

    def test_default_observer_ignores_everything(self):
        controller = ProgressController()
        controller.status("x")
        controller.progress(0, 0)
        assert isinstance(controller.observer, ScanObserverBase)

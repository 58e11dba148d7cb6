"""
Tests for the viewer session lifecycle and the Textual app
"""
from unittest.mock import MagicMock

import pytest

from threadview.tui.app import ThreadviewApp
from threadview.tui.message_actions import Archive
from threadview.tui.session import ViewerSession
from threadview.tui.view_state import ViewSnapshot
from threadview.tui.widgets.thread_list import ThreadList
from threadview.utils.config import AppConfig

from .test_helpers import MailTestHelper, RedrawRecorder


@pytest.fixture
def session(cache, engine, scheduler):
    return ViewerSession(
        engine,
        cache,
        AppConfig(),
        scheduler=scheduler,
        action_executor=MagicMock(),
    )


class TestViewerSession:
    """Tests for wiring and shutdown"""

    def test_components_share_state(self, session):
        assert session.scroll.state is session.state
        assert session.refresh_loop.state is session.state
        assert session.refresh_loop.interval == 5

    def test_start_schedules_refresh(self, session, scheduler):
        session.start(redraw=RedrawRecorder())

        assert session.running is True
        scheduler.add_job.assert_called_once()

    def test_start_twice(self, session, scheduler):
        session.start(redraw=RedrawRecorder())
        session.start(redraw=RedrawRecorder())

        assert scheduler.add_job.call_count == 1

    def test_redraw_goes_to_callback(self, session):
        recorder = RedrawRecorder()
        session.start(redraw=recorder)

        session.scroll.resize(10)

        assert recorder.count == 1

    def test_stop_is_idempotent(self, session, engine):
        session.start(redraw=RedrawRecorder())

        session.stop()
        session.stop()

        assert session.refresh_loop.stopped is True
        engine.shutdown.assert_called_once_with()
        session.dispatcher._executor.shutdown.assert_called_once_with(wait=False, cancel_futures=True)

    def test_no_redraw_after_stop(self, session):
        recorder = RedrawRecorder()
        session.start(redraw=recorder)
        session.stop()

        session.scroll.resize(10)

        assert recorder.count == 0

    def test_cannot_restart_after_stop(self, session, scheduler):
        session.stop()
        session.start(redraw=RedrawRecorder())

        assert session.running is False
        scheduler.add_job.assert_not_called()

    def test_pagination_uses_active_query(self, session, engine):
        session.refresh_loop.query = MagicMock()
        session.state.replace_rows(MailTestHelper.create_rows(2))
        session.start(redraw=RedrawRecorder())

        session.scroll.move_down()

        engine.query.assert_called_once_with(session.refresh_loop.query, after="M1")


class TestThreadviewApp:
    """Tests driving the app through Textual's pilot"""

    @pytest.mark.asyncio
    async def test_keys_move_cursor(self, session):
        session.state.replace_rows(MailTestHelper.create_rows(5))
        app = ThreadviewApp(session)

        async with app.run_test(size=(100, 12)) as pilot:
            await pilot.press("down", "down")
            await pilot.pause()

            thread_list = app.query_one(ThreadList)
            assert session.state.snapshot().cursor == 2
            assert thread_list.snapshot.cursor == 2

    @pytest.mark.asyncio
    async def test_action_key_dispatches(self, session):
        session.state.replace_rows(MailTestHelper.create_rows(3))
        app = ThreadviewApp(session)

        async with app.run_test(size=(100, 12)) as pilot:
            await pilot.press("a")
            await pilot.pause()

        submit = session.dispatcher._executor.submit
        submit.assert_called_once()
        assert submit.call_args.args[1] == Archive()

    @pytest.mark.asyncio
    async def test_quit_stops_session(self, session, engine):
        app = ThreadviewApp(session)

        async with app.run_test(size=(100, 12)) as pilot:
            await pilot.press("q")
            await pilot.pause()

        assert session.refresh_loop.stopped is True
        engine.shutdown.assert_called_once_with()

    @pytest.mark.asyncio
    async def test_resize_reaches_view_state(self, session):
        session.state.replace_rows(MailTestHelper.create_rows(30))
        app = ThreadviewApp(session)

        async with app.run_test(size=(100, 12)) as pilot:
            await pilot.pause()
            assert session.state.snapshot().visible_rows == 12

    def test_older_snapshots_dropped(self, session):
        """The widget keeps the newest snapshot it has seen"""
        widget = ThreadList()
        newer = session.state.replace_rows(MailTestHelper.create_rows(2))
        stale = ViewSnapshot(
            rows=(), cursor=0, offset=0, visible_rows=0, loaded=False, status=None,
            version=newer.version - 1,
        )

        widget._snapshot = newer
        widget.show(stale)

        assert widget.snapshot is newer


"""
Shared test fixtures and configuration for pytest
"""
from unittest.mock import MagicMock

import pytest

from threadview.tui.view_state import ViewState
from threadview.utils import logging as threadview_logging
from threadview.utils.console import reset_console

from .test_helpers import CacheTestHelper, EngineTestHelper, MailTestHelper, RedrawRecorder


@pytest.fixture(autouse=True)
def isolated_logging(tmp_path):
    """Send log files to a temporary directory for each test"""
    threadview_logging.reset_logging()
    threadview_logging.init_logging("DEBUG", log_dir=tmp_path / "logs")
    yield
    threadview_logging.reset_logging()


@pytest.fixture(autouse=True)
def fresh_console():
    """Each test gets its own Console bound to the current stderr"""
    reset_console()
    yield
    reset_console()


@pytest.fixture
def rows():
    """Fifteen single-message rows"""
    return MailTestHelper.create_rows(15)


@pytest.fixture
def state(rows):
    """View state over fifteen rows, ten visible"""
    view = ViewState(rows)
    view.on_resize(10)
    return view


@pytest.fixture
def cache():
    return CacheTestHelper.create_cache()


@pytest.fixture
def engine():
    return EngineTestHelper.create_mock_engine()


@pytest.fixture
def redraw():
    return RedrawRecorder()


@pytest.fixture
def scheduler():
    """Stand-in for the APScheduler BackgroundScheduler"""
    mock = MagicMock()
    mock.running = False
    return mock

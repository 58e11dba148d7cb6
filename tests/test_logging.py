"""
Tests for logging setup, log masking and error helpers
"""
import json
import logging

import pytest

from threadview.utils import logging as threadview_logging
from threadview.utils.errors import (
    ErrorCategory,
    ErrorHandler,
    NetworkError,
    UnauthorizedError,
    error_context,
    format_error_message,
)
from threadview.utils.logging import (
    JSONFormatter,
    SensitiveDataMasker,
    get_logger,
    init_logging,
    log_call,
)


class TestSensitiveDataMasker:
    """Tests for credential masking"""

    @pytest.fixture
    def masker(self):
        return SensitiveDataMasker()

    def test_masks_password(self, masker):
        assert masker.mask_string("password=hunter2") == "password=[REDACTED]"

    def test_masks_basic_auth_header(self, masker):
        masked = masker.mask_string("Authorization: Basic bWU6cHc=")
        assert "bWU6cHc=" not in masked

    def test_masks_dict_fields(self, masker):
        masked = masker.mask_dict({"password": "pw", "nested": {"token": "t"}, "count": 3})
        assert masked == {"password": "[REDACTED]", "nested": {"token": "[REDACTED]"}, "count": 3}

    def test_plain_text_untouched(self, masker):
        assert masker.mask_string("Loaded 12 mailboxes") == "Loaded 12 mailboxes"


class TestLogManager:
    """Tests for logger setup"""

    def test_loggers_live_under_package_root(self):
        assert get_logger("tests.sample").name == "threadview.tests.sample"
        assert get_logger("threadview.core").name == "threadview.core"

    def test_context_logger(self, tmp_path):
        """Context passed to get_logger ends up in the JSON entry"""
        threadview_logging.reset_logging()
        init_logging("DEBUG", log_dir=tmp_path)

        get_logger("core.sync", context={"account": "A1"}).info("Loaded 3 mailboxes")
        threadview_logging.reset_logging()

        entry = json.loads((tmp_path / "app.log").read_text().splitlines()[-1])
        assert entry["context"] == {"account": "A1"}
        assert entry["logger"] == "threadview.core.sync"

    def test_file_log_is_json(self, tmp_path):
        threadview_logging.reset_logging()
        init_logging("DEBUG", log_dir=tmp_path)

        get_logger("tests").info("password=hunter2 refreshed")
        threadview_logging.reset_logging()

        entry = json.loads((tmp_path / "app.log").read_text().splitlines()[-1])
        assert entry["level"] == "INFO"
        assert "hunter2" not in entry["message"]

    def test_invalid_level(self):
        manager = init_logging("INFO")
        with pytest.raises(ValueError):
            manager.set_level("LOUD")

    def test_json_formatter_includes_context(self):
        record = logging.LogRecord("threadview", logging.ERROR, __file__, 1, "boom", None, None)
        record.context = {"url": "https://example.com"}

        entry = json.loads(JSONFormatter().format(record))

        assert entry["context"] == {"url": "https://example.com"}

    def test_log_call_passes_through(self):
        @log_call
        def add(a, b):
            return a + b

        assert add(2, 3) == 5

    def test_log_call_reraises(self):
        @log_call
        def fail():
            raise RuntimeError("nope")

        with pytest.raises(RuntimeError):
            fail()


class TestErrors:
    """Tests for the error hierarchy and helpers"""

    def test_default_message(self):
        error = UnauthorizedError()
        assert error.message == "Unauthorized"
        assert error.category == ErrorCategory.AUTHENTICATION

    def test_to_dict(self):
        error = NetworkError("reset", details={"url": "u"})
        assert error.to_dict() == {
            "error_type": "NetworkError",
            "category": "network",
            "message": "reset",
            "details": {"url": "u"},
        }

    def test_handle_unknown_error(self):
        result = ErrorHandler.handle(ValueError("bad"), "Parsing", log_traceback=False)
        assert result["error_type"] == "UnknownError"
        assert result["details"] == {"context": "Parsing"}

    def test_error_context_swallows(self):
        with error_context("Refreshing", reraise=False) as ctx:
            raise NetworkError("reset")
        assert ctx.error["message"] == "reset"

    def test_error_context_reraises(self):
        with pytest.raises(NetworkError):
            with error_context("Refreshing"):
                raise NetworkError("reset")

    def test_format_error_message(self):
        assert format_error_message(NetworkError("reset")) == "reset"
        assert format_error_message(RuntimeError("")).startswith("An unexpected error")

"""Tests for logging helpers."""

import json
import logging

from spider.utils.config import LoggingConfig
from spider.utils.logger import JSONFormatter, PerformanceFilter, get_crawler_logger, setup_logging


class TestCrawlerLogAdapter:

    def test_worker_id_is_prefixed_and_attached(self, caplog):
        logger = get_crawler_logger("spider.test", worker="worker-3")

        with caplog.at_level(logging.INFO, logger="spider.test"):
            logger.info("fetched page")

        record = caplog.records[-1]
        assert record.getMessage() == "[worker-3] fetched page"
        assert record.worker == "worker-3"


class TestJSONFormatter:

    def test_record_is_valid_json_with_context(self):
        record = logging.LogRecord("spider", logging.WARNING, __file__, 10, "oops %s", ("x",), None)
        record.worker = "worker-0"

        entry = json.loads(JSONFormatter().format(record))

        assert entry["message"] == "oops x"
        assert entry["level"] == "WARNING"
        assert entry["worker"] == "worker-0"


class TestPerformanceFilter:

    def test_noisy_loggers_are_dropped(self):
        noisy = logging.LogRecord("aiohttp.access", logging.INFO, __file__, 1, "GET /", (), None)
        normal = logging.LogRecord("spider.crawler", logging.INFO, __file__, 1, "ok", (), None)

        log_filter = PerformanceFilter()
        assert not log_filter.filter(noisy)
        assert log_filter.filter(normal)


class TestSetupLogging:

    def test_creates_log_files(self, tmp_path):
        log_file = tmp_path / "logs" / "spider.log"
        root = logging.getLogger()
        saved_handlers, saved_level = list(root.handlers), root.level

        setup_logging(LoggingConfig(file=str(log_file), level="DEBUG"))
        try:
            logging.getLogger("spider.test").error("written")
            for handler in root.handlers:
                handler.flush()

            assert "written" in log_file.read_text()
            assert (tmp_path / "logs" / "errors.log").exists()
        finally:
            for handler in list(root.handlers):
                handler.close()
                root.removeHandler(handler)
            for handler in saved_handlers:
                root.addHandler(handler)
            root.setLevel(saved_level)

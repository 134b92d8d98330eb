# Copyright (C) 2025 Gil Benezer
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU Affero General Public License as published
# by the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU Affero General Public License for more details.
#
# You should have received a copy of the GNU Affero General Public License
# along with this program.  If not, see <https://www.gnu.org/licenses/>.

"""
Unit tests for setup_logging
"""

import logging

import pytest

from lumpsim.logging_config import DATE_FORMAT, LOG_FORMAT, setup_logging


@pytest.fixture(autouse=True)
def restore_logger():
    logger = logging.getLogger("lumpsim")
    handlers, level = list(logger.handlers), logger.level
    yield
    for handler in logger.handlers:
        if handler not in handlers:
            handler.close()
    logger.handlers = handlers
    logger.setLevel(level)


class TestSetupLogging:
    def test_returns_package_logger(self):
        logger = setup_logging()
        assert logger.name == "lumpsim"
        assert logger.level == logging.INFO

    def test_level_by_name(self):
        assert setup_logging("debug").level == logging.DEBUG

    def test_level_by_number(self):
        assert setup_logging(logging.WARNING).level == logging.WARNING

    def test_unknown_level(self):
        with pytest.raises(ValueError, match="Unknown logging level"):
            setup_logging("LOUD")

    def test_console_handler(self):
        logger = setup_logging()
        assert len(logger.handlers) == 1
        handler = logger.handlers[0]
        assert isinstance(handler, logging.StreamHandler)
        assert handler.formatter._fmt == LOG_FORMAT
        assert handler.formatter.datefmt == DATE_FORMAT

    def test_repeated_calls_do_not_duplicate(self):
        setup_logging()
        logger = setup_logging()
        assert len(logger.handlers) == 1

    def test_log_file(self, tmp_path):
        path = tmp_path / "run.log"
        logger = setup_logging("INFO", log_file=str(path))
        assert len(logger.handlers) == 2

        logging.getLogger("lumpsim.demos").info("hello from a child logger")
        for handler in logger.handlers:
            handler.flush()

        text = path.read_text(encoding="utf-8")
        assert "lumpsim.demos - INFO - hello from a child logger" in text

    def test_level_filters_file(self, tmp_path):
        path = tmp_path / "run.log"
        logger = setup_logging("WARNING", log_file=str(path))
        logger.info("quiet")
        logger.warning("loud")
        for handler in logger.handlers:
            handler.flush()
        text = path.read_text(encoding="utf-8")
        assert "loud" in text
        assert "quiet" not in text

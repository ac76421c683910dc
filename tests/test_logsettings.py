import logging
import re

import pytest

from deckbuddy.logcategories import OS, UTILS
from deckbuddy.logsettings import (
    MAX_LOG_SIZE,
    LogSettings,
    append_empty_line,
    get_log_settings,
    swap_files_if_needed,
)


@pytest.fixture
def restore_logging():
    root = logging.getLogger("buddy")
    handlers = list(root.handlers)
    os_level = OS.level
    utils_level = UTILS.level
    yield
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
    OS.setLevel(os_level)
    UTILS.setLevel(utils_level)


def test_small_file_is_not_swapped(tmp_path):
    log = tmp_path / "app.log"
    log.write_bytes(b"x" * MAX_LOG_SIZE)
    swap_files_if_needed(log)
    assert log.exists()
    assert not (tmp_path / "app.log.old").exists()


def test_large_file_is_swapped_and_old_replaced(tmp_path):
    log = tmp_path / "app.log"
    old = tmp_path / "app.log.old"
    old.write_text("previous")
    log.write_bytes(b"y" * (MAX_LOG_SIZE + 1))
    swap_files_if_needed(log)
    assert not log.exists()
    assert old.stat().st_size == MAX_LOG_SIZE + 1


def test_swap_missing_file_does_nothing(tmp_path):
    swap_files_if_needed(tmp_path / "missing.log")
    assert list(tmp_path.iterdir()) == []


def test_append_empty_line(tmp_path):
    missing = tmp_path / "missing.log"
    append_empty_line(missing)
    assert not missing.exists()

    empty = tmp_path / "empty.log"
    empty.write_text("")
    append_empty_line(empty)
    assert empty.read_text() == ""

    used = tmp_path / "used.log"
    used.write_text("line")
    append_empty_line(used)
    assert used.read_text() == "line\n\n"


def test_singleton(tmp_path, restore_logging):
    log = tmp_path / "singleton.log"
    get_log_settings().init(log)
    assert get_log_settings().filepath() == str(log)


def test_init_without_path_keeps_filepath_empty(restore_logging):
    settings = LogSettings()
    settings.init("")
    assert settings.filepath() == ""


def test_init_writes_log_location(tmp_path, restore_logging, capsys):
    log = tmp_path / "stream.log"
    log.write_text("earlier")
    settings = LogSettings()
    settings.init(log)
    assert settings.filepath() == str(log)

    content = log.read_text()
    assert content.startswith("earlier\n\n")
    assert "INFO     buddy.utils: Log location: " + str(log) in content
    assert "Log location:" in capsys.readouterr().out


def test_message_format(tmp_path, restore_logging):
    log = tmp_path / "fmt.log"
    settings = LogSettings()
    settings.init(log)
    UTILS.warning("hello")
    line = log.read_text().splitlines()[-1]
    assert line[15:] == "WARNING  buddy.utils: hello"
    assert line[0] == "[" and line[13:15] == "] "
    assert re.fullmatch(r"\d\d:\d\d:\d\d\.\d{3}", line[1:13]) is not None


def test_logging_rules_enable_and_disable(restore_logging):
    settings = LogSettings()
    settings.set_logging_rules("buddy.os.debug=true")
    assert OS.isEnabledFor(logging.DEBUG)

    settings.set_logging_rules("buddy.os.debug=false;buddy.os.info=false")
    assert not OS.isEnabledFor(logging.INFO)
    assert OS.isEnabledFor(logging.WARNING)


def test_logging_rules_wildcard_and_empty(restore_logging):
    settings = LogSettings()
    level = UTILS.level
    settings.set_logging_rules("")
    assert UTILS.level == level

    settings.set_logging_rules("buddy.*=false")
    assert not UTILS.isEnabledFor(logging.CRITICAL)
    settings.set_logging_rules("buddy.utils=true")
    assert UTILS.isEnabledFor(logging.DEBUG)
import json

from shopmata.logging import ConsoleLogger, FileLogger, LogLevel, NullLogger


def test_file_logger_writes_json_lines(tmp_path):
    path = tmp_path / "events.jsonl"
    logger = FileLogger(str(path))

    logger.info("tool.completed", "Tool get_sales_summary completed", {"tool": "get_sales_summary", "store_id": 1})
    logger.debug("ai.request", "skipped below min level")

    lines = path.read_text().splitlines()
    assert len(lines) == 1
    entry = json.loads(lines[0])
    assert entry["level"] == "info"
    assert entry["event"] == "tool.completed"
    assert entry["data"] == {"tool": "get_sales_summary", "store_id": 1}


def test_console_logger_prints_key_data(capsys):
    logger = ConsoleLogger(min_level=LogLevel.INFO, colored=False)

    logger.info("tool.started", "Looking up sales data...", {"tool": "get_sales_summary", "store_id": 7, "other": "x"})
    logger.debug("ai.request", "hidden")

    out = capsys.readouterr().out
    assert "Looking up sales data..." in out
    assert "store_id=7, tool=get_sales_summary" in out
    assert "other" not in out
    assert "hidden" not in out


def test_console_logger_indents_nested_events(capsys):
    logger = ConsoleLogger(colored=False, show_data=False)

    logger.info("chat.completed", "done")
    logger.info("tool.completed", "tool done")

    first, second = capsys.readouterr().out.splitlines()
    assert not first.startswith(" ")
    assert second.startswith("  ")


def test_null_logger_accepts_everything():
    NullLogger().error("tool.failed", "ignored", {"error": "boom"})

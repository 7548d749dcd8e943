import json

from logger import get_logger, setup_logging


def test_log_lines_are_json_with_module_name(capsys):
    setup_logging("INFO")
    get_logger("routes.advisory").info("advisory_completed", advisory_id="a1")
    line = capsys.readouterr().out.strip().splitlines()[-1]
    entry = json.loads(line)
    assert entry["event"] == "advisory_completed"
    assert entry["logger_name"] == "routes.advisory"
    assert entry["advisory_id"] == "a1"
    assert entry["level"] == "info"


def test_debug_is_filtered_at_info(capsys):
    setup_logging("INFO")
    get_logger("seed").debug("noisy")
    assert capsys.readouterr().out == ""

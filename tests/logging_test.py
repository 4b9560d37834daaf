import json
import logging

import pytest
import structlog

from gcov_server.core.config import LogConfig
from gcov_server.core.errors import LoggingSetupError
from gcov_server.core.logging import RichConsoleRenderer
from gcov_server.core.logging import setup_logging


@pytest.fixture
def reset_logging():
    yield
    root = logging.getLogger()
    for handler in list(root.handlers):
        handler.close()
        root.removeHandler(handler)
    structlog.reset_defaults()


def test_setup_logging_writes_json_file(tmp_path, reset_logging):
    config = LogConfig(log_dir=tmp_path / 'logs', log_suffix='log')
    setup_logging(level='INFO', config=config)

    structlog.get_logger('logging_test').info('Summary ingested', org='acme')
    for handler in logging.getLogger().handlers:
        handler.flush()

    lines = config.log_file.read_text(encoding='utf-8').splitlines()
    entry = json.loads(lines[-1])
    assert entry['event'] == 'Summary ingested'
    assert entry['org'] == 'acme'
    assert entry['level'] == 'info'


def test_setup_logging_unwritable_dir(tmp_path, reset_logging):
    blocker = tmp_path / 'blocker'
    blocker.write_text('')
    with pytest.raises(LoggingSetupError) as exc_info:
        setup_logging(config=LogConfig(log_dir=blocker / 'logs'))
    assert exc_info.value.exit_code == 1


class TestRichConsoleRenderer:
    def test_renders_key_values(self):
        renderer = RichConsoleRenderer()
        out = renderer(None, 'info', {
            'event': 'Request handled', 'level': 'info', 'logger': 'http', 'status': 200,
        })
        assert 'Request handled' in out
        assert '[cyan]status[/cyan]' in out
        assert 'http' in out

    def test_escapes_markup_in_values(self):
        renderer = RichConsoleRenderer()
        out = renderer(None, 'error', {'event': 'bad [/red] input', 'level': 'error'})
        assert '\\[/red]' in out

"""Tests for repomirror.exit_codes."""

import pytest

from repomirror.errors import (
    ConfigurationError,
    HistoryError,
    ParseError,
    PersistenceError,
    StructureError,
)
from repomirror.exit_codes import (
    CONFIG_ERROR,
    DATA_ERROR,
    GENERAL_ERROR,
    HISTORY_ERROR,
    PERSISTENCE_ERROR,
    exit_with_code,
    get_exit_code_for_exception,
)


@pytest.mark.parametrize('exc,code', [
    (ConfigurationError('bad url'), CONFIG_ERROR),
    (ParseError('bad field', '/tmp/db.json'), DATA_ERROR),
    (StructureError('cycle'), DATA_ERROR),
    (PersistenceError('disk full', '/tmp/db.json'), PERSISTENCE_ERROR),
    (HistoryError('git failed'), HISTORY_ERROR),
    (RuntimeError('other'), GENERAL_ERROR),
])
def test_exit_code_for_exception(exc, code):
    assert get_exit_code_for_exception(exc) == code


def test_exit_with_code(capsys):
    with pytest.raises(SystemExit) as excinfo:
        exit_with_code(CONFIG_ERROR, "Error: bad url")
    assert excinfo.value.code == CONFIG_ERROR
    assert capsys.readouterr().err == "Error: bad url\n"

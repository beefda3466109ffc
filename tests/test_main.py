import pytest

import scdownload.__main__ as entry
from scdownload.exceptions import ConfigurationError


def _raising(error: BaseException):
    def app() -> None:
        raise error

    return app


def test_run_level_error_exits_with_code_one(monkeypatch, capsys) -> None:
    monkeypatch.setattr(entry, "app", _raising(ConfigurationError("bad max_workers")))

    with pytest.raises(SystemExit) as excinfo:
        entry.main()

    assert excinfo.value.code == 1
    assert "bad max_workers" in capsys.readouterr().out


def test_interrupt_exits_cleanly(monkeypatch) -> None:
    monkeypatch.setattr(entry, "app", _raising(KeyboardInterrupt()))

    with pytest.raises(SystemExit) as excinfo:
        entry.main()

    assert excinfo.value.code == 0

import json
from datetime import date
from pathlib import Path

import pytest

from config import AppSettings
from db.db import init_db
from db.repositories import SqlLedgerStore
from domain.ledger import TransactionType
from main import main
from tests.helpers.factories import USER_ID, make_account, make_position, make_transaction


@pytest.fixture()
def database_url(tmp_path: Path) -> str:
    url = f"sqlite:///{tmp_path / 'folio.db'}"
    session = init_db(url)
    store = SqlLedgerStore(session)
    store.add_account(make_account("a1"))
    store.add_position(make_position("p1", symbol="AAA", shares="2", price="60", cost="100"))
    store.add_transaction(make_transaction("d1", TransactionType.DIVIDEND, date(2024, 1, 5), "4", position_id="p1"))
    session.close()
    return url


def test_json_output(database_url: str, capsys: pytest.CaptureFixture[str]) -> None:
    exit_code = main(["holdings", "--user", USER_ID, "--database-url", database_url, "--format", "json"])

    payload = json.loads(capsys.readouterr().out)
    assert exit_code == 0
    assert payload["summary"]["total_value"] == "120.00"
    assert payload["holdings"][0]["symbol"] == "AAA"


def test_text_output(database_url: str, capsys: pytest.CaptureFixture[str]) -> None:
    exit_code = main(["income", "--user", USER_ID, "--database-url", database_url])

    assert exit_code == 0
    assert "Income 4.00 from 1 payments" in capsys.readouterr().out


def test_invalid_filter_exits_with_error(database_url: str) -> None:
    exit_code = main(["gain-loss", "--user", USER_ID, "--database-url", database_url, "--type", "sometimes"])

    assert exit_code == 2


def test_property_report_requires_property(database_url: str) -> None:
    assert main(["property", "--user", USER_ID, "--database-url", database_url]) == 2


def test_settings_read_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LONG_TERM_HOLDING_DAYS", "400")
    monkeypatch.setenv("DEFAULT_PERIOD", "quarter")
    monkeypatch.delenv("DATABASE_URL", raising=False)

    settings = AppSettings()

    assert settings.long_term_holding_days == 400
    assert settings.default_period == "quarter"
    assert settings.database_url == "sqlite:///folio.db"

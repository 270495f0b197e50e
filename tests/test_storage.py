from __future__ import annotations

import os
import tempfile

import pytest

from fxsim.broker.ledger import INITIAL_BALANCE, TradingLedger
from fxsim.core.config import StorageConfig
from fxsim.core.errors import PersistenceError
from fxsim.storage.codec import BALANCE_KEY, TRADES_KEY
from fxsim.storage.kv import JSONFileStore, MemoryStore, SQLiteKeyValueStore, build_store


@pytest.fixture(autouse=True)
def _no_env_override(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("FXSIM_STORE_DB", raising=False)


def test_sqlite_set_get_delete() -> None:
    with tempfile.TemporaryDirectory() as tmp:
        kv = SQLiteKeyValueStore(db_path=os.path.join(tmp, "ledger.db"))
        assert kv.get("missing") is None
        kv.set_many({"a": "1", "b": "2"})
        kv.set_many({"a": "3"})
        assert kv.get("a") == "3" and kv.get("b") == "2"
        kv.delete("b")
        assert kv.get("b") is None
        kv.close()


def test_sqlite_ledger_survives_reopen() -> None:
    with tempfile.TemporaryDirectory() as tmp:
        path = os.path.join(tmp, "ledger.db")
        kv = SQLiteKeyValueStore(db_path=path)
        ledger = TradingLedger(store=kv)
        t = ledger.open_trade("GBPUSD", "SELL", 0.2, 1.2650, 1.2700, 1.2550).trade
        ledger.update_trade_price(t.id, 1.2600)
        kv.close()

        kv2 = SQLiteKeyValueStore(db_path=path)
        fresh = TradingLedger(store=kv2)
        reloaded = fresh.get_trade(t.id)
        assert reloaded.current_price == 1.2600
        assert reloaded.pnl == pytest.approx(0.01)
        assert fresh.get_balance() == INITIAL_BALANCE
        kv2.close()


def test_json_store_round_trip_and_corruption() -> None:
    with tempfile.TemporaryDirectory() as tmp:
        path = os.path.join(tmp, "ledger.json")
        ledger = TradingLedger(store=JSONFileStore(path))
        t = ledger.open_trade("USDJPY", "BUY", 0.1, 150.0, 149.5, 151.0).trade
        ledger.close_trade(t.id, 150.5)

        fresh = TradingLedger(store=JSONFileStore(path))
        assert fresh.get_closed_trades()[0].exit_price == 150.5
        assert fresh.get_balance() == pytest.approx(INITIAL_BALANCE + 50.0)

        with open(path, "w", encoding="utf-8") as f:
            f.write("{broken")
        recovered = TradingLedger(store=JSONFileStore(path))
        assert recovered.get_all_trades() == []
        assert recovered.get_balance() == INITIAL_BALANCE


def test_json_store_writes_keys_together() -> None:
    with tempfile.TemporaryDirectory() as tmp:
        store = JSONFileStore(os.path.join(tmp, "nested", "ledger.json"))
        store.set_many({TRADES_KEY: "[]", BALANCE_KEY: "1.5"})
        assert store.get(TRADES_KEY) == "[]"
        assert store.get(BALANCE_KEY) == "1.5"
        assert [n for n in os.listdir(os.path.join(tmp, "nested")) if n.endswith(".json")] == ["ledger.json"]


def test_build_store() -> None:
    with tempfile.TemporaryDirectory() as tmp:
        assert isinstance(build_store(StorageConfig(type="memory")), MemoryStore)
        assert isinstance(build_store(StorageConfig(type="json", path=os.path.join(tmp, "s.json"))), JSONFileStore)
        sq = build_store(StorageConfig(type="sqlite", path=os.path.join(tmp, "s.db")))
        assert isinstance(sq, SQLiteKeyValueStore)
        sq.close()


def test_unusable_directory_is_persistence_error() -> None:
    with tempfile.TemporaryDirectory() as tmp:
        blocker = os.path.join(tmp, "not-a-dir")
        with open(blocker, "w", encoding="utf-8") as f:
            f.write("x")
        with pytest.raises(PersistenceError):
            SQLiteKeyValueStore(db_path=os.path.join(blocker, "sub", "ledger.db"))
        with pytest.raises(PersistenceError):
            JSONFileStore(os.path.join(blocker, "sub", "ledger.json"))

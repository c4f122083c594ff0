from datetime import datetime

import pandas as pd
import pytest

from outletdeck import duckdb_loader
from outletdeck.models import PAYMENT_TYPES

CSV = """Customer Name,Mobile,Outlet,Date Time,Items,Total Price
Asha,09876543210,Kondapur,2025-05-03 12:30:00,"Kunafa Chocolate, Almond Basbousa",713
Ravi,9123456780,Kompally,2025-05-04 20:15:00,Mystery Cake,100
Meera,9000000000,Kompally,2025-05-05 23:45:00,"Triangle Baklava, Mystery Cake",439
,9000000009,Kompally,2025-05-06 10:00:00,Triangle Baklava,439
"""


@pytest.fixture
def db_file(tmp_path):
    return str(tmp_path / "orders.duckdb")


def test_missing_table_loads_nothing(db_file):
    assert not duckdb_loader.table_exists(db_file=db_file)
    assert duckdb_loader.load_orders(db_file=db_file) == []


def test_ingest_and_load(tmp_path, db_file):
    path = tmp_path / "orders.csv"
    path.write_text(CSV)
    duckdb_loader.ingest_from_path(str(path), db_file=db_file)

    assert duckdb_loader.table_exists(db_file=db_file)
    orders = duckdb_loader.load_orders(db_file=db_file)
    assert [o.customer.name for o in orders] == ["Asha", "Meera"]

    asha, meera = orders
    assert asha.customer.mobile == "09876543210"
    assert asha.timestamp == datetime(2025, 5, 3, 12, 30)
    assert asha.id.startswith("KDR-") and asha.id.endswith("-1")
    assert asha.db_id == "csv-order-1"
    assert asha.subtotal == pytest.approx(648)
    assert asha.total == pytest.approx(712.8)
    assert asha.payment_type in PAYMENT_TYPES

    assert [it.item.name for it in meera.items] == ["Triangle Baklava"]
    assert meera.id.startswith("KPL-") and meera.id.endswith("-3")


def test_ingest_from_bytes_overwrites(db_file):
    duckdb_loader.ingest_from_bytes(CSV.encode(), db_file=db_file)
    duckdb_loader.ingest_from_bytes(CSV.encode(), db_file=db_file)
    assert len(duckdb_loader.read_table(db_file=db_file)) == 4


def test_payment_type_is_stable():
    assert duckdb_loader.payment_type_for("Asha") == duckdb_loader.payment_type_for("Asha")


def test_offset_timestamps_convert_to_local_time():
    df = pd.DataFrame(
        [
            ["Asha", "9000000001", "Kondapur", "2025-05-03T07:00:00+00:00", "Kunafa Chocolate", "384"],
            ["Ravi", "9000000002", "Kondapur", "2025-05-03 07:00:00", "Kunafa Chocolate", "384"],
        ],
        columns=duckdb_loader.CSV_COLUMNS,
    )
    asha, ravi = duckdb_loader.frame_to_orders(df, tz="Asia/Kolkata")
    assert asha.timestamp == datetime(2025, 5, 3, 12, 30)
    assert ravi.timestamp == datetime(2025, 5, 3, 7, 0)

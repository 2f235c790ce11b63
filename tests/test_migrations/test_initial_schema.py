"""The migration chain builds the schema the models expect, constraints included."""

import uuid
from pathlib import Path

import pytest
from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine, inspect, text
from sqlalchemy.exc import IntegrityError

ROOT = Path(__file__).resolve().parents[2]


@pytest.fixture
def migrated_db(tmp_path):
    db_path = tmp_path / "migrated.db"
    config = Config(str(ROOT / "alembic.ini"))
    config.set_main_option("script_location", str(ROOT / "alembic"))
    config.set_main_option("sqlalchemy.url", f"sqlite+aiosqlite:///{db_path}")
    command.upgrade(config, "head")
    engine = create_engine(f"sqlite:///{db_path}")
    yield engine, config
    engine.dispose()


def _insert_owner_and_spot(conn, price: str = "100.00") -> tuple[str, str]:
    owner_id, spot_id = uuid.uuid4().hex, uuid.uuid4().hex
    conn.execute(
        text(
            "INSERT INTO users (id, email, hashed_password, name, is_active, role) "
            "VALUES (:id, :email, 'x', 'Owner', 1, 'OWNER')"
        ),
        {"id": owner_id, "email": f"{owner_id}@test.com"},
    )
    conn.execute(
        text("INSERT INTO spots (id, owner_id, title, price) VALUES (:id, :owner, 'Spot', :price)"),
        {"id": spot_id, "owner": owner_id, "price": price},
    )
    return owner_id, spot_id


class TestInitialMigration:
    def test_creates_tables_and_indexes(self, migrated_db):
        engine, _ = migrated_db
        inspector = inspect(engine)

        assert {"users", "spots", "reservations"} <= set(inspector.get_table_names())
        index_names = {ix["name"] for ix in inspector.get_indexes("reservations")}
        assert "ix_reservations_spot_dates" in index_names
        check_names = {ck["name"] for ck in inspector.get_check_constraints("reservations")}
        assert "ck_reservations_range" in check_names

    def test_rejects_inverted_range(self, migrated_db):
        engine, _ = migrated_db
        with pytest.raises(IntegrityError), engine.begin() as conn:
            owner_id, spot_id = _insert_owner_and_spot(conn)
            conn.execute(
                text(
                    "INSERT INTO reservations (id, spot_id, guest_id, date_from, date_to) "
                    "VALUES (:id, :spot, :guest, :date_from, :date_to)"
                ),
                {
                    "id": uuid.uuid4().hex,
                    "spot": spot_id,
                    "guest": owner_id,
                    "date_from": "2030-06-18",
                    "date_to": "2030-06-15",
                },
            )

    def test_rejects_non_positive_price(self, migrated_db):
        engine, _ = migrated_db
        with pytest.raises(IntegrityError), engine.begin() as conn:
            _insert_owner_and_spot(conn, price="0")

    def test_downgrade_drops_everything(self, migrated_db):
        engine, config = migrated_db
        command.downgrade(config, "base")

        assert not {"users", "spots", "reservations"} & set(inspect(engine).get_table_names())

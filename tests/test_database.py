"""Tests for database initialization, seeding and transactions."""

import asyncio
import sqlite3

import pytest

from app.database import PostgresAdapter, _sqlite_path_from_url, seed_family_problems


async def test_init_creates_tables(db):
    """Test that init_db creates the expected tables."""
    rows = await db.fetch_all(
        "SELECT name FROM sqlite_master WHERE type='table' ORDER BY name"
    )
    tables = [row[0] for row in rows]
    for table in (
        "person", "address", "emergency_contact", "application", "intake",
        "allergy", "medication", "past_med_history_event", "nutrition_history",
        "social_history", "tb_screening", "sexual_history", "sti_interest",
        "dental_history", "male_history", "female_history", "family_history",
        "family_problem_lookup", "family_history_problem",
    ):
        assert table in tables


async def test_seed_is_idempotent(db):
    await seed_family_problems(db)
    await seed_family_problems(db)
    row = await db.fetch_one("SELECT COUNT(*) as cnt FROM family_problem_lookup")
    assert row["cnt"] == 10


async def test_insert_returns_generated_id(db):
    first = await db.insert(
        "INSERT INTO person (legal_first_name, legal_last_name) VALUES (?, ?)",
        ("Ana", "Lopez"),
        returning="person_id",
    )
    second = await db.insert(
        "INSERT INTO person (legal_first_name, legal_last_name) VALUES (?, ?)",
        ("Sam", "Reed"),
        returning="person_id",
    )
    await db.commit()
    assert second > first


async def test_person_defaults(db):
    person_id = await db.insert(
        "INSERT INTO person (legal_first_name, legal_last_name) VALUES (?, ?)",
        ("Ana", "Lopez"),
        returning="person_id",
    )
    await db.commit()
    row = await db.fetch_one("SELECT * FROM person WHERE person_id = ?", (person_id,))
    assert row["preferred_name"] is None
    assert row["created_at"]


async def test_foreign_keys_enforced(db):
    with pytest.raises(sqlite3.IntegrityError):
        await db.execute("INSERT INTO address (person_id, street) VALUES (?, ?)", (12345, "Nowhere"))


async def test_immunization_check_constraint(db):
    person_id = await db.insert(
        "INSERT INTO person (legal_first_name, legal_last_name) VALUES (?, ?)",
        ("Ana", "Lopez"),
        returning="person_id",
    )
    application_id = await db.insert(
        "INSERT INTO application (applicant_id) VALUES (?)", (person_id,), returning="application_id"
    )
    with pytest.raises(sqlite3.IntegrityError):
        await db.execute(
            "INSERT INTO intake (application_id, main_reason_for_visit, immunizations_current) VALUES (?, ?, ?)",
            (application_id, "Checkup", "maybe"),
        )
    await db.conn.rollback()


async def test_transaction_commits(db):
    async with db.transaction() as tx:
        await tx.execute(
            "INSERT INTO person (legal_first_name, legal_last_name) VALUES (?, ?)", ("Ana", "Lopez")
        )
    row = await db.fetch_one("SELECT COUNT(*) as cnt FROM person")
    assert row["cnt"] == 1


async def test_transaction_rolls_back_on_error(db):
    with pytest.raises(RuntimeError):
        async with db.transaction() as tx:
            await tx.execute(
                "INSERT INTO person (legal_first_name, legal_last_name) VALUES (?, ?)", ("Ana", "Lopez")
            )
            raise RuntimeError("step failed")
    row = await db.fetch_one("SELECT COUNT(*) as cnt FROM person")
    assert row["cnt"] == 0


async def test_ids_not_reused_after_delete(db):
    first = await db.insert(
        "INSERT INTO person (legal_first_name, legal_last_name) VALUES (?, ?)",
        ("Ana", "Lopez"),
        returning="person_id",
    )
    await db.execute("DELETE FROM person WHERE person_id = ?", (first,))
    second = await db.insert(
        "INSERT INTO person (legal_first_name, legal_last_name) VALUES (?, ?)",
        ("Sam", "Reed"),
        returning="person_id",
    )
    await db.commit()
    assert second > first


def test_postgres_placeholder_translation():
    q = PostgresAdapter._translate_query("SELECT * FROM person WHERE person_id = ? AND phone = ?")
    assert q == "SELECT * FROM person WHERE person_id = $1 AND phone = $2"


def test_sqlite_path_from_url():
    assert _sqlite_path_from_url("sqlite:///clinic.db") == "clinic.db"
    assert _sqlite_path_from_url("sqlite:////var/data/clinic.db") == "/var/data/clinic.db"
    assert _sqlite_path_from_url("sqlite://") == ""


async def test_reads_wait_for_open_transaction(db):
    started = asyncio.Event()
    release = asyncio.Event()

    async def failing_writer():
        async with db.transaction() as tx:
            await tx.execute(
                "INSERT INTO person (legal_first_name, legal_last_name) VALUES (?, ?)", ("Ana", "Lopez")
            )
            started.set()
            await release.wait()
            raise RuntimeError("step failed")

    writer = asyncio.create_task(failing_writer())
    await started.wait()
    reader = asyncio.create_task(db.fetch_one("SELECT COUNT(*) as cnt FROM person"))
    await asyncio.sleep(0.05)
    assert not reader.done()

    release.set()
    with pytest.raises(RuntimeError):
        await writer
    row = await reader
    assert row["cnt"] == 0


async def test_transaction_reads_its_own_writes(db):
    async with db.transaction() as tx:
        person_id = await tx.insert(
            "INSERT INTO person (legal_first_name, legal_last_name) VALUES (?, ?)",
            ("Ana", "Lopez"),
            returning="person_id",
        )
        row = await tx.fetch_one("SELECT legal_first_name FROM person WHERE person_id = ?", (person_id,))
        assert row["legal_first_name"] == "Ana"

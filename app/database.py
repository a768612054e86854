from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import AsyncIterator, Iterable, Sequence
from urllib.parse import urlparse

import aiosqlite

from app.config import DATABASE_MAX_CONNECTIONS, DATABASE_PATH, DATABASE_URL, SEED_FAMILY_PROBLEMS
from app.services.relation_normalizer import CANONICAL_PROBLEM_NAMES

try:  # Optional: only required when DATABASE_URL points at Postgres
    import asyncpg  # type: ignore
except Exception:  # pragma: no cover - optional dependency
    asyncpg = None

logger = logging.getLogger(__name__)


class DatabaseAdapter:
    engine: str

    async def execute(self, query: str, params: Sequence | None = None) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    async def executemany(self, query: str, seq_params: Iterable[Sequence]) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    async def insert(self, query: str, params: Sequence, returning: str) -> int:  # pragma: no cover - interface
        """Run an INSERT and return the generated value of ``returning``."""
        raise NotImplementedError

    async def fetch_one(self, query: str, params: Sequence | None = None):  # pragma: no cover - interface
        raise NotImplementedError

    async def fetch_all(self, query: str, params: Sequence | None = None):  # pragma: no cover - interface
        raise NotImplementedError

    def transaction(self):  # pragma: no cover - interface
        """Async context manager yielding an adapter whose writes commit or roll back together."""
        raise NotImplementedError

    async def commit(self) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    async def close(self) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    async def executescript(self, script: str) -> None:  # pragma: no cover - interface
        raise NotImplementedError


@dataclass
class SQLiteAdapter(DatabaseAdapter):
    conn: aiosqlite.Connection
    engine: str = "sqlite"
    # One connection serves every request. While a transaction is open, its
    # uncommitted rows are visible on that connection, so statements from other
    # tasks wait for it to commit or roll back.
    _tx_lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False)
    _tx_owner: asyncio.Task | None = field(default=None, repr=False)

    @asynccontextmanager
    async def _exclusive(self):
        if self._tx_owner is not None and self._tx_owner is asyncio.current_task():
            yield
            return
        async with self._tx_lock:
            yield

    async def execute(self, query: str, params: Sequence | None = None) -> None:
        async with self._exclusive():
            await self.conn.execute(query, params or ())

    async def executemany(self, query: str, seq_params: Iterable[Sequence]) -> None:
        async with self._exclusive():
            await self.conn.executemany(query, seq_params)

    async def insert(self, query: str, params: Sequence, returning: str) -> int:
        async with self._exclusive():
            cursor = await self.conn.execute(query, params)
            return cursor.lastrowid

    async def fetch_one(self, query: str, params: Sequence | None = None):
        async with self._exclusive():
            cursor = await self.conn.execute(query, params or ())
            return await cursor.fetchone()

    async def fetch_all(self, query: str, params: Sequence | None = None):
        async with self._exclusive():
            cursor = await self.conn.execute(query, params or ())
            return await cursor.fetchall()

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator["SQLiteAdapter"]:
        # sqlite3 opens the transaction implicitly on the first write
        async with self._tx_lock:
            self._tx_owner = asyncio.current_task()
            try:
                try:
                    yield self
                except BaseException:
                    await self.conn.rollback()
                    raise
                await self.conn.commit()
            finally:
                self._tx_owner = None

    async def commit(self) -> None:
        await self.conn.commit()

    async def close(self) -> None:
        await self.conn.close()

    async def executescript(self, script: str) -> None:
        await self.conn.executescript(script)


@dataclass
class PostgresAdapter(DatabaseAdapter):
    pool: "asyncpg.Pool"  # type: ignore[name-defined]
    engine: str = "postgres"
    bound: "asyncpg.Connection | None" = None  # type: ignore[name-defined]

    @staticmethod
    def _translate_query(query: str) -> str:
        # Convert SQLite-style ? placeholders to asyncpg-style $1, $2, ...
        if "$1" in query:
            return query
        idx = 1
        out = []
        for ch in query:
            if ch == "?":
                out.append(f"${idx}")
                idx += 1
            else:
                out.append(ch)
        return "".join(out)

    @asynccontextmanager
    async def _connection(self):
        if self.bound is not None:
            yield self.bound
            return
        async with self.pool.acquire() as conn:
            yield conn

    async def execute(self, query: str, params: Sequence | None = None) -> None:
        q = self._translate_query(query)
        async with self._connection() as conn:
            await conn.execute(q, *(params or ()))

    async def executemany(self, query: str, seq_params: Iterable[Sequence]) -> None:
        q = self._translate_query(query)
        async with self._connection() as conn:
            await conn.executemany(q, seq_params)

    async def insert(self, query: str, params: Sequence, returning: str) -> int:
        q = self._translate_query(f"{query} RETURNING {returning}")
        async with self._connection() as conn:
            return await conn.fetchval(q, *params)

    async def fetch_one(self, query: str, params: Sequence | None = None):
        q = self._translate_query(query)
        async with self._connection() as conn:
            return await conn.fetchrow(q, *(params or ()))

    async def fetch_all(self, query: str, params: Sequence | None = None):
        q = self._translate_query(query)
        async with self._connection() as conn:
            return await conn.fetch(q, *(params or ()))

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator["PostgresAdapter"]:
        async with self._connection() as conn:
            async with conn.transaction():
                yield PostgresAdapter(pool=self.pool, bound=conn)

    async def commit(self) -> None:
        # asyncpg autocommits per statement unless an explicit transaction is used.
        return

    async def close(self) -> None:
        if self.bound is None:
            await self.pool.close()

    async def executescript(self, script: str) -> None:
        # Not supported for Postgres; callers should split statements.
        raise NotImplementedError


_db: DatabaseAdapter | None = None


async def _connect_sqlite(path: str) -> SQLiteAdapter:
    conn = await aiosqlite.connect(path)
    conn.row_factory = aiosqlite.Row
    await conn.execute("PRAGMA foreign_keys = ON")
    logger.info("Connected to SQLite database at %s", path)
    return SQLiteAdapter(conn)


async def get_db() -> DatabaseAdapter:
    global _db
    if _db is None:
        if DATABASE_URL:
            if DATABASE_URL.startswith("sqlite"):
                _db = await _connect_sqlite(_sqlite_path_from_url(DATABASE_URL) or DATABASE_PATH)
            else:
                if asyncpg is None:
                    raise RuntimeError(
                        "DATABASE_URL is set but asyncpg is not installed. "
                        "Install asyncpg or unset DATABASE_URL."
                    )
                pool = await asyncpg.create_pool(
                    dsn=DATABASE_URL,
                    min_size=1,
                    max_size=DATABASE_MAX_CONNECTIONS,
                )
                _db = PostgresAdapter(pool)
                logger.info("Connected to Postgres database")
        else:
            _db = await _connect_sqlite(DATABASE_PATH)
    return _db


def _sqlite_path_from_url(url: str) -> str:
    parsed = urlparse(url)
    path = parsed.path or ""
    if not path or path == "/":
        return ""
    # sqlite:////absolute/path.db -> keep absolute path
    if url.startswith("sqlite:////"):
        return "/" + path.lstrip("/")
    # sqlite:///relative.db -> strip leading slash
    if path.startswith("/"):
        return path[1:]
    return path


SQLITE_SCHEMA = """
    CREATE TABLE IF NOT EXISTS person (
        person_id INTEGER PRIMARY KEY AUTOINCREMENT,
        legal_first_name TEXT NOT NULL,
        legal_last_name TEXT NOT NULL,
        preferred_name TEXT,
        date_of_birth TEXT,
        sex_at_birth TEXT,
        phone TEXT,
        email TEXT,
        created_at TEXT NOT NULL DEFAULT (datetime('now'))
    );

    CREATE INDEX IF NOT EXISTS idx_person_last_name ON person(legal_last_name);

    CREATE TABLE IF NOT EXISTS address (
        address_id INTEGER PRIMARY KEY AUTOINCREMENT,
        person_id INTEGER NOT NULL REFERENCES person(person_id),
        street TEXT,
        city TEXT,
        state TEXT,
        zip TEXT
    );

    CREATE TABLE IF NOT EXISTS emergency_contact (
        emergency_contact_id INTEGER PRIMARY KEY AUTOINCREMENT,
        person_id INTEGER NOT NULL REFERENCES person(person_id),
        name TEXT,
        relationship TEXT,
        phone TEXT
    );

    CREATE TABLE IF NOT EXISTS application (
        application_id INTEGER PRIMARY KEY AUTOINCREMENT,
        applicant_id INTEGER NOT NULL REFERENCES person(person_id),
        has_health_insurance INTEGER NOT NULL DEFAULT 0,
        montgomery_resident INTEGER NOT NULL DEFAULT 0,
        last4_ssn TEXT,
        signature_name TEXT,
        signature_date TEXT,
        submitted_at TEXT NOT NULL DEFAULT (datetime('now'))
    );

    CREATE INDEX IF NOT EXISTS idx_application_applicant ON application(applicant_id);

    CREATE TABLE IF NOT EXISTS intake (
        intake_id INTEGER PRIMARY KEY AUTOINCREMENT,
        application_id INTEGER NOT NULL REFERENCES application(application_id),
        main_reason_for_visit TEXT NOT NULL,
        other_concerns TEXT,
        preferred_pharmacy TEXT,
        pharmacy_phone TEXT,
        immunizations_current TEXT NOT NULL DEFAULT 'dont_know'
            CHECK (immunizations_current IN ('yes', 'no', 'dont_know')),
        created_at TEXT NOT NULL DEFAULT (datetime('now'))
    );

    CREATE INDEX IF NOT EXISTS idx_intake_application ON intake(application_id);

    CREATE TABLE IF NOT EXISTS allergy (
        allergy_id INTEGER PRIMARY KEY AUTOINCREMENT,
        intake_id INTEGER NOT NULL REFERENCES intake(intake_id),
        allergen TEXT,
        reaction TEXT
    );

    CREATE TABLE IF NOT EXISTS medication (
        medication_id INTEGER PRIMARY KEY AUTOINCREMENT,
        intake_id INTEGER NOT NULL REFERENCES intake(intake_id),
        drug_name TEXT,
        strength TEXT,
        frequency TEXT
    );

    CREATE TABLE IF NOT EXISTS past_med_history_event (
        event_id INTEGER PRIMARY KEY AUTOINCREMENT,
        intake_id INTEGER NOT NULL REFERENCES intake(intake_id),
        type TEXT,
        description TEXT,
        year INTEGER,
        hospital TEXT
    );

    CREATE TABLE IF NOT EXISTS nutrition_history (
        nutrition_id INTEGER PRIMARY KEY AUTOINCREMENT,
        intake_id INTEGER NOT NULL REFERENCES intake(intake_id),
        dieting TEXT,
        salt_intake TEXT,
        fruit_servings_per_day INTEGER,
        vegetable_servings_per_day INTEGER,
        meals_per_day INTEGER,
        water_per_day INTEGER,
        protein_sources TEXT,
        sugar_intake TEXT,
        weight_stability TEXT,
        food_intolerances_allergies TEXT,
        other_fluids TEXT,
        additional_notes TEXT
    );

    CREATE TABLE IF NOT EXISTS social_history (
        social_id INTEGER PRIMARY KEY AUTOINCREMENT,
        intake_id INTEGER NOT NULL REFERENCES intake(intake_id),
        caffeine_level TEXT,
        caffeine_cups_per_day INTEGER,
        alcohol_use TEXT,
        drinks_per_week_beer INTEGER,
        drinks_per_week_wine INTEGER,
        drinks_per_week_liquor INTEGER,
        cage_cut_down INTEGER,
        cage_annoyed INTEGER,
        cage_guilty INTEGER,
        cage_eye_opener INTEGER,
        tobacco_current INTEGER,
        cigarettes_packs_per_day INTEGER,
        cigars_per_day INTEGER,
        chew_per_day INTEGER,
        vape_per_day INTEGER,
        tobacco_started_age INTEGER,
        tobacco_ever INTEGER,
        tobacco_quit_years_ago INTEGER,
        drugs_current INTEGER,
        drugs_list_amounts TEXT
    );

    CREATE TABLE IF NOT EXISTS tb_screening (
        tb_id INTEGER PRIMARY KEY AUTOINCREMENT,
        intake_id INTEGER NOT NULL REFERENCES intake(intake_id),
        active_tb INTEGER,
        cough_gt_3_weeks INTEGER,
        cough_produces_blood INTEGER,
        exposed_to_tb INTEGER,
        traveled_outside_usa_past_12m INTEGER
    );

    CREATE TABLE IF NOT EXISTS sexual_history (
        sexual_history_id INTEGER PRIMARY KEY AUTOINCREMENT,
        intake_id INTEGER NOT NULL REFERENCES intake(intake_id),
        uses_condom INTEGER,
        number_of_sex_partners_total INTEGER,
        current_partner_gender TEXT,
        screened_for_sti INTEGER,
        interested_in_sti_screen INTEGER
    );

    CREATE TABLE IF NOT EXISTS sti_interest (
        sti_interest_id INTEGER PRIMARY KEY AUTOINCREMENT,
        intake_id INTEGER NOT NULL REFERENCES intake(intake_id),
        sti TEXT NOT NULL
    );

    CREATE TABLE IF NOT EXISTS dental_history (
        dental_id INTEGER PRIMARY KEY AUTOINCREMENT,
        intake_id INTEGER NOT NULL REFERENCES intake(intake_id),
        regular_checkups INTEGER,
        gums_bleed INTEGER,
        periodontal_disease INTEGER,
        grind_teeth INTEGER,
        wore_braces INTEGER,
        current_mouth_pain INTEGER,
        brushing_per_day INTEGER,
        floss INTEGER,
        floss_how_often TEXT,
        face_mouth_trauma INTEGER,
        trauma_when TEXT,
        dentures_partials INTEGER,
        dentures_age TEXT,
        last_exam_cleaning TEXT
    );

    CREATE TABLE IF NOT EXISTS male_history (
        male_history_id INTEGER PRIMARY KEY AUTOINCREMENT,
        intake_id INTEGER NOT NULL REFERENCES intake(intake_id),
        penile_discharge INTEGER,
        penile_lesions INTEGER,
        erection_difficulty INTEGER,
        trouble_urinating INTEGER,
        waking_at_night_to_urinate INTEGER
    );

    CREATE TABLE IF NOT EXISTS female_history (
        female_history_id INTEGER PRIMARY KEY AUTOINCREMENT,
        intake_id INTEGER NOT NULL REFERENCES intake(intake_id),
        last_pap_date TEXT,
        pap_abnormal INTEGER,
        last_mammogram_date TEXT,
        mammogram_abnormal INTEGER,
        age_first_menstrual_period INTEGER,
        date_last_menstrual_period TEXT,
        pregnancies INTEGER,
        births INTEGER,
        abortions INTEGER,
        miscarriages INTEGER,
        cesarean_count INTEGER,
        heavy_periods INTEGER,
        bleeding_between_periods INTEGER,
        extreme_menstrual_pain INTEGER,
        vaginal_itching_burning_discharge INTEGER,
        urine_leak INTEGER,
        hot_flashes INTEGER,
        menopause INTEGER,
        breast_lump_or_nipple_discharge INTEGER,
        painful_intercourse INTEGER,
        partner_uses_condom INTEGER,
        other_birth_control_method TEXT,
        waking_at_night_to_urinate INTEGER
    );

    CREATE TABLE IF NOT EXISTS family_history (
        fam_hist_id INTEGER PRIMARY KEY AUTOINCREMENT,
        intake_id INTEGER NOT NULL REFERENCES intake(intake_id),
        relation TEXT,
        alive INTEGER,
        age INTEGER
    );

    CREATE TABLE IF NOT EXISTS family_problem_lookup (
        problem_id INTEGER PRIMARY KEY AUTOINCREMENT,
        name TEXT NOT NULL UNIQUE
    );

    CREATE TABLE IF NOT EXISTS family_history_problem (
        fam_hist_id INTEGER NOT NULL REFERENCES family_history(fam_hist_id),
        problem_id INTEGER NOT NULL REFERENCES family_problem_lookup(problem_id),
        PRIMARY KEY (fam_hist_id, problem_id)
    );
"""

POSTGRES_SCHEMA = [
    """
    CREATE TABLE IF NOT EXISTS person (
        person_id BIGSERIAL PRIMARY KEY,
        legal_first_name TEXT NOT NULL,
        legal_last_name TEXT NOT NULL,
        preferred_name TEXT,
        date_of_birth TEXT,
        sex_at_birth TEXT,
        phone TEXT,
        email TEXT,
        created_at TIMESTAMPTZ NOT NULL DEFAULT now()
    );
    """,
    "CREATE INDEX IF NOT EXISTS idx_person_last_name ON person(legal_last_name);",
    """
    CREATE TABLE IF NOT EXISTS address (
        address_id BIGSERIAL PRIMARY KEY,
        person_id BIGINT NOT NULL REFERENCES person(person_id),
        street TEXT,
        city TEXT,
        state TEXT,
        zip TEXT
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS emergency_contact (
        emergency_contact_id BIGSERIAL PRIMARY KEY,
        person_id BIGINT NOT NULL REFERENCES person(person_id),
        name TEXT,
        relationship TEXT,
        phone TEXT
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS application (
        application_id BIGSERIAL PRIMARY KEY,
        applicant_id BIGINT NOT NULL REFERENCES person(person_id),
        has_health_insurance BOOLEAN NOT NULL DEFAULT false,
        montgomery_resident BOOLEAN NOT NULL DEFAULT false,
        last4_ssn TEXT,
        signature_name TEXT,
        signature_date TEXT,
        submitted_at TIMESTAMPTZ NOT NULL DEFAULT now()
    );
    """,
    "CREATE INDEX IF NOT EXISTS idx_application_applicant ON application(applicant_id);",
    """
    CREATE TABLE IF NOT EXISTS intake (
        intake_id BIGSERIAL PRIMARY KEY,
        application_id BIGINT NOT NULL REFERENCES application(application_id),
        main_reason_for_visit TEXT NOT NULL,
        other_concerns TEXT,
        preferred_pharmacy TEXT,
        pharmacy_phone TEXT,
        immunizations_current TEXT NOT NULL DEFAULT 'dont_know'
            CHECK (immunizations_current IN ('yes', 'no', 'dont_know')),
        created_at TIMESTAMPTZ NOT NULL DEFAULT now()
    );
    """,
    "CREATE INDEX IF NOT EXISTS idx_intake_application ON intake(application_id);",
    """
    CREATE TABLE IF NOT EXISTS allergy (
        allergy_id BIGSERIAL PRIMARY KEY,
        intake_id BIGINT NOT NULL REFERENCES intake(intake_id),
        allergen TEXT,
        reaction TEXT
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS medication (
        medication_id BIGSERIAL PRIMARY KEY,
        intake_id BIGINT NOT NULL REFERENCES intake(intake_id),
        drug_name TEXT,
        strength TEXT,
        frequency TEXT
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS past_med_history_event (
        event_id BIGSERIAL PRIMARY KEY,
        intake_id BIGINT NOT NULL REFERENCES intake(intake_id),
        type TEXT,
        description TEXT,
        year INTEGER,
        hospital TEXT
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS nutrition_history (
        nutrition_id BIGSERIAL PRIMARY KEY,
        intake_id BIGINT NOT NULL REFERENCES intake(intake_id),
        dieting TEXT,
        salt_intake TEXT,
        fruit_servings_per_day INTEGER,
        vegetable_servings_per_day INTEGER,
        meals_per_day INTEGER,
        water_per_day INTEGER,
        protein_sources TEXT,
        sugar_intake TEXT,
        weight_stability TEXT,
        food_intolerances_allergies TEXT,
        other_fluids TEXT,
        additional_notes TEXT
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS social_history (
        social_id BIGSERIAL PRIMARY KEY,
        intake_id BIGINT NOT NULL REFERENCES intake(intake_id),
        caffeine_level TEXT,
        caffeine_cups_per_day INTEGER,
        alcohol_use TEXT,
        drinks_per_week_beer INTEGER,
        drinks_per_week_wine INTEGER,
        drinks_per_week_liquor INTEGER,
        cage_cut_down BOOLEAN,
        cage_annoyed BOOLEAN,
        cage_guilty BOOLEAN,
        cage_eye_opener BOOLEAN,
        tobacco_current BOOLEAN,
        cigarettes_packs_per_day INTEGER,
        cigars_per_day INTEGER,
        chew_per_day INTEGER,
        vape_per_day INTEGER,
        tobacco_started_age INTEGER,
        tobacco_ever BOOLEAN,
        tobacco_quit_years_ago INTEGER,
        drugs_current BOOLEAN,
        drugs_list_amounts TEXT
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS tb_screening (
        tb_id BIGSERIAL PRIMARY KEY,
        intake_id BIGINT NOT NULL REFERENCES intake(intake_id),
        active_tb BOOLEAN,
        cough_gt_3_weeks BOOLEAN,
        cough_produces_blood BOOLEAN,
        exposed_to_tb BOOLEAN,
        traveled_outside_usa_past_12m BOOLEAN
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS sexual_history (
        sexual_history_id BIGSERIAL PRIMARY KEY,
        intake_id BIGINT NOT NULL REFERENCES intake(intake_id),
        uses_condom BOOLEAN,
        number_of_sex_partners_total INTEGER,
        current_partner_gender TEXT,
        screened_for_sti BOOLEAN,
        interested_in_sti_screen BOOLEAN
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS sti_interest (
        sti_interest_id BIGSERIAL PRIMARY KEY,
        intake_id BIGINT NOT NULL REFERENCES intake(intake_id),
        sti TEXT NOT NULL
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS dental_history (
        dental_id BIGSERIAL PRIMARY KEY,
        intake_id BIGINT NOT NULL REFERENCES intake(intake_id),
        regular_checkups BOOLEAN,
        gums_bleed BOOLEAN,
        periodontal_disease BOOLEAN,
        grind_teeth BOOLEAN,
        wore_braces BOOLEAN,
        current_mouth_pain BOOLEAN,
        brushing_per_day INTEGER,
        floss BOOLEAN,
        floss_how_often TEXT,
        face_mouth_trauma BOOLEAN,
        trauma_when TEXT,
        dentures_partials BOOLEAN,
        dentures_age TEXT,
        last_exam_cleaning TEXT
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS male_history (
        male_history_id BIGSERIAL PRIMARY KEY,
        intake_id BIGINT NOT NULL REFERENCES intake(intake_id),
        penile_discharge BOOLEAN,
        penile_lesions BOOLEAN,
        erection_difficulty BOOLEAN,
        trouble_urinating BOOLEAN,
        waking_at_night_to_urinate BOOLEAN
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS female_history (
        female_history_id BIGSERIAL PRIMARY KEY,
        intake_id BIGINT NOT NULL REFERENCES intake(intake_id),
        last_pap_date TEXT,
        pap_abnormal BOOLEAN,
        last_mammogram_date TEXT,
        mammogram_abnormal BOOLEAN,
        age_first_menstrual_period INTEGER,
        date_last_menstrual_period TEXT,
        pregnancies INTEGER,
        births INTEGER,
        abortions INTEGER,
        miscarriages INTEGER,
        cesarean_count INTEGER,
        heavy_periods BOOLEAN,
        bleeding_between_periods BOOLEAN,
        extreme_menstrual_pain BOOLEAN,
        vaginal_itching_burning_discharge BOOLEAN,
        urine_leak BOOLEAN,
        hot_flashes BOOLEAN,
        menopause BOOLEAN,
        breast_lump_or_nipple_discharge BOOLEAN,
        painful_intercourse BOOLEAN,
        partner_uses_condom BOOLEAN,
        other_birth_control_method TEXT,
        waking_at_night_to_urinate BOOLEAN
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS family_history (
        fam_hist_id BIGSERIAL PRIMARY KEY,
        intake_id BIGINT NOT NULL REFERENCES intake(intake_id),
        relation TEXT,
        alive BOOLEAN,
        age INTEGER
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS family_problem_lookup (
        problem_id BIGSERIAL PRIMARY KEY,
        name TEXT NOT NULL UNIQUE
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS family_history_problem (
        fam_hist_id BIGINT NOT NULL REFERENCES family_history(fam_hist_id),
        problem_id BIGINT NOT NULL REFERENCES family_problem_lookup(problem_id),
        PRIMARY KEY (fam_hist_id, problem_id)
    );
    """,
]


async def init_db() -> None:
    db = await get_db()

    if db.engine == "sqlite":
        await db.executescript(SQLITE_SCHEMA)
    else:
        for stmt in POSTGRES_SCHEMA:
            await db.execute(stmt)

    await db.commit()

    if SEED_FAMILY_PROBLEMS:
        await seed_family_problems(db)


async def close_db() -> None:
    global _db
    if _db is not None:
        await _db.close()
        _db = None


async def seed_family_problems(db: DatabaseAdapter) -> None:
    """Insert the canonical family health problems (idempotent)."""
    await db.executemany(
        "INSERT INTO family_problem_lookup (name) VALUES (?) ON CONFLICT (name) DO NOTHING",
        [(name,) for name in CANONICAL_PROBLEM_NAMES],
    )
    await db.commit()

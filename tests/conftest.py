import os

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from httpx import ASGITransport, AsyncClient

# In-memory DB and no identity provider for tests
os.environ["DATABASE_PATH"] = ":memory:"
os.environ["DATABASE_URL"] = ""
os.environ["SEED_FAMILY_PROBLEMS"] = "true"
os.environ["AUTH_PROVIDER_URL"] = "http://auth.test"
os.environ["AUTH_API_KEY"] = "test-anon-key"

from app.database import close_db, init_db
from app.main import app
from app.models.auth import StaffUser
from app.services.auth import require_staff
from app.services.form_state import form_store


@pytest_asyncio.fixture
async def db():
    """Provide a fresh in-memory database for each test."""
    import app.database as db_mod

    # Close any existing connection
    if db_mod._db is not None:
        try:
            await db_mod._db.close()
        except Exception:
            pass
    db_mod._db = None

    # Override module-level config directly (avoids fragile importlib.reload)
    db_mod.DATABASE_PATH = ":memory:"
    db_mod.DATABASE_URL = ""
    db_mod.SEED_FAMILY_PROBLEMS = True

    await init_db()
    database = await db_mod.get_db()
    yield database
    await close_db()


@pytest.fixture(autouse=True)
def clear_drafts():
    form_store._sessions.clear()
    yield
    form_store._sessions.clear()


@pytest.fixture
def client(db):
    """Provide a synchronous TestClient for HTTP endpoint tests."""
    return TestClient(app)


@pytest_asyncio.fixture
async def async_client(db):
    """Provide an async httpx client for async HTTP tests."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


@pytest_asyncio.fixture
async def staff_client(async_client):
    """Async client whose requests pass the staff guard."""
    app.dependency_overrides[require_staff] = lambda: StaffUser(id="staff-1", email="staff@clinic.test")
    yield async_client
    app.dependency_overrides.pop(require_staff, None)


@pytest.fixture
def minimal_form():
    """Only the fields a patient cannot skip."""
    return {
        "legal_first_name": "Ana",
        "legal_last_name": "Lopez",
        "main_reason_for_visit": "Checkup",
    }


@pytest.fixture
def full_form():
    return {
        "legal_first_name": "Maria",
        "legal_last_name": "Garcia",
        "preferred_name": "Mari",
        "date_of_birth": "1985-04-12",
        "sex_at_birth": "female",
        "phone": "555-0100",
        "email": "maria@example.com",
        "street": "12 Oak St",
        "city": "Rockville",
        "state": "MD",
        "zip": "20850",
        "last4_ssn": "1234",
        "has_health_insurance": False,
        "montgomery_resident": True,
        "emergency1_name": "Jose Garcia",
        "emergency1_relationship": "Spouse",
        "emergency1_phone": "555-0101",
        "emergency2_name": "",
        "emergency2_relationship": "  ",
        "emergency2_phone": "",
        "main_reason_for_visit": "Persistent headaches",
        "other_concerns": "Trouble sleeping",
        "preferred_pharmacy": "CVS",
        "pharmacy_phone": "555-0199",
        "immunizations_current": "yes",
        "allergies": [{"allergen": "Penicillin", "reaction": "Hives"}],
        "medications": [
            {"drug_name": "Lisinopril", "strength": "10mg", "frequency": "daily"},
            {"drug_name": "Ibuprofen", "strength": "", "frequency": "as needed"},
        ],
        "past_med_history_events": [
            {"type": "surgery", "year": "2015", "hospital": "Holy Cross", "description": "Appendectomy"},
        ],
        "tuberculosis": "no",
        "persistentCough": "no",
        "bloodyMucus": "no",
        "exposedTB": "yes",
        "traveledUSA": "no",
        "useCondoms": "yes",
        "sex_partners_total": "2",
        "current_partner_gender": "male",
        "screenedSTI": "no",
        "regularCheckup": "yes",
        "gumsBleed": "no",
        "periodontal": "no",
        "grindTeeth": "yes",
        "wornBraces": "no",
        "mouthPain": "no",
        "brushFrequency": "2",
        "lastCleaning": "2023",
        "female_last_pap_date": "2022-01-10",
        "female_pap_abnormal": False,
        "female_pregnancies": "2",
        "female_births": "2",
        "female_heavy_periods": True,
        "familyHistoryEntries": [
            {"id": "1", "relation": "Brother/Sister", "alive": "yes", "age": "40", "problems": ["heart", "diabetes"]},
            {"id": "2", "relation": "Father", "alive": "", "age": "", "problems": []},
            {"id": "3", "relation": "Aunt", "alive": "", "age": "", "problems": []},
        ],
        "sti_interest": ["HIV", "Syphilis"],
        "caffeine": "moderate",
        "cups_per_day": "2",
        "alcohol_use": "occasional",
        "drinks_beer": "1",
        "drinks_wine": "60 oz",
        "drinks_liquor": "",
        "cutDown": "no",
        "annoyed": "no",
        "guilty": "no",
        "morning": "no",
        "tobacco_use": "no",
        "quit_tobacco": "yes",
        "years_since_quit": "5",
        "drug_use": "no",
        "dieting": "no",
        "salt_intake": "low",
        "sugar_intake": "medium",
        "fruit_servings_per_day": "3",
        "vegetable_servings_per_day": "4",
        "meals_per_day": "3",
        "water_per_day": "8",
        "protein_sources": "beans, chicken",
        "signature_name": "Maria Garcia",
        "signature_date": "2024-05-01",
        "signature_confirmed": True,
    }


@pytest.fixture
def count_rows(db):
    async def _count(table: str) -> int:
        row = await db.fetch_one(f"SELECT COUNT(*) AS n FROM {table}")
        return row["n"]

    return _count

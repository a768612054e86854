"""Staff read paths - patient list, name search, nested detail and submission history.

"Latest" always means the highest surrogate id. Ids are AUTOINCREMENT /
BIGSERIAL and never reused, so they grow with submission order.
"""

import logging
from datetime import datetime
from typing import Any

from app.config import SEARCH_PAGE_SIZE
from app.database import DatabaseAdapter
from app.models.patient import (
    AddressRecord,
    AllergyRecord,
    ApplicationRecord,
    DentalHistoryRecord,
    EmergencyContactRecord,
    FamilyHistoryRecord,
    FemaleHistoryRecord,
    IntakeRecord,
    MaleHistoryRecord,
    MedicationRecord,
    NutritionHistoryRecord,
    PastMedicalEventRecord,
    PatientDetail,
    PatientListItem,
    PatientSearchItem,
    PersonRecord,
    SexualHistoryRecord,
    SocialHistoryRecord,
    SubmissionRecord,
    TBScreeningRecord,
)

logger = logging.getLogger(__name__)

# 1:1 intake sections: attribute name -> (table, primary key, model)
INTAKE_SECTIONS = {
    "nutrition_history": ("nutrition_history", "nutrition_id", NutritionHistoryRecord),
    "social_history": ("social_history", "social_id", SocialHistoryRecord),
    "tb_screening": ("tb_screening", "tb_id", TBScreeningRecord),
    "sexual_history": ("sexual_history", "sexual_history_id", SexualHistoryRecord),
    "dental_history": ("dental_history", "dental_id", DentalHistoryRecord),
    "male_history": ("male_history", "male_history_id", MaleHistoryRecord),
    "female_history": ("female_history", "female_history_id", FemaleHistoryRecord),
}

_LIST_QUERY = """
    SELECT p.person_id, p.legal_first_name, p.legal_last_name, p.preferred_name,
           p.date_of_birth, p.phone, p.email,
           a.street, a.city, a.zip,
           app.has_health_insurance, app.montgomery_resident, app.last4_ssn
    FROM person p
    LEFT JOIN address a
        ON a.address_id = (SELECT MIN(address_id) FROM address WHERE person_id = p.person_id)
    LEFT JOIN application app
        ON app.application_id = (SELECT MAX(application_id) FROM application WHERE applicant_id = p.person_id)
"""


def _row(row) -> dict[str, Any]:
    data = dict(row)
    for key, value in data.items():
        if isinstance(value, datetime):
            data[key] = value.isoformat()
    return data


def escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


async def list_patients(db: DatabaseAdapter, newest_first: bool = True) -> list[PatientListItem]:
    order = "DESC" if newest_first else "ASC"
    rows = await db.fetch_all(f"{_LIST_QUERY} ORDER BY p.person_id {order}")
    return [PatientListItem.model_validate(_row(r)) for r in rows]


async def search_patients(
    db: DatabaseAdapter, query: str = "", limit: int = SEARCH_PAGE_SIZE
) -> list[PatientSearchItem]:
    """Case-insensitive substring search over first, last and preferred name."""
    sql = (
        "SELECT person_id, legal_first_name, legal_last_name, preferred_name, "
        "date_of_birth, phone FROM person"
    )
    params: list[Any] = []

    term = query.strip().lower()
    if term:
        pattern = f"%{escape_like(term)}%"
        sql += (
            " WHERE LOWER(legal_first_name) LIKE ? ESCAPE '\\'"
            " OR LOWER(legal_last_name) LIKE ? ESCAPE '\\'"
            " OR LOWER(COALESCE(preferred_name, '')) LIKE ? ESCAPE '\\'"
        )
        params.extend([pattern, pattern, pattern])

    sql += " ORDER BY legal_last_name ASC, person_id ASC LIMIT ?"
    params.append(limit)

    rows = await db.fetch_all(sql, params)
    return [PatientSearchItem.model_validate(_row(r)) for r in rows]


async def fetch_problem_lookup(db: DatabaseAdapter) -> list[dict[str, Any]]:
    rows = await db.fetch_all("SELECT problem_id, name FROM family_problem_lookup ORDER BY problem_id")
    return [_row(r) for r in rows]


async def get_patient_detail(db: DatabaseAdapter, person_id: int) -> PatientDetail | None:
    """Person plus latest address, latest application and that application's latest intake."""
    person = await db.fetch_one("SELECT * FROM person WHERE person_id = ?", (person_id,))
    if not person:
        logger.debug("No person with id %s", person_id)
        return None

    address = await db.fetch_one(
        "SELECT * FROM address WHERE person_id = ? ORDER BY address_id DESC LIMIT 1",
        (person_id,),
    )
    application = await db.fetch_one(
        "SELECT * FROM application WHERE applicant_id = ? ORDER BY application_id DESC LIMIT 1",
        (person_id,),
    )

    intake = None
    if application:
        intake_row = await db.fetch_one(
            "SELECT * FROM intake WHERE application_id = ? ORDER BY intake_id DESC LIMIT 1",
            (application["application_id"],),
        )
        if intake_row:
            intake = await load_intake(db, intake_row)

    return PatientDetail(
        person=PersonRecord.model_validate(_row(person)),
        address=AddressRecord.model_validate(_row(address)) if address else None,
        emergency_contacts=await _emergency_contacts(db, person_id),
        application=ApplicationRecord.model_validate(_row(application)) if application else None,
        intake=intake,
    )


async def list_submissions(db: DatabaseAdapter, person_id: int) -> list[SubmissionRecord] | None:
    """Every application for a person with its intakes, newest first."""
    person = await db.fetch_one("SELECT person_id FROM person WHERE person_id = ?", (person_id,))
    if not person:
        return None

    applications = await db.fetch_all(
        "SELECT * FROM application WHERE applicant_id = ? ORDER BY application_id DESC",
        (person_id,),
    )
    submissions = []
    for app_row in applications:
        intake_rows = await db.fetch_all(
            "SELECT * FROM intake WHERE application_id = ? ORDER BY intake_id DESC",
            (app_row["application_id"],),
        )
        submissions.append(SubmissionRecord(
            application=ApplicationRecord.model_validate(_row(app_row)),
            intakes=[await load_intake(db, r) for r in intake_rows],
        ))
    return submissions


async def load_intake(db: DatabaseAdapter, intake_row) -> IntakeRecord:
    """Assemble an intake row with all of its child records."""
    data = _row(intake_row)
    intake_id = data["intake_id"]

    allergies = await db.fetch_all(
        "SELECT allergen, reaction FROM allergy WHERE intake_id = ? ORDER BY allergy_id",
        (intake_id,),
    )
    medications = await db.fetch_all(
        "SELECT drug_name, strength, frequency FROM medication WHERE intake_id = ? ORDER BY medication_id",
        (intake_id,),
    )
    events = await db.fetch_all(
        "SELECT type, description, year, hospital FROM past_med_history_event "
        "WHERE intake_id = ? ORDER BY event_id",
        (intake_id,),
    )
    stis = await db.fetch_all(
        "SELECT sti FROM sti_interest WHERE intake_id = ? ORDER BY sti_interest_id",
        (intake_id,),
    )

    data["allergies"] = [AllergyRecord.model_validate(_row(r)) for r in allergies]
    data["medications"] = [MedicationRecord.model_validate(_row(r)) for r in medications]
    data["past_medical_history"] = [PastMedicalEventRecord.model_validate(_row(r)) for r in events]
    data["sti_interest"] = [r["sti"] for r in stis]
    data["family_history"] = await _family_history(db, intake_id)

    for attr, (table, pk, model) in INTAKE_SECTIONS.items():
        row = await db.fetch_one(
            f"SELECT * FROM {table} WHERE intake_id = ? ORDER BY {pk} DESC LIMIT 1",
            (intake_id,),
        )
        data[attr] = model.model_validate(_row(row)) if row else None

    return IntakeRecord.model_validate(data)


async def _emergency_contacts(db: DatabaseAdapter, person_id: int) -> list[EmergencyContactRecord]:
    rows = await db.fetch_all(
        "SELECT name, relationship, phone FROM emergency_contact "
        "WHERE person_id = ? ORDER BY emergency_contact_id",
        (person_id,),
    )
    return [EmergencyContactRecord.model_validate(_row(r)) for r in rows]


async def _family_history(db: DatabaseAdapter, intake_id: int) -> list[FamilyHistoryRecord]:
    members = await db.fetch_all(
        "SELECT fam_hist_id, relation, alive, age FROM family_history "
        "WHERE intake_id = ? ORDER BY fam_hist_id",
        (intake_id,),
    )
    problems = await db.fetch_all(
        """SELECT fhp.fam_hist_id, l.name
           FROM family_history_problem fhp
           JOIN family_problem_lookup l ON l.problem_id = fhp.problem_id
           JOIN family_history fh ON fh.fam_hist_id = fhp.fam_hist_id
           WHERE fh.intake_id = ?
           ORDER BY l.problem_id""",
        (intake_id,),
    )
    names_by_member: dict[int, list[str]] = {}
    for row in problems:
        names_by_member.setdefault(row["fam_hist_id"], []).append(row["name"])

    return [
        FamilyHistoryRecord(
            **_row(m),
            problems=names_by_member.get(m["fam_hist_id"], []),
        )
        for m in members
    ]

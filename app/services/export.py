"""CSV export of patient records.

``flatten_patient`` turns one nested detail into a single flat row; list-like
children are folded into summary strings. ``render_csv`` writes rows with a
plain header line and every data value quoted.
"""

import csv
import io
import logging
from typing import Any, Iterable, Mapping

from app.database import DatabaseAdapter
from app.models.patient import (
    FamilyHistoryRecord,
    IntakeRecord,
    PatientDetail,
    PatientListItem,
)
from app.services.patient_queries import list_patients

logger = logging.getLogger(__name__)

# Section prefix -> fields copied from the 1:1 intake section of the same name
SECTION_COLUMNS: dict[str, tuple[str, tuple[str, ...]]] = {
    "nutrition": ("nutrition_history", (
        "dieting", "meals_per_day", "fruit_servings_per_day",
        "vegetable_servings_per_day", "water_per_day", "protein_sources",
        "sugar_intake", "salt_intake", "food_intolerances_allergies",
        "additional_notes",
    )),
    "social": ("social_history", (
        "caffeine_level", "caffeine_cups_per_day", "alcohol_use",
        "drinks_per_week_beer", "drinks_per_week_wine", "drinks_per_week_liquor",
        "cage_cut_down", "cage_annoyed", "cage_guilty", "cage_eye_opener",
        "tobacco_current", "tobacco_started_age", "tobacco_ever",
        "tobacco_quit_years_ago", "drugs_current", "drugs_list_amounts",
    )),
}

TRAILING_SECTION_COLUMNS: dict[str, tuple[str, tuple[str, ...]]] = {
    "dental": ("dental_history", (
        "regular_checkups", "gums_bleed", "periodontal_disease",
        "current_mouth_pain", "brushing_per_day", "floss", "floss_how_often",
        "last_exam_cleaning",
    )),
    "tb": ("tb_screening", (
        "active_tb", "cough_gt_3_weeks", "cough_produces_blood",
        "exposed_to_tb", "traveled_outside_usa_past_12m",
    )),
    "male": ("male_history", (
        "penile_discharge", "penile_lesions", "erection_difficulty",
        "trouble_urinating", "waking_at_night_to_urinate",
    )),
    "female": ("female_history", (
        "last_pap_date", "pap_abnormal", "last_mammogram_date",
        "mammogram_abnormal", "age_first_menstrual_period",
        "date_last_menstrual_period", "pregnancies", "births", "abortions",
        "miscarriages", "cesarean_count", "heavy_periods",
        "bleeding_between_periods", "extreme_menstrual_pain",
        "vaginal_itching_burning_discharge", "urine_leak", "hot_flashes",
        "menopause", "breast_lump_or_nipple_discharge", "painful_intercourse",
        "partner_uses_condom", "other_birth_control_method",
        "waking_at_night_to_urinate",
    )),
    "sexual": ("sexual_history", (
        "uses_condom", "number_of_sex_partners_total", "current_partner_gender",
        "screened_for_sti", "interested_in_sti_screen",
    )),
}


def _section_columns(
    intake: IntakeRecord | None, columns: dict[str, tuple[str, tuple[str, ...]]]
) -> dict[str, Any]:
    row: dict[str, Any] = {}
    for prefix, (attr, fields) in columns.items():
        section = getattr(intake, attr) if intake else None
        for name in fields:
            row[f"{prefix}_{name}"] = getattr(section, name) if section else None
    return row


def summarize_allergies(intake: IntakeRecord) -> str:
    parts = []
    for a in intake.allergies:
        allergen = a.allergen or ""
        if not allergen and not a.reaction:
            continue
        parts.append(f"{allergen} ({a.reaction})" if a.reaction else allergen)
    return "; ".join(parts)


def summarize_medications(intake: IntakeRecord) -> str:
    parts = []
    for m in intake.medications:
        core = f"{m.drug_name or ''} {m.strength}" if m.strength else (m.drug_name or "")
        if not core and not m.frequency:
            continue
        parts.append(f"{core} - {m.frequency}" if m.frequency else core)
    return "; ".join(parts)


def summarize_past_history(intake: IntakeRecord) -> str:
    events = []
    for e in intake.past_medical_history:
        parts = [str(p) for p in (e.type, e.year, e.description, e.hospital) if p]
        if parts:
            events.append(" - ".join(parts))
    return " | ".join(events)


def summarize_family_member(member: FamilyHistoryRecord) -> str:
    relation = member.relation or "Relative"
    if not member.problems:
        return relation
    return f"{relation}: {', '.join(member.problems)}"


def flatten_patient(detail: PatientDetail) -> dict[str, Any]:
    """One export row for a patient's latest application and intake."""
    person = detail.person
    address = detail.address
    application = detail.application
    intake = detail.intake

    row: dict[str, Any] = {
        "person_id": person.person_id,
        "legal_first_name": person.legal_first_name,
        "legal_last_name": person.legal_last_name,
        "preferred_name": person.preferred_name,
        "date_of_birth": person.date_of_birth,
        "sex_at_birth": person.sex_at_birth,
        "phone": person.phone,
        "email": person.email,
        "street": address.street if address else None,
        "city": address.city if address else None,
        "state": address.state if address else None,
        "zip": address.zip if address else None,
        "application_id": application.application_id if application else None,
        "montgomery_resident": application.montgomery_resident if application else None,
        "has_health_insurance": application.has_health_insurance if application else None,
        "last4_ssn": application.last4_ssn if application else None,
        "signature_name": application.signature_name if application else None,
        "signature_date": application.signature_date if application else None,
        "intake_id": intake.intake_id if intake else None,
        "main_reason_for_visit": intake.main_reason_for_visit if intake else None,
        "other_concerns": intake.other_concerns if intake else None,
        "preferred_pharmacy": intake.preferred_pharmacy if intake else None,
        "pharmacy_phone": intake.pharmacy_phone if intake else None,
        "immunizations_current": intake.immunizations_current if intake else None,
    }

    row.update(_section_columns(intake, SECTION_COLUMNS))

    if intake:
        row["allergies_summary"] = summarize_allergies(intake)
        row["medications_summary"] = summarize_medications(intake)
        row["past_medical_history_summary"] = summarize_past_history(intake)
        row["family_history_summary"] = " | ".join(
            summarize_family_member(m) for m in intake.family_history
        )
    else:
        row["allergies_summary"] = ""
        row["medications_summary"] = ""
        row["past_medical_history_summary"] = ""
        row["family_history_summary"] = ""

    row.update(_section_columns(intake, TRAILING_SECTION_COLUMNS))
    row["sti_interest_list"] = ", ".join(intake.sti_interest) if intake else ""
    return row


def patient_summary_row(item: PatientListItem) -> dict[str, Any]:
    return {
        "person_id": item.person_id,
        "legal_first_name": item.legal_first_name,
        "legal_last_name": item.legal_last_name,
        "preferred_name": item.preferred_name,
        "date_of_birth": item.date_of_birth,
        "phone": item.phone,
        "street": item.street,
        "city": item.city,
        "zip": item.zip,
        "has_health_insurance": "Yes" if item.has_health_insurance else "No",
        "montgomery_resident": "Yes" if item.montgomery_resident else "No",
        "last4_ssn": item.last4_ssn,
    }


async def export_patients_rows(db: DatabaseAdapter) -> list[dict[str, Any]]:
    patients = await list_patients(db, newest_first=False)
    logger.info("Exporting %d patients", len(patients))
    return [patient_summary_row(p) for p in patients]


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def render_csv(rows: Iterable[Mapping[str, Any]]) -> str:
    """Header line from the first row's keys, then one quoted line per row.

    An empty input renders as an empty document.
    """
    rows = list(rows)
    if not rows:
        return ""

    headers = list(rows[0].keys())
    buf = io.StringIO()
    buf.write(",".join(headers) + "\n")
    writer = csv.writer(buf, quoting=csv.QUOTE_ALL, lineterminator="\n")
    for row in rows:
        writer.writerow([_cell(row.get(h)) for h in headers])
    return buf.getvalue()

"""Tests for patient CSV flattening and rendering."""

import csv
import io

from app.models.intake import IntakeSnapshot
from app.models.patient import (
    AllergyRecord,
    FamilyHistoryRecord,
    IntakeRecord,
    MedicationRecord,
    PastMedicalEventRecord,
    PatientDetail,
    PatientListItem,
    PersonRecord,
)
from app.services.export import (
    export_patients_rows,
    flatten_patient,
    patient_summary_row,
    render_csv,
    summarize_allergies,
    summarize_family_member,
    summarize_medications,
    summarize_past_history,
)
from app.services.patient_queries import get_patient_detail
from app.services.submission import submit_intake


def _intake(**kwargs) -> IntakeRecord:
    return IntakeRecord(intake_id=1, main_reason_for_visit="Checkup", **kwargs)


class TestSummaries:
    def test_allergies(self):
        intake = _intake(allergies=[
            AllergyRecord(allergen="Penicillin", reaction="Hives"),
            AllergyRecord(allergen="Dust"),
            AllergyRecord(),
        ])
        assert summarize_allergies(intake) == "Penicillin (Hives); Dust"

    def test_medications(self):
        intake = _intake(medications=[
            MedicationRecord(drug_name="Lisinopril", strength="10mg", frequency="daily"),
            MedicationRecord(drug_name="Ibuprofen", frequency="as needed"),
            MedicationRecord(drug_name="Vitamin D"),
        ])
        assert summarize_medications(intake) == "Lisinopril 10mg - daily; Ibuprofen - as needed; Vitamin D"

    def test_past_history(self):
        intake = _intake(past_medical_history=[
            PastMedicalEventRecord(type="surgery", year=2015, description="Appendectomy", hospital="Holy Cross"),
            PastMedicalEventRecord(type="illness", description="Flu"),
        ])
        assert summarize_past_history(intake) == "surgery - 2015 - Appendectomy - Holy Cross | illness - Flu"

    def test_family_member(self):
        assert summarize_family_member(
            FamilyHistoryRecord(fam_hist_id=1, relation="sibling", problems=["diabetes", "heart disease"])
        ) == "sibling: diabetes, heart disease"
        assert summarize_family_member(FamilyHistoryRecord(fam_hist_id=2, relation="Aunt")) == "Aunt"
        assert summarize_family_member(FamilyHistoryRecord(fam_hist_id=3)) == "Relative"


class TestRenderCsv:
    def test_header_then_quoted_values(self):
        text = render_csv([{"name": "Ana", "age": 30}])
        assert text == 'name,age\n"Ana","30"\n'

    def test_quotes_doubled_none_empty_bools_lowercase(self):
        text = render_csv([{"note": 'said "hi", left', "missing": None, "flag": True, "off": False}])
        lines = text.splitlines()
        assert lines[0] == "note,missing,flag,off"
        assert lines[1] == '"said ""hi"", left","","true","false"'

    def test_parses_back(self):
        rows = [{"a": "x,y", "b": "line"}, {"a": "z", "b": None}]
        parsed = list(csv.DictReader(io.StringIO(render_csv(rows))))
        assert parsed == [{"a": "x,y", "b": "line"}, {"a": "z", "b": ""}]

    def test_empty(self):
        assert render_csv([]) == ""


def test_flatten_without_intake():
    detail = PatientDetail(person=PersonRecord(person_id=7, legal_first_name="Ana", legal_last_name="Lopez"))
    row = flatten_patient(detail)

    assert row["person_id"] == 7
    assert row["street"] is None
    assert row["intake_id"] is None
    assert row["allergies_summary"] == ""
    assert row["nutrition_dieting"] is None
    assert row["female_pregnancies"] is None
    assert row["sti_interest_list"] == ""


async def test_flatten_submitted_patient(db, full_form):
    result = await submit_intake(db, IntakeSnapshot.from_form_data(full_form))
    row = flatten_patient(await get_patient_detail(db, result.person_id))

    assert row["legal_last_name"] == "Garcia"
    assert row["city"] == "Rockville"
    assert row["montgomery_resident"] is True
    assert row["has_health_insurance"] is False
    assert row["allergies_summary"] == "Penicillin (Hives)"
    assert row["medications_summary"] == "Lisinopril 10mg - daily; Ibuprofen - as needed"
    assert row["past_medical_history_summary"] == "surgery - 2015 - Appendectomy - Holy Cross"
    assert "sibling: " in row["family_history_summary"]
    assert " | " in row["family_history_summary"]
    assert row["nutrition_meals_per_day"] == 3
    assert row["social_drinks_per_week_wine"] is None
    assert row["tb_exposed_to_tb"] is True
    assert row["male_penile_discharge"] is None
    assert row["female_heavy_periods"] is True
    assert row["sexual_interested_in_sti_screen"] is True
    assert row["sti_interest_list"] == "HIV, Syphilis"

    keys = list(row)
    assert keys.index("immunizations_current") < keys.index("nutrition_dieting")
    assert keys.index("social_drugs_list_amounts") < keys.index("allergies_summary")
    assert keys[-1] == "sti_interest_list"


def test_patient_summary_row_yes_no():
    item = PatientListItem(
        person_id=1,
        legal_first_name="Ana",
        legal_last_name="Lopez",
        has_health_insurance=True,
        montgomery_resident=None,
    )
    row = patient_summary_row(item)
    assert row["has_health_insurance"] == "Yes"
    assert row["montgomery_resident"] == "No"
    assert list(row)[-1] == "last4_ssn"


async def test_export_patients_rows_oldest_first(db, minimal_form, full_form):
    first = await submit_intake(db, IntakeSnapshot.from_form_data(minimal_form))
    second = await submit_intake(db, IntakeSnapshot.from_form_data(full_form))

    rows = await export_patients_rows(db)
    assert [r["person_id"] for r in rows] == [first.person_id, second.person_id]
    assert rows[1]["montgomery_resident"] == "Yes"
    assert rows[1]["has_health_insurance"] == "No"

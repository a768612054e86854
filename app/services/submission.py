"""Submission pipeline - writes one intake snapshot across the relational schema.

Steps run in dependency order (person -> address / emergency contacts ->
application -> intake -> intake children) and each generated id feeds the
next step. The whole chain runs inside a single database transaction, so a
failing step leaves nothing behind.
"""

import logging

from app.database import DatabaseAdapter
from app.models.intake import (
    BasicInfo,
    FamilyHistoryTab,
    HealthHistory,
    IntakeSnapshot,
    Lifestyle,
    MedicalHistory,
    SubmissionResult,
)
from app.services.coercion import (
    has_signal,
    safe_int,
    strict_true,
    text_or_default,
    text_or_none,
    tri_state,
    yes_no_to_bool,
)
from app.services.relation_normalizer import (
    build_lookup_map,
    is_default_relation,
    normalize_relation,
    resolve_problem_id,
)

logger = logging.getLogger(__name__)

IMMUNIZATION_ANSWERS = ("yes", "no", "dont_know")


class SubmissionError(Exception):
    """A pipeline step failed; every earlier write has been rolled back."""


async def submit_intake(db: DatabaseAdapter, snapshot: IntakeSnapshot) -> SubmissionResult:
    """Persist a finished intake form atomically and return the generated ids."""
    try:
        async with db.transaction() as tx:
            result = await _run_steps(tx, snapshot)
    except Exception as exc:
        logger.exception("Intake submission failed; transaction rolled back")
        raise SubmissionError(str(exc)) from exc

    logger.info(
        "Intake submitted: person=%s application=%s intake=%s family_rows=%d warnings=%d",
        result.person_id,
        result.application_id,
        result.intake_id,
        len(result.fam_hist_ids),
        len(result.warnings),
    )
    return result


async def _run_steps(db: DatabaseAdapter, snapshot: IntakeSnapshot) -> SubmissionResult:
    person_id = await insert_person(db, snapshot.basic)
    await insert_address(db, person_id, snapshot.basic)
    await insert_emergency_contacts(db, person_id, snapshot.basic)
    application_id = await insert_application(db, person_id, snapshot.basic, snapshot.lifestyle)
    intake_id = await insert_intake(db, application_id, snapshot.health)

    await insert_medications(db, intake_id, snapshot.health)
    await insert_nutrition_history(db, intake_id, snapshot.lifestyle)
    await insert_social_history(db, intake_id, snapshot.lifestyle)
    await insert_allergies(db, intake_id, snapshot.health)
    await insert_tb_screening(db, intake_id, snapshot.medical)
    await insert_sexual_history(db, intake_id, snapshot.medical, snapshot.family)
    await insert_dental_history(db, intake_id, snapshot.medical)
    await insert_past_medical_history(db, intake_id, snapshot.medical)
    await insert_male_history(db, intake_id, snapshot.medical)
    await insert_female_history(db, intake_id, snapshot.medical)
    fam_hist_ids, warnings = await insert_family_history(db, intake_id, snapshot.family)

    return SubmissionResult(
        person_id=person_id,
        application_id=application_id,
        intake_id=intake_id,
        fam_hist_ids=fam_hist_ids,
        warnings=warnings,
    )


# --- Person-scoped steps ---


async def insert_person(db: DatabaseAdapter, basic: BasicInfo) -> int:
    return await db.insert(
        """INSERT INTO person (
            legal_first_name, legal_last_name, preferred_name, date_of_birth,
            sex_at_birth, phone, email
        ) VALUES (?, ?, ?, ?, ?, ?, ?)""",
        (
            text_or_default(basic.legal_first_name),
            text_or_default(basic.legal_last_name),
            text_or_none(basic.preferred_name),
            text_or_none(basic.date_of_birth),
            text_or_none(basic.sex_at_birth),
            text_or_none(basic.phone),
            text_or_none(basic.email),
        ),
        returning="person_id",
    )


async def insert_address(db: DatabaseAdapter, person_id: int, basic: BasicInfo) -> None:
    await db.execute(
        "INSERT INTO address (person_id, street, city, state, zip) VALUES (?, ?, ?, ?, ?)",
        (
            person_id,
            text_or_default(basic.street),
            text_or_default(basic.city),
            text_or_none(basic.state),
            text_or_default(basic.zip, "00000"),
        ),
    )


async def insert_emergency_contacts(db: DatabaseAdapter, person_id: int, basic: BasicInfo) -> int:
    rows = []
    for contact in basic.emergency_contacts():
        name = (contact["name"] or "").strip()
        relationship = (contact["relationship"] or "").strip()
        phone = (contact["phone"] or "").strip()
        if not (name or relationship or phone):
            continue
        rows.append((person_id, name or None, relationship or None, phone or None))

    if rows:
        await db.executemany(
            "INSERT INTO emergency_contact (person_id, name, relationship, phone) VALUES (?, ?, ?, ?)",
            rows,
        )
    return len(rows)


async def insert_application(
    db: DatabaseAdapter, person_id: int, basic: BasicInfo, lifestyle: Lifestyle
) -> int:
    return await db.insert(
        """INSERT INTO application (
            applicant_id, has_health_insurance, montgomery_resident, last4_ssn,
            signature_name, signature_date
        ) VALUES (?, ?, ?, ?, ?, ?)""",
        (
            person_id,
            basic.has_health_insurance is True,
            basic.montgomery_resident is True,
            text_or_none(basic.last4_ssn),
            text_or_none(lifestyle.signature_name),
            text_or_none(lifestyle.signature_date),
        ),
        returning="application_id",
    )


async def insert_intake(db: DatabaseAdapter, application_id: int, health: HealthHistory) -> int:
    immunizations = health.immunizations_current
    if immunizations not in IMMUNIZATION_ANSWERS:
        immunizations = "dont_know"

    return await db.insert(
        """INSERT INTO intake (
            application_id, main_reason_for_visit, other_concerns,
            preferred_pharmacy, pharmacy_phone, immunizations_current
        ) VALUES (?, ?, ?, ?, ?, ?)""",
        (
            application_id,
            text_or_default(health.main_reason_for_visit),
            text_or_none(health.other_concerns),
            text_or_none(health.preferred_pharmacy),
            text_or_none(health.pharmacy_phone),
            immunizations,
        ),
        returning="intake_id",
    )


# --- Intake-scoped steps ---


async def insert_medications(db: DatabaseAdapter, intake_id: int, health: HealthHistory) -> int:
    if not health.medications:
        return 0
    await db.executemany(
        "INSERT INTO medication (intake_id, drug_name, strength, frequency) VALUES (?, ?, ?, ?)",
        [
            (
                intake_id,
                text_or_none(med.drug_name),
                text_or_none(med.strength),
                text_or_none(med.frequency),
            )
            for med in health.medications
        ],
    )
    return len(health.medications)


async def insert_nutrition_history(db: DatabaseAdapter, intake_id: int, lifestyle: Lifestyle) -> None:
    await db.execute(
        """INSERT INTO nutrition_history (
            intake_id, dieting, salt_intake, fruit_servings_per_day,
            vegetable_servings_per_day, meals_per_day, water_per_day,
            protein_sources, sugar_intake, weight_stability,
            food_intolerances_allergies, other_fluids, additional_notes
        ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
        (
            intake_id,
            text_or_none(lifestyle.dieting),
            text_or_none(lifestyle.salt_intake),
            safe_int(lifestyle.fruit_servings_per_day),
            safe_int(lifestyle.vegetable_servings_per_day),
            safe_int(lifestyle.meals_per_day),
            safe_int(lifestyle.water_per_day),
            text_or_none(lifestyle.protein_sources),
            text_or_none(lifestyle.sugar_intake),
            text_or_none(lifestyle.weight_stability),
            text_or_none(lifestyle.food_intolerances_allergies),
            text_or_none(lifestyle.other_fluids),
            text_or_none(lifestyle.additional_notes),
        ),
    )


async def insert_social_history(db: DatabaseAdapter, intake_id: int, lifestyle: Lifestyle) -> None:
    await db.execute(
        """INSERT INTO social_history (
            intake_id, caffeine_level, caffeine_cups_per_day, alcohol_use,
            drinks_per_week_beer, drinks_per_week_wine, drinks_per_week_liquor,
            cage_cut_down, cage_annoyed, cage_guilty, cage_eye_opener,
            tobacco_current, cigarettes_packs_per_day, cigars_per_day,
            chew_per_day, vape_per_day, tobacco_started_age, tobacco_ever,
            tobacco_quit_years_ago, drugs_current, drugs_list_amounts
        ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
        (
            intake_id,
            text_or_none(lifestyle.caffeine),
            safe_int(lifestyle.cups_per_day),
            text_or_none(lifestyle.alcohol_use),
            safe_int(lifestyle.drinks_beer),
            safe_int(lifestyle.drinks_wine),
            safe_int(lifestyle.drinks_liquor),
            yes_no_to_bool(lifestyle.cut_down),
            yes_no_to_bool(lifestyle.annoyed),
            yes_no_to_bool(lifestyle.guilty),
            yes_no_to_bool(lifestyle.morning),
            yes_no_to_bool(lifestyle.tobacco_use),
            safe_int(lifestyle.cigarettes),
            safe_int(lifestyle.cigars),
            safe_int(lifestyle.chew),
            None,  # vape_per_day is not collected by the form
            safe_int(lifestyle.smoking_start_age),
            yes_no_to_bool(lifestyle.quit_tobacco),
            safe_int(lifestyle.years_since_quit),
            yes_no_to_bool(lifestyle.drug_use),
            text_or_none(lifestyle.drug_list),
        ),
    )


async def insert_allergies(db: DatabaseAdapter, intake_id: int, health: HealthHistory) -> int:
    if not health.allergies:
        return 0
    await db.executemany(
        "INSERT INTO allergy (intake_id, allergen, reaction) VALUES (?, ?, ?)",
        [
            (intake_id, text_or_none(a.allergen), text_or_none(a.reaction))
            for a in health.allergies
        ],
    )
    return len(health.allergies)


async def insert_tb_screening(db: DatabaseAdapter, intake_id: int, medical: MedicalHistory) -> None:
    await db.execute(
        """INSERT INTO tb_screening (
            intake_id, active_tb, cough_gt_3_weeks, cough_produces_blood,
            exposed_to_tb, traveled_outside_usa_past_12m
        ) VALUES (?, ?, ?, ?, ?, ?)""",
        (
            intake_id,
            yes_no_to_bool(medical.tuberculosis),
            yes_no_to_bool(medical.persistent_cough),
            yes_no_to_bool(medical.bloody_mucus),
            yes_no_to_bool(medical.exposed_tb),
            yes_no_to_bool(medical.traveled_outside_usa),
        ),
    )


async def insert_sexual_history(
    db: DatabaseAdapter, intake_id: int, medical: MedicalHistory, family: FamilyHistoryTab
) -> int:
    stis = [sti for sti in family.sti_interest if has_signal(sti)]

    await db.execute(
        """INSERT INTO sexual_history (
            intake_id, uses_condom, number_of_sex_partners_total,
            current_partner_gender, screened_for_sti, interested_in_sti_screen
        ) VALUES (?, ?, ?, ?, ?, ?)""",
        (
            intake_id,
            yes_no_to_bool(medical.use_condoms),
            safe_int(medical.sex_partners_total),
            text_or_none(medical.current_partner_gender),
            yes_no_to_bool(medical.screened_sti),
            True if stis else None,
        ),
    )

    if stis:
        await db.executemany(
            "INSERT INTO sti_interest (intake_id, sti) VALUES (?, ?)",
            [(intake_id, sti) for sti in stis],
        )
    return len(stis)


async def insert_dental_history(db: DatabaseAdapter, intake_id: int, medical: MedicalHistory) -> None:
    # floss, trauma and dentures columns are not collected by the form yet
    await db.execute(
        """INSERT INTO dental_history (
            intake_id, regular_checkups, gums_bleed, periodontal_disease,
            grind_teeth, wore_braces, current_mouth_pain, brushing_per_day,
            floss, floss_how_often, face_mouth_trauma, trauma_when,
            dentures_partials, dentures_age, last_exam_cleaning
        ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
        (
            intake_id,
            yes_no_to_bool(medical.regular_checkup),
            yes_no_to_bool(medical.gums_bleed),
            yes_no_to_bool(medical.periodontal),
            yes_no_to_bool(medical.grind_teeth),
            yes_no_to_bool(medical.worn_braces),
            yes_no_to_bool(medical.mouth_pain),
            safe_int(medical.brush_frequency),
            None,
            None,
            None,
            None,
            None,
            None,
            text_or_none(medical.last_cleaning),
        ),
    )


async def insert_past_medical_history(db: DatabaseAdapter, intake_id: int, medical: MedicalHistory) -> int:
    events = medical.past_med_history_events
    if not events:
        return 0
    await db.executemany(
        "INSERT INTO past_med_history_event (intake_id, type, description, year, hospital) VALUES (?, ?, ?, ?, ?)",
        [
            (
                intake_id,
                text_or_none(ev.type),
                text_or_none(ev.description),
                safe_int(ev.year),
                text_or_none(ev.hospital),
            )
            for ev in events
        ],
    )
    return len(events)


async def insert_male_history(db: DatabaseAdapter, intake_id: int, medical: MedicalHistory) -> bool:
    if not any(flag is True for flag in medical.male_flags()):
        return False

    await db.execute(
        """INSERT INTO male_history (
            intake_id, penile_discharge, penile_lesions, erection_difficulty,
            trouble_urinating, waking_at_night_to_urinate
        ) VALUES (?, ?, ?, ?, ?, ?)""",
        (intake_id, *(strict_true(flag) for flag in medical.male_flags())),
    )
    return True


async def insert_female_history(db: DatabaseAdapter, intake_id: int, medical: MedicalHistory) -> bool:
    if not any(has_signal(value) for value in medical.female_signals()):
        return False

    await db.execute(
        """INSERT INTO female_history (
            intake_id, last_pap_date, pap_abnormal, last_mammogram_date,
            mammogram_abnormal, age_first_menstrual_period,
            date_last_menstrual_period, pregnancies, births, abortions,
            miscarriages, cesarean_count, heavy_periods,
            bleeding_between_periods, extreme_menstrual_pain,
            vaginal_itching_burning_discharge, urine_leak, hot_flashes,
            menopause, breast_lump_or_nipple_discharge, painful_intercourse,
            partner_uses_condom, other_birth_control_method,
            waking_at_night_to_urinate
        ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
        (
            intake_id,
            text_or_none(medical.female_last_pap_date),
            tri_state(medical.female_pap_abnormal),
            text_or_none(medical.female_last_mammogram_date),
            tri_state(medical.female_mammogram_abnormal),
            safe_int(medical.female_age_first_menstrual_period),
            text_or_none(medical.female_date_last_menstrual_period),
            safe_int(medical.female_pregnancies),
            safe_int(medical.female_births),
            safe_int(medical.female_abortions),
            safe_int(medical.female_miscarriages),
            safe_int(medical.female_cesarean_count),
            strict_true(medical.female_heavy_periods),
            strict_true(medical.female_bleeding_between_periods),
            strict_true(medical.female_extreme_menstrual_pain),
            strict_true(medical.female_vaginal_itching_burning_discharge),
            strict_true(medical.female_urine_leak),
            strict_true(medical.female_hot_flashes),
            tri_state(medical.female_menopause),
            strict_true(medical.female_breast_lump_or_nipple_discharge),
            strict_true(medical.female_painful_intercourse),
            tri_state(medical.female_partner_uses_condom),
            text_or_none(medical.female_other_birth_control_method),
            strict_true(medical.female_waking_at_night_to_urinate),
        ),
    )
    return True


async def insert_family_history(
    db: DatabaseAdapter, intake_id: int, family: FamilyHistoryTab
) -> tuple[list[int], list[str]]:
    """Write family members and their resolved problems.

    A pre-filled default relative with nothing answered is not a real entry;
    an extra relative counts as soon as it has a relation label.
    """
    entries = family.family_history_entries
    if not entries:
        return [], []

    lookup_rows = await db.fetch_all("SELECT problem_id, name FROM family_problem_lookup")
    lookup_by_name = build_lookup_map(lookup_rows)

    fam_hist_ids: list[int] = []
    warnings: list[str] = []

    for entry in entries:
        relation = (entry.relation or "").strip()
        problems = [p for p in entry.problems if has_signal(p)]
        answered = has_signal(entry.alive) or has_signal(entry.age) or bool(problems)
        if not answered and (not relation or is_default_relation(relation)):
            continue

        fam_hist_id = await db.insert(
            "INSERT INTO family_history (intake_id, relation, alive, age) VALUES (?, ?, ?, ?)",
            (
                intake_id,
                normalize_relation(relation) or None,
                yes_no_to_bool(entry.alive),
                safe_int(entry.age),
            ),
            returning="fam_hist_id",
        )
        fam_hist_ids.append(fam_hist_id)

        problem_rows = []
        seen: set[int] = set()
        for key in problems:
            problem_id = resolve_problem_id(key, lookup_by_name)
            if problem_id is None:
                logger.warning("No family_problem_lookup match for problem key %r", key)
                warnings.append(f"Unrecognized family history problem '{key}' was not recorded")
                continue
            if problem_id in seen:
                continue
            seen.add(problem_id)
            problem_rows.append((fam_hist_id, problem_id))

        if problem_rows:
            await db.executemany(
                "INSERT INTO family_history_problem (fam_hist_id, problem_id) VALUES (?, ?)",
                problem_rows,
            )

    return fam_hist_ids, warnings

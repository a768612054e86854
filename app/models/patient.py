"""Read-side shapes for staff views of a person and their intake records."""

from pydantic import BaseModel


class PersonRecord(BaseModel):
    person_id: int
    legal_first_name: str
    legal_last_name: str
    preferred_name: str | None = None
    date_of_birth: str | None = None
    sex_at_birth: str | None = None
    phone: str | None = None
    email: str | None = None


class AddressRecord(BaseModel):
    street: str | None = None
    city: str | None = None
    state: str | None = None
    zip: str | None = None


class EmergencyContactRecord(BaseModel):
    name: str | None = None
    relationship: str | None = None
    phone: str | None = None


class ApplicationRecord(BaseModel):
    application_id: int
    has_health_insurance: bool = False
    montgomery_resident: bool = False
    last4_ssn: str | None = None
    signature_name: str | None = None
    signature_date: str | None = None
    submitted_at: str | None = None


class AllergyRecord(BaseModel):
    allergen: str | None = None
    reaction: str | None = None


class MedicationRecord(BaseModel):
    drug_name: str | None = None
    strength: str | None = None
    frequency: str | None = None


class PastMedicalEventRecord(BaseModel):
    type: str | None = None
    description: str | None = None
    year: int | None = None
    hospital: str | None = None


class FamilyHistoryRecord(BaseModel):
    fam_hist_id: int
    relation: str | None = None
    alive: bool | None = None
    age: int | None = None
    problems: list[str] = []


class NutritionHistoryRecord(BaseModel):
    dieting: str | None = None
    salt_intake: str | None = None
    fruit_servings_per_day: int | None = None
    vegetable_servings_per_day: int | None = None
    meals_per_day: int | None = None
    water_per_day: int | None = None
    protein_sources: str | None = None
    sugar_intake: str | None = None
    weight_stability: str | None = None
    food_intolerances_allergies: str | None = None
    other_fluids: str | None = None
    additional_notes: str | None = None


class SocialHistoryRecord(BaseModel):
    caffeine_level: str | None = None
    caffeine_cups_per_day: int | None = None
    alcohol_use: str | None = None
    drinks_per_week_beer: int | None = None
    drinks_per_week_wine: int | None = None
    drinks_per_week_liquor: int | None = None
    cage_cut_down: bool | None = None
    cage_annoyed: bool | None = None
    cage_guilty: bool | None = None
    cage_eye_opener: bool | None = None
    tobacco_current: bool | None = None
    cigarettes_packs_per_day: int | None = None
    cigars_per_day: int | None = None
    chew_per_day: int | None = None
    vape_per_day: int | None = None
    tobacco_started_age: int | None = None
    tobacco_ever: bool | None = None
    tobacco_quit_years_ago: int | None = None
    drugs_current: bool | None = None
    drugs_list_amounts: str | None = None


class TBScreeningRecord(BaseModel):
    active_tb: bool | None = None
    cough_gt_3_weeks: bool | None = None
    cough_produces_blood: bool | None = None
    exposed_to_tb: bool | None = None
    traveled_outside_usa_past_12m: bool | None = None


class SexualHistoryRecord(BaseModel):
    uses_condom: bool | None = None
    number_of_sex_partners_total: int | None = None
    current_partner_gender: str | None = None
    screened_for_sti: bool | None = None
    interested_in_sti_screen: bool | None = None


class DentalHistoryRecord(BaseModel):
    regular_checkups: bool | None = None
    gums_bleed: bool | None = None
    periodontal_disease: bool | None = None
    grind_teeth: bool | None = None
    wore_braces: bool | None = None
    current_mouth_pain: bool | None = None
    brushing_per_day: int | None = None
    floss: bool | None = None
    floss_how_often: str | None = None
    face_mouth_trauma: bool | None = None
    trauma_when: str | None = None
    dentures_partials: bool | None = None
    dentures_age: str | None = None
    last_exam_cleaning: str | None = None


class MaleHistoryRecord(BaseModel):
    penile_discharge: bool | None = None
    penile_lesions: bool | None = None
    erection_difficulty: bool | None = None
    trouble_urinating: bool | None = None
    waking_at_night_to_urinate: bool | None = None


class FemaleHistoryRecord(BaseModel):
    last_pap_date: str | None = None
    pap_abnormal: bool | None = None
    last_mammogram_date: str | None = None
    mammogram_abnormal: bool | None = None
    age_first_menstrual_period: int | None = None
    date_last_menstrual_period: str | None = None
    pregnancies: int | None = None
    births: int | None = None
    abortions: int | None = None
    miscarriages: int | None = None
    cesarean_count: int | None = None
    heavy_periods: bool | None = None
    bleeding_between_periods: bool | None = None
    extreme_menstrual_pain: bool | None = None
    vaginal_itching_burning_discharge: bool | None = None
    urine_leak: bool | None = None
    hot_flashes: bool | None = None
    menopause: bool | None = None
    breast_lump_or_nipple_discharge: bool | None = None
    painful_intercourse: bool | None = None
    partner_uses_condom: bool | None = None
    other_birth_control_method: str | None = None
    waking_at_night_to_urinate: bool | None = None


class IntakeRecord(BaseModel):
    """One visit's clinical bundle. Absent 1:1 sections are None ("not recorded")."""

    intake_id: int
    main_reason_for_visit: str
    other_concerns: str | None = None
    preferred_pharmacy: str | None = None
    pharmacy_phone: str | None = None
    immunizations_current: str = "dont_know"
    created_at: str | None = None
    allergies: list[AllergyRecord] = []
    medications: list[MedicationRecord] = []
    past_medical_history: list[PastMedicalEventRecord] = []
    family_history: list[FamilyHistoryRecord] = []
    sti_interest: list[str] = []
    nutrition_history: NutritionHistoryRecord | None = None
    social_history: SocialHistoryRecord | None = None
    tb_screening: TBScreeningRecord | None = None
    sexual_history: SexualHistoryRecord | None = None
    dental_history: DentalHistoryRecord | None = None
    male_history: MaleHistoryRecord | None = None
    female_history: FemaleHistoryRecord | None = None


class PatientDetail(BaseModel):
    """A person with their latest application and latest intake."""

    person: PersonRecord
    address: AddressRecord | None = None
    emergency_contacts: list[EmergencyContactRecord] = []
    application: ApplicationRecord | None = None
    intake: IntakeRecord | None = None


class SubmissionRecord(BaseModel):
    application: ApplicationRecord
    intakes: list[IntakeRecord] = []


class PatientListItem(BaseModel):
    person_id: int
    legal_first_name: str
    legal_last_name: str
    preferred_name: str | None = None
    date_of_birth: str | None = None
    phone: str | None = None
    email: str | None = None
    street: str | None = None
    city: str | None = None
    zip: str | None = None
    has_health_insurance: bool | None = None
    montgomery_resident: bool | None = None
    last4_ssn: str | None = None


class PatientSearchItem(BaseModel):
    person_id: int
    legal_first_name: str
    legal_last_name: str
    preferred_name: str | None = None
    date_of_birth: str | None = None
    phone: str | None = None

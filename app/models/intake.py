"""Pydantic models for the patient intake form.

The form is collected as one flat key/value bag (the keys the intake tabs
emit, e.g. ``legal_first_name``, ``cutDown``, ``persistentCough``). Each tab
model reads its own keys out of that bag; together they make up an
``IntakeSnapshot``, the immutable input of the submission pipeline.
"""

from typing import Annotated, Any, Mapping

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


OptionalBool = Annotated[bool | None, BeforeValidator(_blank_to_none)]
# Numeric inputs arrive as typed text ("12", "60 oz") or as JSON numbers
RawNumber = str | int | float | None


class TabModel(BaseModel):
    model_config = ConfigDict(
        populate_by_name=True, extra="ignore", frozen=True, coerce_numbers_to_str=True
    )


class AllergyEntry(TabModel):
    allergen: str | None = None
    reaction: str | None = None


class MedicationEntry(TabModel):
    drug_name: str | None = None
    strength: str | None = None
    frequency: str | None = None


class PastMedicalEvent(TabModel):
    type: str | None = None
    year: RawNumber = None
    hospital: str | None = None
    description: str | None = None


class FamilyEntry(TabModel):
    id: str | None = None
    relation: str | None = None
    alive: str | None = None            # "yes" | "no" | ""
    age: RawNumber = None
    problems: list[str] = []


class BasicInfo(TabModel):
    legal_first_name: str | None = None
    legal_last_name: str | None = None
    preferred_name: str | None = None
    date_of_birth: str | None = None
    sex_at_birth: str | None = None
    phone: str | None = None
    email: str | None = None
    street: str | None = None
    city: str | None = None
    state: str | None = None
    zip: str | None = None
    last4_ssn: str | None = None
    has_health_insurance: OptionalBool = None
    montgomery_resident: OptionalBool = None
    emergency1_name: str | None = None
    emergency1_relationship: str | None = None
    emergency1_phone: str | None = None
    emergency2_name: str | None = None
    emergency2_relationship: str | None = None
    emergency2_phone: str | None = None

    def emergency_contacts(self) -> list[dict[str, str | None]]:
        return [
            {
                "name": self.emergency1_name,
                "relationship": self.emergency1_relationship,
                "phone": self.emergency1_phone,
            },
            {
                "name": self.emergency2_name,
                "relationship": self.emergency2_relationship,
                "phone": self.emergency2_phone,
            },
        ]


class HealthHistory(TabModel):
    main_reason_for_visit: str | None = None
    other_concerns: str | None = None
    preferred_pharmacy: str | None = None
    pharmacy_phone: str | None = None
    immunizations_current: str | None = None    # "yes" | "no" | "dont_know"
    allergies: list[AllergyEntry] = []
    medications: list[MedicationEntry] = []


class MedicalHistory(TabModel):
    past_med_history_events: list[PastMedicalEvent] = []

    # TB screening
    tuberculosis: str | None = None
    persistent_cough: str | None = Field(None, alias="persistentCough")
    bloody_mucus: str | None = Field(None, alias="bloodyMucus")
    exposed_tb: str | None = Field(None, alias="exposedTB")
    traveled_outside_usa: str | None = Field(None, alias="traveledUSA")

    # Sexual history
    use_condoms: str | None = Field(None, alias="useCondoms")
    sex_partners_total: RawNumber = None
    current_partner_gender: str | None = None
    screened_sti: str | None = Field(None, alias="screenedSTI")

    # Dental history
    regular_checkup: str | None = Field(None, alias="regularCheckup")
    gums_bleed: str | None = Field(None, alias="gumsBleed")
    periodontal: str | None = None
    grind_teeth: str | None = Field(None, alias="grindTeeth")
    worn_braces: str | None = Field(None, alias="wornBraces")
    mouth_pain: str | None = Field(None, alias="mouthPain")
    brush_frequency: RawNumber = Field(None, alias="brushFrequency")
    last_cleaning: str | None = Field(None, alias="lastCleaning")

    # Male history (checkboxes)
    male_penile_discharge: OptionalBool = None
    male_penile_lesions: OptionalBool = None
    male_erection_difficulty: OptionalBool = None
    male_trouble_urinating: OptionalBool = None
    male_waking_at_night_to_urinate: OptionalBool = None

    # Female history
    female_last_pap_date: str | None = None
    female_pap_abnormal: OptionalBool = None
    female_last_mammogram_date: str | None = None
    female_mammogram_abnormal: OptionalBool = None
    female_age_first_menstrual_period: RawNumber = None
    female_date_last_menstrual_period: str | None = None
    female_pregnancies: RawNumber = None
    female_births: RawNumber = None
    female_abortions: RawNumber = None
    female_miscarriages: RawNumber = None
    female_cesarean_count: RawNumber = None
    female_heavy_periods: OptionalBool = None
    female_bleeding_between_periods: OptionalBool = None
    female_extreme_menstrual_pain: OptionalBool = None
    female_vaginal_itching_burning_discharge: OptionalBool = None
    female_urine_leak: OptionalBool = None
    female_hot_flashes: OptionalBool = None
    female_menopause: OptionalBool = None
    female_breast_lump_or_nipple_discharge: OptionalBool = None
    female_painful_intercourse: OptionalBool = None
    female_partner_uses_condom: OptionalBool = None
    female_other_birth_control_method: str | None = None
    female_waking_at_night_to_urinate: OptionalBool = None

    def male_flags(self) -> list[bool | None]:
        return [
            self.male_penile_discharge,
            self.male_penile_lesions,
            self.male_erection_difficulty,
            self.male_trouble_urinating,
            self.male_waking_at_night_to_urinate,
        ]

    def female_signals(self) -> list[Any]:
        """Fields whose presence decides whether a female_history row is written."""
        return [
            self.female_last_pap_date,
            self.female_last_mammogram_date,
            self.female_age_first_menstrual_period,
            self.female_date_last_menstrual_period,
            self.female_pregnancies,
            self.female_births,
            self.female_abortions,
            self.female_miscarriages,
            self.female_cesarean_count,
            self.female_heavy_periods,
            self.female_bleeding_between_periods,
            self.female_extreme_menstrual_pain,
            self.female_breast_lump_or_nipple_discharge,
            self.female_painful_intercourse,
            self.female_urine_leak,
            self.female_hot_flashes,
            self.female_partner_uses_condom,
            self.female_other_birth_control_method,
        ]


class FamilyHistoryTab(TabModel):
    family_history_entries: list[FamilyEntry] = Field([], alias="familyHistoryEntries")
    sti_interest: list[str] = []


class Lifestyle(TabModel):
    # Caffeine / alcohol
    caffeine: str | None = None
    cups_per_day: RawNumber = None
    alcohol_use: str | None = None
    drinks_beer: RawNumber = None
    drinks_wine: RawNumber = None
    drinks_liquor: RawNumber = None

    # CAGE questionnaire
    cut_down: str | None = Field(None, alias="cutDown")
    annoyed: str | None = None
    guilty: str | None = None
    morning: str | None = None

    # Tobacco / drugs
    tobacco_use: str | None = None
    smoking_start_age: RawNumber = None
    smoking_years: RawNumber = None
    cigarettes: RawNumber = None
    cigars: RawNumber = None
    chew: RawNumber = None
    quit_tobacco: str | None = None
    years_since_quit: RawNumber = None
    drug_use: str | None = None
    drug_list: str | None = None

    # Nutrition
    dieting: str | None = None
    salt_intake: str | None = None
    sugar_intake: str | None = None
    fruit_servings_per_day: RawNumber = None
    vegetable_servings_per_day: RawNumber = None
    meals_per_day: RawNumber = None
    water_per_day: RawNumber = None
    protein_sources: str | None = None
    weight_stability: str | None = None
    food_intolerances_allergies: str | None = None
    other_fluids: str | None = None
    additional_notes: str | None = None

    # Consent
    signature_name: str | None = None
    signature_date: str | None = None
    signature_confirmed: OptionalBool = None


class IntakeSnapshot(TabModel):
    """Immutable, validated view of a finished intake form."""

    basic: BasicInfo = BasicInfo()
    health: HealthHistory = HealthHistory()
    medical: MedicalHistory = MedicalHistory()
    family: FamilyHistoryTab = FamilyHistoryTab()
    lifestyle: Lifestyle = Lifestyle()

    @classmethod
    def from_form_data(cls, form_data: Mapping[str, Any]) -> "IntakeSnapshot":
        data = dict(form_data)
        return cls(
            basic=BasicInfo.model_validate(data),
            health=HealthHistory.model_validate(data),
            medical=MedicalHistory.model_validate(data),
            family=FamilyHistoryTab.model_validate(data),
            lifestyle=Lifestyle.model_validate(data),
        )


class FormSessionResponse(BaseModel):
    session_id: str
    created_at: str
    updated_at: str
    form_data: dict[str, Any] = {}


class SubmissionResult(BaseModel):
    person_id: int
    application_id: int
    intake_id: int
    fam_hist_ids: list[int] = []
    warnings: list[str] = []

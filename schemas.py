from typing import Any, Dict, List, Optional
import re

from pydantic import BaseModel, Field, field_validator, AliasChoices

from engine.solubility_catalog_v1 import DEFAULT_SALT_ID


_WHITESPACE_RE = re.compile(r"\s+")
_CONTROL_RE = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F]")

# Background ion concentrations above this are not aqueous chemistry.
MAX_COMMON_ION_MOLARITY = 100.0


def _clean_text(s: str) -> str:
    # Remove control chars, trim, collapse whitespace.
    s = _CONTROL_RE.sub("", s)
    s = s.strip()
    s = _WHITESPACE_RE.sub(" ", s)
    return s


class SimulateRequest(BaseModel):
    # Defaults mirror the lab's initial state.
    salt_id: str = Field(
        DEFAULT_SALT_ID,
        max_length=20,
        validation_alias=AliasChoices("salt_id", "salt", "formula"),
    )
    volume_l: float = Field(
        1.0,
        gt=0,
        allow_inf_nan=False,
        validation_alias=AliasChoices("volume_l", "volumeL"),
    )
    added_mass_mg: float = Field(
        10.0,
        ge=0,
        allow_inf_nan=False,
        validation_alias=AliasChoices("added_mass_mg", "addedMassMg"),
    )
    common_ion_cation: float = Field(
        0.0,
        ge=0,
        le=MAX_COMMON_ION_MOLARITY,
        allow_inf_nan=False,
        validation_alias=AliasChoices("common_ion_cation", "commonIonCation"),
    )
    common_ion_anion: float = Field(
        0.0,
        ge=0,
        le=MAX_COMMON_ION_MOLARITY,
        allow_inf_nan=False,
        validation_alias=AliasChoices("common_ion_anion", "commonIonAnion"),
    )
    exact_common_ion: bool = Field(
        False,
        description="Solve the common-ion equation numerically for non-1:1 salts.",
    )

    model_config = {"extra": "ignore", "populate_by_name": True}

    @field_validator("salt_id", mode="before")
    @classmethod
    def _clean_salt_id(cls, v):
        if v is None:
            return DEFAULT_SALT_ID
        s = _clean_text(str(v))
        return s or DEFAULT_SALT_ID


class SweepRequest(BaseModel):
    salt_id: str = Field(DEFAULT_SALT_ID, max_length=20, validation_alias=AliasChoices("salt_id", "salt", "formula"))
    volume_l: float = Field(1.0, gt=0, allow_inf_nan=False)
    masses_mg: List[float] = Field(..., min_length=1, max_length=200)
    common_ion_cation: float = Field(0.0, ge=0, le=MAX_COMMON_ION_MOLARITY, allow_inf_nan=False)
    common_ion_anion: float = Field(0.0, ge=0, le=MAX_COMMON_ION_MOLARITY, allow_inf_nan=False)
    exact_common_ion: bool = False

    model_config = {"extra": "ignore", "populate_by_name": True}

    @field_validator("masses_mg")
    @classmethod
    def _masses_non_negative(cls, v: List[float]) -> List[float]:
        for m in v:
            if m != m or m < 0 or m == float("inf"):
                raise ValueError("masses_mg must be finite and >= 0")
        return v


class TutorRequest(BaseModel):
    question: str = Field(..., min_length=1, max_length=4000)
    simulation: SimulateRequest = Field(default_factory=SimulateRequest)

    model_config = {"extra": "ignore"}

    @field_validator("question", mode="before")
    @classmethod
    def _clean_question(cls, v):
        if v is None:
            raise ValueError("question is required")
        s = _clean_text(str(v))
        if not s:
            raise ValueError("question is required")
        return s


class SaltOut(BaseModel):
    id: str
    name: str
    formula: str
    ksp: float
    cation_label: str
    anion_label: str
    cation_charge: int
    anion_charge: int
    stoichiometry: List[int]
    molar_mass: float
    color: str
    equation: str
    ksp_expression: str


class EquilibriumOut(BaseModel):
    molar_solubility: float
    total_moles_added: float
    dissolved_moles: float
    precipitated_moles: float
    cation_concentration: float
    anion_concentration: float
    reaction_quotient: float
    is_saturated: bool


class BeakerOut(BaseModel):
    particle_count: int
    precipitate_height: float
    has_precipitate: bool


class SimulateResponse(BaseModel):
    salt: SaltOut
    input: Dict[str, Any]
    result: EquilibriumOut
    readout: Dict[str, Any]
    beaker: BeakerOut
    tutor_context: str
    flags: List[str] = []


class SweepPoint(BaseModel):
    added_mass_mg: float
    dissolved_moles: float
    precipitated_moles: float
    reaction_quotient: float
    is_saturated: bool


class SweepResponse(BaseModel):
    salt_id: str
    ksp: float
    points: List[SweepPoint]
    flags: List[str] = []


class TutorResponse(BaseModel):
    answer: str
    enabled: bool
    flags: List[str] = []
    context: Optional[str] = None


class ErrorResponse(BaseModel):
    detail: str
    flags: List[str] = []

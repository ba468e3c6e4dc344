"""
Solubility Catalog v1 — static salt descriptors (Grade 12 exam-safe data)

Scope (LOCKED):
- Sparingly soluble binary salts only (one cation species, one anion species)
- Ksp values at 25 °C
- Molar masses in g/mol

Descriptors are immutable. Lookups never mutate module state.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Tuple


class SolubilityCatalogError(ValueError):
    """Raised when a salt descriptor is malformed."""


class UnknownSaltError(LookupError):
    """Raised when a salt id/formula is not in the catalog."""


def _is_positive_int(x) -> bool:
    return isinstance(x, int) and not isinstance(x, bool) and x > 0


@dataclass(frozen=True)
class SaltDescriptor:
    id: str
    name: str
    formula: str
    ksp: float
    cation_label: str
    anion_label: str
    cation_charge: int
    anion_charge: int
    cation_stoichiometry: int
    anion_stoichiometry: int
    molar_mass: float
    color: str = "#E2E8F0"

    def __post_init__(self) -> None:
        if not self.id or not self.formula:
            raise SolubilityCatalogError("id and formula must not be empty.")
        if not (self.ksp > 0):
            raise SolubilityCatalogError(f"{self.formula}: ksp must be > 0.")
        if not (self.molar_mass > 0):
            raise SolubilityCatalogError(f"{self.formula}: molar_mass must be > 0.")
        if not _is_positive_int(self.cation_stoichiometry) or not _is_positive_int(self.anion_stoichiometry):
            raise SolubilityCatalogError(f"{self.formula}: stoichiometric coefficients must be positive integers.")
        if self.cation_charge <= 0 or self.anion_charge >= 0:
            raise SolubilityCatalogError(f"{self.formula}: cation charge must be > 0 and anion charge < 0.")
        # Electroneutral solid: a·z+ + b·z- = 0
        if self.cation_stoichiometry * self.cation_charge + self.anion_stoichiometry * self.anion_charge != 0:
            raise SolubilityCatalogError(f"{self.formula}: stoichiometry is not charge balanced.")

    @property
    def stoichiometry(self) -> Tuple[int, int]:
        return (self.cation_stoichiometry, self.anion_stoichiometry)

    @property
    def is_one_to_one(self) -> bool:
        return self.cation_stoichiometry == 1 and self.anion_stoichiometry == 1

    def to_dict(self) -> Dict[str, object]:
        return {
            "id": self.id,
            "name": self.name,
            "formula": self.formula,
            "ksp": self.ksp,
            "cation_label": self.cation_label,
            "anion_label": self.anion_label,
            "cation_charge": self.cation_charge,
            "anion_charge": self.anion_charge,
            "stoichiometry": list(self.stoichiometry),
            "molar_mass": self.molar_mass,
            "color": self.color,
        }


# Formula -> g/mol (kept as its own table; descriptors read from it)
MOLAR_MASSES: Dict[str, float] = {
    "AgCl": 143.32,
    "PbI2": 461.01,
    "BaSO4": 233.39,
    "CaCO3": 100.09,
    "MgF2": 62.30,
}


SALTS: Tuple[SaltDescriptor, ...] = (
    SaltDescriptor(
        id="agcl",
        name="Silver Chloride",
        formula="AgCl",
        ksp=1.77e-10,
        cation_label="Ag+",
        anion_label="Cl-",
        cation_charge=1,
        anion_charge=-1,
        cation_stoichiometry=1,
        anion_stoichiometry=1,
        molar_mass=MOLAR_MASSES["AgCl"],
        color="#E2E8F0",
    ),
    SaltDescriptor(
        id="pbi2",
        name="Lead(II) Iodide",
        formula="PbI2",
        ksp=7.1e-9,
        cation_label="Pb2+",
        anion_label="I-",
        cation_charge=2,
        anion_charge=-1,
        cation_stoichiometry=1,
        anion_stoichiometry=2,
        molar_mass=MOLAR_MASSES["PbI2"],
        color="#FDE047",
    ),
    SaltDescriptor(
        id="baso4",
        name="Barium Sulfate",
        formula="BaSO4",
        ksp=1.1e-10,
        cation_label="Ba2+",
        anion_label="SO4 2-",
        cation_charge=2,
        anion_charge=-2,
        cation_stoichiometry=1,
        anion_stoichiometry=1,
        molar_mass=MOLAR_MASSES["BaSO4"],
        color="#F1F5F9",
    ),
    SaltDescriptor(
        id="caco3",
        name="Calcium Carbonate",
        formula="CaCO3",
        ksp=3.3e-9,
        cation_label="Ca2+",
        anion_label="CO3 2-",
        cation_charge=2,
        anion_charge=-2,
        cation_stoichiometry=1,
        anion_stoichiometry=1,
        molar_mass=MOLAR_MASSES["CaCO3"],
        color="#CBD5E1",
    ),
    SaltDescriptor(
        id="mgf2",
        name="Magnesium Fluoride",
        formula="MgF2",
        ksp=5.2e-11,
        cation_label="Mg2+",
        anion_label="F-",
        cation_charge=2,
        anion_charge=-1,
        cation_stoichiometry=1,
        anion_stoichiometry=2,
        molar_mass=MOLAR_MASSES["MgF2"],
        color="#F8FAFC",
    ),
)

DEFAULT_SALT_ID = "agcl"

_BY_KEY: Dict[str, SaltDescriptor] = {}
for _salt in SALTS:
    _BY_KEY[_salt.id.lower()] = _salt
    _BY_KEY[_salt.formula.lower()] = _salt


def list_salts() -> List[SaltDescriptor]:
    return list(SALTS)


def get_salt(key: str) -> SaltDescriptor:
    """Look up a salt by id ("agcl") or formula ("AgCl"), case-insensitive."""
    k = (key or "").strip().lower()
    salt = _BY_KEY.get(k)
    if salt is None:
        raise UnknownSaltError(f"Unknown salt: {key!r}")
    return salt

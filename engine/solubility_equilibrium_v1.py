"""
Solubility Equilibrium v1 — Ksp / Qsp / common-ion solver (deterministic)

Scope (LOCKED):
- Binary salts: Salt(s) ⇌ a·Cation + b·Anion
- Molar solubility s from Ksp, with optional common-ion background
- Dissolved vs precipitated moles for a given mass in a given volume
- Reaction quotient Qsp and saturation state

Solubility paths:
- 1:1 salts: exact positive root of  s² + (c1 + c2)·s + (c1·c2 − Ksp) = 0
- other stoichiometries: zero-common-ion closed form
      s = (Ksp / (a^a · b^b)) ^ (1 / (a + b))
  used even when a common ion is present (classroom approximation).
  `exact=True` replaces it with a bracketed bisection on
      (a·s + c1)^a · (b·s + c2)^b = Ksp

All functions are pure. Every call returns a fresh result; nothing is cached.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from typing import Dict, Iterable, List

from engine.solubility_catalog_v1 import SaltDescriptor


# Qsp within 1% below Ksp counts as having reached equilibrium.
SATURATION_TOLERANCE = 0.99

_BISECTION_MAX_ITER = 200
_BISECTION_REL_TOL = 1e-12


class SolubilityEquilibriumError(ValueError):
    """Base error for the solubility equilibrium solver."""


class InvalidInput(SolubilityEquilibriumError):
    """Raised when inputs are outside the solver's domain."""


class ComputationDegenerate(SolubilityEquilibriumError):
    """Raised when a step would produce a non-real or undefined value."""


def _ensure_finite_number(x: float, name: str) -> None:
    if x is None or isinstance(x, bool) or not isinstance(x, (int, float)):
        raise InvalidInput(f"{name} must be a number.")
    if not math.isfinite(x):
        raise InvalidInput(f"{name} must be a finite number.")


def _validate_positive(x: float, name: str) -> None:
    _ensure_finite_number(x, name)
    if x <= 0:
        raise InvalidInput(f"{name} must be > 0.")


def _validate_non_negative(x: float, name: str) -> None:
    _ensure_finite_number(x, name)
    if x < 0:
        raise InvalidInput(f"{name} must be >= 0.")


def _validate_coefficient(n: int, name: str) -> None:
    if isinstance(n, bool) or not isinstance(n, int) or n <= 0:
        raise InvalidInput(f"{name} must be a positive integer.")


@dataclass(frozen=True)
class SimulationInput:
    """One snapshot of the lab controls. Rebuild it on change, never mutate."""

    salt: SaltDescriptor
    volume_liters: float
    added_mass_mg: float
    common_cation_molarity: float = 0.0
    common_anion_molarity: float = 0.0

    def with_changes(self, **fields) -> "SimulationInput":
        return replace(self, **fields)


@dataclass(frozen=True)
class EquilibriumResult:
    molar_solubility: float
    total_moles_added: float
    dissolved_moles: float
    precipitated_moles: float
    cation_concentration: float
    anion_concentration: float
    reaction_quotient: float
    is_saturated: bool

    def to_dict(self) -> Dict[str, object]:
        return {
            "molar_solubility": self.molar_solubility,
            "total_moles_added": self.total_moles_added,
            "dissolved_moles": self.dissolved_moles,
            "precipitated_moles": self.precipitated_moles,
            "cation_concentration": self.cation_concentration,
            "anion_concentration": self.anion_concentration,
            "reaction_quotient": self.reaction_quotient,
            "is_saturated": self.is_saturated,
        }


# -------------------------
# Molar solubility
# -------------------------

def _solubility_one_to_one(ksp: float, c1: float, c2: float) -> float:
    # s² + b·s + c = 0 ; discriminant = (c1 − c2)² + 4·Ksp
    b = c1 + c2
    c = c1 * c2 - ksp
    disc = b * b - 4.0 * c
    if disc < 0:
        raise ComputationDegenerate("Negative discriminant in 1:1 solubility quadratic.")
    if c >= 0:
        # Background already at/above Ksp: positive root is <= 0.
        return 0.0
    # (−b + √disc) / 2 written without cancellation
    return (-2.0 * c) / (b + math.sqrt(disc))


def _solubility_closed_form(ksp: float, a: int, b: int) -> float:
    return (ksp / (a ** a * b ** b)) ** (1.0 / (a + b))


def _solubility_bisection(ksp: float, a: int, b: int, c1: float, c2: float) -> float:
    def excess(s: float) -> float:
        try:
            return (a * s + c1) ** a * (b * s + c2) ** b - ksp
        except OverflowError as e:
            raise ComputationDegenerate("Ion product overflowed during bisection.") from e

    lo = 0.0
    if excess(lo) >= 0:
        return 0.0

    # Root lies in [0, s0]; widen by rounding slack so the bracket holds.
    hi = _solubility_closed_form(ksp, a, b) * (1.0 + 1e-9)
    if excess(hi) < 0:
        raise ComputationDegenerate("Closed-form solubility does not bracket the common-ion root.")

    for _ in range(_BISECTION_MAX_ITER):
        mid = 0.5 * (lo + hi)
        if excess(mid) >= 0:
            hi = mid
        else:
            lo = mid
        if hi - lo <= _BISECTION_REL_TOL * hi:
            break
    return 0.5 * (lo + hi)


def molar_solubility(
    ksp: float,
    cation_stoichiometry: int,
    anion_stoichiometry: int,
    common_cation: float = 0.0,
    common_anion: float = 0.0,
    exact: bool = False,
) -> float:
    """
    Molar solubility s (mol/L) of a·Cation + b·Anion in a solution that
    already holds `common_cation` / `common_anion` mol/L of each ion.

    Args:
        ksp: solubility product, must be > 0
        cation_stoichiometry, anion_stoichiometry: a, b (positive ints)
        common_cation, common_anion: background molarities (>= 0)
        exact: solve the common-ion equation numerically for non-1:1 salts

    Returns:
        s >= 0
    """
    _validate_positive(ksp, "ksp")
    _validate_coefficient(cation_stoichiometry, "cation_stoichiometry")
    _validate_coefficient(anion_stoichiometry, "anion_stoichiometry")
    _validate_non_negative(common_cation, "common_cation")
    _validate_non_negative(common_anion, "common_anion")

    a, b = cation_stoichiometry, anion_stoichiometry
    if a == 1 and b == 1:
        s = _solubility_one_to_one(ksp, common_cation, common_anion)
    elif exact and (common_cation > 0 or common_anion > 0):
        s = _solubility_bisection(ksp, a, b, common_cation, common_anion)
    else:
        s = _solubility_closed_form(ksp, a, b)

    if not math.isfinite(s) or s < 0:
        raise ComputationDegenerate(f"Molar solubility is not a finite non-negative number: {s!r}")
    return s


# -------------------------
# Equilibrium evaluation
# -------------------------

def evaluate(
    salt: SaltDescriptor,
    volume_liters: float,
    added_mass_mg: float,
    common_cation_molarity: float = 0.0,
    common_anion_molarity: float = 0.0,
    *,
    exact: bool = False,
) -> EquilibriumResult:
    """
    Equilibrium state after `added_mass_mg` of `salt` is stirred into
    `volume_liters` of solution carrying the given common-ion background.

    Raises:
        InvalidInput: non-positive volume, negative mass/molarity, non-finite values
        ComputationDegenerate: undefined intermediate (never for valid input)
    """
    _validate_positive(volume_liters, "volume_liters")
    _validate_non_negative(added_mass_mg, "added_mass_mg")
    _validate_non_negative(common_cation_molarity, "common_cation_molarity")
    _validate_non_negative(common_anion_molarity, "common_anion_molarity")
    _validate_positive(salt.molar_mass, "molar_mass")

    a, b = salt.cation_stoichiometry, salt.anion_stoichiometry
    s = molar_solubility(
        salt.ksp,
        a,
        b,
        common_cation=common_cation_molarity,
        common_anion=common_anion_molarity,
        exact=exact,
    )

    max_moles_dissolvable = s * volume_liters
    total_moles_added = (added_mass_mg / 1000.0) / salt.molar_mass

    dissolved = min(total_moles_added, max_moles_dissolvable)
    precipitated = max(0.0, total_moles_added - max_moles_dissolvable)

    cation = dissolved * a / volume_liters + common_cation_molarity
    anion = dissolved * b / volume_liters + common_anion_molarity

    try:
        qsp = (cation ** a) * (anion ** b)
    except OverflowError as e:
        raise ComputationDegenerate("Reaction quotient overflowed.") from e
    if not math.isfinite(qsp):
        raise ComputationDegenerate("Reaction quotient overflowed.")

    return EquilibriumResult(
        molar_solubility=s,
        total_moles_added=total_moles_added,
        dissolved_moles=dissolved,
        precipitated_moles=precipitated,
        cation_concentration=cation,
        anion_concentration=anion,
        reaction_quotient=qsp,
        is_saturated=qsp >= SATURATION_TOLERANCE * salt.ksp,
    )


def evaluate_input(sim: SimulationInput, *, exact: bool = False) -> EquilibriumResult:
    return evaluate(
        sim.salt,
        sim.volume_liters,
        sim.added_mass_mg,
        sim.common_cation_molarity,
        sim.common_anion_molarity,
        exact=exact,
    )


def saturation_sweep(
    salt: SaltDescriptor,
    volume_liters: float,
    masses_mg: Iterable[float],
    common_cation_molarity: float = 0.0,
    common_anion_molarity: float = 0.0,
    *,
    exact: bool = False,
) -> List[EquilibriumResult]:
    """One independent evaluation per mass, in input order (Qsp vs mass plots)."""
    return [
        evaluate(
            salt,
            volume_liters,
            m,
            common_cation_molarity,
            common_anion_molarity,
            exact=exact,
        )
        for m in masses_mg
    ]

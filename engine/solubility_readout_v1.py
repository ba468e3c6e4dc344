# engine/solubility_readout_v1.py
# Solubility Equilibrium v1 – display readouts (equations, lab readings)
# LOCKED MODE: additive only

from __future__ import annotations

import math
from typing import Any, Dict

from engine.solubility_catalog_v1 import SaltDescriptor
from engine.solubility_equilibrium_v1 import EquilibriumResult, SimulationInput


def to_exponential(x: float, digits: int = 2) -> str:
    """
    Scientific notation the way the lab panel prints it:
        1.3304e-5 -> "1.33e-5",  1 -> "1.00e+0"
    """
    if digits < 0:
        raise ValueError("digits must be >= 0")
    if not math.isfinite(x):
        return str(x)
    mantissa, exponent = f"{x:.{digits}e}".split("e")
    return f"{mantissa}e{int(exponent):+d}"


def _coefficient(n: int) -> str:
    return str(n) if n > 1 else ""


def dissolution_equation(salt: SaltDescriptor) -> str:
    """PbI2(s) ⇌ Pb2+(aq) + 2I-(aq)"""
    a, b = salt.stoichiometry
    return (
        f"{salt.formula}(s) ⇌ "
        f"{_coefficient(a)}{salt.cation_label}(aq) + {_coefficient(b)}{salt.anion_label}(aq)"
    )


def ksp_expression(salt: SaltDescriptor) -> str:
    """Ksp = [Pb2+][I-]^2"""
    a, b = salt.stoichiometry
    cation = f"[{salt.cation_label}]" + (f"^{a}" if a > 1 else "")
    anion = f"[{salt.anion_label}]" + (f"^{b}" if b > 1 else "")
    return f"Ksp = {cation}{anion}"


def dissolved_molarity(result: EquilibriumResult, volume_liters: float) -> float:
    if volume_liters <= 0:
        raise ValueError("Volume must be positive")
    return result.dissolved_moles / volume_liters


def precipitate_mass_mg(result: EquilibriumResult, salt: SaltDescriptor) -> float:
    return result.precipitated_moles * salt.molar_mass * 1000.0


def saturation_label(result: EquilibriumResult) -> str:
    return "Saturated Solution" if result.is_saturated else "Unsaturated Solution"


def build_readout(sim: SimulationInput, result: EquilibriumResult) -> Dict[str, Any]:
    salt = sim.salt
    molarity = dissolved_molarity(result, sim.volume_liters)
    mass_mg = precipitate_mass_mg(result, salt)
    return {
        "qsp": result.reaction_quotient,
        "qsp_display": to_exponential(result.reaction_quotient, 3),
        "ksp": salt.ksp,
        "ksp_display": to_exponential(salt.ksp, 2),
        "dissolved_molarity": molarity,
        "dissolved_molarity_display": f"{to_exponential(molarity, 3)} M",
        "precipitate_mass_mg": mass_mg,
        "precipitate_mass_display": f"{mass_mg:.1f} mg",
        "saturation_label": saturation_label(result),
        "equation": dissolution_equation(salt),
        "ksp_expression": ksp_expression(salt),
    }

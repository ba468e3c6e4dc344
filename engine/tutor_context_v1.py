"""
Tutor context v1 - text handed to the chemistry tutor alongside a question.

Pure string building. The tutor never feeds anything back into the solver.
"""

from __future__ import annotations

from decimal import Decimal

from engine.solubility_equilibrium_v1 import EquilibriumResult, SimulationInput
from engine.solubility_readout_v1 import to_exponential


TUTOR_SYSTEM_INSTRUCTION = (
    "Keep explanations clear, concise, and focused on Ksp, Qsp, common ion effect, "
    "and precipitation calculations. Use LaTeX formatting for chemical formulas and "
    "math where possible (e.g., $AgCl$, $1.8 \\times 10^{-10}$)."
)

TUTOR_GREETING = (
    "Hello! I am your Solubility Equilibrium tutor. Ask me anything about Ksp, "
    "precipitation, or the common ion effect."
)


def _plain_number(x: float) -> str:
    # Shortest round-trip digits, positional for 1e-7 < |x| < 1e21:
    # 1.0 -> "1", 1e-05 -> "0.00001", 1.77e-10 -> "1.77e-10", 1e21 -> "1e+21"
    if x == 0:
        return "0"
    r = repr(float(x))
    if "e" not in r:
        return r[:-2] if r.endswith(".0") else r
    mantissa, exp = r.split("e")
    e = int(exp)
    if -7 < e < 21:
        return format(Decimal(r), "f")
    return f"{mantissa}e{e:+d}"


def build_tutor_context(sim: SimulationInput, result: EquilibriumResult) -> str:
    salt = sim.salt
    parts = [
        f"The student is looking at {salt.name} ({salt.formula}).",
        f"Current Volume: {_plain_number(sim.volume_liters)}L.",
        f"Added Mass: {_plain_number(sim.added_mass_mg)}mg.",
        f"Ksp: {_plain_number(salt.ksp)}.",
        f"Result: {'Saturated' if result.is_saturated else 'Unsaturated'}.",
        f"Cation Conc: {to_exponential(result.cation_concentration, 2)}M.",
        f"Anion Conc: {to_exponential(result.anion_concentration, 2)}M.",
    ]
    if sim.common_cation_molarity > 0 or sim.common_anion_molarity > 0:
        parts.append(
            f"Common Ions: [{salt.cation_label}] {_plain_number(sim.common_cation_molarity)}M, "
            f"[{salt.anion_label}] {_plain_number(sim.common_anion_molarity)}M."
        )
    return " ".join(parts)


def build_tutor_prompt(question: str, context: str) -> str:
    return f"""
You are an expert high school chemistry tutor specializing in Solubility Equilibrium (Grade 12 level).
Context: {context}
Student: {question}
""".strip()

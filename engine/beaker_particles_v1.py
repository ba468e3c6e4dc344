"""
Beaker particle model v1 - what the beaker view draws for a given result.

Only reads ion concentration and precipitate amount from an
EquilibriumResult; no rendering here. Canvas coordinates follow the lab
view: 300x300 canvas, water region x in [42, 258], y in [60, 248].
"""

from __future__ import annotations

import math
import random
from dataclasses import dataclass, replace
from typing import Dict, List, Optional, Tuple

from engine.solubility_equilibrium_v1 import EquilibriumResult

CATION = "cation"
ANION = "anion"

MAX_PARTICLES = 100
MIN_PARTICLES = 5
PARTICLES_PER_MOLAR = 20_000_000
PRECIPITATE_HEIGHT_PER_MOLE = 50_000
MAX_PRECIPITATE_HEIGHT = 30.0

# (x_min, y_min, x_max, y_max)
WATER_BOUNDS: Tuple[float, float, float, float] = (42.0, 60.0, 258.0, 248.0)


@dataclass(frozen=True)
class Particle:
    x: float
    y: float
    vx: float
    vy: float
    radius: float
    species: str


def particle_count(result: EquilibriumResult) -> int:
    x = result.cation_concentration * PARTICLES_PER_MOLAR
    if not math.isfinite(x) or x >= MAX_PARTICLES:
        return MAX_PARTICLES
    return min(math.floor(x) + MIN_PARTICLES, MAX_PARTICLES)


def precipitate_height(result: EquilibriumResult) -> float:
    if result.precipitated_moles <= 0:
        return 0.0
    return min(result.precipitated_moles * PRECIPITATE_HEIGHT_PER_MOLE, MAX_PRECIPITATE_HEIGHT)


def spawn_particles(
    result: EquilibriumResult,
    rng: Optional[random.Random] = None,
    width: float = 300.0,
    height: float = 300.0,
) -> List[Particle]:
    """Even indices are cations, odd indices anions."""
    rng = rng or random.Random()
    out: List[Particle] = []
    for i in range(particle_count(result)):
        out.append(
            Particle(
                x=rng.random() * width,
                y=rng.random() * (height * 0.7),
                vx=(rng.random() - 0.5) * 2,
                vy=(rng.random() - 0.5) * 2,
                radius=rng.random() * 2 + 2,
                species=CATION if i % 2 == 0 else ANION,
            )
        )
    return out


def step(p: Particle, bounds: Tuple[float, float, float, float] = WATER_BOUNDS) -> Particle:
    """Advance one frame; velocity flips once the particle is outside the water."""
    x_min, y_min, x_max, y_max = bounds
    x, y = p.x + p.vx, p.y + p.vy
    vx, vy = p.vx, p.vy
    if x < x_min or x > x_max:
        vx = -vx
    if y < y_min or y > y_max:
        vy = -vy
    return replace(p, x=x, y=y, vx=vx, vy=vy)


def beaker_state(result: EquilibriumResult) -> Dict[str, object]:
    h = precipitate_height(result)
    return {
        "particle_count": particle_count(result),
        "precipitate_height": h,
        "has_precipitate": result.precipitated_moles > 0,
    }

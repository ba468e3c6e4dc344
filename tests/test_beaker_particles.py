import dataclasses
import random

import pytest

from engine.beaker_particles_v1 import (
    ANION,
    CATION,
    MAX_PARTICLES,
    MAX_PRECIPITATE_HEIGHT,
    WATER_BOUNDS,
    Particle,
    beaker_state,
    particle_count,
    precipitate_height,
    spawn_particles,
    step,
)
from engine.solubility_catalog_v1 import get_salt
from engine.solubility_equilibrium_v1 import evaluate

AGCL = get_salt("agcl")


def test_particle_count_scales_with_cation_and_caps():
    dilute = evaluate(AGCL, 1.0, 0.1)
    # floor(6.977e-7 * 2e7) + 5
    assert particle_count(dilute) == 18
    assert particle_count(evaluate(AGCL, 1.0, 0.0)) == 5
    assert particle_count(evaluate(AGCL, 1.0, 10)) == MAX_PARTICLES


def test_precipitate_height():
    assert precipitate_height(evaluate(AGCL, 1.0, 0.1)) == 0.0
    r = evaluate(AGCL, 1.0, 10)
    assert precipitate_height(r) == pytest.approx(r.precipitated_moles * 50_000)
    assert precipitate_height(evaluate(AGCL, 1.0, 5000)) == MAX_PRECIPITATE_HEIGHT


def test_beaker_state():
    state = beaker_state(evaluate(AGCL, 1.0, 10))
    assert state["particle_count"] == MAX_PARTICLES
    assert state["has_precipitate"] is True
    assert 0 < state["precipitate_height"] < MAX_PRECIPITATE_HEIGHT

    assert beaker_state(evaluate(AGCL, 1.0, 0.1))["has_precipitate"] is False


def test_particle_count_caps_huge_background_without_overflow():
    r = evaluate(AGCL, 1.0, 0.0, 1e305, 0.0)
    assert particle_count(r) == MAX_PARTICLES
    assert particle_count(dataclasses.replace(r, cation_concentration=float("inf"))) == MAX_PARTICLES
    assert beaker_state(r)["particle_count"] == MAX_PARTICLES


def test_spawn_particles_alternates_species_within_canvas():
    r = evaluate(AGCL, 1.0, 0.1)
    particles = spawn_particles(r, random.Random(7))
    assert len(particles) == particle_count(r)
    assert [p.species for p in particles[:4]] == [CATION, ANION, CATION, ANION]
    for p in particles:
        assert 0 <= p.x < 300
        assert 0 <= p.y < 210
        assert -1 <= p.vx < 1 and -1 <= p.vy < 1
        assert 2 <= p.radius < 4


def test_spawn_is_reproducible_with_seeded_rng():
    r = evaluate(AGCL, 1.0, 0.1)
    assert spawn_particles(r, random.Random(3)) == spawn_particles(r, random.Random(3))


def test_step_moves_and_bounces_at_water_edge():
    inside = Particle(x=100, y=100, vx=1, vy=-1, radius=2, species=CATION)
    moved = step(inside)
    assert (moved.x, moved.y, moved.vx, moved.vy) == (101, 99, 1, -1)

    x_max = WATER_BOUNDS[2]
    edge = Particle(x=x_max - 0.5, y=100, vx=1, vy=0.5, radius=2, species=ANION)
    bounced = step(edge)
    assert bounced.vx == -1
    assert bounced.vy == 0.5
    assert bounced.species == ANION

# router.py
import time
import logging
from typing import Any, Dict, Tuple

from fastapi import APIRouter, Request, Header
from fastapi.responses import JSONResponse

import config
from schemas import (
    SimulateRequest,
    SimulateResponse,
    SweepRequest,
    SweepResponse,
    SweepPoint,
    TutorRequest,
    TutorResponse,
    SaltOut,
    ErrorResponse,
)
from engine.solubility_catalog_v1 import SaltDescriptor, UnknownSaltError, get_salt, list_salts
from engine.solubility_equilibrium_v1 import (
    ComputationDegenerate,
    EquilibriumResult,
    InvalidInput,
    SimulationInput,
    evaluate_input,
    saturation_sweep,
)
from engine.solubility_readout_v1 import build_readout, dissolution_equation, ksp_expression
from engine.beaker_particles_v1 import beaker_state
from engine.tutor_context_v1 import build_tutor_context
import rate_limiter
import tutor_client

logger = logging.getLogger("equilisolve.router")

router = APIRouter()


def _client_ip(req: Request) -> str:
    xff = req.headers.get("x-forwarded-for")
    if xff:
        return xff.split(",")[0].strip()
    if req.client:
        return req.client.host or "unknown"
    return "unknown"


def _error(status_code: int, detail: str, code: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(detail=detail, flags=[code]).model_dump(),
    )


def _salt_out(salt: SaltDescriptor) -> SaltOut:
    return SaltOut(
        **salt.to_dict(),
        equation=dissolution_equation(salt),
        ksp_expression=ksp_expression(salt),
    )


def _build_input(req: SimulateRequest) -> SimulationInput:
    return SimulationInput(
        salt=get_salt(req.salt_id),
        volume_liters=req.volume_l,
        added_mass_mg=req.added_mass_mg,
        common_cation_molarity=req.common_ion_cation,
        common_anion_molarity=req.common_ion_anion,
    )


def _solve(req: SimulateRequest) -> Tuple[SimulationInput, EquilibriumResult]:
    sim = _build_input(req)
    return sim, evaluate_input(sim, exact=req.exact_common_ion)


def _flags_for(sim: SimulationInput, exact: bool) -> list:
    flags = []
    salt = sim.salt
    has_common = sim.common_cation_molarity > 0 or sim.common_anion_molarity > 0
    if has_common:
        flags.append("COMMON_ION")
        if not salt.is_one_to_one and not exact:
            flags.append("COMMON_ION_APPROXIMATED")
    return flags


@router.get("/salts", response_model=list[SaltOut])
def salts_route():
    return [_salt_out(s) for s in list_salts()]


@router.get("/salts/{salt_id}", response_model=SaltOut, responses={404: {"model": ErrorResponse}})
def salt_route(salt_id: str):
    try:
        return _salt_out(get_salt(salt_id))
    except UnknownSaltError as e:
        return _error(404, str(e), "UNKNOWN_SALT")


@router.post("/simulate", response_model=SimulateResponse, responses={404: {"model": ErrorResponse}, 422: {"model": ErrorResponse}})
def simulate_route(req: SimulateRequest):
    try:
        sim, result = _solve(req)
    except UnknownSaltError as e:
        return _error(404, str(e), "UNKNOWN_SALT")
    except InvalidInput as e:
        return _error(422, str(e), "INVALID_INPUT")
    except ComputationDegenerate as e:
        logger.exception("Degenerate equilibrium for %s", req.salt_id)
        return _error(500, str(e), "COMPUTATION_DEGENERATE")

    input_echo: Dict[str, Any] = {
        "salt_id": sim.salt.id,
        "volume_l": sim.volume_liters,
        "added_mass_mg": sim.added_mass_mg,
        "common_ion_cation": sim.common_cation_molarity,
        "common_ion_anion": sim.common_anion_molarity,
        "exact_common_ion": req.exact_common_ion,
    }
    return SimulateResponse(
        salt=_salt_out(sim.salt),
        input=input_echo,
        result=result.to_dict(),
        readout=build_readout(sim, result),
        beaker=beaker_state(result),
        tutor_context=build_tutor_context(sim, result),
        flags=_flags_for(sim, req.exact_common_ion),
    )


@router.post("/simulate/sweep", response_model=SweepResponse, responses={404: {"model": ErrorResponse}, 422: {"model": ErrorResponse}})
def sweep_route(req: SweepRequest):
    try:
        salt = get_salt(req.salt_id)
        results = saturation_sweep(
            salt,
            req.volume_l,
            req.masses_mg,
            req.common_ion_cation,
            req.common_ion_anion,
            exact=req.exact_common_ion,
        )
    except UnknownSaltError as e:
        return _error(404, str(e), "UNKNOWN_SALT")
    except InvalidInput as e:
        return _error(422, str(e), "INVALID_INPUT")
    except ComputationDegenerate as e:
        logger.exception("Degenerate equilibrium sweep for %s", req.salt_id)
        return _error(500, str(e), "COMPUTATION_DEGENERATE")

    points = [
        SweepPoint(
            added_mass_mg=m,
            dissolved_moles=r.dissolved_moles,
            precipitated_moles=r.precipitated_moles,
            reaction_quotient=r.reaction_quotient,
            is_saturated=r.is_saturated,
        )
        for m, r in zip(req.masses_mg, results)
    ]
    return SweepResponse(salt_id=salt.id, ksp=salt.ksp, points=points)


@router.post("/tutor", response_model=TutorResponse)
def tutor_route(
    req: TutorRequest,
    request: Request,
    x_eqs_key: str | None = Header(default=None, alias="X-EQS-KEY"),
):
    # Optional shared key guardrail (not security, but reduces random abuse).
    if config.EQS_API_KEY:
        if not x_eqs_key or x_eqs_key.strip() != config.EQS_API_KEY:
            return JSONResponse(
                status_code=401,
                content=TutorResponse(
                    answer="Unauthorized request.",
                    enabled=config.AI_TUTOR_ENABLED,
                    flags=["UNAUTHORIZED"],
                ).model_dump(),
            )

    ip = _client_ip(request)
    if not rate_limiter.is_allowed(ip, scope="tutor"):
        return JSONResponse(
            status_code=429,
            content=TutorResponse(
                answer="Too many questions right now. Please try again in a minute.",
                enabled=config.AI_TUTOR_ENABLED,
                flags=["RATE_LIMITED"],
            ).model_dump(),
        )

    question = req.question[: config.MAX_QUESTION_CHARS]

    try:
        sim, result = _solve(req.simulation)
    except UnknownSaltError as e:
        return _error(404, str(e), "UNKNOWN_SALT")
    except InvalidInput as e:
        return _error(422, str(e), "INVALID_INPUT")
    except ComputationDegenerate as e:
        logger.exception("Degenerate equilibrium for tutor context")
        return _error(500, str(e), "COMPUTATION_DEGENERATE")

    context = build_tutor_context(sim, result)

    if not config.AI_TUTOR_ENABLED:
        return TutorResponse(
            answer=tutor_client.TUTOR_DISABLED_MESSAGE,
            enabled=False,
            flags=["TUTOR_DISABLED"],
            context=context,
        )

    t0 = time.perf_counter()
    try:
        answer = tutor_client.get_tutor_response(question, context)
    except tutor_client.TutorCircuitOpen:
        return TutorResponse(
            answer=tutor_client.TUTOR_ERROR_MESSAGE,
            enabled=True,
            flags=["TUTOR_COOLDOWN"],
            context=context,
        )
    except Exception as e:
        # Don't leak provider errors to the student UI.
        logger.warning("Tutor request failed: %s", str(e)[:200])
        return TutorResponse(
            answer=tutor_client.TUTOR_ERROR_MESSAGE,
            enabled=True,
            flags=["TUTOR_ERROR"],
            context=context,
        )

    logger.info("Tutor answered in %dms", int((time.perf_counter() - t0) * 1000))
    return TutorResponse(answer=answer, enabled=True, flags=[], context=context)

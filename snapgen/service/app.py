"""FastAPI application entrypoint for snapgen service mode."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from fastapi import Depends, FastAPI
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from ..classifier import explain
from ..config import SnapshotConfig, load_config
from ..generator import SnapshotGenerator, SnapshotPlan
from ..images import policy_for
from ..models import SnapshotError
from ..module_info import ModuleInfoError, parse_units


class PlanRequest(BaseModel):
    image: str = "vendor"
    fake: bool = False
    modules: List[Dict[str, Any]] = Field(default_factory=list)


class PlanResponse(BaseModel):
    status: str
    family: str
    archive: Optional[str] = None
    variable: Optional[str] = None
    outputs: List[str] = Field(default_factory=list)


class ClassifyRequest(BaseModel):
    image: str = "vendor"
    modules: List[Dict[str, Any]] = Field(default_factory=list)


class Verdict(BaseModel):
    module: str
    kind: str
    eligible: bool
    rule: str


class ClassifyResponse(BaseModel):
    family: str
    verdicts: List[Verdict]


class HealthResponse(BaseModel):
    status: str


def _default_config() -> SnapshotConfig:
    return load_config(Path.cwd())


def create_app(
    config_factory: Callable[[], SnapshotConfig] = _default_config,
) -> FastAPI:
    """Create the FastAPI application exposing snapshot planning."""
    app = FastAPI(title="snapgen service", version="1.0.0")

    async def get_config() -> SnapshotConfig:
        return config_factory()

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(status="ok")

    @app.post("/plan", response_model=PlanResponse)
    async def plan(
        payload: PlanRequest,
        config: SnapshotConfig = Depends(get_config),
    ) -> PlanResponse:
        policy = policy_for(payload.image, config)
        units = parse_units(payload.modules)

        def _run_plan() -> SnapshotPlan | None:
            return SnapshotGenerator(policy, fake=payload.fake).generate(units)

        loop = asyncio.get_running_loop()
        result = await loop.run_in_executor(None, _run_plan)
        if result is None:
            return PlanResponse(status="disabled", family=policy.name)
        return PlanResponse(
            status="ok",
            family=result.family,
            archive=result.archive,
            variable=result.variable,
            outputs=result.outputs,
        )

    @app.post("/classify", response_model=ClassifyResponse)
    async def classify(
        payload: ClassifyRequest,
        config: SnapshotConfig = Depends(get_config),
    ) -> ClassifyResponse:
        policy = policy_for(payload.image, config)
        verdicts = []
        for unit in parse_units(payload.modules):
            decision = explain(unit, policy.is_proprietary_path(unit.module_dir), policy)
            verdicts.append(
                Verdict(
                    module=unit.identity(),
                    kind=unit.kind,
                    eligible=decision.eligible,
                    rule=decision.rule,
                )
            )
        return ClassifyResponse(family=policy.name, verdicts=verdicts)

    @app.exception_handler(ModuleInfoError)
    async def module_info_handler(_: Any, exc: ModuleInfoError) -> JSONResponse:
        return JSONResponse(status_code=422, content={"detail": str(exc)})

    @app.exception_handler(SnapshotError)
    async def snapshot_error_handler(_: Any, exc: SnapshotError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    @app.exception_handler(ValueError)
    async def value_error_handler(_: Any, exc: ValueError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    return app


def run_service(
    host: str = "127.0.0.1", port: int = 8000
) -> None:  # pragma: no cover - integration path
    import uvicorn

    uvicorn.run(create_app(), host=host, port=port)


__all__ = ["create_app", "run_service"]

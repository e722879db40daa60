"""
Scene-Learning API - duenne FastAPI-Schicht ueber der LearningEngine.

Die Engine selbst kennt kein Netzwerk; hier wird sie nur fuer
externe Aufrufer (Addon, Integrationen) erreichbar gemacht.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, Optional

from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request
from pydantic import BaseModel

from .config import settings
from .engine import LearningEngine
from .log_setup import setup_structured_logging
from .schemas import LearningStatistics, PartnerSuggestion, Scene, SceneSuggestion

logger = logging.getLogger(__name__)


class ActionRequest(BaseModel):
    entity_id: str
    value: Any = None
    context: str = ""


class BatchRequest(BaseModel):
    actions: list[ActionRequest]


class SceneRequest(BaseModel):
    main_entity_id: str
    name: str


def get_engine(request: Request) -> LearningEngine:
    return request.app.state.engine


router = APIRouter(prefix="/api/learning")


@router.post("/actions")
async def record_action(body: ActionRequest, engine: LearningEngine = Depends(get_engine)):
    """Einzelne Steuer-Aktion melden."""
    engine.record_action(body.entity_id, body.value, body.context)
    return {"success": True}


@router.post("/actions/batch")
async def record_actions(body: BatchRequest, engine: LearningEngine = Depends(get_engine)):
    """Gleichzeitige Aktionen melden (z.B. Szenen-Aktivierung)."""
    engine.record_actions([a.model_dump() for a in body.actions])
    return {"success": True, "count": len(body.actions)}


@router.get("/partners/{entity_id}", response_model=list[PartnerSuggestion])
async def partners(
    entity_id: str,
    min_frequency: Optional[int] = None,
    engine: LearningEngine = Depends(get_engine),
):
    return engine.suggested_partners(entity_id, min_frequency)


@router.get("/scenes", response_model=list[Scene])
async def list_scenes(engine: LearningEngine = Depends(get_engine)):
    return engine.list_scenes()


@router.post("/scenes", response_model=Scene)
async def create_scene(body: SceneRequest, engine: LearningEngine = Depends(get_engine)):
    scene = engine.create_scene(body.main_entity_id, body.name)
    if scene is None:
        raise HTTPException(status_code=422, detail="Keine gelernten Partner fuer diesen Datenpunkt")
    return scene


@router.post("/scenes/{name}/usage")
async def scene_usage(name: str, engine: LearningEngine = Depends(get_engine)):
    engine.record_scene_usage(name)
    return {"success": True}


@router.get("/suggestions", response_model=list[SceneSuggestion])
async def suggestions(
    min_associations: Optional[int] = None,
    engine: LearningEngine = Depends(get_engine),
):
    return engine.suggest_scenes(min_associations)


@router.get("/stats", response_model=LearningStatistics)
async def stats(engine: LearningEngine = Depends(get_engine)):
    return engine.statistics()


@router.post("/reset")
async def reset(engine: LearningEngine = Depends(get_engine)):
    engine.reset()
    return {"success": True}


def create_app(engine: Optional[LearningEngine] = None) -> FastAPI:
    """Baut die App; ohne Engine wird eine aus settings/yaml erzeugt."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Startup und Shutdown."""
        app.state.engine = engine or LearningEngine()
        await app.state.engine.start()
        yield
        await app.state.engine.stop()
        logger.info("Scene-Learning API heruntergefahren.")

    app = FastAPI(title="Scene Learning", version="0.3.0", lifespan=lifespan)
    app.include_router(router)
    return app


def run():
    """Einstiegspunkt fuer den Server."""
    import uvicorn

    setup_structured_logging(settings.log_level)
    uvicorn.run(
        create_app(),
        host=settings.api_host,
        port=settings.api_port,
        log_level="info",
    )

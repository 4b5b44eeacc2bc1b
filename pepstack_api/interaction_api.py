import logging
from typing import Any, Dict, List, Optional

from asgi_correlation_id import CorrelationIdMiddleware
from fastapi import APIRouter, Depends, FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from prometheus_fastapi_instrumentator import Instrumentator

from pepstack.catalog import PeptideCatalog, build_peptide_source
from pepstack.config import Settings
from pepstack.metadata import load_display_metadata
from pepstack.models import InteractionRecord
from pepstack.resolver import InteractionResolver
from pepstack.sources import DataHealthTracker, build_interaction_source
from pepstack_api.models import CacheClearResponse, InteractionPair, StackRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


def get_resolver(request: Request) -> InteractionResolver:
    return request.app.state.resolver


def get_catalog(request: Request) -> PeptideCatalog:
    return request.app.state.catalog


def _dump(record: InteractionRecord) -> Dict[str, Any]:
    return record.model_dump(mode="json", by_alias=True)


# API Routes
@router.get("/health")
def health(resolver: InteractionResolver = Depends(get_resolver)):
    """Health check endpoint; reports degraded while the fallback table is in use."""
    resolver.load_interactions()
    return resolver.stats()


@router.get("/interaction")
def interaction(
    a: str = Query(..., min_length=1),
    b: str = Query(..., min_length=1),
    resolver: InteractionResolver = Depends(get_resolver),
):
    """Get the documented interaction between two compounds."""
    inter = resolver.check_interaction(a, b)
    if inter is None:
        raise HTTPException(status_code=404, detail="No known interaction")
    return {"pair": InteractionPair(a=a, b=b).model_dump(), "interaction": _dump(inter)}


@router.post("/stack/check")
def check_stack(payload: StackRequest, resolver: InteractionResolver = Depends(get_resolver)):
    """Check interactions within a stack of compounds."""
    report = resolver.get_stack_summary(payload.compounds)
    return {
        "items": payload.compounds,
        **report.model_dump(mode="json", by_alias=True),
    }


@router.get("/interactions")
def list_interactions(resolver: InteractionResolver = Depends(get_resolver)):
    """Get all known interactions."""
    return {"interactions": [_dump(record) for record in resolver.load_interactions()]}


@router.get("/interactions/compounds")
def list_interacting_compounds(resolver: InteractionResolver = Depends(get_resolver)):
    """Names of every compound that appears in at least one interaction."""
    return {"compounds": resolver.get_all_compounds_with_interactions()}


@router.get("/compounds/{compound}/interactions")
def compound_interactions(compound: str, resolver: InteractionResolver = Depends(get_resolver)):
    records = resolver.get_interactions_for_compound(compound)
    return {"compound": compound, "interactions": [_dump(record) for record in records]}


@router.post("/cache/clear", response_model=CacheClearResponse)
def clear_cache(
    resolver: InteractionResolver = Depends(get_resolver),
    catalog: PeptideCatalog = Depends(get_catalog),
):
    resolver.clear_cache()
    catalog.clear_cache()
    logger.info("Interaction and peptide caches cleared")
    return CacheClearResponse(cleared={"interactions": True, "peptides": True})


@router.get("/peptides")
def list_peptides(catalog: PeptideCatalog = Depends(get_catalog)):
    return {"peptides": catalog.names()}


@router.get("/peptides/search")
def search_peptides(
    q: Optional[str] = Query(None),
    exclude: List[str] = Query(default=[]),
    limit: int = Query(8, ge=1, le=50),
    catalog: PeptideCatalog = Depends(get_catalog),
):
    """Search peptide names, leaving out ones already in the stack."""
    search_term = q.strip() if isinstance(q, str) else None
    if not search_term:
        raise HTTPException(status_code=422, detail="Missing search parameter")
    return {"results": catalog.search(search_term, exclude=exclude, limit=limit)}


@router.get("/stacks/presets")
def stack_presets(catalog: PeptideCatalog = Depends(get_catalog)):
    return {"stacks": catalog.presets()}


@router.get("/interaction-types")
def interaction_types(request: Request):
    return request.app.state.display


def create_app(
    settings: Optional[Settings] = None,
    resolver: Optional[InteractionResolver] = None,
    catalog: Optional[PeptideCatalog] = None,
) -> FastAPI:
    """Build the API around an explicit resolver and catalog."""

    settings = settings or Settings.from_env()
    health_tracker = resolver.health if resolver is not None else DataHealthTracker()

    if resolver is None:
        resolver = InteractionResolver(build_interaction_source(settings), health=health_tracker)
    if catalog is None:
        catalog = PeptideCatalog(build_peptide_source(settings), health=health_tracker)

    app = FastAPI(
        title="PepStack Interaction API",
        description="Peptide stack interaction checking API",
        version="1.0.0",
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(CorrelationIdMiddleware)

    app.state.settings = settings
    app.state.resolver = resolver
    app.state.catalog = catalog
    app.state.display = load_display_metadata(
        settings.display_rules_path, data_dir=settings.data_dir, health=health_tracker
    )
    app.include_router(router)
    return app


SETTINGS = Settings.from_env()

# Configure logging
logging.basicConfig(
    level=getattr(logging, SETTINGS.log_level, logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

app = create_app(SETTINGS)
Instrumentator().instrument(app).expose(app)

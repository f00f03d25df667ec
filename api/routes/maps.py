"""Map reconciliation endpoints.

Every request runs a fresh pass; nothing is cached between requests since the
exports on disk may have changed at any time.
"""

from datetime import date, datetime
from typing import Optional

from fastapi import APIRouter, HTTPException, Query

from core.config import get_settings
from core.observability import get_logger
from models.api_responses import MapsResponse, ReconcileRequest
from models.maps import AggregateResult, FilterCategory
from reconciliation.engine import run_pass
from reconciliation.errors import NoRecognizedSources, SourceDirectoryNotFound
from reconciliation.filters import filter_maps
from sources.loader import load_directory


router = APIRouter()
logger = get_logger("api.maps")


@router.get("", response_model=MapsResponse)
def list_maps(
    category: Optional[FilterCategory] = Query(None, description="Category filter"),
    search: str = Query("", description="Map, driver, plate or invoice search term"),
    today: Optional[date] = Query(None, description="Reference date (defaults to server date)"),
) -> MapsResponse:
    """Reconcile the configured data directory and list its maps.

    Counts always cover the whole pass; `maps` only holds the ones matching
    the category and search term.
    """
    reference = today or date.today()
    settings = get_settings()

    try:
        sources = load_directory(settings.data_dir, settings.source_encoding)
        result = run_pass(sources, reference)
    except SourceDirectoryNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except NoRecognizedSources as e:
        raise HTTPException(status_code=422, detail=str(e))

    maps = filter_maps(result, category=category, search=search, today=reference)
    logger.info(
        f"Listed {len(maps)} of {len(result.maps)} maps",
        extra_fields={"category": category.value if category else None, "search": search},
    )

    return MapsResponse(
        maps=maps,
        counts=result.counts,
        future_label=result.future_label,
        total=len(maps),
        category=category,
        search=search,
        reference_date=reference,
        last_update=datetime.now(),
    )


@router.post("/reconcile", response_model=AggregateResult)
def reconcile_sources(request: ReconcileRequest) -> AggregateResult:
    """Run a pass over CSV texts supplied in the request body."""
    try:
        return run_pass(request.sources, request.today or date.today())
    except NoRecognizedSources as e:
        raise HTTPException(status_code=422, detail=str(e))

from __future__ import annotations

import os
import random
import time
from datetime import datetime, timezone

from fastapi import Depends, FastAPI, HTTPException, Request
from starlette.middleware.sessions import SessionMiddleware

from .analytics.aggregator import compute_analytics
from .analytics.store import get_events, record_event
from .nearby.cache import Coordinate, get_cache_stats
from .nearby.errors import (
    LocationServicesDisabled,
    LocationUnavailable,
    NearbySearchError,
    PermissionDenied,
    TimedOut,
)
from .nearby.location import StaticLocationSource
from .nearby.search import NearbySearchService
from .recommendations.candidates import Candidate, CandidateSource
from .recommendations.data_store import (
    add_restaurant,
    delete_restaurant,
    find_restaurant_by_name,
    get_restaurant,
    get_restaurants,
    get_visits,
    rate_visit,
    record_visit,
    update_restaurant,
)
from .recommendations.engine import ScoredCandidate, pick
from .recommendations.models import (
    CandidateOut,
    ChooseRequest,
    ChooseResponse,
    NearbyResponse,
    NearbyScanRequest,
    PickItem,
    PickRequest,
    PickResponse,
    RestaurantCreate,
    RestaurantRecord,
    RestaurantUpdate,
    VetoRequest,
    VisitRatingRequest,
    VisitRecord,
)
from .recommendations.pool import build_candidate_pool
from .recommendations.scoring import NoveltyMode
from .recommendations.session import (
    PickerSession,
    RequestContext,
    find_session,
    get_session,
    new_session_id,
)

app = FastAPI(title="Dinepick API", version="1.0.0")
app.add_middleware(
    SessionMiddleware,
    secret_key=os.environ.get("SESSION_SECRET", "dinepick-secret-change-in-production"),
)

_SCAN_ERROR_STATUS: dict[type[NearbySearchError], int] = {
    LocationServicesDisabled: 403,
    PermissionDenied: 403,
    LocationUnavailable: 503,
    TimedOut: 504,
}


# ── Dependencies ─────────────────────────────────────────────────────────


def picker_session(request: Request) -> PickerSession:
    """Server-side picker state for the caller's session cookie."""
    sid = request.session.get("sid")
    if not sid:
        sid = new_session_id()
        request.session["sid"] = sid
    return get_session(sid)


def current_session(request: Request) -> PickerSession:
    """The caller's picker state, or a throwaway one when there is none yet."""
    session = find_session(request.session.get("sid"))
    return session if session is not None else PickerSession()


def get_nearby_service() -> NearbySearchService:
    return NearbySearchService()


def _rng(seed: int | None) -> random.Random | None:
    return random.Random(seed) if seed is not None else None


def _pick_response(
    scored: list[ScoredCandidate], pool_size: int, mode: NoveltyMode,
) -> PickResponse:
    return PickResponse(
        picks=[
            PickItem(
                candidate=CandidateOut.from_candidate(s.candidate),
                weight=round(s.weight, 4),
            )
            for s in scored
        ],
        pool_size=pool_size,
        novelty_mode=mode,
    )


# ── Public endpoints ─────────────────────────────────────────────────────


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/metadata")
def metadata() -> dict:
    cuisines: set[str] = set()
    for record in get_restaurants():
        cuisines.update(c for c in record.cuisines if c)
    return {
        "cuisines": sorted(cuisines, key=str.lower),
        "novelty_modes": [m.value for m in NoveltyMode],
    }


# ── Restaurants & visits ─────────────────────────────────────────────────


@app.get("/restaurants", response_model=list[RestaurantRecord])
def list_restaurants() -> list[RestaurantRecord]:
    return sorted(get_restaurants(), key=lambda r: r.name.lower())


@app.post("/restaurants", response_model=RestaurantRecord, status_code=201)
def create_restaurant(body: RestaurantCreate) -> RestaurantRecord:
    return add_restaurant(RestaurantRecord(**body.model_dump()))


@app.patch("/restaurants/{restaurant_id}", response_model=RestaurantRecord)
def edit_restaurant(restaurant_id: str, body: RestaurantUpdate) -> RestaurantRecord:
    updated = update_restaurant(restaurant_id, body.model_dump(exclude_unset=True))
    if updated is None:
        raise HTTPException(status_code=404, detail="Restaurant not found")
    return updated


@app.delete("/restaurants/{restaurant_id}")
def remove_restaurant(restaurant_id: str) -> dict:
    if not delete_restaurant(restaurant_id):
        raise HTTPException(status_code=404, detail="Restaurant not found")
    return {"status": "deleted"}


@app.get("/visits", response_model=list[VisitRecord])
def list_visits() -> list[VisitRecord]:
    return get_visits()


@app.post("/visits/{visit_id}/rating", response_model=VisitRecord)
def set_visit_rating(visit_id: str, body: VisitRatingRequest) -> VisitRecord:
    visit = rate_visit(visit_id, body.rating)
    if visit is None:
        raise HTTPException(status_code=404, detail="Visit not found")
    return visit


# ── Picks ────────────────────────────────────────────────────────────────


@app.post("/picks", response_model=PickResponse)
def picks(
    body: PickRequest,
    session: PickerSession = Depends(picker_session),
) -> PickResponse:
    start_time = time.time()

    include_nearby = body.include_nearby or body.only_nearby
    pool = build_candidate_pool(
        get_restaurants(), session.nearby, include_nearby, body.only_nearby,
    )
    vetoed = set(body.vetoed_ids)
    scored = pick(
        body.cuisines,
        body.max_distance_miles,
        body.novelty_mode,
        vetoed,
        get_visits(),
        pool,
        rng=_rng(body.seed),
    )

    session.start(
        RequestContext(
            selected_cuisines=list(body.cuisines),
            max_distance_miles=body.max_distance_miles,
            novelty_mode=body.novelty_mode,
            pool=pool,
            vetoed_ids=vetoed,
        ),
        [s.candidate for s in scored],
    )

    elapsed_ms = round((time.time() - start_time) * 1000, 1)
    record_event("pick", {
        "novelty_mode": body.novelty_mode.value,
        "cuisines": body.cuisines,
        "max_distance_miles": body.max_distance_miles,
        "include_nearby": include_nearby,
        "only_nearby": body.only_nearby,
        "pool_size": len(pool),
        "results_returned": len(scored),
        "response_time_ms": elapsed_ms,
    })

    return _pick_response(scored, len(pool), body.novelty_mode)


def _spin(session: PickerSession, seed: int | None) -> PickResponse:
    context = session.context
    if context is None:
        raise HTTPException(status_code=409, detail="No picks to spin again yet")

    pool = session.remaining_pool()
    scored = pick(
        context.selected_cuisines,
        context.max_distance_miles,
        context.novelty_mode,
        context.vetoed_ids,
        get_visits(),
        pool,
        rng=_rng(seed),
    )
    session.picks = [s.candidate for s in scored]
    return _pick_response(scored, len(pool), context.novelty_mode)


@app.post("/picks/spin", response_model=PickResponse)
def spin_again(
    seed: int | None = None,
    session: PickerSession = Depends(current_session),
) -> PickResponse:
    return _spin(session, seed)


@app.post("/picks/veto", response_model=PickResponse)
def veto_and_repick(
    body: VetoRequest,
    seed: int | None = None,
    session: PickerSession = Depends(current_session),
) -> PickResponse:
    session.veto(body.candidate_id)
    return _spin(session, seed)


@app.post("/picks/choose", response_model=ChooseResponse)
def choose(
    body: ChooseRequest,
    session: PickerSession = Depends(current_session),
) -> ChooseResponse:
    known = session.picks + (session.context.pool if session.context else [])
    candidate = next((c for c in known if c.id == body.candidate_id), None)
    if candidate is None:
        raise HTTPException(status_code=404, detail="Candidate is not in the current picks")

    if candidate.source == CandidateSource.saved:
        visit = (
            record_visit(candidate.saved_restaurant_id)
            if candidate.saved_restaurant_id
            else None
        )
        restaurant = get_restaurant(candidate.saved_restaurant_id or "")
        if visit is None or restaurant is None:
            raise HTTPException(status_code=404, detail="Saved restaurant could not be found")
        return ChooseResponse(status="visited", restaurant=restaurant, visit=visit)

    existing = find_restaurant_by_name(candidate.name)
    if existing is not None:
        return ChooseResponse(status="exists", restaurant=existing)

    record = add_restaurant(RestaurantRecord(
        name=candidate.name,
        price_level=2,
        distance_miles=candidate.distance_miles,
        is_new=True,
    ))
    session.replace_candidate(candidate.id, Candidate.from_saved(record))
    return ChooseResponse(status="saved", restaurant=record)


# ── Nearby ───────────────────────────────────────────────────────────────


def _nearby_response(session: PickerSession) -> NearbyResponse:
    return NearbyResponse(
        candidates=[CandidateOut.from_candidate(c) for c in session.nearby],
        last_updated=session.nearby_last_updated,
        is_fresh=session.nearby_is_fresh(datetime.now(timezone.utc)),
    )


@app.post("/nearby/scan", response_model=NearbyResponse)
async def nearby_scan(
    body: NearbyScanRequest,
    session: PickerSession = Depends(picker_session),
    service: NearbySearchService = Depends(get_nearby_service),
) -> NearbyResponse:
    source = StaticLocationSource(Coordinate(body.latitude, body.longitude))
    try:
        results = await service.scan(source, body.radius_miles)
    except NearbySearchError as exc:
        record_event("nearby_scan", {
            "radius_miles": body.radius_miles,
            "error": type(exc).__name__,
        })
        status = _SCAN_ERROR_STATUS.get(type(exc), 502)
        raise HTTPException(status_code=status, detail=str(exc)) from exc

    session.set_nearby(results, datetime.now(timezone.utc))
    record_event("nearby_scan", {
        "radius_miles": body.radius_miles,
        "results": len(results),
        "cache_hit": service.last_scan_cached,
    })
    return _nearby_response(session)


@app.get("/nearby", response_model=NearbyResponse)
def nearby(session: PickerSession = Depends(current_session)) -> NearbyResponse:
    return _nearby_response(session)


@app.delete("/nearby", response_model=NearbyResponse)
def clear_nearby(session: PickerSession = Depends(current_session)) -> NearbyResponse:
    session.clear_nearby()
    return _nearby_response(session)


# ── Stats ────────────────────────────────────────────────────────────────


@app.get("/cache/stats")
def cache_stats() -> dict:
    return get_cache_stats()


@app.get("/analytics")
def analytics() -> dict:
    return compute_analytics(get_events())

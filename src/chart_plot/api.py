"""FastAPI backend: geodesy/dead-reckoning endpoints, tile-source resolution, chart and online tiles."""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel, Field, ValidationError

from chart_plot.core.dead_reckoning import alignment_heading, current_position, future_track
from chart_plot.core.errors import InvalidInput, UnknownRecord
from chart_plot.core.geodesy import format_sexagesimal, to_decimal, to_sexagesimal
from chart_plot.core.measurement import measure
from chart_plot.core.models import Coordinate, SexagesimalCoordinate, Target
from chart_plot.deps import (
    get_catalog,
    get_layer_context,
    get_online_tile_fetcher,
    get_resolver,
    get_tile_cache,
    get_tile_fetcher,
)
from chart_plot.routers import measurement, plot
from chart_plot.tiles.charts import ChartCatalog
from chart_plot.tiles.fetch import ChartTileFetcher, OnlineTileFetcher
from chart_plot.tiles.resolver import LayerContext, ResolveTrigger, TileSourceResolver, Viewport

log = logging.getLogger(__name__)

app = FastAPI(title="Chart Plot", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(plot.router)
app.include_router(measurement.router)


# ---------------------------------------------------------------------------
# Error mapping
# ---------------------------------------------------------------------------

@app.exception_handler(InvalidInput)
async def _invalid_input(request: Request, exc: InvalidInput):
    return JSONResponse(status_code=422, content={"detail": str(exc)})


@app.exception_handler(ValidationError)
async def _validation_error(request: Request, exc: ValidationError):
    errors = exc.errors(include_url=False, include_context=False)
    return JSONResponse(status_code=422, content={"detail": jsonable_encoder(errors)})


@app.exception_handler(UnknownRecord)
async def _unknown_record(request: Request, exc: UnknownRecord):
    return JSONResponse(status_code=404, content={"detail": f"Not found: {exc.args[0]}"})


# ---------------------------------------------------------------------------
# Request / Response models
# ---------------------------------------------------------------------------

class MeasureRequest(BaseModel):
    start: Coordinate
    end: Coordinate


class MeasureOut(BaseModel):
    distance_nm: float
    bearing_deg: float
    start: Coordinate
    end: Coordinate


class ProjectRequest(BaseModel):
    coordinate: Coordinate
    course: float = Field(..., ge=0, lt=360)
    speed: float = Field(..., ge=0)
    reference_time: datetime
    at: Optional[datetime] = None
    horizon_hours: float = 24.0
    point_count: int = Field(48, ge=1, le=1000)


class ProjectOut(BaseModel):
    position: Coordinate
    position_text: str
    heading_deg: float
    future_track: List[Coordinate]
    at: datetime


class DecisionOut(BaseModel):
    kind: str
    indicator: str
    is_online: bool
    can_load_tiles: bool
    url_template: str
    attribution: str
    min_zoom: int
    max_zoom: int
    chart_id: Optional[str] = None


class ChartOut(BaseModel):
    id: str
    name: str
    bounds: Dict[str, float]
    zoom_levels: List[int]
    base_path: str


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@app.get("/health")
def health(catalog: ChartCatalog = Depends(get_catalog), cache=Depends(get_tile_cache)):
    return {"status": "ok", "tile_cache": type(cache).__name__, "charts": len(catalog)}


@app.post("/measure", response_model=MeasureOut)
def measure_endpoint(req: MeasureRequest):
    r = measure(req.start.validated(), req.end.validated())
    return MeasureOut(distance_nm=r.distance_nm, bearing_deg=r.bearing_deg, start=r.start, end=r.end)


@app.get("/convert")
def convert(lat: float, lng: float):
    coord = Coordinate(lat=lat, lng=lng).validated()
    sx = to_sexagesimal(coord)
    return {"sexagesimal": sx.model_dump(), "text": format_sexagesimal(coord)}


@app.post("/convert/decimal", response_model=Coordinate)
def convert_decimal(sx: SexagesimalCoordinate):
    return to_decimal(sx)


@app.post("/targets/project", response_model=ProjectOut)
def project_target(req: ProjectRequest):
    at = req.at or datetime.now(timezone.utc)
    track = future_track(req.coordinate, req.course, req.speed, req.horizon_hours, req.point_count)
    target = Target(
        name="ad-hoc",
        coordinate=req.coordinate,
        course=req.course,
        speed=req.speed,
        reference_time=req.reference_time,
        future_track=track,
    )
    pos = current_position(target, at)
    return ProjectOut(
        position=pos,
        position_text=format_sexagesimal(pos),
        heading_deg=alignment_heading(target, at),
        future_track=list(track),
        at=at,
    )


@app.get("/tiles/resolve", response_model=DecisionOut)
async def resolve_tiles(
    lat: float = Query(..., ge=-90, le=90),
    lng: float = Query(..., ge=-180, le=180),
    zoom: int = Query(..., ge=0, le=22),
    trigger: ResolveTrigger = ResolveTrigger.PAN_SETTLE,
    link_up: Optional[bool] = None,
    resolver: TileSourceResolver = Depends(get_resolver),
    ctx: LayerContext = Depends(get_layer_context),
):
    decision = await resolver.resolve(Viewport(Coordinate(lat=lat, lng=lng), zoom), ctx, trigger, link_up)
    if decision is None:
        raise HTTPException(status_code=503, detail="Tile source resolution in progress")
    d = decision.descriptor
    return DecisionOut(
        kind=decision.kind.value,
        indicator=decision.indicator,
        is_online=decision.is_online,
        can_load_tiles=decision.can_load_tiles,
        url_template=d.url_template,
        attribution=d.attribution,
        min_zoom=d.min_zoom,
        max_zoom=d.max_zoom,
        chart_id=decision.chart.id if decision.chart else None,
    )


@app.get("/charts", response_model=List[ChartOut])
def list_charts(catalog: ChartCatalog = Depends(get_catalog)):
    return [
        ChartOut(
            id=c.id,
            name=c.name,
            bounds={"north": c.bounds.north, "south": c.bounds.south, "east": c.bounds.east, "west": c.bounds.west},
            zoom_levels=list(c.zoom_levels),
            base_path=c.base_path,
        )
        for c in catalog
    ]


@app.get("/charts/{chart_id}/{z}/{x}/{y}.png")
def chart_tile(
    chart_id: str,
    z: int,
    x: int,
    y: int,
    catalog: ChartCatalog = Depends(get_catalog),
    fetcher: ChartTileFetcher = Depends(get_tile_fetcher),
):
    chart = catalog.get(chart_id)
    if chart is None:
        raise HTTPException(status_code=404, detail=f"Unknown chart: {chart_id}")
    tile = fetcher.get_tile(chart, z, x, y)
    headers: Dict[str, Any] = {"X-Tile-Source": tile.source, "Cache-Control": "public, max-age=3600"}
    return Response(content=tile.data, media_type="image/png", headers=headers)


@app.get("/tiles/online/{z}/{x}/{y}.png")
def online_tile(
    z: int,
    x: int,
    y: int,
    fetcher: OnlineTileFetcher = Depends(get_online_tile_fetcher),
):
    if not 0 <= z <= 22 or not (0 <= x < 2**z and 0 <= y < 2**z):
        raise HTTPException(status_code=404, detail=f"No tile {z}/{x}/{y}")
    tile = fetcher.get_tile(z, x, y)
    headers: Dict[str, Any] = {"X-Tile-Source": tile.source, "Cache-Control": "public, max-age=3600"}
    return Response(content=tile.data, media_type="image/png", headers=headers)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000, workers=1)

"""
Sculpt session API endpoints.

Sessions live in memory. A host creates a session for a terrain, tunes
brush settings per sculpt mode and then streams pointer events; every
applied dab answers with the heights it changed.
"""

import uuid
from typing import Any, Dict, List, Optional

import structlog
from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from ..config import settings
from ..config.brush_settings import BrushSettings, FlattenMode, SculptMode
from ..core.brushes import CustomBrush
from ..core.height_grid import InMemoryHeightStore, TerrainDimensions
from ..core.sculpt_session import PointerEvent, SculptSession

logger = structlog.get_logger()

router = APIRouter(prefix="/sessions", tags=["Sculpt Sessions"])

sessions: Dict[str, SculptSession] = {}


# Request/Response models
class SessionRequest(BaseModel):
    """Request to create a sculpt session."""

    width: int = Field(65, ge=2, description="Heightmap width in cells")
    height: int = Field(65, ge=2, description="Heightmap height in cells")
    size_x: Optional[float] = Field(None, gt=0, description="World size along x, defaults to width")
    size_y: float = Field(100.0, gt=0, description="World height range")
    size_z: Optional[float] = Field(None, gt=0, description="World size along z, defaults to height")
    seed: Optional[str] = Field(None, description="Seed for stroke randomization")
    heights: Optional[List[List[float]]] = Field(None, description="Initial normalized heights, rows of x")


class SessionResponse(BaseModel):
    session_id: str
    width: int
    height: int
    brushes: List[str]


class HeightsResponse(BaseModel):
    width: int
    height: int
    heights: List[List[float]]


class ModeRequest(BaseModel):
    """Active mode and mode-specific options."""

    mode: SculptMode
    flatten_mode: Optional[FlattenMode] = None
    set_height: Optional[float] = Field(None, ge=0, description="Set Height target in world units")
    box_filter_size: Optional[int] = Field(None, ge=1)


class PointerRequest(BaseModel):
    """Pointer event with a world-space position."""

    x: float
    y: float = 0.0
    z: float
    screen_y: float = 0.0
    shift: bool = False
    control: bool = False
    primary: bool = True

    def to_event(self) -> PointerEvent:
        return PointerEvent(
            position=(self.x, self.y, self.z),
            screen_y=self.screen_y,
            shift=self.shift,
            control=self.control,
            primary=self.primary,
        )


class DabResponse(BaseModel):
    applied: bool
    left: int = 0
    bottom: int = 0
    width: int = 0
    height: int = 0
    heights: List[List[float]] = Field(default_factory=list)


class BrushInfo(BaseModel):
    name: str
    custom: bool
    available: bool


class TerrainOperationRequest(BaseModel):
    height: Optional[float] = Field(None, ge=0, description="Height in world units, session default when omitted")


class EventResponse(BaseModel):
    kind: str
    data: Dict[str, Any] = Field(default_factory=dict)


# Helper functions
def get_session_or_404(session_id: str) -> SculptSession:
    """Get session by ID or raise 404."""
    session = sessions.get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Session not found")
    return session


@router.post("", response_model=SessionResponse)
async def create_session(request: SessionRequest):
    """Create a sculpt session over a new in-memory terrain."""
    if request.width > settings.max_grid_size or request.height > settings.max_grid_size:
        raise HTTPException(
            status_code=400, detail=f"Grid size exceeds maximum of {settings.max_grid_size}"
        )

    try:
        store = InMemoryHeightStore(request.width, request.height, request.heights)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    dimensions = TerrainDimensions(
        heightmap_width=request.width,
        heightmap_height=request.height,
        size_x=request.size_x or float(request.width),
        size_y=request.size_y,
        size_z=request.size_z or float(request.height),
    )
    session = SculptSession(
        store,
        dimensions=dimensions,
        seed=request.seed or settings.random_seed,
        brush_directory=settings.brush_directory,
    )
    session.settings.brush_preview_size = settings.brush_preview_size

    session_id = str(uuid.uuid4())
    sessions[session_id] = session
    logger.info("Sculpt session created", session_id=session_id, width=request.width, height=request.height)

    return SessionResponse(
        session_id=session_id,
        width=request.width,
        height=request.height,
        brushes=session.catalog.names,
    )


@router.delete("/{session_id}")
async def delete_session(session_id: str):
    get_session_or_404(session_id)
    del sessions[session_id]
    logger.info("Sculpt session deleted", session_id=session_id)
    return {"status": "deleted"}


@router.get("/{session_id}/heights", response_model=HeightsResponse)
async def get_heights(session_id: str):
    session = get_session_or_404(session_id)
    heights = session.store.read(0, 0, session.store.width, session.store.height)
    return HeightsResponse(width=session.store.width, height=session.store.height, heights=heights.tolist())


@router.get("/{session_id}/settings/{mode}", response_model=BrushSettings)
async def get_brush_settings(session_id: str, mode: SculptMode):
    session = get_session_or_404(session_id)
    return session.settings.brush(mode)


@router.put("/{session_id}/settings/{mode}", response_model=BrushSettings)
async def put_brush_settings(session_id: str, mode: SculptMode, brush_settings: BrushSettings):
    """Replace the brush settings of one sculpt mode."""
    session = get_session_or_404(session_id)
    session.settings.brushes[mode] = brush_settings
    logger.info("Brush settings updated", session_id=session_id, mode=mode.value)
    return brush_settings


@router.put("/{session_id}/mode")
async def put_mode(session_id: str, request: ModeRequest):
    """Switch the active sculpt mode."""
    session = get_session_or_404(session_id)
    session.settings.mode = request.mode
    if request.flatten_mode is not None:
        session.settings.flatten_mode = request.flatten_mode
    if request.set_height is not None:
        session.settings.set_height = request.set_height
    if request.box_filter_size is not None:
        session.settings.box_filter_size = request.box_filter_size
    return {"mode": session.settings.mode.value, "flatten_mode": session.settings.flatten_mode.value}


@router.post("/{session_id}/pointer/down")
async def pointer_down(session_id: str, request: PointerRequest):
    session = get_session_or_404(session_id)
    session.pointer_down(request.to_event())
    return {"active": session.stroke is not None}


@router.post("/{session_id}/pointer/update", response_model=DabResponse)
async def pointer_update(session_id: str, request: PointerRequest):
    """Advance the gesture; applies at most one dab."""
    session = get_session_or_404(session_id)
    result = session.update(request.to_event())
    if result is None:
        return DabResponse(applied=False)

    return DabResponse(
        applied=True,
        left=result.area.left,
        bottom=result.area.bottom,
        width=result.area.clipped_width,
        height=result.area.clipped_height,
        heights=result.heights.tolist(),
    )


@router.post("/{session_id}/pointer/up")
async def pointer_up(session_id: str):
    session = get_session_or_404(session_id)
    session.pointer_up()
    return {"active": False}


@router.post("/{session_id}/reload")
async def reload_heights(session_id: str):
    """Resynchronize after the host changed the store (undo/redo)."""
    session = get_session_or_404(session_id)
    session.on_undo_redo()
    return {"status": "reloaded"}


@router.get("/{session_id}/brushes", response_model=List[BrushInfo])
async def list_brushes(session_id: str):
    session = get_session_or_404(session_id)
    return [
        BrushInfo(
            name=brush.name,
            custom=isinstance(brush, CustomBrush),
            available=not isinstance(brush, CustomBrush) or brush.image is not None,
        )
        for brush in session.catalog
    ]


@router.post("/{session_id}/terrain/{operation}", response_model=HeightsResponse)
async def terrain_operation(session_id: str, operation: str, request: Optional[TerrainOperationRequest] = None):
    """
    Rewrite the whole terrain.

    Supports operations:
    - smooth: box-smooth every cell
    - flatten: set every cell to one height
    - linear_ramp / circular_ramp: generate a ramp from the ramp curve
    """
    session = get_session_or_404(session_id)
    height = request.height if request is not None else None

    if operation == "smooth":
        heights = session.smooth_all()
    elif operation == "flatten":
        heights = session.flatten_all(height)
    elif operation == "linear_ramp":
        heights = session.linear_ramp(height)
    elif operation == "circular_ramp":
        heights = session.circular_ramp(height)
    else:
        raise HTTPException(status_code=400, detail=f"Unknown operation: {operation}")

    return HeightsResponse(width=session.heights.width, height=session.heights.height, heights=heights.tolist())


@router.get("/{session_id}/events", response_model=List[EventResponse])
async def drain_events(session_id: str):
    """Return and clear queued session notifications."""
    session = get_session_or_404(session_id)
    return [EventResponse(kind=event.kind.value, data=event.data) for event in session.drain_events()]

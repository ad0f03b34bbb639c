"""
Core data models for the STF exporter.

Host-side records describe what a model provider hands to the pipeline (all
lengths in the provider's native length unit). Export-side records are the
read-only projections the STF writer serializes (all lengths in meters).

All models use Pydantic for validation and serialization.
"""

from datetime import date
from enum import Enum
from typing import List, Optional, Dict, Any, Tuple
from pydantic import BaseModel, Field, field_validator


class ErrorKind(str, Enum):
    """Failure and degradation kinds reported by an export run."""
    NO_SPACES_FOUND = "no_spaces_found"
    INVALID_SPACE_BOUNDARY = "invalid_space_boundary"
    MALFORMED_FIXTURE = "malformed_fixture"
    LUMINAIRE_OMITTED = "luminaire_omitted"
    WRITE_ERROR = "write_error"
    DUPLICATE_CATALOG_KEY = "duplicate_catalog_key"
    MALFORMED_QUANTITY = "malformed_quantity"
    MODEL_LOAD_ERROR = "model_load_error"
    INVALID_SPACE_ATTRIBUTES = "invalid_space_attributes"


class ExportState(str, Enum):
    """Stages of a single export run."""
    IDLE = "idle"
    SCANNING = "scanning"
    PER_ROOM_EXTRACTION = "per_room_extraction"
    CATALOG_BUILD = "catalog_build"
    ASSEMBLING = "assembling"
    WRITING = "writing"
    DONE = "done"
    FAILED = "failed"


class FurnishingKind(str, Enum):
    """Furnishing kinds as spelled in the STF file."""
    DOOR = "door"
    WINDOW = "win"


class WindowPositionMode(str, Enum):
    """How a window's position is derived from its placement."""
    BASIS_X = "basis_x"  # placement X axis scaled, location Z (legacy approximation)
    LOCATION = "location"  # true location point


class DecimalSymbol(str, Enum):
    DOT = "."
    COMMA = ","


class Point2D(BaseModel):
    """2D point in plan."""
    x: float
    y: float


class Point3D(BaseModel):
    """3D point in model space."""
    x: float
    y: float
    z: float = 0.0

    def as_tuple(self) -> Tuple[float, float, float]:
        return (self.x, self.y, self.z)


class Quantity(BaseModel):
    """A numeric value split from its unit suffix (e.g. '36.00 W')."""
    value: float
    unit: str = ""


# ---------------------------------------------------------------------------
# Host-side records
# ---------------------------------------------------------------------------


class BoundarySegment(BaseModel):
    """One curve of a space boundary loop, reduced to its end points."""
    start: Point3D
    end: Point3D


class PlacementTransform(BaseModel):
    """Local coordinate system of a placed element."""
    origin: Point3D = Field(default_factory=lambda: Point3D(x=0.0, y=0.0, z=0.0))
    basis_x: Point3D = Field(default_factory=lambda: Point3D(x=1.0, y=0.0, z=0.0))
    basis_y: Point3D = Field(default_factory=lambda: Point3D(x=0.0, y=1.0, z=0.0))
    basis_z: Point3D = Field(default_factory=lambda: Point3D(x=0.0, y=0.0, z=1.0))


class HostSpace(BaseModel):
    """Space (room) as exposed by the host model."""
    id: str
    name: str
    unbounded_height: float
    lighting_workplane: float = 0.0
    ceiling_reflectance: float = 0.75
    floor_reflectance: float = 0.2
    wall_reflectance: float = 0.5


class HostFixtureInstance(BaseModel):
    """Placed luminaire instance."""
    id: str
    type_id: Optional[str] = None
    space_id: Optional[str] = None
    location: Optional[Point3D] = None


class HostFixtureType(BaseModel):
    """
    Luminaire type definition.

    Load and flux are the host's formatted strings, value followed by a unit
    suffix (e.g. '36.00 VA', '2400 lm').
    """
    id: str
    name: str
    apparent_load: Optional[str] = None
    luminous_flux: Optional[str] = None
    parameters: Dict[str, Any] = Field(default_factory=dict)


class HostOpening(BaseModel):
    """Door or window instance with its type dimensions."""
    id: str
    space_id: Optional[str] = None
    location: Optional[Point3D] = None
    transform: PlacementTransform = Field(default_factory=PlacementTransform)
    width: Optional[float] = None
    height: Optional[float] = None


class HostInfo(BaseModel):
    """Application and project information for the STF header."""
    program_name: str = "Revit"
    program_version: str = ""
    project_name: str = ""
    username: str = ""


class DisplaySettings(BaseModel):
    """The host document's length display and number format settings."""
    length_unit: str = "feet"
    decimal_symbol: DecimalSymbol = DecimalSymbol.DOT
    use_digit_grouping: bool = False
    accuracy: float = 0.01

    def for_export(self) -> "DisplaySettings":
        """Settings forced for the duration of an export: meters, dot, no grouping."""
        return self.model_copy(
            update={
                "length_unit": "meters",
                "decimal_symbol": DecimalSymbol.DOT,
                "use_digit_grouping": False,
                "accuracy": 1e-10,
            }
        )


# ---------------------------------------------------------------------------
# Export-side records
# ---------------------------------------------------------------------------


class SpaceAttributes(BaseModel):
    """Scalar attributes of an exported room (meters, unitless reflectances)."""
    name: str
    height: float
    work_plane: float
    ceiling_reflectance: float = Field(ge=0.0, le=1.0)
    floor_reflectance: float = Field(ge=0.0, le=1.0)
    wall_reflectance: float = Field(ge=0.0, le=1.0)


class LuminairePlacement(BaseModel):
    """A luminaire instance within one room."""
    number: int = Field(ge=1)
    catalog_key: str
    position: Point3D
    # Not resolvable from the host placement
    rotation: Tuple[float, float, float] = (0.0, 0.0, 0.0)
    source_id: Optional[str] = None

    @property
    def label(self) -> str:
        return f"Lum{self.number}"


class Furnishing(BaseModel):
    """Door or window exported as room furnishing."""
    kind: FurnishingKind
    number: int = Field(ge=1)
    room_reference: str
    position: Point3D
    width: float
    height: float
    rotation: str = "90.00 0.00 0.00"
    source_id: Optional[str] = None

    @property
    def label(self) -> str:
        return f"Furn{self.number}"

    @property
    def reference(self) -> str:
        """Room-relative reference, e.g. 'ROOM.R1.F2'."""
        return f"{self.room_reference}.F{self.number}"


class RoomBlock(BaseModel):
    """One exported room: attributes, outline, luminaires and furnishings."""
    number: int = Field(ge=1)
    space_id: str
    attributes: SpaceAttributes
    polygon: List[Point2D] = Field(min_length=1)
    luminaires: List[LuminairePlacement] = Field(default_factory=list)
    furnishings: List[Furnishing] = Field(default_factory=list)

    @property
    def reference(self) -> str:
        return room_reference(self.number)

    def __str__(self) -> str:
        return (f"RoomBlock({self.reference}, '{self.attributes.name}', "
                f"{len(self.polygon)} points, {len(self.luminaires)} lums, "
                f"{len(self.furnishings)} furns)")


class LuminaireType(BaseModel):
    """Catalog entry for one luminaire type."""
    catalog_key: str
    type_name: str
    load: float
    flux: float
    lamp_count: int = Field(default=1, ge=1)
    manufacturer: str = ""
    name: str = ""
    order_number: str = ""
    box: str = "1 1 0"
    shape: int = 0
    mounting_type: int = 1

    @field_validator('catalog_key')
    @classmethod
    def validate_catalog_key(cls, v: str) -> str:
        """Catalog keys become section names: non-empty, no whitespace, no brackets."""
        if not v or any(ch.isspace() or ch in "[]" for ch in v):
            raise ValueError(f"Invalid catalog key: {v!r}")
        return v


class ExportDocument(BaseModel):
    """Complete content of one STF file."""
    format_version: str
    program_name: str
    program_version: str
    project_name: str
    export_date: date
    operator: str
    rooms: List[RoomBlock] = Field(default_factory=list)
    luminaire_types: List[LuminaireType] = Field(default_factory=list)

    @property
    def room_count(self) -> int:
        return len(self.rooms)

    def room_table(self) -> List[Tuple[str, str]]:
        """Ordered (key, reference) pairs, e.g. ('Room1', 'ROOM.R1')."""
        return [(f"Room{room.number}", room.reference) for room in self.rooms]


class ExportIssue(BaseModel):
    """A non-fatal problem recorded while extracting one entity."""
    kind: ErrorKind
    message: str
    element_id: Optional[str] = None


class ExportResult(BaseModel):
    """Outcome of an export run."""
    succeeded: bool
    state: ExportState
    error_kind: Optional[ErrorKind] = None
    message: str = ""
    failed_stage: Optional[ExportState] = None
    output_path: Optional[str] = None
    room_count: int = 0
    luminaire_type_count: int = 0
    issues: List[ExportIssue] = Field(default_factory=list)

    def issues_of(self, kind: ErrorKind) -> List[ExportIssue]:
        return [issue for issue in self.issues if issue.kind == kind]


def room_reference(number: int) -> str:
    """STF reference for the n-th room (1-based)."""
    return f"ROOM.R{number}"

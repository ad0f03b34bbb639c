"""
Model provider backed by a JSON snapshot of a host model.

A snapshot is an offline capture of everything the exporter queries: spaces
with their boundary loops, luminaire instances and types, doors, windows,
application info and display settings.
"""

from pathlib import Path
from typing import List, Optional
from loguru import logger
from pydantic import BaseModel, Field, ValidationError

from stfexport.core.errors import ModelLoadError
from stfexport.core.models import (
    BoundarySegment,
    DisplaySettings,
    HostFixtureInstance,
    HostFixtureType,
    HostInfo,
    HostOpening,
    HostSpace,
)
from stfexport.core.units import FEET_TO_METERS
from stfexport.providers.base import ModelProvider


class SnapshotSpace(HostSpace):
    """Space record with its boundary loops and view membership."""
    level: Optional[str] = None
    visible: bool = True
    boundary_loops: List[List[BoundarySegment]] = Field(default_factory=list)


class ModelSnapshot(BaseModel):
    """Serialized host model."""
    host: HostInfo = Field(default_factory=HostInfo)
    length_unit_factor: float = Field(default=FEET_TO_METERS, gt=0.0)
    display_settings: DisplaySettings = Field(default_factory=DisplaySettings)
    active_level: Optional[str] = None
    spaces: List[SnapshotSpace] = Field(default_factory=list)
    fixture_instances: List[HostFixtureInstance] = Field(default_factory=list)
    fixture_types: List[HostFixtureType] = Field(default_factory=list)
    doors: List[HostOpening] = Field(default_factory=list)
    windows: List[HostOpening] = Field(default_factory=list)


class SnapshotModelProvider(ModelProvider):
    """Serves model queries from a ModelSnapshot."""

    def __init__(self, snapshot: ModelSnapshot):
        super().__init__(snapshot.display_settings)
        self.snapshot = snapshot

    @classmethod
    def from_file(cls, file_path: str) -> "SnapshotModelProvider":
        """
        Load a snapshot from a JSON file.

        Raises:
            FileNotFoundError: If the file doesn't exist
            ModelLoadError: If the file is not a valid snapshot
        """
        path = Path(file_path)
        logger.info(f"Loading model snapshot: {path}")

        if not path.exists():
            raise FileNotFoundError(f"Snapshot file not found: {path}")

        try:
            snapshot = ModelSnapshot.model_validate_json(path.read_text(encoding="utf-8"))
        except ValidationError as e:
            raise ModelLoadError(f"Invalid model snapshot {path.name}: {e}") from e

        logger.debug(
            f"Snapshot: {len(snapshot.spaces)} spaces, "
            f"{len(snapshot.fixture_instances)} fixtures, "
            f"{len(snapshot.fixture_types)} fixture types"
        )
        return cls(snapshot)

    @property
    def length_unit_factor(self) -> float:
        return self.snapshot.length_unit_factor

    def spaces_in_active_view(self) -> List[HostSpace]:
        level = self.snapshot.active_level
        return [
            space for space in self.snapshot.spaces
            if space.visible and (level is None or space.level == level)
        ]

    def boundary_loops(self, space: HostSpace) -> List[List[BoundarySegment]]:
        for candidate in self.snapshot.spaces:
            if candidate.id == space.id:
                return candidate.boundary_loops
        return []

    def fixture_instances(self) -> List[HostFixtureInstance]:
        return list(self.snapshot.fixture_instances)

    def fixture_types(self) -> List[HostFixtureType]:
        return list(self.snapshot.fixture_types)

    def doors(self) -> List[HostOpening]:
        return list(self.snapshot.doors)

    def windows(self) -> List[HostOpening]:
        return list(self.snapshot.windows)

    def host_info(self) -> HostInfo:
        return self.snapshot.host

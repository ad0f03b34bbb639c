"""
Model provider interface.

The export pipeline reads the building model only through this interface and
never touches host-specific types.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from stfexport.core.models import (
    BoundarySegment,
    DisplaySettings,
    HostFixtureInstance,
    HostFixtureType,
    HostInfo,
    HostOpening,
    HostSpace,
)


class ModelProvider(ABC):
    """
    Typed query interface over a host building model.

    Lengths returned by every query are in the host's native unit; the
    `length_unit_factor` property gives meters per host unit.
    """

    def __init__(self, display_settings: Optional[DisplaySettings] = None):
        self._display_settings = display_settings or DisplaySettings()

    @property
    @abstractmethod
    def length_unit_factor(self) -> float:
        """Meters per host length unit."""

    @abstractmethod
    def spaces_in_active_view(self) -> List[HostSpace]:
        """Spaces visible in the active view, in enumeration order."""

    @abstractmethod
    def boundary_loops(self, space: HostSpace) -> List[List[BoundarySegment]]:
        """Boundary loops of a space; the first loop is the outer boundary."""

    @abstractmethod
    def fixture_instances(self) -> List[HostFixtureInstance]:
        """All placed luminaire instances in the model."""

    @abstractmethod
    def fixture_types(self) -> List[HostFixtureType]:
        """All luminaire type definitions, placed or not."""

    @abstractmethod
    def doors(self) -> List[HostOpening]:
        """All door instances."""

    @abstractmethod
    def windows(self) -> List[HostOpening]:
        """All window instances."""

    @abstractmethod
    def host_info(self) -> HostInfo:
        """Application and project information."""

    def display_settings(self) -> DisplaySettings:
        """Current display settings of the host document (a copy)."""
        return self._display_settings.model_copy()

    def apply_display_settings(self, settings: DisplaySettings) -> None:
        """Replace the host document's display settings."""
        self._display_settings = settings.model_copy()

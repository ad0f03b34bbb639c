"""
Space extraction: room attributes and boundary polygon.
"""

import math
from typing import Iterator, List, Optional, Tuple
from loguru import logger

from stfexport.core.errors import InvalidSpaceAttributes, InvalidSpaceBoundary
from stfexport.core.models import HostSpace, Point2D, RoomBlock, SpaceAttributes
from stfexport.core.units import UnitConverter, normalize_reflectance
from stfexport.providers.base import ModelProvider


class SpaceExtractor:
    """
    Extracts room data from host spaces.

    Only the first (outer) boundary loop is exported; each boundary segment
    contributes its start point.
    """

    def __init__(self, provider: ModelProvider, converter: Optional[UnitConverter] = None):
        """
        Initialize space extractor.

        Args:
            provider: Model provider answering boundary queries
            converter: Unit converter (defaults to the provider's length unit)
        """
        self.provider = provider
        self.converter = converter or UnitConverter(provider.length_unit_factor)

    def extract_boundary(self, space: HostSpace) -> Iterator[Tuple[float, float]]:
        """
        Boundary polygon of a space in meters.

        Args:
            space: Host space

        Returns:
            Lazy sequence of (x, y) segment start points, consumed once

        Raises:
            InvalidSpaceBoundary: If the space has no boundary loop or the
                first loop has no segments
        """
        loops = self.provider.boundary_loops(space)
        if not loops or not loops[0]:
            logger.error(f"Space '{space.name}' has no closed boundary")
            raise InvalidSpaceBoundary(space.name, element_id=space.id)

        if len(loops) > 1:
            logger.debug(f"Space '{space.name}': ignoring {len(loops) - 1} inner loop(s)")

        to_m = self.converter.to_meters
        return ((to_m(segment.start.x), to_m(segment.start.y)) for segment in loops[0])

    def extract_polygon(self, space: HostSpace) -> List[Point2D]:
        """Materialized boundary polygon."""
        return [Point2D(x=x, y=y) for x, y in self.extract_boundary(space)]

    def extract_attributes(self, space: HostSpace) -> SpaceAttributes:
        """
        Name, heights and reflectances, lengths converted to meters.

        Reflectances above 1 are read as percentages.

        Raises:
            InvalidSpaceAttributes: If a length is not finite or a
                reflectance falls outside 0..1
        """
        height = self._length(space, "height", space.unbounded_height)
        work_plane = self._length(space, "work plane", space.lighting_workplane)
        return SpaceAttributes(
            name=space.name,
            height=height,
            work_plane=work_plane,
            ceiling_reflectance=self._reflectance(space, "ceiling", space.ceiling_reflectance),
            floor_reflectance=self._reflectance(space, "floor", space.floor_reflectance),
            wall_reflectance=self._reflectance(space, "wall", space.wall_reflectance),
        )

    def _length(self, space: HostSpace, label: str, value: float) -> float:
        meters = self.converter.to_meters(value)
        if not math.isfinite(meters):
            logger.error(f"Space '{space.name}': {label} {value!r} is not a number")
            raise InvalidSpaceAttributes(space.name, f"{label} {value!r}", element_id=space.id)
        return meters

    def _reflectance(self, space: HostSpace, surface: str, value: float) -> float:
        fraction = normalize_reflectance(value)
        # NaN fails the range test too
        if not 0.0 <= fraction <= 1.0:
            logger.error(f"Space '{space.name}': {surface} reflectance {value!r} is outside 0..1")
            raise InvalidSpaceAttributes(
                space.name, f"{surface} reflectance {value!r} (expected 0..1 or a percentage)",
                element_id=space.id,
            )
        return fraction

    def extract_space(self, space: HostSpace, room_number: int) -> RoomBlock:
        """
        Room block with attributes and outline; luminaires and furnishings
        are filled in by their own extractors.

        Raises:
            InvalidSpaceBoundary: If the space has no usable boundary
            InvalidSpaceAttributes: If a height or reflectance is unusable
        """
        return RoomBlock(
            number=room_number,
            space_id=space.id,
            attributes=self.extract_attributes(space),
            polygon=self.extract_polygon(space),
        )

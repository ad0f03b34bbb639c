"""
Door and window extraction as room furnishings.

Doors are positioned at their location point (z written as 0). Windows use
an approximation by default: the X axis of the placement transform, scaled
like a length, combined with the location's Z. The true window footprint
position is not computed; WindowPositionMode.LOCATION switches to the
location point instead.
"""

from typing import Iterable, List, Optional
from loguru import logger

from stfexport.core.models import (
    Furnishing,
    FurnishingKind,
    HostOpening,
    Point3D,
    WindowPositionMode,
)
from stfexport.core.units import UnitConverter


class FurnishingExtractor:
    """
    Builds room furnishings from doors and windows.

    Reference numbers run from 1 across the room's doors first, then its
    windows. Rotation is not resolved and is always '90.00 0.00 0.00'.
    """

    def __init__(
        self,
        converter: UnitConverter,
        window_position_mode: WindowPositionMode = WindowPositionMode.BASIS_X,
    ):
        """
        Initialize furnishing extractor.

        Args:
            converter: Unit converter for positions and sizes
            window_position_mode: How window positions are derived
        """
        self.converter = converter
        self.window_position_mode = window_position_mode

    def extract_furnishings(
        self,
        doors: Iterable[HostOpening],
        windows: Iterable[HostOpening],
        target_space_id: str,
        room_reference: str,
    ) -> List[Furnishing]:
        """
        Furnishings of one room.

        Args:
            doors: All door instances
            windows: All window instances
            target_space_id: Id of the room's space
            room_reference: Room reference such as 'ROOM.R1'

        Returns:
            Doors then windows, numbered from 1
        """
        room_doors = [d for d in doors if d.space_id is not None and d.space_id == target_space_id]
        room_windows = [w for w in windows if w.space_id is not None and w.space_id == target_space_id]

        furnishings: List[Furnishing] = []

        for door in room_doors:
            furnishings.append(
                self._furnishing(door, FurnishingKind.DOOR, len(furnishings) + 1, room_reference)
            )

        for window in room_windows:
            furnishings.append(
                self._furnishing(window, FurnishingKind.WINDOW, len(furnishings) + 1, room_reference)
            )

        logger.debug(
            f"{room_reference}: {len(room_doors)} doors, {len(room_windows)} windows"
        )
        return furnishings

    def _furnishing(
        self,
        opening: HostOpening,
        kind: FurnishingKind,
        number: int,
        room_reference: str,
    ) -> Furnishing:
        return Furnishing(
            kind=kind,
            number=number,
            room_reference=room_reference,
            position=self._position(opening, kind),
            width=self._dimension(opening, opening.width, "width"),
            height=self._dimension(opening, opening.height, "height"),
            source_id=opening.id,
        )

    def _position(self, opening: HostOpening, kind: FurnishingKind) -> Point3D:
        to_m = self.converter.to_meters

        location = opening.location
        if location is None:
            logger.warning(f"{kind.name.title()} {opening.id} has no location point, using origin")
            location = Point3D(x=0.0, y=0.0, z=0.0)

        if kind == FurnishingKind.DOOR:
            return Point3D(x=to_m(location.x), y=to_m(location.y), z=0.0)

        if self.window_position_mode == WindowPositionMode.LOCATION:
            return self.converter.point_to_meters(location)

        basis_x = opening.transform.basis_x
        return Point3D(x=to_m(basis_x.x), y=to_m(basis_x.y), z=to_m(location.z))

    def _dimension(self, opening: HostOpening, value: Optional[float], name: str) -> float:
        if value is None:
            logger.warning(f"Opening {opening.id} has no {name}, using 0")
            return 0.0
        return self.converter.to_meters(value)


def extract_furnishings(
    doors: Iterable[HostOpening],
    windows: Iterable[HostOpening],
    target_space_id: str,
    room_reference: str,
    converter: Optional[UnitConverter] = None,
    window_position_mode: WindowPositionMode = WindowPositionMode.BASIS_X,
) -> List[Furnishing]:
    """
    Convenience function to extract one room's furnishings.

    Args:
        doors: All door instances
        windows: All window instances
        target_space_id: Id of the room's space
        room_reference: Room reference such as 'ROOM.R1'
        converter: Unit converter (defaults to feet)
        window_position_mode: How window positions are derived

    Returns:
        Ordered list of Furnishing
    """
    extractor = FurnishingExtractor(converter or UnitConverter(), window_position_mode)
    return extractor.extract_furnishings(doors, windows, target_space_id, room_reference)

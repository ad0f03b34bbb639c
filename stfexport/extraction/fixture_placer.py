"""
Placement of luminaire instances into rooms.
"""

from typing import Dict, Iterable, List, Optional
from loguru import logger

from stfexport.core.errors import MalformedFixture
from stfexport.core.models import ExportIssue, HostFixtureInstance, LuminairePlacement
from stfexport.core.units import UnitConverter
from stfexport.extraction.luminaire_catalog import catalog_key


class FixturePlacer:
    """
    Associates placed luminaires with a room and converts their positions.

    Instance rotation cannot be recovered from the host placement and is
    always exported as 0 0 0. A fixture without a location point (or with an
    unknown type) is skipped and recorded as an issue.
    """

    def __init__(self, converter: UnitConverter):
        self.converter = converter
        self.issues: List[ExportIssue] = []

    def place_fixtures(
        self,
        instances: Iterable[HostFixtureInstance],
        target_space_id: str,
        type_names: Dict[str, str],
    ) -> List[LuminairePlacement]:
        """
        Luminaires of one room, numbered from 1.

        Args:
            instances: All placed fixture instances
            target_space_id: Id of the room's space
            type_names: Fixture type id -> type display name

        Returns:
            Ordered list of LuminairePlacement
        """
        placements: List[LuminairePlacement] = []

        for instance in instances:
            if instance.space_id is None or instance.space_id != target_space_id:
                continue

            try:
                placement = self._place(instance, len(placements) + 1, type_names)
            except MalformedFixture as e:
                logger.warning(f"Skipping fixture: {e}")
                self.issues.append(e.to_issue())
                continue

            placements.append(placement)

        logger.debug(f"Space {target_space_id}: placed {len(placements)} luminaires")
        return placements

    def _place(
        self,
        instance: HostFixtureInstance,
        number: int,
        type_names: Dict[str, str],
    ) -> LuminairePlacement:
        if instance.location is None:
            raise MalformedFixture(f"Fixture {instance.id} has no location point", element_id=instance.id)

        type_name = type_names.get(instance.type_id) if instance.type_id is not None else None
        if type_name is None:
            raise MalformedFixture(
                f"Fixture {instance.id} references unknown type {instance.type_id}",
                element_id=instance.id,
            )

        return LuminairePlacement(
            number=number,
            catalog_key=catalog_key(type_name),
            position=self.converter.point_to_meters(instance.location),
            source_id=instance.id,
        )


def place_fixtures(
    instances: Iterable[HostFixtureInstance],
    target_space_id: str,
    type_names: Dict[str, str],
    converter: Optional[UnitConverter] = None,
) -> List[LuminairePlacement]:
    """
    Convenience function to place fixtures of one room.

    Args:
        instances: All placed fixture instances
        target_space_id: Id of the room's space
        type_names: Fixture type id -> type display name
        converter: Unit converter (defaults to feet)

    Returns:
        Ordered list of LuminairePlacement
    """
    placer = FixturePlacer(converter or UnitConverter())
    return placer.place_fixtures(instances, target_space_id, type_names)

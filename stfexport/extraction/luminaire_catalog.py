"""
Luminaire catalog built from fixture type definitions.

Every type definition in the model is considered, whether placed or not.
Types without a luminous flux value are left out of the catalog.
"""

from typing import Dict, Iterable, List, Optional
from loguru import logger

from stfexport.core.config import COLLISION_POLICIES
from stfexport.core.errors import DuplicateCatalogKey, LuminaireOmitted, MalformedQuantity
from stfexport.core.models import ExportIssue, HostFixtureType, LuminaireType
from stfexport.core.units import parse_quantity


def catalog_key(type_name: str) -> str:
    """Section key for a luminaire type: its display name without whitespace or brackets."""
    return "".join(type_name.split()).replace("[", "").replace("]", "")


class LuminaireCatalog:
    """
    Builds one catalog entry per luminaire type.

    Key collisions (two type names reducing to the same key) are handled by
    policy: 'reject' raises DuplicateCatalogKey, 'last_wins' keeps the
    position of the first entry and the data of the last one.
    """

    def __init__(
        self,
        lamp_count_parameter: str = "Number of Lamps",
        lamp_count_fallback: int = 1,
        collision_policy: str = "reject",
        shape: int = 0,
        mounting_type: int = 1,
    ):
        """
        Initialize luminaire catalog.

        Args:
            lamp_count_parameter: Type parameter holding an explicit lamp count
            lamp_count_fallback: Lamp count when the parameter is absent
            collision_policy: 'reject' or 'last_wins'
            shape: STF shape code written for every type
            mounting_type: STF mounting type code written for every type
        """
        if collision_policy not in COLLISION_POLICIES:
            raise ValueError(f"Unknown collision policy: {collision_policy}")

        self.lamp_count_parameter = lamp_count_parameter
        self.lamp_count_fallback = lamp_count_fallback
        self.collision_policy = collision_policy
        self.shape = shape
        self.mounting_type = mounting_type
        self.issues: List[ExportIssue] = []

    def build_catalog(self, fixture_types: Iterable[HostFixtureType]) -> List[LuminaireType]:
        """
        Build catalog entries in type enumeration order.

        Args:
            fixture_types: All luminaire type definitions

        Returns:
            Ordered list of LuminaireType with unique catalog keys

        Raises:
            DuplicateCatalogKey: On a key collision under the 'reject' policy
        """
        logger.info("Building luminaire catalog")

        entries: Dict[str, LuminaireType] = {}

        for fixture_type in fixture_types:
            entry = self._build_entry(fixture_type)
            if entry is None:
                continue

            existing = entries.get(entry.catalog_key)
            if existing is not None:
                if self.collision_policy == "reject":
                    raise DuplicateCatalogKey(entry.catalog_key, existing.type_name, entry.type_name)
                logger.warning(
                    f"Catalog key '{entry.catalog_key}': '{entry.type_name}' "
                    f"replaces '{existing.type_name}'"
                )

            entries[entry.catalog_key] = entry

        logger.success(f"Catalogued {len(entries)} luminaire types")
        return list(entries.values())

    def _build_entry(self, fixture_type: HostFixtureType) -> Optional[LuminaireType]:
        if fixture_type.luminous_flux is None or not fixture_type.luminous_flux.strip():
            omitted = LuminaireOmitted(
                f"Luminaire type '{fixture_type.name}' has no luminous flux",
                element_id=fixture_type.id,
            )
            logger.debug(omitted.message)
            self.issues.append(omitted.to_issue())
            return None

        key = catalog_key(fixture_type.name)
        if not key:
            logger.warning(f"Skipping luminaire type {fixture_type.id}: empty name")
            self.issues.append(
                LuminaireOmitted(f"Luminaire type {fixture_type.id} has no name", fixture_type.id).to_issue()
            )
            return None

        try:
            flux = parse_quantity(fixture_type.luminous_flux).value
            if fixture_type.apparent_load is None:
                logger.warning(f"Luminaire type '{fixture_type.name}' has no apparent load, using 0")
                load = 0.0
            else:
                load = parse_quantity(fixture_type.apparent_load).value
        except MalformedQuantity as e:
            logger.warning(f"Omitting luminaire type '{fixture_type.name}': {e}")
            self.issues.append(
                MalformedQuantity(f"Luminaire type '{fixture_type.name}': {e}", fixture_type.id).to_issue()
            )
            return None

        return LuminaireType(
            catalog_key=key,
            type_name=fixture_type.name,
            load=load,
            flux=flux,
            lamp_count=self._lamp_count(fixture_type),
            shape=self.shape,
            mounting_type=self.mounting_type,
        )

    def _lamp_count(self, fixture_type: HostFixtureType) -> int:
        # Photometric files are not parsed; absent an explicit count, use the fallback
        value = fixture_type.parameters.get(self.lamp_count_parameter)
        if value is None:
            return self.lamp_count_fallback

        try:
            number = float(value)
            integral = number.is_integer()
        except (TypeError, ValueError):
            logger.warning(
                f"Luminaire type '{fixture_type.name}': bad lamp count {value!r}, "
                f"using {self.lamp_count_fallback}"
            )
            return self.lamp_count_fallback

        # Fractional counts (e.g. 2.7) are not truncated
        if not integral or number < 1:
            logger.warning(
                f"Luminaire type '{fixture_type.name}': lamp count {value!r}, "
                f"using {self.lamp_count_fallback}"
            )
            return self.lamp_count_fallback
        return int(number)


def build_catalog(
    fixture_types: Iterable[HostFixtureType],
    collision_policy: str = "reject",
    lamp_count_fallback: int = 1,
) -> List[LuminaireType]:
    """
    Convenience function to build a luminaire catalog.

    Args:
        fixture_types: All luminaire type definitions
        collision_policy: 'reject' or 'last_wins'
        lamp_count_fallback: Lamp count when no explicit parameter exists

    Returns:
        Ordered list of LuminaireType
    """
    catalog = LuminaireCatalog(
        lamp_count_fallback=lamp_count_fallback,
        collision_policy=collision_policy,
    )
    return catalog.build_catalog(fixture_types)

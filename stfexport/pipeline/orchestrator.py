"""
Export orchestration.

Drives one export run through its stages:

    IDLE -> SCANNING -> PER_ROOM_EXTRACTION -> CATALOG_BUILD
         -> ASSEMBLING -> WRITING -> DONE

Any stage may end in FAILED. Structural problems (no spaces, an unclosed
space boundary, a catalog key collision, a write failure) abort the run with
no output file. Per-entity problems (a fixture without a location, a
luminaire type without flux) skip the entity and are reported as issues.
"""

from datetime import date
from typing import Dict, List, Optional
from loguru import logger

from stfexport.core.config import Config, get_default_config
from stfexport.core.errors import NoSpacesFound, StfExportError
from stfexport.core.models import (
    ExportDocument,
    ExportIssue,
    ExportResult,
    ExportState,
    HostFixtureInstance,
    HostOpening,
    HostSpace,
    RoomBlock,
)
from stfexport.core.units import UnitConverter
from stfexport.extraction.fixture_placer import FixturePlacer
from stfexport.extraction.furnishing_extractor import FurnishingExtractor
from stfexport.extraction.luminaire_catalog import LuminaireCatalog
from stfexport.extraction.space_extractor import SpaceExtractor
from stfexport.generation.stf_writer import StfWriter
from stfexport.pipeline.display_scope import DisplaySettingsScope
from stfexport.providers.base import ModelProvider


class ExportOrchestrator:
    """Runs a complete export of the active view's spaces to one STF file."""

    def __init__(
        self,
        provider: ModelProvider,
        config: Optional[Config] = None,
        settings_scope: Optional[DisplaySettingsScope] = None,
        writer: Optional[StfWriter] = None,
        export_date: Optional[date] = None,
        operator: Optional[str] = None,
    ):
        """
        Initialize orchestrator.

        Args:
            provider: Source model
            config: Export configuration (defaults to bundled config)
            settings_scope: Display settings override held during extraction
            writer: STF writer
            export_date: Date written to the header (defaults to today)
            operator: Operator name (defaults to the host user name)
        """
        self.provider = provider
        self.config = config or get_default_config()
        self.settings_scope = settings_scope or DisplaySettingsScope(provider)
        self.writer = writer or StfWriter()
        self.export_date = export_date
        self.operator = operator
        self.state = ExportState.IDLE
        self.issues: List[ExportIssue] = []

    def run(self, destination: str) -> ExportResult:
        """
        Export to a destination file.

        Args:
            destination: Output .stf path

        Returns:
            ExportResult describing success or the failure kind
        """
        self.state = ExportState.IDLE
        self.issues = []
        logger.info(f"Starting STF export to {destination}")

        try:
            with self.settings_scope:
                document = self.build_document()

            self._transition(ExportState.WRITING)
            output_file = self.writer.write(document, destination)
        except StfExportError as e:
            return self._fail(e)
        except Exception:
            self._transition(ExportState.FAILED)
            raise

        self._transition(ExportState.DONE)
        logger.success(
            f"Exported {document.room_count} rooms and "
            f"{len(document.luminaire_types)} luminaire types"
        )

        return ExportResult(
            succeeded=True,
            state=self.state,
            message=f"Exported {document.room_count} rooms",
            output_path=str(output_file),
            room_count=document.room_count,
            luminaire_type_count=len(document.luminaire_types),
            issues=list(self.issues),
        )

    def build_document(self) -> ExportDocument:
        """
        Extract all rooms and the luminaire catalog and assemble the document.

        Raises:
            NoSpacesFound: If the active view shows no spaces
            InvalidSpaceBoundary: If any space has no closed boundary
            DuplicateCatalogKey: On a catalog key collision under the 'reject' policy
        """
        converter = UnitConverter(self.provider.length_unit_factor)

        self._transition(ExportState.SCANNING)
        spaces = self.provider.spaces_in_active_view()
        if not spaces:
            raise NoSpacesFound(
                "Cannot find spaces to export. Make sure the active view is a "
                "floor or ceiling plan and spaces are visible."
            )
        logger.info(f"Found {len(spaces)} spaces in active view")

        self._transition(ExportState.PER_ROOM_EXTRACTION)
        fixture_types = self.provider.fixture_types()
        type_names = {fixture_type.id: fixture_type.name for fixture_type in fixture_types}
        rooms = self._extract_rooms(
            spaces,
            converter,
            self.provider.fixture_instances(),
            type_names,
            self.provider.doors(),
            self.provider.windows(),
        )

        self._transition(ExportState.CATALOG_BUILD)
        catalog = LuminaireCatalog(
            lamp_count_parameter=self.config.get_extraction_rule("lamp_count_parameter", "Number of Lamps"),
            lamp_count_fallback=self.config.get_extraction_rule("lamp_count_fallback", 1),
            collision_policy=self.config.collision_policy,
            shape=self.config.get_format_setting("shape", 0),
            mounting_type=self.config.get_format_setting("mounting_type", 1),
        )
        try:
            luminaire_types = catalog.build_catalog(fixture_types)
        finally:
            self.issues.extend(catalog.issues)

        self._transition(ExportState.ASSEMBLING)
        host = self.provider.host_info()
        operator = self.operator if self.operator is not None else host.username

        return ExportDocument(
            format_version=self.config.stf_version,
            program_name=host.program_name or self.config.get_format_setting("program_name", ""),
            program_version=host.program_version,
            project_name=host.project_name,
            export_date=self.export_date or date.today(),
            operator=operator,
            rooms=rooms,
            luminaire_types=luminaire_types,
        )

    def _extract_rooms(
        self,
        spaces: List[HostSpace],
        converter: UnitConverter,
        fixture_instances: List[HostFixtureInstance],
        type_names: Dict[str, str],
        doors: List[HostOpening],
        windows: List[HostOpening],
    ) -> List[RoomBlock]:
        space_extractor = SpaceExtractor(self.provider, converter)
        placer = FixturePlacer(converter)
        furnishing_extractor = FurnishingExtractor(converter, self.config.window_position_mode)

        rooms = []
        try:
            for number, space in enumerate(spaces, start=1):
                room = space_extractor.extract_space(space, number)
                room.luminaires = placer.place_fixtures(fixture_instances, space.id, type_names)
                room.furnishings = furnishing_extractor.extract_furnishings(
                    doors, windows, space.id, room.reference
                )
                logger.debug(str(room))
                rooms.append(room)
        finally:
            self.issues.extend(placer.issues)

        logger.success(f"Extracted {len(rooms)} rooms")
        return rooms

    def _transition(self, state: ExportState) -> None:
        logger.debug(f"Export state: {self.state.value} -> {state.value}")
        self.state = state

    def _fail(self, error: StfExportError) -> ExportResult:
        failed_stage = self.state
        self._transition(ExportState.FAILED)
        logger.error(f"Export failed during {failed_stage.value}: {error}")

        return ExportResult(
            succeeded=False,
            state=self.state,
            error_kind=error.kind,
            message=str(error),
            failed_stage=failed_stage,
            issues=list(self.issues),
        )


def export_stf(
    provider: ModelProvider,
    destination: str,
    config: Optional[Config] = None,
    export_date: Optional[date] = None,
    operator: Optional[str] = None,
) -> ExportResult:
    """
    Convenience function to export the active view to an STF file.

    Args:
        provider: Source model
        destination: Output .stf path
        config: Export configuration
        export_date: Date written to the header (defaults to today)
        operator: Operator name (defaults to the host user name)

    Returns:
        ExportResult
    """
    orchestrator = ExportOrchestrator(
        provider,
        config=config,
        export_date=export_date,
        operator=operator,
    )
    return orchestrator.run(destination)

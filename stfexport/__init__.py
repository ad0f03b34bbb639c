"""
stfexport - STF Exporter for Lighting Design

Converts a building model's spaces, luminaires, doors and windows into an
STF interchange file for lighting-design tools.
"""

__version__ = "0.1.0"

from stfexport.core.units import UnitConverter, format_decimal, to_meters
from stfexport.extraction.space_extractor import SpaceExtractor
from stfexport.extraction.luminaire_catalog import LuminaireCatalog, build_catalog
from stfexport.extraction.fixture_placer import FixturePlacer, place_fixtures
from stfexport.extraction.furnishing_extractor import FurnishingExtractor, extract_furnishings
from stfexport.generation.stf_writer import StfWriter, write_stf
from stfexport.pipeline.orchestrator import ExportOrchestrator, export_stf
from stfexport.providers.base import ModelProvider
from stfexport.providers.snapshot import SnapshotModelProvider
from stfexport.providers.ifc import IfcModelProvider

__all__ = [
    "UnitConverter",
    "format_decimal",
    "to_meters",
    "SpaceExtractor",
    "LuminaireCatalog",
    "build_catalog",
    "FixturePlacer",
    "place_fixtures",
    "FurnishingExtractor",
    "extract_furnishings",
    "StfWriter",
    "write_stf",
    "ExportOrchestrator",
    "export_stf",
    "ModelProvider",
    "SnapshotModelProvider",
    "IfcModelProvider",
]

"""Shared fixtures: an in-memory model provider and sample host records."""

from datetime import date
from typing import Dict, List, Optional

import pytest

from stfexport.core.models import (
    BoundarySegment,
    DecimalSymbol,
    DisplaySettings,
    HostFixtureInstance,
    HostFixtureType,
    HostInfo,
    HostOpening,
    HostSpace,
    PlacementTransform,
    Point3D,
)
from stfexport.providers.base import ModelProvider

EXPORT_DATE = date(2024, 3, 7)


def rectangle_loop(x0: float, y0: float, x1: float, y1: float) -> List[BoundarySegment]:
    """Counter-clockwise rectangular boundary loop (host units)."""
    corners = [
        Point3D(x=x0, y=y0),
        Point3D(x=x1, y=y0),
        Point3D(x=x1, y=y1),
        Point3D(x=x0, y=y1),
    ]
    return [
        BoundarySegment(start=corners[i], end=corners[(i + 1) % 4])
        for i in range(4)
    ]


class FakeModelProvider(ModelProvider):
    """Model provider serving in-memory host records."""

    def __init__(
        self,
        spaces: Optional[List[HostSpace]] = None,
        loops: Optional[Dict[str, list]] = None,
        fixture_instances: Optional[List[HostFixtureInstance]] = None,
        fixture_types: Optional[List[HostFixtureType]] = None,
        doors: Optional[List[HostOpening]] = None,
        windows: Optional[List[HostOpening]] = None,
        host: Optional[HostInfo] = None,
        display_settings: Optional[DisplaySettings] = None,
        unit_factor: float = 0.3048,
    ):
        super().__init__(display_settings)
        self.spaces = spaces or []
        self.loops = loops or {}
        self.instances = fixture_instances or []
        self.types = fixture_types or []
        self.door_list = doors or []
        self.window_list = windows or []
        self.host = host or HostInfo(
            program_name="Revit",
            program_version="2017",
            project_name="Office Block",
            username="jdoe",
        )
        self.unit_factor = unit_factor
        self.settings_history: List[DisplaySettings] = []

    @property
    def length_unit_factor(self) -> float:
        return self.unit_factor

    def spaces_in_active_view(self):
        return list(self.spaces)

    def boundary_loops(self, space):
        return self.loops.get(space.id, [])

    def fixture_instances(self):
        return list(self.instances)

    def fixture_types(self):
        return list(self.types)

    def doors(self):
        return list(self.door_list)

    def windows(self):
        return list(self.window_list)

    def host_info(self):
        return self.host

    def apply_display_settings(self, settings):
        self.settings_history.append(settings.model_copy())
        super().apply_display_settings(settings)


@pytest.fixture
def office_space() -> HostSpace:
    return HostSpace(
        id="space-1",
        name="Office 101",
        unbounded_height=10.0,
        lighting_workplane=2.5,
        ceiling_reflectance=0.7,
        floor_reflectance=0.2,
        wall_reflectance=0.5,
    )


@pytest.fixture
def downlight_type() -> HostFixtureType:
    return HostFixtureType(
        id="type-1",
        name="Downlight 2x18W",
        apparent_load="36.00 VA",
        luminous_flux="2400 lm",
    )


@pytest.fixture
def comma_settings() -> DisplaySettings:
    return DisplaySettings(
        length_unit="feet",
        decimal_symbol=DecimalSymbol.COMMA,
        use_digit_grouping=True,
        accuracy=0.01,
    )


@pytest.fixture
def office_provider(office_space, downlight_type, comma_settings) -> FakeModelProvider:
    """One rectangular office with one fixture and one door."""
    return FakeModelProvider(
        spaces=[office_space],
        loops={"space-1": [rectangle_loop(0.0, 0.0, 20.0, 10.0)]},
        fixture_instances=[
            HostFixtureInstance(
                id="fix-1",
                type_id="type-1",
                space_id="space-1",
                location=Point3D(x=10.0, y=5.0, z=9.0),
            ),
        ],
        fixture_types=[downlight_type],
        doors=[
            HostOpening(
                id="door-1",
                space_id="space-1",
                location=Point3D(x=5.0, y=0.0, z=0.0),
                width=3.0,
                height=7.0,
            ),
        ],
        display_settings=comma_settings,
    )


@pytest.fixture
def rotated_transform() -> PlacementTransform:
    return PlacementTransform(
        origin=Point3D(x=20.0, y=5.0, z=3.0),
        basis_x=Point3D(x=0.0, y=1.0, z=0.0),
        basis_y=Point3D(x=-1.0, y=0.0, z=0.0),
    )

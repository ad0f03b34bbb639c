"""Tests for door and window extraction."""

import pytest

from stfexport.core.models import FurnishingKind, HostOpening, Point3D, WindowPositionMode
from stfexport.core.units import UnitConverter
from stfexport.extraction.furnishing_extractor import FurnishingExtractor, extract_furnishings


def _opening(opening_id, space_id="space-1", location=(5.0, 0.0, 3.0), transform=None, width=3.0, height=7.0):
    data = dict(
        id=opening_id,
        space_id=space_id,
        location=Point3D(x=location[0], y=location[1], z=location[2]) if location else None,
        width=width,
        height=height,
    )
    if transform is not None:
        data["transform"] = transform
    return HostOpening(**data)


class TestFurnishingExtractor:
    """Tests for FurnishingExtractor."""

    def test_doors_then_windows_numbered_sequentially(self):
        """Should number doors first, then windows, starting at 1."""
        furnishings = extract_furnishings(
            doors=[_opening("d1"), _opening("d2", space_id="other"), _opening("d3")],
            windows=[_opening("w1"), _opening("w2", space_id=None)],
            target_space_id="space-1",
            room_reference="ROOM.R2",
        )

        assert [f.kind for f in furnishings] == [FurnishingKind.DOOR, FurnishingKind.DOOR, FurnishingKind.WINDOW]
        assert [f.number for f in furnishings] == [1, 2, 3]
        assert [f.reference for f in furnishings] == ["ROOM.R2.F1", "ROOM.R2.F2", "ROOM.R2.F3"]
        assert [f.source_id for f in furnishings] == ["d1", "d3", "w1"]

    def test_door_position_and_size(self):
        """Should scale the door location by 0.3048 and write z as 0."""
        door = extract_furnishings([_opening("d1")], [], "space-1", "ROOM.R1")[0]

        assert door.position.x == pytest.approx(1.524)
        assert door.position.y == 0.0
        assert door.position.z == 0.0
        assert door.width == pytest.approx(0.9144)
        assert door.height == pytest.approx(2.1336)
        assert door.rotation == "90.00 0.00 0.00"

    def test_window_uses_basis_x_approximation(self, rotated_transform):
        """Should combine the scaled placement X axis with the location Z."""
        window = extract_furnishings(
            [], [_opening("w1", location=(20.0, 5.0, 3.0), transform=rotated_transform)],
            "space-1", "ROOM.R1",
        )[0]

        assert window.kind == FurnishingKind.WINDOW
        assert window.position.x == pytest.approx(0.0)
        assert window.position.y == pytest.approx(0.3048)
        assert window.position.z == pytest.approx(0.9144)

    def test_window_location_mode(self, rotated_transform):
        """Should use the true location point when configured."""
        extractor = FurnishingExtractor(UnitConverter(), WindowPositionMode.LOCATION)
        window = extractor.extract_furnishings(
            [], [_opening("w1", location=(20.0, 5.0, 3.0), transform=rotated_transform)],
            "space-1", "ROOM.R1",
        )[0]

        assert window.position.x == pytest.approx(6.096)
        assert window.position.y == pytest.approx(1.524)
        assert window.position.z == pytest.approx(0.9144)

    def test_missing_dimensions_and_location_default_to_zero(self):
        """Should keep the opening with zero size and origin position."""
        door = extract_furnishings(
            [_opening("d1", location=None, width=None, height=None)], [], "space-1", "ROOM.R1"
        )[0]

        assert door.width == 0.0
        assert door.height == 0.0
        assert door.position.x == 0.0

    def test_room_without_openings(self):
        """Should return no furnishings."""
        assert extract_furnishings([_opening("d1", space_id="x")], [], "space-1", "ROOM.R1") == []

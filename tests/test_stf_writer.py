"""Tests for STF rendering and file writing."""

from datetime import date

import pytest

from stfexport.core.errors import WriteError
from stfexport.core.models import (
    ErrorKind,
    ExportDocument,
    Furnishing,
    FurnishingKind,
    LuminairePlacement,
    LuminaireType,
    Point2D,
    Point3D,
    RoomBlock,
    SpaceAttributes,
)
from stfexport.generation.stf_writer import StfWriter, write_stf


def _room(number=1, luminaires=None, furnishings=None):
    return RoomBlock(
        number=number,
        space_id=f"space-{number}",
        attributes=SpaceAttributes(
            name=f"Room {number}",
            height=3.0,
            work_plane=0.8,
            ceiling_reflectance=0.7,
            floor_reflectance=0.2,
            wall_reflectance=0.5,
        ),
        polygon=[Point2D(x=0.0, y=0.0), Point2D(x=4.5, y=0.0), Point2D(x=4.5, y=3.0)],
        luminaires=luminaires or [],
        furnishings=furnishings or [],
    )


def _document(rooms, luminaire_types=None):
    return ExportDocument(
        format_version="1.0.5",
        program_name="Revit",
        program_version="2017",
        project_name="Office Block",
        export_date=date(2024, 3, 7),
        operator="jdoe",
        rooms=rooms,
        luminaire_types=luminaire_types or [],
    )


@pytest.fixture
def full_document():
    luminaire = LuminairePlacement(
        number=1,
        catalog_key="Downlight2x18W",
        position=Point3D(x=1.5, y=2.25, z=2.7),
    )
    door = Furnishing(
        kind=FurnishingKind.DOOR,
        number=1,
        room_reference="ROOM.R1",
        position=Point3D(x=1.0, y=0.0, z=0.0),
        width=0.9,
        height=2.1,
    )
    window = Furnishing(
        kind=FurnishingKind.WINDOW,
        number=2,
        room_reference="ROOM.R1",
        position=Point3D(x=0.0, y=1.0, z=0.9),
        width=1.2,
        height=1.5,
    )
    luminaire_type = LuminaireType(
        catalog_key="Downlight2x18W",
        type_name="Downlight 2x18W",
        load=36.0,
        flux=2400.0,
        lamp_count=2,
    )
    return _document(
        [_room(1, [luminaire], [door, window]), _room(2)],
        [luminaire_type],
    )


class TestRender:
    """Tests for StfWriter.render."""

    def test_full_document(self, full_document):
        """Should render header, rooms and catalog in fixed key order."""
        text = StfWriter().render(full_document)

        assert text == "\n".join([
            "[VERSION]",
            "STFF=1.0.5",
            "Progname=Revit",
            "Progvers=2017",
            "[Project]",
            "Name=Office Block",
            "Date=2024-3-7",
            "Operator=jdoe",
            "NrRooms=2",
            "Room1=ROOM.R1",
            "Room2=ROOM.R2",
            "[ROOM.R1]",
            "Name=Room 1",
            "Height=3",
            "WorkingPlane=0.8",
            "NrPoints=3",
            "Point1=0 0",
            "Point2=4.5 0",
            "Point3=4.5 3",
            "R_Ceiling=0.7",
            "Lum1=Downlight2x18W",
            "Lum1.Pos=1.5 2.25 2.7",
            "Lum1.Rot=0 0 0",
            "NrLums=1",
            "NrStruct=0",
            "NrFurns=2",
            "Furn1=door",
            "Furn1.Ref=ROOM.R1.F1",
            "Furn1.Rot=90.00 0.00 0.00",
            "Furn1.Pos=1 0 0",
            "Furn1.Size=0.9 2.1 0.00",
            "Furn2=win",
            "Furn2.Ref=ROOM.R1.F2",
            "Furn2.Rot=90.00 0.00 0.00",
            "Furn2.Pos=0 1 0.9",
            "Furn2.Size=1.2 1.5 0.00",
            "[ROOM.R2]",
            "Name=Room 2",
            "Height=3",
            "WorkingPlane=0.8",
            "NrPoints=3",
            "Point1=0 0",
            "Point2=4.5 0",
            "Point3=4.5 3",
            "R_Ceiling=0.7",
            "NrLums=0",
            "NrStruct=0",
            "NrFurns=0",
            "[Downlight2x18W]",
            "Manufacturer=",
            "Name=",
            "OrderNr=",
            "Box=1 1 0",
            "Shape=0",
            "Load=36",
            "Flux=2400",
            "NrLamps=2",
            "MountingType=1",
        ]) + "\n"

    def test_room_without_luminaires_has_no_lum_keys(self):
        """Should write NrLums=0 and no Lum entries."""
        text = StfWriter().render(_document([_room()]))

        assert "NrLums=0" in text
        assert "Lum1" not in text

    def test_date_is_not_zero_padded(self):
        """Should write month and day without leading zeros."""
        text = StfWriter().render(_document([_room()]))
        assert "Date=2024-3-7\n" in text

    def test_line_breaks_in_text_cannot_open_sections(self):
        """Should fold line breaks in names onto one line."""
        room = _room()
        room.attributes.name = "Lab\n[ROOM.R9]"
        document = _document([room])
        document.project_name = "Office\r\nBlock"
        document.operator = "j\ndoe"

        lines = StfWriter().render(document).splitlines()

        assert "Name=Lab [ROOM.R9]" in lines
        assert "[ROOM.R9]" not in lines
        assert "Name=Office Block" in lines
        assert "Operator=j doe" in lines
        assert sum(1 for line in lines if line.startswith("[")) == 3

    def test_single_trailing_newline(self):
        """Should end with exactly one newline."""
        text = StfWriter().render(_document([_room()]))
        assert text.endswith("NrFurns=0\n")
        assert not text.endswith("\n\n")


class TestWrite:
    """Tests for writing STF files to disk."""

    def test_writes_lf_endings(self, tmp_path, full_document):
        """Should write UTF-8 with LF line endings only."""
        output = tmp_path / "office.stf"

        written = write_stf(full_document, str(output))

        assert written == output
        data = output.read_bytes()
        assert b"\r\n" not in data
        assert data.decode("utf-8") == StfWriter().render(full_document)

    def test_no_temporary_files_left(self, tmp_path, full_document):
        """Should leave only the destination file behind."""
        StfWriter().write(full_document, str(tmp_path / "office.stf"))
        assert [p.name for p in tmp_path.iterdir()] == ["office.stf"]

    def test_overwrites_existing_file(self, tmp_path, full_document):
        """Should replace an existing destination atomically."""
        output = tmp_path / "office.stf"
        output.write_text("old content", encoding="utf-8")

        StfWriter().write(full_document, str(output))

        assert output.read_text(encoding="utf-8").startswith("[VERSION]\n")

    def test_missing_directory_raises_write_error(self, tmp_path, full_document):
        """Should raise WriteError and create nothing when the directory is missing."""
        output = tmp_path / "missing" / "office.stf"

        with pytest.raises(WriteError) as excinfo:
            StfWriter().write(full_document, str(output))

        assert excinfo.value.kind == ErrorKind.WRITE_ERROR
        assert not output.exists()
        assert list(tmp_path.iterdir()) == []

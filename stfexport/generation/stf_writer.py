"""
STF file writer.

Serializes an ExportDocument into the section-keyed STF text format:
header, project block, one block per room and one block per luminaire type.
Key order within each block is fixed.
"""

import os
import tempfile
from pathlib import Path
from typing import List
from loguru import logger

from stfexport.core.errors import WriteError
from stfexport.core.models import ExportDocument, LuminaireType, RoomBlock
from stfexport.core.units import format_decimal, format_point


def _text(value) -> str:
    """Free text folded onto one line; a line break would start a new key or section."""
    return " ".join(str(value).splitlines())


class StfWriter:
    """Renders and writes STF documents (UTF-8, LF line endings)."""

    def render(self, document: ExportDocument) -> str:
        """
        Render a document to STF text.

        Args:
            document: Assembled export document

        Returns:
            Complete file body ending with a single newline
        """
        lines: List[str] = []
        lines.extend(self._header_lines(document))

        for room in document.rooms:
            lines.extend(self._room_lines(room))

        for luminaire_type in document.luminaire_types:
            lines.extend(self._luminaire_lines(luminaire_type))

        return "\n".join(lines) + "\n"

    def write(self, document: ExportDocument, output_path: str) -> Path:
        """
        Write a document to disk.

        The body is rendered completely, written to a temporary file next to
        the destination and moved into place, so a failure never leaves a
        partial STF file.

        Args:
            document: Assembled export document
            output_path: Destination .stf path

        Returns:
            Path of the written file

        Raises:
            WriteError: If the destination cannot be written
        """
        text = self.render(document)
        output_file = Path(output_path)
        temp_path = None

        try:
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                newline="\n",
                dir=output_file.parent,
                prefix=f".{output_file.name}.",
                suffix=".tmp",
                delete=False,
            ) as handle:
                temp_path = Path(handle.name)
                handle.write(text)
            os.replace(temp_path, output_file)
        except OSError as e:
            if temp_path is not None:
                temp_path.unlink(missing_ok=True)
            raise WriteError(f"Could not write STF file {output_file}: {e}") from e

        size_kb = output_file.stat().st_size / 1024
        logger.success(f"Wrote STF file: {output_file.absolute()} ({size_kb:.1f} KB)")
        return output_file

    def _header_lines(self, document: ExportDocument) -> List[str]:
        export_date = document.export_date
        lines = [
            "[VERSION]",
            f"STFF={document.format_version}",
            f"Progname={_text(document.program_name)}",
            f"Progvers={_text(document.program_version)}",
            "[Project]",
            f"Name={_text(document.project_name)}",
            f"Date={export_date.year}-{export_date.month}-{export_date.day}",
            f"Operator={_text(document.operator)}",
            f"NrRooms={document.room_count}",
        ]
        lines.extend(f"{key}={reference}" for key, reference in document.room_table())
        return lines

    def _room_lines(self, room: RoomBlock) -> List[str]:
        attributes = room.attributes
        lines = [
            f"[{room.reference}]",
            f"Name={_text(attributes.name)}",
            f"Height={format_decimal(attributes.height)}",
            f"WorkingPlane={format_decimal(attributes.work_plane)}",
            f"NrPoints={len(room.polygon)}",
        ]
        lines.extend(
            f"Point{i}={format_point(point.x, point.y)}"
            for i, point in enumerate(room.polygon, start=1)
        )
        lines.append(f"R_Ceiling={format_decimal(attributes.ceiling_reflectance)}")

        for luminaire in room.luminaires:
            label = luminaire.label
            lines.append(f"{label}={luminaire.catalog_key}")
            lines.append(f"{label}.Pos={format_point(*luminaire.position.as_tuple())}")
            lines.append(f"{label}.Rot={format_point(*luminaire.rotation)}")

        lines.append(f"NrLums={len(room.luminaires)}")
        lines.append("NrStruct=0")
        lines.append(f"NrFurns={len(room.furnishings)}")

        for furnishing in room.furnishings:
            label = furnishing.label
            lines.append(f"{label}={furnishing.kind.value}")
            lines.append(f"{label}.Ref={furnishing.reference}")
            lines.append(f"{label}.Rot={furnishing.rotation}")
            # x y z; readers accept the elevation although the furnishing grammar lists x y
            lines.append(f"{label}.Pos={format_point(*furnishing.position.as_tuple())}")
            lines.append(
                f"{label}.Size={format_point(furnishing.width, furnishing.height)} 0.00"
            )

        return lines

    def _luminaire_lines(self, luminaire_type: LuminaireType) -> List[str]:
        return [
            f"[{luminaire_type.catalog_key}]",
            f"Manufacturer={_text(luminaire_type.manufacturer)}",
            f"Name={_text(luminaire_type.name)}",
            f"OrderNr={_text(luminaire_type.order_number)}",
            f"Box={_text(luminaire_type.box)}",
            f"Shape={luminaire_type.shape}",
            f"Load={format_decimal(luminaire_type.load)}",
            f"Flux={format_decimal(luminaire_type.flux)}",
            f"NrLamps={luminaire_type.lamp_count}",
            f"MountingType={luminaire_type.mounting_type}",
        ]


def write_stf(document: ExportDocument, output_path: str) -> Path:
    """
    Convenience function to write an STF file.

    Args:
        document: Assembled export document
        output_path: Destination .stf path

    Returns:
        Path of the written file
    """
    return StfWriter().write(document, output_path)

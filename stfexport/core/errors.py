"""
Exception types for the STF export pipeline.

Each exception carries an ErrorKind. Fatal kinds abort the whole export;
non-fatal kinds are recorded as issues and the offending entity is skipped.
"""

from typing import Optional

from stfexport.core.models import ErrorKind, ExportIssue


class StfExportError(Exception):
    """Base class for all export errors."""

    kind: ErrorKind = ErrorKind.WRITE_ERROR
    fatal: bool = True

    def __init__(self, message: str, element_id: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.element_id = element_id

    def to_issue(self) -> ExportIssue:
        return ExportIssue(kind=self.kind, message=self.message, element_id=self.element_id)


class NoSpacesFound(StfExportError):
    """No space entities are visible in the active view."""
    kind = ErrorKind.NO_SPACES_FOUND


class InvalidSpaceBoundary(StfExportError):
    """A space has no closed boundary loop."""
    kind = ErrorKind.INVALID_SPACE_BOUNDARY

    def __init__(self, room_name: str, element_id: Optional[str] = None):
        super().__init__(
            f"Space '{room_name}' is not in a properly enclosed region. "
            f"Remove it or re-establish it inside boundary walls and export again.",
            element_id=element_id,
        )
        self.room_name = room_name


class InvalidSpaceAttributes(StfExportError):
    """A space carries a value the STF format cannot represent."""
    kind = ErrorKind.INVALID_SPACE_ATTRIBUTES

    def __init__(self, room_name: str, detail: str, element_id: Optional[str] = None):
        super().__init__(
            f"Space '{room_name}' has an invalid {detail}. Correct it and export again.",
            element_id=element_id,
        )
        self.room_name = room_name


class MalformedFixture(StfExportError):
    """A placed fixture lacks the data needed to position it."""
    kind = ErrorKind.MALFORMED_FIXTURE
    fatal = False


class LuminaireOmitted(StfExportError):
    """A luminaire type has no flux value and is left out of the catalog."""
    kind = ErrorKind.LUMINAIRE_OMITTED
    fatal = False


class MalformedQuantity(StfExportError, ValueError):
    """A formatted quantity string could not be split into value and unit."""
    kind = ErrorKind.MALFORMED_QUANTITY
    fatal = False


class DuplicateCatalogKey(StfExportError):
    """Two luminaire types reduce to the same catalog key."""
    kind = ErrorKind.DUPLICATE_CATALOG_KEY

    def __init__(self, catalog_key: str, first_type: str, second_type: str):
        super().__init__(
            f"Luminaire types '{first_type}' and '{second_type}' both map to "
            f"catalog key '{catalog_key}'. Rename one of them and export again."
        )
        self.catalog_key = catalog_key


class WriteError(StfExportError):
    """The destination file could not be written."""
    kind = ErrorKind.WRITE_ERROR


class ModelLoadError(StfExportError):
    """The source model could not be opened or decoded."""
    kind = ErrorKind.MODEL_LOAD_ERROR

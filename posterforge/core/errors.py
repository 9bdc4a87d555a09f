"""
PosterForge Error Types

Lookup failures are programming errors and propagate. Asset and format
failures are reported back to the caller as explicit results.
"""


class PosterForgeError(Exception):
    """Base class for all PosterForge errors."""


class ElementNotFoundError(PosterForgeError, KeyError):
    """Raised when an element id is not present in the document."""

    def __init__(self, element_id):
        super().__init__(element_id)
        self.element_id = element_id

    def __str__(self) -> str:
        return f"Element not found: {self.element_id}"


class AssetError(PosterForgeError):
    """An image or font asset could not be accepted or decoded."""


class DocumentFormatError(PosterForgeError):
    """A saved document is structurally invalid."""


class UnsupportedVersionError(DocumentFormatError):
    """A saved document was written by a newer format version."""

    def __init__(self, version):
        super().__init__(f"Unsupported document version: {version}")
        self.version = version

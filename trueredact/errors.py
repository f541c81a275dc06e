"""
Error types raised by the redaction engine
"""

from typing import Optional


class RedactionError(Exception):
    """Base class for every failure the pipeline reports"""

    kind = "redaction"


class InvalidDocumentError(RedactionError):
    """Input is not a usable PDF (bad signature, unparsable, encrypted, empty)"""

    kind = "invalid_document"


class InvalidRegionError(RedactionError, ValueError):
    """A redaction region violates its own invariants"""

    kind = "invalid_region"


class AssemblyError(RedactionError):
    """A source page could not be copied or placed into the output"""

    kind = "assembly"


class RenderError(RedactionError):
    """Rendering or encoding a sanitized page failed"""

    kind = "render"

    def __init__(self, message: str, page_index: Optional[int] = None):
        super().__init__(message)
        self.page_index = page_index


class ResourceLimitError(RedactionError):
    """Render size or time budget exceeded; retry with a lower resolution"""

    kind = "resource_limit"


class OperationTimeoutError(ResourceLimitError):
    kind = "timeout"


class OperationCancelledError(RedactionError):
    kind = "cancelled"


class ConfigurationError(RedactionError):
    kind = "configuration"

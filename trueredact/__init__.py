"""
trueredact - Permanently remove content from regions of PDFs

Pages that carry a redaction are flattened to a single image with opaque
blocks painted over the regions, so no text or vector data survives under
them. Pages without redactions are copied unchanged.
"""

__version__ = "1.0.0"
__author__ = "trueredact"
__email__ = ""

from .audit import AuditTrailBuilder, describe_area
from .classify import PageClassification, PageStrategy, classify_pages
from .config import EngineConfig
from .errors import (
    AssemblyError,
    ConfigurationError,
    InvalidDocumentError,
    InvalidRegionError,
    OperationCancelledError,
    OperationTimeoutError,
    RedactionError,
    RenderError,
    ResourceLimitError,
)
from .geometry import DisplayRect, NativeRect, RenderRect, to_native_space, to_render_space
from .models import (
    AuditEntry,
    OperationResult,
    RedactionOptions,
    RedactionRegion,
    RedactionStrategy,
)
from .pipeline import RedactionPipeline, apply_redactions, preview_redactions
from .utils import (
    get_pdf_info,
    inspect_document,
    validate_pdf,
    verify_redaction,
    verify_sanitized_page,
)

__all__ = [
    "AuditTrailBuilder",
    "describe_area",
    "PageClassification",
    "PageStrategy",
    "classify_pages",
    "EngineConfig",
    "AssemblyError",
    "ConfigurationError",
    "InvalidDocumentError",
    "InvalidRegionError",
    "OperationCancelledError",
    "OperationTimeoutError",
    "RedactionError",
    "RenderError",
    "ResourceLimitError",
    "DisplayRect",
    "NativeRect",
    "RenderRect",
    "to_native_space",
    "to_render_space",
    "AuditEntry",
    "OperationResult",
    "RedactionOptions",
    "RedactionRegion",
    "RedactionStrategy",
    "RedactionPipeline",
    "apply_redactions",
    "preview_redactions",
    "get_pdf_info",
    "inspect_document",
    "validate_pdf",
    "verify_redaction",
    "verify_sanitized_page",
]

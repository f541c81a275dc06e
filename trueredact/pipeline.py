"""
Redaction Pipeline - Orchestrates preview and apply

``preview`` always draws vector overlays and ``apply`` always rasterizes.
The strategy follows from which method is called; there is no flag that
switches between them.
"""

import logging
import multiprocessing
import threading
import time
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

import fitz  # PyMuPDF

from .assemble import assemble_document, serialize
from .audit import AuditTrailBuilder
from .classify import PageClassification, PagePlan, classify_pages
from .config import EngineConfig
from .errors import (
    OperationCancelledError,
    OperationTimeoutError,
    RedactionError,
    RenderError,
)
from .models import OperationResult, RedactionOptions, RedactionRegion, RedactionStrategy
from .overlay import overlay_regions
from .raster import RasterPage, check_render_budget, rasterize_from_bytes, rasterize_page
from .sanitize import scrub_metadata
from .utils import get_pdf_info, load_document, verify_redaction

logger = logging.getLogger(__name__)

# How often a pool wait wakes up to check the deadline and cancel flag
POOL_POLL_SECONDS = 0.1

# fitz metadata keys that can be written back with set_metadata()
_METADATA_KEYS = ("title", "author", "subject", "keywords", "creator", "producer",
                  "creationDate", "modDate")


def _skip_warning(region: RedactionRegion, page_count: int) -> str:
    return f"Skipped region on page {region.page + 1}: document has {page_count} pages"


class _Deadline:
    """Whole-operation time budget plus the caller's cancel flag"""

    def __init__(self, timeout_seconds: Optional[float], cancel_event: Optional[threading.Event]):
        self.started = time.monotonic()
        self.expires = None if timeout_seconds is None else self.started + timeout_seconds
        self.timeout_seconds = timeout_seconds
        self.cancel_event = cancel_event

    def check(self, step: str) -> None:
        if self.cancel_event is not None and self.cancel_event.is_set():
            raise OperationCancelledError(f"Operation cancelled during {step}")
        if self.expires is not None and time.monotonic() > self.expires:
            raise OperationTimeoutError(
                f"Operation exceeded {self.timeout_seconds:g}s during {step}"
            )

    @property
    def elapsed(self) -> float:
        return time.monotonic() - self.started


class RedactionPipeline:
    """
    Stateless redaction service

    Holds only its configuration, so one instance can serve any number of
    concurrent calls; every call owns its own buffers.
    """

    def __init__(self, config: Optional[EngineConfig] = None):
        self.config = config or EngineConfig()

    def info(self, data: bytes) -> Dict[str, Any]:
        """Page count, native page sizes and the structural report"""
        return get_pdf_info(data)

    def preview(self, data: bytes, regions: Iterable[RedactionRegion]) -> OperationResult:
        """
        Non-destructive preview with translucent rectangles

        The source content stays in the output. Never hand the result out
        as a redacted document.
        """
        regions = list(regions)
        try:
            # Reject bad input before looking at any region
            load_document(data).close()
            pdf_bytes, classification = overlay_regions(data, regions)
        except RedactionError as e:
            logger.error("Redaction preview failed: %s", e)
            return OperationResult(
                success=False,
                strategy_used=RedactionStrategy.VECTOR_OVERLAY,
                error=str(e),
                error_kind=e.kind,
            )
        except Exception as e:
            logger.exception("Redaction preview failed")
            return OperationResult(
                success=False,
                strategy_used=RedactionStrategy.VECTOR_OVERLAY,
                error=str(e) or type(e).__name__,
                error_kind="internal",
            )

        return OperationResult(
            success=True,
            strategy_used=RedactionStrategy.VECTOR_OVERLAY,
            output_bytes=pdf_bytes,
            redaction_count=classification.applied_count,
            warnings=[_skip_warning(r, classification.page_count) for r in classification.skipped],
            skipped_regions=list(classification.skipped),
        )

    def apply(self,
              data: bytes,
              regions: Iterable[RedactionRegion],
              options: Optional[RedactionOptions] = None,
              cancel_event: Optional[threading.Event] = None) -> OperationResult:
        """
        Permanently redact regions by rasterizing the pages they fall on

        Args:
            data: Source PDF bytes (not modified)
            regions: Regions in display space
            options: Rendering, labelling, audit and metadata options
            cancel_event: Set by the caller to abort; checked between steps

        Returns:
            OperationResult. On failure output_bytes is None and the audit
            trail only holds entries recorded before the failing step.
        """
        options = options or RedactionOptions()
        regions = list(regions)
        deadline = _Deadline(self.config.timeout_seconds, cancel_event)
        audit = AuditTrailBuilder(options.operator_id)
        warnings: List[str] = []
        skipped: List[RedactionRegion] = []

        logger.info(
            "Starting rasterized redaction: %d areas, document=%s, dpi=%d",
            len(regions), options.document_id, options.resolution_dpi,
        )

        source = None
        output = None
        try:
            source = load_document(data)
            classification = classify_pages(source.page_count, regions)
            skipped = list(classification.skipped)
            warnings = [_skip_warning(r, source.page_count) for r in skipped]

            # Every page is checked before the first one is rendered
            for index in classification.sanitize_indices:
                check_render_budget(source[index], index, options.resolution_dpi,
                                    self.config.max_render_pixels)

            rasters = self._rasterize(data, source, classification, options, deadline)
            deadline.check("assembly")

            def record_page(plan: PagePlan) -> None:
                for region in plan.regions:
                    audit.record(region)

            output = assemble_document(source, classification, rasters, on_page_sanitized=record_page)
            rasters = None

            if options.preserve_metadata:
                metadata = source.metadata or {}
                output.set_metadata({k: metadata[k] for k in _METADATA_KEYS if metadata.get(k)})

            pdf_bytes = serialize(output)
            deadline.check("metadata scrubbing")

            pdf_bytes = scrub_metadata(
                pdf_bytes,
                preserve_metadata=options.preserve_metadata,
                when=datetime.now(timezone.utc),
                producer=self.config.producer,
                creator=self.config.creator,
            )

            problems = verify_redaction(pdf_bytes, classification.sanitize_indices)
            if problems:
                raise RenderError("Sanitized output failed verification: " + "; ".join(problems))
            deadline.check("finalization")

        except RedactionError as e:
            logger.error("Rasterized redaction failed (%s): %s, document=%s",
                         e.kind, e, options.document_id)
            return self._failure(str(e), e.kind, audit, warnings, skipped)
        except Exception as e:
            logger.exception("Rasterized redaction failed, document=%s", options.document_id)
            return self._failure(str(e) or type(e).__name__, "internal", audit, warnings, skipped)
        finally:
            if output is not None:
                output.close()
            if source is not None:
                source.close()

        logger.info(
            "Rasterized redaction completed: %d redactions, %d pages flattened, %.2fs, document=%s",
            audit.count, len(classification.sanitize_indices), deadline.elapsed, options.document_id,
        )

        return OperationResult(
            success=True,
            strategy_used=RedactionStrategy.RASTERIZED,
            output_bytes=pdf_bytes,
            redaction_count=audit.count,
            audit_entries=audit.entries,
            warnings=warnings,
            skipped_regions=skipped,
        )

    def _rasterize(self,
                   data: bytes,
                   source: fitz.Document,
                   classification: PageClassification,
                   options: RedactionOptions,
                   deadline: _Deadline) -> Dict[int, RasterPage]:
        indices = classification.sanitize_indices
        workers = min(self.config.max_workers, len(indices))

        if workers <= 1:
            rasters = {}
            for index in indices:
                deadline.check(f"rendering page {index + 1}")
                plan = classification.plan_for(index)
                rasters[index] = rasterize_page(
                    source[index], plan.regions, options, self.config.max_render_pixels, index=index,
                )
            return rasters

        return self._rasterize_in_pool(bytes(data), classification, options, deadline, workers)

    def _rasterize_in_pool(self,
                           data: bytes,
                           classification: PageClassification,
                           options: RedactionOptions,
                           deadline: _Deadline,
                           workers: int) -> Dict[int, RasterPage]:
        """
        Rasterize sanitize pages in a worker pool

        When a page fails or the operation is aborted the pool is terminated,
        which also stops pages that are still rendering.
        """
        rasters = {}
        pool = multiprocessing.Pool(processes=workers)
        try:
            pending = {
                index: pool.apply_async(
                    rasterize_from_bytes,
                    (data, index, classification.plan_for(index).regions,
                     options, self.config.max_render_pixels),
                )
                for index in classification.sanitize_indices
            }

            # Collected in page order; pages may finish in any order
            for index, result in pending.items():
                step = f"rendering page {index + 1}"
                while not result.ready():
                    deadline.check(step)
                    result.wait(POOL_POLL_SECONDS)
                try:
                    rasters[index] = result.get()
                except RedactionError:
                    raise
                except Exception as e:
                    raise RenderError(f"Failed to rasterize page {index + 1}: {e}", page_index=index) from e

            pool.close()
        except BaseException:
            pool.terminate()
            raise
        finally:
            pool.join()

        return rasters

    @staticmethod
    def _failure(message: str,
                 kind: str,
                 audit: AuditTrailBuilder,
                 warnings: List[str],
                 skipped: List[RedactionRegion]) -> OperationResult:
        return OperationResult(
            success=False,
            strategy_used=RedactionStrategy.RASTERIZED,
            output_bytes=None,
            redaction_count=0,
            audit_entries=audit.entries,
            error=message,
            error_kind=kind,
            warnings=warnings,
            skipped_regions=skipped,
        )


def apply_redactions(data: bytes,
                     regions: Iterable[RedactionRegion],
                     options: Optional[RedactionOptions] = None,
                     config: Optional[EngineConfig] = None) -> OperationResult:
    """Rasterize and redact using a pipeline built for this call"""
    return RedactionPipeline(config).apply(data, regions, options)


def preview_redactions(data: bytes,
                       regions: Iterable[RedactionRegion],
                       config: Optional[EngineConfig] = None) -> OperationResult:
    """Overlay preview using a pipeline built for this call"""
    return RedactionPipeline(config).preview(data, regions)

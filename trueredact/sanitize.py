"""
Metadata Scrubber - Remove identifying document metadata
"""

import io
import logging
from datetime import datetime, timezone
from typing import Optional

import pikepdf

from .config import TOOL_CREATOR, TOOL_PRODUCER

logger = logging.getLogger(__name__)


def pdf_date(when: datetime) -> str:
    """Format a datetime as a PDF date string in UTC"""
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    return when.astimezone(timezone.utc).strftime("D:%Y%m%d%H%M%S+00'00'")


def _remove_metadata(pdf: pikepdf.Pdf) -> int:
    """
    Remove all metadata from PDF

    Returns:
        Number of metadata items removed
    """
    removed_count = 0

    # Clear document info dictionary
    if "/Info" in pdf.trailer:
        docinfo = pdf.docinfo
        for key in list(docinfo.keys()):
            del docinfo[key]
            removed_count += 1

    # Remove XMP metadata
    if "/Metadata" in pdf.Root:
        del pdf.Root["/Metadata"]
        removed_count += 1
        logger.debug("Removed XMP metadata stream")

    return removed_count


def scrub_metadata(data: bytes,
                   preserve_metadata: bool = False,
                   when: Optional[datetime] = None,
                   producer: str = TOOL_PRODUCER,
                   creator: str = TOOL_CREATOR) -> bytes:
    """
    Clear identifying metadata and stamp the tool's own fields

    Args:
        data: Assembled PDF bytes
        preserve_metadata: Keep existing metadata; only the modification
            date is updated
        when: Operation time, defaults to now
        producer: Replacement /Producer value
        creator: Replacement /Creator value

    Returns:
        Rewritten PDF bytes
    """
    when = when or datetime.now(timezone.utc)
    stamp = pdf_date(when)

    with pikepdf.open(io.BytesIO(bytes(data))) as pdf:
        if not preserve_metadata:
            removed = _remove_metadata(pdf)
            logger.debug("Removed %d metadata items", removed)

            docinfo = pdf.docinfo
            docinfo["/Producer"] = producer
            docinfo["/Creator"] = creator
            docinfo["/CreationDate"] = stamp

        pdf.docinfo["/ModDate"] = stamp

        buffer = io.BytesIO()
        pdf.save(
            buffer,
            linearize=False,
            compress_streams=True,
            # Classic xref table and trailer
            object_stream_mode=pikepdf.ObjectStreamMode.disable,
            deterministic_id=False,
        )

    return buffer.getvalue()

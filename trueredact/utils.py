"""
Utility functions for PDF validation, inspection and verification
"""

import io
from typing import Any, Dict, Iterable, List, Tuple

import fitz  # PyMuPDF
import pikepdf

from .errors import InvalidDocumentError

PDF_SIGNATURE = b"%PDF-"

TEXT_SHOW_OPERATORS = {"Tj", "TJ", "'", '"'}
PATH_PAINT_OPERATORS = {"re", "m", "l", "c", "v", "y", "S", "s", "f", "F", "f*", "B", "B*", "b", "b*", "sh"}


def has_pdf_signature(data: bytes) -> bool:
    """Check the leading %PDF- magic bytes"""
    return bytes(data[:len(PDF_SIGNATURE)]) == PDF_SIGNATURE


def load_document(data: bytes) -> fitz.Document:
    """
    Open PDF bytes with PyMuPDF, rejecting anything unusable

    Args:
        data: Raw document bytes

    Returns:
        Open fitz.Document; the caller is responsible for closing it

    Raises:
        InvalidDocumentError: empty input, missing signature, unparsable
            structure, password protection, or no pages
    """
    if not data:
        raise InvalidDocumentError("Document is empty")

    if not has_pdf_signature(data):
        raise InvalidDocumentError("File does not appear to be a valid PDF (missing %PDF signature)")

    try:
        doc = fitz.open(stream=bytes(data), filetype="pdf")
    except Exception as e:
        raise InvalidDocumentError(f"Unable to parse PDF: {e}") from e

    if doc.needs_pass:
        doc.close()
        raise InvalidDocumentError("Document is password protected")

    if doc.page_count == 0:
        doc.close()
        raise InvalidDocumentError("Document has no pages")

    return doc


def validate_pdf(data: bytes) -> bool:
    """
    Validate that bytes hold a readable PDF

    Returns:
        True if valid PDF, False otherwise
    """
    try:
        doc = load_document(data)
    except InvalidDocumentError:
        return False
    doc.close()
    return True


def _has_javascript(pdf: pikepdf.Pdf) -> bool:
    root = pdf.Root

    if "/Names" in root and "/JavaScript" in root["/Names"]:
        return True

    if "/OpenAction" in root:
        action = root["/OpenAction"]
        if isinstance(action, pikepdf.Dictionary) and action.get("/S") == "/JavaScript":
            return True

    if "/AA" in root:
        return True

    for page in pdf.pages:
        if "/AA" in page.obj:
            return True

    return False


def _count_embedded_files(pdf: pikepdf.Pdf) -> int:
    count = 0
    root = pdf.Root

    if "/Names" in root and "/EmbeddedFiles" in root["/Names"]:
        embedded = root["/Names"]["/EmbeddedFiles"]
        if "/Names" in embedded:
            # Name trees alternate key, value
            count += len(embedded["/Names"]) // 2
        else:
            count += 1

    for page in pdf.pages:
        if "/Annots" not in page.obj:
            continue
        for annot in page.obj["/Annots"]:
            if isinstance(annot, pikepdf.Dictionary) and annot.get("/Subtype") == "/FileAttachment":
                count += 1

    return count


def inspect_document(data: bytes) -> Dict[str, Any]:
    """
    Structural check for encryption, scripts and embedded files

    Returns:
        Dictionary with version, isEncrypted, hasJavaScript,
        hasEmbeddedFiles and human-readable warnings
    """
    report = {
        "version": None,
        "isEncrypted": False,
        "hasJavaScript": False,
        "hasEmbeddedFiles": False,
        "warnings": [],
    }

    try:
        with pikepdf.open(io.BytesIO(bytes(data))) as pdf:
            report["version"] = str(pdf.pdf_version)
            report["isEncrypted"] = bool(pdf.is_encrypted)
            report["hasJavaScript"] = _has_javascript(pdf)
            embedded = _count_embedded_files(pdf)
            report["hasEmbeddedFiles"] = embedded > 0

            if report["isEncrypted"]:
                report["warnings"].append("Document is encrypted")
            if report["hasJavaScript"]:
                report["warnings"].append("Document contains JavaScript which could be a security risk")
            if embedded:
                report["warnings"].append(f"Document contains {embedded} embedded files")

    except pikepdf.PasswordError:
        report["isEncrypted"] = True
        report["warnings"].append("Document is password protected")
    except pikepdf.PdfError as e:
        report["warnings"].append(f"Error analyzing PDF structure: {e}")

    return report


def get_pdf_info(data: bytes) -> Dict[str, Any]:
    """
    Page count and per-page native sizes, plus the structural report

    Raises:
        InvalidDocumentError: if the bytes are not a usable PDF
    """
    doc = load_document(data)
    try:
        pages = [{"width": page.rect.width, "height": page.rect.height} for page in doc]
        metadata = doc.metadata or {}
        info = {
            "pageCount": doc.page_count,
            "pages": pages,
            "title": metadata.get("title") or None,
            "author": metadata.get("author") or None,
        }
    finally:
        doc.close()

    info.update(inspect_document(data))
    return info


def count_page_operators(page: pikepdf.Page) -> Tuple[int, int]:
    """
    Count text-show and path operators in a page's content stream

    Returns:
        (text_show_operators, path_operators)
    """
    text_ops = 0
    path_ops = 0
    for instruction in pikepdf.parse_content_stream(page):
        operator = str(instruction.operator)
        if operator in TEXT_SHOW_OPERATORS:
            text_ops += 1
        elif operator in PATH_PAINT_OPERATORS:
            path_ops += 1
    return text_ops, path_ops


def page_xobjects(page: pikepdf.Page) -> Tuple[int, int]:
    """
    Count image and form XObjects referenced from a page's resources

    Returns:
        (images, forms)
    """
    images = 0
    forms = 0
    resources = page.obj.get("/Resources")
    if resources is None or "/XObject" not in resources:
        return images, forms

    for _name, xobject in resources["/XObject"].items():
        subtype = xobject.get("/Subtype")
        if subtype == "/Image":
            images += 1
        elif subtype == "/Form":
            forms += 1
    return images, forms


def verify_sanitized_page(page: pikepdf.Page) -> Tuple[int, int]:
    """
    Returns:
        (text_show_operators, image_xobjects) for one page
    """
    text_ops, _path_ops = count_page_operators(page)
    images, _forms = page_xobjects(page)
    return text_ops, images


def verify_redaction(data: bytes, sanitized_indices: Iterable[int]) -> List[str]:
    """
    Verify that sanitized pages hold nothing but a single raster image

    Args:
        data: Output PDF bytes
        sanitized_indices: 0-based indices of pages that were rasterized

    Returns:
        List of problems found; empty when every page passes
    """
    problems = []

    with pikepdf.open(io.BytesIO(bytes(data))) as pdf:
        for index in sanitized_indices:
            if index >= len(pdf.pages):
                problems.append(f"page {index + 1}: missing from output")
                continue

            page = pdf.pages[index]
            text_ops, path_ops = count_page_operators(page)
            images, forms = page_xobjects(page)

            if text_ops:
                problems.append(f"page {index + 1}: {text_ops} text-show operators remain")
            if path_ops:
                problems.append(f"page {index + 1}: {path_ops} vector path operators remain")
            if forms:
                problems.append(f"page {index + 1}: {forms} form XObjects remain")
            if images != 1:
                problems.append(f"page {index + 1}: expected exactly 1 image, found {images}")

    return problems


def format_file_size(size_bytes: int) -> str:
    """
    Format file size in human-readable format
    """
    for unit in ['B', 'KB', 'MB', 'GB']:
        if size_bytes < 1024.0:
            return f"{size_bytes:.1f} {unit}"
        size_bytes /= 1024.0
    return f"{size_bytes:.1f} TB"

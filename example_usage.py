#!/usr/bin/env python3
"""
Example usage of the trueredact library

Builds a small sample document, previews and applies region redactions,
and prints the audit trail.
"""

import json
import os
import tempfile

import fitz  # PyMuPDF

from trueredact import (
    RedactionOptions,
    RedactionRegion,
    apply_redactions,
    get_pdf_info,
    preview_redactions,
    verify_redaction,
)


def create_sample_pdf() -> bytes:
    """Two pages of sensitive content; the SSN line on page 2 sits at y=710"""
    doc = fitz.open()

    page1 = doc.new_page()
    y_pos = 72
    for line in ["CONFIDENTIAL DOCUMENT", "", "Employee Information:", "Name: John Q. Public"]:
        page1.insert_text((72, y_pos), line, fontsize=12)
        y_pos += 20

    page2 = doc.new_page()
    page2.insert_text((72, 72), "Additional Information", fontsize=12)
    page2.insert_text((55, 715), "SSN: 123-45-6789", fontsize=12)

    doc.set_metadata({"title": "Personnel file", "author": "HR"})
    data = doc.tobytes()
    doc.close()
    return data


def example_pdf_info(data: bytes):
    print("\n=== PDF Info Example ===")
    info = get_pdf_info(data)
    print(f"  Pages: {info['pageCount']}")
    for number, size in enumerate(info["pages"], start=1):
        print(f"  Page {number}: {size['width']:g} x {size['height']:g} pt")
    for warning in info["warnings"]:
        print(f"  Warning: {warning}")


def example_preview(data: bytes, regions, temp_dir: str):
    print("\n=== Preview Example ===")
    result = preview_redactions(data, regions)
    output = os.path.join(temp_dir, "preview.pdf")
    with open(output, "wb") as f:
        f.write(result.output_bytes)
    print(f"✓ Preview written to {output} ({result.redaction_count} boxes, content NOT removed)")


def example_apply(data: bytes, regions, temp_dir: str):
    print("\n=== Rasterized Redaction Example ===")
    options = RedactionOptions(add_label=True, operator_id="reviewer-1", document_id="personnel-42")
    result = apply_redactions(data, regions, options)

    if not result.success:
        print(f"Redaction failed ({result.error_kind}): {result.error}")
        return

    output = os.path.join(temp_dir, "redacted.pdf")
    with open(output, "wb") as f:
        f.write(result.output_bytes)
    print(f"✓ Redaction complete: {output}")

    for warning in result.warnings:
        print(f"⚠️  {warning}")

    print("Audit trail:")
    print(json.dumps([entry.to_dict() for entry in result.audit_entries], indent=2))

    problems = verify_redaction(result.output_bytes, [r.page for r in regions if r.page < 2])
    if problems:
        for problem in problems:
            print(f"   - {problem}")
    else:
        print("✓ Verification passed: redacted pages hold only a raster image")


def main():
    """Run all examples"""
    print("trueredact - Example Usage")
    print("=" * 40)

    data = create_sample_pdf()
    regions = [
        RedactionRegion(page=1, x=50, y=700, width=200, height=20, reason="SSN"),
        RedactionRegion(page=0, x=70, y=115, width=220, height=20, reason="Employee name"),
        # Skipped: the sample has two pages
        RedactionRegion(page=5, x=0, y=0, width=10, height=10),
    ]

    with tempfile.TemporaryDirectory() as temp_dir:
        example_pdf_info(data)
        example_preview(data, regions, temp_dir)
        example_apply(data, regions, temp_dir)

    print("\n" + "=" * 40)
    print("For command-line usage, try:")
    print("trueredact --help")


if __name__ == "__main__":
    main()

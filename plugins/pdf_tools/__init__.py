"""PDF tools plugin."""

manifest = {
    "title": "PDF Tools",
    "summary": "Merge, split, rotate, crop and protect PDF documents.",
    "blueprint": "pdf_tools",
    "category": "Document Utilities",
    "tools": [
        {"id": "pdf-merge", "name": "Merge PDF", "endpoint": "/api/pdf_tools/merge"},
        {"id": "pdf-split", "name": "Split PDF", "endpoint": "/api/pdf_tools/split"},
        {"id": "pdf-compress", "name": "Compress PDF", "endpoint": "/api/pdf_tools/compress"},
        {"id": "pdf-rotate", "name": "Rotate PDF", "endpoint": "/api/pdf_tools/rotate"},
        {"id": "pdf-remove-pages", "name": "Remove PDF Pages", "endpoint": "/api/pdf_tools/remove_pages"},
        {"id": "pdf-organize", "name": "Organize PDF", "endpoint": "/api/pdf_tools/organize"},
        {"id": "pdf-crop", "name": "Crop PDF", "endpoint": "/api/pdf_tools/crop"},
        {"id": "pdf-protect", "name": "Protect PDF", "endpoint": "/api/pdf_tools/protect"},
        {"id": "pdf-unlock", "name": "Unlock PDF", "endpoint": "/api/pdf_tools/unlock"},
        {"id": "pdf-metadata", "name": "PDF Metadata", "endpoint": "/api/pdf_tools/metadata"},
        {"id": "pdf-pages", "name": "Preview Page Range", "endpoint": "/api/pdf_tools/pages"},
    ],
}


__all__ = ["manifest"]

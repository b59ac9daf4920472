"""Image tools plugin."""

manifest = {
    "title": "Image Tools",
    "summary": "Resize, compress, convert, crop and rotate images, one at a time or in batches.",
    "blueprint": "image_tools",
    "category": "Image Utilities",
    "tools": [
        {"id": "image-resize", "name": "Resize Image", "endpoint": "/api/image_tools/resize"},
        {"id": "image-compress", "name": "Compress Image", "endpoint": "/api/image_tools/compress"},
        {"id": "image-convert", "name": "Convert Image", "endpoint": "/api/image_tools/convert"},
        {"id": "image-crop", "name": "Crop Image", "endpoint": "/api/image_tools/crop"},
        {"id": "image-rotate", "name": "Rotate Image", "endpoint": "/api/image_tools/rotate"},
        {"id": "image-batch", "name": "Batch Compress / Convert", "endpoint": "/api/image_tools/batch"},
    ],
}


__all__ = ["manifest"]

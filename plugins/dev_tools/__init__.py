"""Developer tools plugin."""

manifest = {
    "title": "Developer Tools",
    "summary": "Format JSON, encode Base64, test regular expressions, minify code and hash text.",
    "blueprint": "dev_tools",
    "category": "Developer Utilities",
    "tools": [
        {"id": "json-format", "name": "JSON Formatter", "endpoint": "/api/dev_tools/json_format"},
        {"id": "base64", "name": "Base64 Encoder / Decoder", "endpoint": "/api/dev_tools/base64"},
        {"id": "regex-test", "name": "Regex Tester", "endpoint": "/api/dev_tools/regex_test"},
        {"id": "code-minify", "name": "Code Minifier", "endpoint": "/api/dev_tools/minify"},
        {"id": "hash", "name": "Hash Generator", "endpoint": "/api/dev_tools/hash"},
    ],
}


__all__ = ["manifest"]

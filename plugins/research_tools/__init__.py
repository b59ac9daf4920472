"""Research tools plugin."""

manifest = {
    "title": "Research Tools",
    "summary": "Convert and plot CSV data, parse BibTeX and compute descriptive statistics.",
    "blueprint": "research_tools",
    "category": "Research Utilities",
    "tools": [
        {"id": "csv-to-json", "name": "CSV to JSON", "endpoint": "/api/research_tools/csv_to_json"},
        {"id": "csv-plot", "name": "CSV Plotter", "endpoint": "/api/research_tools/csv_plot"},
        {"id": "bibtex-parse", "name": "BibTeX Parser", "endpoint": "/api/research_tools/bibtex_parse"},
        {"id": "stats", "name": "Statistics Calculator", "endpoint": "/api/research_tools/stats"},
    ],
}


__all__ = ["manifest"]

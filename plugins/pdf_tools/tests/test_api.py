import base64
import json
import zipfile
from io import BytesIO

from PyPDF2 import PdfReader, PdfWriter

from app import create_app


def _make_client():
    app = create_app("TestingConfig")
    return app.test_client()


def _dummy_pdf(pages: int = 1) -> bytes:
    writer = PdfWriter()
    for _ in range(pages):
        writer.add_blank_page(width=200, height=200)
    buf = BytesIO()
    writer.write(buf)
    return buf.getvalue()


def _page_count(data: bytes) -> int:
    return len(PdfReader(BytesIO(data)).pages)


def _post(client, path: str, data: dict):
    return client.post(path, data=data, content_type="multipart/form-data")


def test_merge_endpoint_returns_pdf():
    client = _make_client()
    manifest = [
        {"field": "file-0", "filename": "a.pdf", "pages": "1"},
        {"field": "file-1", "filename": "b.pdf", "pages": ""},
    ]
    data = {
        "manifest": json.dumps(manifest),
        "output_name": "merged.pdf",
        "file-0": (BytesIO(_dummy_pdf(2)), "a.pdf"),
        "file-1": (BytesIO(_dummy_pdf(1)), "b.pdf"),
    }
    response = _post(client, "/api/pdf_tools/merge", data)
    assert response.status_code == 200
    payload = response.get_json()
    assert payload["success"] is True
    data_payload = payload["data"]
    assert data_payload["filename"] == "merged.pdf"
    merged_bytes = base64.b64decode(data_payload["pdf_base64"])
    assert _page_count(merged_bytes) == 2


def test_merge_accepts_plain_file_list():
    client = _make_client()
    data = {
        "files": [
            (BytesIO(_dummy_pdf(1)), "a.pdf"),
            (BytesIO(_dummy_pdf(2)), "b.pdf"),
        ]
    }
    response = _post(client, "/api/pdf_tools/merge?download=1", data)
    assert response.status_code == 200
    assert response.headers["Content-Type"] == "application/pdf"
    assert _page_count(response.data) == 3


def test_merge_plain_file_list_needs_two_files():
    client = _make_client()
    data = {"files": [(BytesIO(_dummy_pdf(1)), "a.pdf")]}
    response = _post(client, "/api/pdf_tools/merge", data)
    assert response.status_code == 400
    assert response.get_json()["error"]["code"] == "pdf.invalid_upload"


def test_merge_rejects_missing_manifest():
    client = _make_client()
    data = {"file-0": (BytesIO(_dummy_pdf()), "a.pdf")}
    response = _post(client, "/api/pdf_tools/merge", data)
    assert response.status_code == 400
    payload = response.get_json()
    assert payload["success"] is False
    assert payload["error"]["code"] == "pdf.missing_manifest"


def test_merge_respects_file_limit():
    client = _make_client()
    manifest = []
    data: dict[str, object] = {"output_name": "merged.pdf"}
    for index in range(21):
        field = f"file-{index}"
        manifest.append({"field": field, "filename": f"doc-{index}.pdf"})
        data[field] = (BytesIO(_dummy_pdf()), f"doc-{index}.pdf")
    data["manifest"] = json.dumps(manifest)

    response = _post(client, "/api/pdf_tools/merge", data)
    assert response.status_code == 400
    assert response.get_json()["success"] is False


def test_split_endpoint_returns_pages():
    client = _make_client()
    data = {"file": (BytesIO(_dummy_pdf(2)), "sample.pdf")}
    response = _post(client, "/api/pdf_tools/split", data)
    assert response.status_code == 200
    payload = response.get_json()["data"]
    assert payload["page_count"] == 2
    assert [item["name"] for item in payload["files"]] == ["page-1.pdf", "page-2.pdf"]


def test_split_with_range_expression_builds_one_document():
    client = _make_client()
    data = {
        "file": (BytesIO(_dummy_pdf(6)), "sample.pdf"),
        "pages": "5-2, 9, oops",
    }
    response = _post(client, "/api/pdf_tools/split", data)
    assert response.status_code == 200
    payload = response.get_json()["data"]
    assert payload["pages"] == [2, 3, 4, 5]
    assert payload["ignored_tokens"] == [
        {"token": "9", "reason": "out_of_range"},
        {"token": "oops", "reason": "malformed"},
    ]
    assert len(payload["files"]) == 1
    assert payload["files"][0]["name"] == "sample_split.pdf"
    assert _page_count(base64.b64decode(payload["files"][0]["pdf_base64"])) == 4


def test_split_with_range_that_selects_nothing_is_rejected():
    client = _make_client()
    data = {
        "file": (BytesIO(_dummy_pdf(2)), "sample.pdf"),
        "pages": "x-y",
    }
    response = _post(client, "/api/pdf_tools/split", data)
    assert response.status_code == 400
    error = response.get_json()["error"]
    assert error["code"] == "pdf.empty_selection"
    assert error["details"]["ignored_tokens"] == [{"token": "x-y", "reason": "malformed"}]


def test_split_accepts_custom_plan_and_names():
    client = _make_client()
    plan = [
        {"name": "split-1.pdf", "pages": "1-2"},
        {"name": "tail.pdf", "pages": "3"},
    ]
    data = {
        "file": (BytesIO(_dummy_pdf(3)), "sample.pdf"),
        "plan": json.dumps(plan),
    }
    response = _post(client, "/api/pdf_tools/split", data)
    assert response.status_code == 200
    payload = response.get_json()["data"]
    assert payload["page_count"] == 3
    assert [item["name"] for item in payload["files"]] == ["split-1.pdf", "tail.pdf"]


def test_split_rejects_out_of_range_plan():
    client = _make_client()
    plan = [{"name": "broken.pdf", "pages": "5-6"}]
    data = {
        "file": (BytesIO(_dummy_pdf(2)), "sample.pdf"),
        "plan": json.dumps(plan),
    }
    response = _post(client, "/api/pdf_tools/split", data)
    assert response.status_code == 400
    payload = response.get_json()
    assert payload["success"] is False
    assert payload["error"]["code"] == "pdf.empty_selection"


def test_split_rejects_duplicate_plan_names():
    client = _make_client()
    plan = [{"name": "a.pdf", "pages": "1"}, {"name": "A", "pages": "2"}]
    data = {
        "file": (BytesIO(_dummy_pdf(2)), "sample.pdf"),
        "plan": json.dumps(plan),
    }
    response = _post(client, "/api/pdf_tools/split", data)
    assert response.status_code == 400
    assert response.get_json()["error"]["code"] == "pdf.duplicate_split_name"


def test_split_download_zip_uses_custom_names():
    client = _make_client()
    plan = [
        {"name": "alpha.pdf", "pages": "1"},
        {"name": "beta.pdf", "pages": "2"},
    ]
    data = {
        "file": (BytesIO(_dummy_pdf(2)), "sample.pdf"),
        "plan": json.dumps(plan),
    }
    response = _post(client, "/api/pdf_tools/split?download=1", data)
    assert response.status_code == 200
    assert response.headers.get("Content-Type") == "application/zip"
    with zipfile.ZipFile(BytesIO(response.data), "r") as zf:
        names = set(zf.namelist())
    assert {"alpha.pdf", "beta.pdf"} <= names


def test_rotate_endpoint_defaults_to_all_pages():
    client = _make_client()
    data = {"file": (BytesIO(_dummy_pdf(2)), "scan.pdf"), "angle": "180"}
    response = _post(client, "/api/pdf_tools/rotate?download=1", data)
    assert response.status_code == 200
    assert response.headers.get("Content-Disposition", "").startswith("attachment;")
    reader = PdfReader(BytesIO(response.data))
    assert [page.rotation for page in reader.pages] == [180, 180]


def test_rotate_endpoint_rejects_bad_angle():
    client = _make_client()
    data = {"file": (BytesIO(_dummy_pdf(1)), "scan.pdf"), "angle": "45"}
    response = _post(client, "/api/pdf_tools/rotate", data)
    assert response.status_code == 400
    assert response.get_json()["error"]["code"] == "pdf.invalid_request"


def test_remove_pages_requires_selection():
    client = _make_client()
    data = {"file": (BytesIO(_dummy_pdf(3)), "doc.pdf")}
    response = _post(client, "/api/pdf_tools/remove_pages", data)
    assert response.status_code == 400
    assert response.get_json()["error"]["code"] == "pdf.empty_selection"


def test_remove_pages_endpoint():
    client = _make_client()
    data = {"file": (BytesIO(_dummy_pdf(3)), "doc.pdf"), "pages": "2"}
    response = _post(client, "/api/pdf_tools/remove_pages", data)
    assert response.status_code == 200
    payload = response.get_json()["data"]
    assert payload["pages"] == [2]
    assert payload["filename"] == "doc_removed_pages.pdf"
    assert _page_count(base64.b64decode(payload["pdf_base64"])) == 2


def test_organize_rejects_invalid_sequence():
    client = _make_client()
    data = {"file": (BytesIO(_dummy_pdf(2)), "doc.pdf"), "order": "3,1"}
    response = _post(client, "/api/pdf_tools/organize", data)
    assert response.status_code == 400
    assert response.get_json()["error"]["code"] == "pdf.invalid_page_range"


def test_crop_endpoint_validates_margins():
    client = _make_client()
    data = {"file": (BytesIO(_dummy_pdf(1)), "doc.pdf"), "left": "-5"}
    response = _post(client, "/api/pdf_tools/crop", data)
    assert response.status_code == 400

    data = {"file": (BytesIO(_dummy_pdf(1)), "doc.pdf"), "left": "10", "top": "10"}
    response = _post(client, "/api/pdf_tools/crop", data)
    assert response.status_code == 200
    assert response.get_json()["data"]["pages"] == [1]


def test_protect_then_unlock_via_api():
    client = _make_client()
    data = {"file": (BytesIO(_dummy_pdf(2)), "doc.pdf"), "password": "pw"}
    response = _post(client, "/api/pdf_tools/protect?download=1", data)
    assert response.status_code == 200
    protected = response.data

    data = {"file": (BytesIO(protected), "doc.pdf"), "password": "nope"}
    response = _post(client, "/api/pdf_tools/unlock", data)
    assert response.status_code == 400
    assert response.get_json()["error"]["code"] == "pdf.invalid_password"

    data = {"file": (BytesIO(protected), "doc.pdf"), "password": "pw"}
    response = _post(client, "/api/pdf_tools/unlock?download=1", data)
    assert response.status_code == 200
    assert _page_count(response.data) == 2


def test_compress_reports_sizes():
    client = _make_client()
    data = {"file": (BytesIO(_dummy_pdf(2)), "big.pdf")}
    response = _post(client, "/api/pdf_tools/compress", data)
    assert response.status_code == 200
    payload = response.get_json()["data"]
    assert payload["filename"] == "big_compressed.pdf"
    assert payload["original_size"] > 0
    assert payload["compressed_size"] > 0


def test_metadata_endpoint_reports_pages_and_size():
    client = _make_client()
    data = {"file": (BytesIO(_dummy_pdf(3)), "meta.pdf")}
    response = _post(client, "/api/pdf_tools/metadata", data)
    assert response.status_code == 200
    payload = response.get_json()
    assert payload["data"]["pages"] == 3
    assert payload["data"]["size_bytes"] > 0
    assert payload["data"]["encrypted"] is False


def test_metadata_rejects_fake_pdf_signature():
    client = _make_client()
    data = {"file": (BytesIO(b"not really a pdf"), "fake.pdf")}
    response = _post(client, "/api/pdf_tools/metadata", data)
    assert response.status_code == 400
    payload = response.get_json()
    assert payload["success"] is False
    assert "signature" in payload["error"]["message"].lower()


def test_pages_preview_with_total_pages():
    client = _make_client()
    response = _post(
        client, "/api/pdf_tools/pages", {"pages": "1-3,2, nope", "total_pages": "5"}
    )
    assert response.status_code == 200
    payload = response.get_json()["data"]
    assert payload["pages"] == [1, 2, 3]
    assert payload["ignored_tokens"] == [{"token": "nope", "reason": "malformed"}]
    assert payload["total_pages"] == 5


def test_pages_preview_with_file():
    client = _make_client()
    data = {"pages": "", "file": (BytesIO(_dummy_pdf(4)), "doc.pdf")}
    response = _post(client, "/api/pdf_tools/pages", data)
    assert response.status_code == 200
    payload = response.get_json()["data"]
    assert payload["pages"] == []
    assert payload["total_pages"] == 4


def test_pages_preview_requires_a_bound():
    client = _make_client()
    response = _post(client, "/api/pdf_tools/pages", {"pages": "1"})
    assert response.status_code == 400
    assert response.get_json()["error"]["code"] == "pdf.invalid_request"


def test_pages_preview_caps_total_pages():
    client = _make_client()
    response = _post(
        client, "/api/pdf_tools/pages", {"pages": "1-5000000", "total_pages": "5000000"}
    )
    assert response.status_code == 400
    assert response.get_json()["error"]["code"] == "pdf.invalid_request"


def test_pages_preview_cap_comes_from_settings():
    app = create_app("TestingConfig")
    app.config["PLUGIN_SETTINGS"] = {"pdf_tools": {"preview_max_pages": 3}}
    client = app.test_client()
    response = _post(client, "/api/pdf_tools/pages", {"pages": "1-4", "total_pages": "4"})
    assert response.status_code == 400
    response = _post(client, "/api/pdf_tools/pages", {"pages": "1-4", "total_pages": "3"})
    assert response.get_json()["data"]["pages"] == [1, 2, 3]


def test_organize_reports_reversed_and_malformed_orders():
    client = _make_client()
    for order in ("2-1", "1,x"):
        data = {"file": (BytesIO(_dummy_pdf(2)), "doc.pdf"), "order": order}
        response = _post(client, "/api/pdf_tools/organize", data)
        assert response.status_code == 400
        assert response.get_json()["error"]["code"] == "pdf.invalid_page_range"


def test_organize_keeps_requested_order():
    client = _make_client()
    data = {"file": (BytesIO(_dummy_pdf(3)), "doc.pdf"), "order": "end,1,1"}
    response = _post(client, "/api/pdf_tools/organize", data)
    assert response.status_code == 200
    payload = response.get_json()["data"]
    assert payload["pages"] == [3, 1, 1]
    assert _page_count(base64.b64decode(payload["pdf_base64"])) == 3


def test_rotate_rejects_non_finite_angle():
    client = _make_client()
    for angle in ("nan", "inf"):
        data = {"file": (BytesIO(_dummy_pdf(1)), "doc.pdf"), "angle": angle}
        response = _post(client, "/api/pdf_tools/rotate", data)
        assert response.status_code == 400
        assert response.get_json()["error"]["code"] == "pdf.invalid_request"


def test_crop_rejects_non_finite_margin():
    client = _make_client()
    data = {"file": (BytesIO(_dummy_pdf(1)), "doc.pdf"), "left": "nan"}
    response = _post(client, "/api/pdf_tools/crop", data)
    assert response.status_code == 400

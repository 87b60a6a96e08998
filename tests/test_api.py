from __future__ import annotations

import json

import httpx
import pytest
from fastapi.testclient import TestClient

from core.settings import AppSettings, AuthSettings, DocumentSettings, LLMSettings, Settings
from main import create_app
from pipeline.clients.llm_client import ExtractionClient
from pipeline.models.dto import DocumentInputMode
from pipeline.orchestrator import AnalysisPipeline, PipelineConfig
from pipeline.processors.rasterizer import RasterConfig, Rasterizer
from pipeline.rendering import PyMuPDFBackend

KEY = "internal-secret"
PDF_URL = "https://drive.example.com/uc?export=download&id=abc123"


class FakeUpstreams:
    """Records calls to the document host and the extraction backend."""

    def __init__(self, pdf: bytes, llm_response: httpx.Response | None = None):
        self.pdf = pdf
        self.llm_response = llm_response or httpx.Response(
            200, json={"output_text": '{"quick_summary":"ok"}'}
        )
        self.fetched: list[str] = []
        self.llm_bodies: list[dict] = []

    def fetch(self, request: httpx.Request) -> httpx.Response:
        self.fetched.append(str(request.url))
        return httpx.Response(200, content=self.pdf)

    def llm(self, request: httpx.Request) -> httpx.Response:
        self.llm_bodies.append(json.loads(request.content))
        return self.llm_response

    @property
    def content_blocks(self) -> list[dict]:
        return self.llm_bodies[-1]["input"][0]["content"]


def build_client(
    upstreams: FakeUpstreams,
    internal_key: str | None = KEY,
    document_mode: DocumentInputMode = DocumentInputMode.RASTERIZE,
    max_source_bytes: int = 10 * 1024 * 1024,
) -> TestClient:
    app = create_app()
    app.state.settings = Settings(
        auth=AuthSettings(INTERNAL_API_KEY=internal_key),
        llm=LLMSettings(),
        document=DocumentSettings(),
        app=AppSettings(),
    )
    raster = RasterConfig(max_pages=3, target_dpi=72, max_source_bytes=max_source_bytes)
    app.state.pipeline = AnalysisPipeline(
        PipelineConfig(raster=raster, document_mode=document_mode),
        Rasterizer(PyMuPDFBackend(), raster, transport=httpx.MockTransport(upstreams.fetch)),
        ExtractionClient("sk-test", transport=httpx.MockTransport(upstreams.llm)),
    )
    return TestClient(app)


@pytest.fixture
def upstreams(two_page_pdf) -> FakeUpstreams:
    return FakeUpstreams(two_page_pdf)


def _post(client: TestClient, body: dict, key: str | None = KEY, **headers):
    if key is not None:
        headers["X-Internal-Key"] = key
    return client.post("/analyze-plan", json=body, headers=headers)


def test_liveness(upstreams):
    resp = build_client(upstreams).get("/")

    assert resp.status_code == 200
    assert resp.text == "wc-vision-service is alive"
    assert resp.headers["X-Trace-ID"]


def test_health(upstreams):
    resp = build_client(upstreams).get("/health")

    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "healthy"
    assert body["rasterBackend"] == "pymupdf"
    assert body["rasterBackendAvailable"] is True


def test_pdf_end_to_end(upstreams):
    resp = _post(build_client(upstreams), {"resourceUrl": PDF_URL})

    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["sourceKind"] == "pdf"
    assert body["structured"] == {"quick_summary": "ok"}
    assert body["raw"] == '{"quick_summary":"ok"}'
    assert body["pageCount"] == 2
    assert body["traceId"] == resp.headers["X-Trace-ID"]

    blocks = upstreams.content_blocks
    assert len(blocks) == 3
    assert blocks[0]["type"] == "input_text"
    assert all(b["image_url"].startswith("data:image/png;base64,") for b in blocks[1:])
    assert upstreams.fetched == [PDF_URL]


def test_image_is_sent_by_reference(upstreams):
    url = "https://cdn.example.com/plans/lot-12.PNG?sig=abc"
    resp = _post(build_client(upstreams), {"resourceUrl": url})

    assert resp.status_code == 200
    assert resp.json()["sourceKind"] == "image"
    assert resp.json()["pageCount"] == 0
    assert upstreams.fetched == []
    assert upstreams.content_blocks[1] == {"type": "input_image", "image_url": url}


def test_legacy_field_names(upstreams):
    body = {
        "fileUrl": "https://cdn.example.com/a.jpg",
        "imageUrl": "https://cdn.example.com/b.jpg",
        "fileType": "jpg",
        "extraContext": {"docType": "Plot plan", "builder": "Acme Homes"},
        "estimateId": 1042,
    }
    resp = _post(build_client(upstreams), body)

    assert resp.status_code == 200
    blocks = upstreams.content_blocks
    assert blocks[1]["image_url"] == "https://cdn.example.com/a.jpg"
    assert "Estimate ID: 1042" in blocks[0]["text"]
    assert "Builder: Acme Homes" in blocks[0]["text"]
    assert "PLOT / GRADING PLAN" in blocks[0]["text"]


def test_direct_document_mode_skips_rasterization(upstreams):
    client = build_client(upstreams, document_mode=DocumentInputMode.DIRECT)
    resp = _post(client, {"resourceUrl": PDF_URL, "declaredType": "pdf"})

    assert resp.status_code == 200
    assert resp.json()["pageCount"] == 0
    assert upstreams.fetched == []
    assert upstreams.content_blocks[1] == {"type": "input_file", "file_url": PDF_URL}


def test_missing_key_is_rejected_before_any_work(upstreams):
    resp = _post(build_client(upstreams), {"resourceUrl": PDF_URL}, key=None)

    assert resp.status_code == 401
    body = resp.json()
    assert body["code"] == "UNAUTHORIZED"
    assert body["error"] == "Unauthorized"
    assert upstreams.fetched == []
    assert upstreams.llm_bodies == []


def test_wrong_key_is_rejected_even_with_invalid_body(upstreams):
    resp = _post(build_client(upstreams), {}, key="wrong")

    assert resp.status_code == 401


def test_unconfigured_server_key_rejects_everything(upstreams):
    client = build_client(upstreams, internal_key=None)

    assert _post(client, {"resourceUrl": PDF_URL}, key="").status_code == 401
    assert _post(client, {"resourceUrl": PDF_URL}, key="anything").status_code == 401


def test_missing_url_is_validation_error(upstreams):
    resp = _post(build_client(upstreams), {"declaredType": "pdf"})

    assert resp.status_code == 422
    body = resp.json()
    assert body["code"] == "VALIDATION_ERROR"
    assert body["category"] == "client_error"


def test_non_http_url_is_validation_error(upstreams):
    resp = _post(build_client(upstreams), {"resourceUrl": "file:///etc/passwd"})

    assert resp.status_code == 422
    assert "http" in resp.json()["details"]


def test_upstream_failure_uses_generic_envelope(two_page_pdf):
    upstreams = FakeUpstreams(two_page_pdf, httpx.Response(500, text="overloaded"))
    resp = _post(build_client(upstreams), {"resourceUrl": PDF_URL})

    assert resp.status_code == 502
    body = resp.json()
    assert body["error"] == "Vision service failed"
    assert body["code"] == "UPSTREAM_ERROR"
    assert body["category"] == "external_service"


def test_malformed_model_output(two_page_pdf):
    upstreams = FakeUpstreams(
        two_page_pdf, httpx.Response(200, json={"output_text": "{not json"})
    )
    resp = _post(build_client(upstreams), {"resourceUrl": PDF_URL})

    assert resp.status_code == 502
    body = resp.json()
    assert body["code"] == "MALFORMED_JSON"
    assert body["details"] == "Could not parse JSON output."


def test_oversized_source(upstreams):
    client = build_client(upstreams, max_source_bytes=100)
    resp = _post(client, {"resourceUrl": PDF_URL})

    assert resp.status_code == 413
    body = resp.json()
    assert body["error"] == "Vision service failed"
    assert body["code"] == "SOURCE_TOO_LARGE"
    assert "Source too large" in body["details"]
    assert upstreams.llm_bodies == []


def test_non_pdf_source_is_render_error(upstreams):
    upstreams.pdf = b"<html>Sign in to continue</html>"
    resp = _post(build_client(upstreams), {"resourceUrl": PDF_URL})

    assert resp.status_code == 422
    assert resp.json()["code"] == "RENDER_ERROR"


def test_incoming_trace_id_is_reused(upstreams):
    resp = _post(
        build_client(upstreams), {"resourceUrl": PDF_URL}, **{"X-Trace-ID": "trace-123"}
    )

    assert resp.headers["X-Trace-ID"] == "trace-123"
    assert resp.json()["traceId"] == "trace-123"


def test_cors_preflight_is_answered_without_key(upstreams):
    resp = build_client(upstreams).options(
        "/analyze-plan",
        headers={
            "Origin": "https://estimator.example.com",
            "Access-Control-Request-Method": "POST",
            "Access-Control-Request-Headers": "content-type,x-internal-key",
        },
    )

    assert resp.status_code == 200
    assert resp.headers["access-control-allow-origin"] == "*"
    assert "POST" in resp.headers["access-control-allow-methods"]
    assert upstreams.llm_bodies == []


def test_cors_headers_on_simple_request(upstreams):
    resp = build_client(upstreams).get(
        "/", headers={"Origin": "https://estimator.example.com"}
    )

    assert resp.headers["access-control-allow-origin"] == "*"
    assert "X-Trace-ID" in resp.headers["access-control-expose-headers"]

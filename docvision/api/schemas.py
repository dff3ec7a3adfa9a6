"""Pydantic request/response schemas for the FastAPI endpoints."""

from pydantic import BaseModel


class DocumentDetails(BaseModel):
    """Structured business fields selected for the document."""

    document_type: str | None = None
    invoice_number: str | None = None
    invoice_date: str | None = None
    due_date: str | None = None
    vendor_name: str | None = None
    customer_name: str | None = None
    sub_total: str | None = None
    tax_amount: str | None = None
    total_amount: str | None = None
    currency: str | None = None
    payment_terms: str | None = None
    additional_fields: dict[str, str] | None = None


class QualityMetricsResponse(BaseModel):
    """Before/after quality measurements of the first page."""

    sharpness_before: float
    sharpness_after: float
    contrast_before: float
    contrast_after: float


class ImageMetadata(BaseModel):
    """Dimensions, processing log and usage figures for a processed upload."""

    original_width: int
    original_height: int
    processed_width: int
    processed_height: int
    format: str
    file_size_bytes: int
    processing_steps: list[str]
    tokens_used: int
    page_count: int = 1
    processed_page_count: int = 1
    quality: QualityMetricsResponse | None = None


class ProcessResponse(BaseModel):
    """Response schema for the document processing endpoint.

    Failure responses carry ``error_message`` and, when pages were
    rendered, the imagery for diagnostic display.
    """

    success: bool
    error_message: str | None = None
    original_image_base64: str | None = None
    processed_image_base64: str | None = None
    image_mime_type: str | None = None
    extracted_text: str | None = None
    document_details: DocumentDetails | None = None
    metadata: ImageMetadata | None = None


class HealthResponse(BaseModel):
    """Response schema for the health check endpoint."""

    status: str
    timestamp: str
    tesseract_available: bool

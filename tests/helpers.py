"""Image and model-response builders shared by the tests."""

import io
import json

import numpy as np
from PIL import Image


def make_png(width: int = 300, height: int = 200, color: int = 255) -> bytes:
    """Encode a solid RGB image as PNG."""
    image = Image.new("RGB", (width, height), (color, color, color))
    buf = io.BytesIO()
    image.save(buf, format="PNG")
    return buf.getvalue()


def make_text_like_png(width: int = 300, height: int = 200) -> bytes:
    """Encode a white image with dark bars, roughly resembling text lines."""
    array = np.full((height, width, 3), 255, dtype=np.uint8)
    for top in range(20, height - 20, 30):
        array[top : top + 8, 20 : width - 20] = 30
    buf = io.BytesIO()
    Image.fromarray(array).save(buf, format="PNG")
    return buf.getvalue()


def completion_body(content: str, total_tokens: int = 42) -> dict:
    """A minimal OpenAI-style chat completion response body."""
    return {
        "id": "chatcmpl-test",
        "model": "test-model",
        "choices": [
            {
                "index": 0,
                "message": {"role": "assistant", "content": content},
                "finish_reason": "stop",
            }
        ],
        "usage": {
            "prompt_tokens": total_tokens // 2,
            "completion_tokens": total_tokens - total_tokens // 2,
            "total_tokens": total_tokens,
        },
    }


INVOICE_REPLY = json.dumps(
    {
        "documentType": "Invoice",
        "invoiceNumber": "INV-001",
        "invoiceDate": "2024-01-15",
        "dueDate": None,
        "vendorName": "Acme Corp",
        "customerName": "Globex",
        "subTotal": "450.00",
        "taxAmount": "50.00",
        "totalAmount": "500.00",
        "currency": "USD",
        "paymentTerms": "Net 30",
        "additionalFields": {"PO Number": "PO-77"},
    }
)

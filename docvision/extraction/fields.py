"""Document field schema and defensive parsing of model replies.

Everything that depends on the shape of the model's JSON lives here:
the field record, the system prompt that asks for it, and the tolerant
parser that turns a reply into a record. Property names are matched
case-insensitively and every scalar is kept as text, so the model can
drift in casing or value types without breaking extraction.
"""

import json
import re
from dataclasses import asdict, dataclass, fields
from enum import StrEnum
from typing import Any

from docvision.errors import FieldParseError


class DocumentType(StrEnum):
    """Document categories the model may report."""

    INVOICE = "Invoice"
    RECEIPT = "Receipt"
    PURCHASE_ORDER = "PurchaseOrder"
    STATEMENT = "Statement"
    CREDIT_NOTE = "CreditNote"
    DELIVERY_NOTE = "DeliveryNote"
    OTHER = "Other"


@dataclass(frozen=True)
class FieldRecord:
    """Sparse business fields of a document. ``None`` means not found."""

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

    def is_empty(self) -> bool:
        """True when no field at all was found."""
        return all(getattr(self, f.name) is None for f in fields(self))

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "FieldRecord":
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})


# Record attribute -> JSON property requested from the model.
SCALAR_FIELDS: dict[str, str] = {
    "document_type": "documentType",
    "invoice_number": "invoiceNumber",
    "invoice_date": "invoiceDate",
    "due_date": "dueDate",
    "vendor_name": "vendorName",
    "customer_name": "customerName",
    "sub_total": "subTotal",
    "tax_amount": "taxAmount",
    "total_amount": "totalAmount",
    "currency": "currency",
    "payment_terms": "paymentTerms",
}
ADDITIONAL_FIELDS_KEY = "additionalFields"


def build_system_prompt() -> str:
    """System instruction fixing the exact JSON the model must return."""
    doc_types = "|".join(t.value for t in DocumentType)
    properties = [f'"documentType": "{doc_types}"']
    properties += [
        f'"{name}": "string or null"'
        for attr, name in SCALAR_FIELDS.items()
        if attr != "document_type"
    ]
    properties.append(f'"{ADDITIONAL_FIELDS_KEY}": {{}}')
    return (
        "You are a document analyst. Extract key fields from the text. "
        "Return ONLY a raw JSON object (no markdown, no explanation, no extra text): "
        "{" + ", ".join(properties) + "} "
        "Use null for any field not found. Place any other important key-value "
        f"pairs found in the document into {ADDITIONAL_FIELDS_KEY}."
    )


SYSTEM_PROMPT = build_system_prompt()

CLEANUP_PROMPT = (
    "You are an expert OCR text formatter. "
    "You receive raw text produced by Tesseract OCR which may contain noise, "
    "broken words, or mis-recognized characters. "
    "Clean the text: fix obvious OCR errors, restore correct spacing and line breaks, "
    "and preserve the original structure (tables, lists, headings). "
    "Return ONLY the corrected text with no preamble, explanation, or markdown wrapper."
)

_FENCE_RE = re.compile(r"^```[^\n]*\n(?P<body>.*?)\n?```\s*$", re.DOTALL)


def strip_code_fences(content: str) -> str:
    """Remove a surrounding markdown code fence, if any."""
    content = content.strip()
    match = _FENCE_RE.match(content)
    if match:
        return match.group("body").strip()
    return content


def coerce_value(value: Any) -> str | None:
    """Render a JSON value as text.

    Strings are returned unchanged and ``null`` becomes ``None``. Numbers
    arrive as their literal source text (see ``parse_field_record``),
    booleans become ``"true"``/``"false"`` and nested values compact JSON
    in which numbers keep their source spelling.
    """
    if value is None:
        return None
    if isinstance(value, str):
        return str(value)
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (dict, list)):
        return _compact_json(value)
    return str(value)


class _NumberLiteral(str):
    """A JSON number kept as the exact text it was written with."""


def _compact_json(value: Any) -> str:
    if isinstance(value, _NumberLiteral):
        return str(value)
    if isinstance(value, dict):
        items = (
            f"{_compact_json(str(k))}:{_compact_json(v)}" for k, v in value.items()
        )
        return "{" + ",".join(items) + "}"
    if isinstance(value, list):
        return "[" + ",".join(_compact_json(v) for v in value) + "]"
    return json.dumps(value, ensure_ascii=False)


def _casefold_keys(obj: dict[str, Any]) -> dict[str, Any]:
    """Index an object by lower-cased key; the first spelling seen wins."""
    folded: dict[str, Any] = {}
    for key, value in obj.items():
        folded.setdefault(key.lower(), value)
    return folded


def _additional_fields(value: Any) -> dict[str, str] | None:
    if not isinstance(value, dict):
        return None
    extra = {}
    for key, item in value.items():
        text = coerce_value(item)
        if text is not None:
            extra[key] = text
    return extra or None


def parse_field_record(content: str) -> FieldRecord:
    """Parse a model reply into a field record.

    Args:
        content: The model's message content, possibly fenced.

    Returns:
        The parsed record; fields the reply omits or nulls are ``None``.

    Raises:
        FieldParseError: If the content is not a JSON object.
    """
    body = strip_code_fences(content)
    try:
        data = json.loads(body, parse_int=_NumberLiteral, parse_float=_NumberLiteral)
    except json.JSONDecodeError as exc:
        raise FieldParseError(f"Model reply is not valid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise FieldParseError(
            f"Model reply is a JSON {type(data).__name__}, expected an object"
        )

    props = _casefold_keys(data)
    values = {
        attr: coerce_value(props.get(name.lower()))
        for attr, name in SCALAR_FIELDS.items()
    }
    return FieldRecord(
        **values,
        additional_fields=_additional_fields(props.get(ADDITIONAL_FIELDS_KEY.lower())),
    )

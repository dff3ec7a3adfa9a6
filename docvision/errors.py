"""Exception hierarchy for document processing.

``DocumentError`` subclasses are caller-facing: they abort the whole
document and carry the HTTP status the API answers with. The remote
model errors are internal to field extraction; page-level failures are
never raised past the page pipeline.
"""


class DocumentError(Exception):
    """Base class for errors that terminate processing of a document."""

    status_code = 400


class InputValidationError(DocumentError):
    """The upload was rejected before any processing began."""


class EmptyInputError(InputValidationError):
    """The upload contained no bytes."""


class OversizedInputError(InputValidationError):
    """The upload exceeds the configured size ceiling."""

    def __init__(self, size: int, max_bytes: int) -> None:
        self.size = size
        self.max_bytes = max_bytes
        super().__init__(f"File exceeds the {max_bytes // (1024 * 1024)} MB limit.")


class UnsupportedFormatError(DocumentError):
    """The declared content kind is not one the renderer accepts."""

    def __init__(self, kind: str, accepted: tuple[str, ...]) -> None:
        self.kind = kind
        self.accepted = accepted
        super().__init__(
            f"Unsupported file format: {kind or 'unknown'}. "
            f"Supported: {', '.join(accepted)}."
        )


class RenderError(DocumentError):
    """The document bytes could not be decoded into pages."""


class ProcessingCancelled(DocumentError):
    """Processing was abandoned because the caller went away."""

    status_code = 499


class RemoteModelError(Exception):
    """Base class for failures of the remote language model."""


class RemoteUnavailableError(RemoteModelError):
    """The model could not be used: no credential, error status, or empty reply.

    Field extraction absorbs this by falling back to the raw OCR text.
    """


class RemoteCallError(RemoteModelError):
    """The call itself failed (timeout, connection loss)."""


class FieldParseError(ValueError):
    """The model reply could not be parsed into a field record."""


def validate_upload(size: int, max_bytes: int) -> None:
    """Reject empty or oversized uploads.

    Args:
        size: Upload size in bytes.
        max_bytes: Configured ceiling.

    Raises:
        EmptyInputError: If ``size`` is zero.
        OversizedInputError: If ``size`` exceeds ``max_bytes``.
    """
    if size <= 0:
        raise EmptyInputError("No file provided.")
    if size > max_bytes:
        raise OversizedInputError(size, max_bytes)

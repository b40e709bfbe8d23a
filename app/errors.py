"""Exception hierarchy for the PDF shrink service.

PdfShrinkError is the root so the API layer can map whole categories
to HTTP responses.
"""


class PdfShrinkError(Exception):
    """Root exception for the service."""


class JobValidationError(PdfShrinkError):
    """Invalid request: no file uploaded, bad targetKb/quality, resize without target."""


class ToolExecutionError(PdfShrinkError):
    """Ghostscript exited non-zero, could not be spawned, or timed out."""

    def __init__(self, message: str, diagnostics: str = ""):
        super().__init__(message)
        self.diagnostics = diagnostics


class GenerationError(PdfShrinkError):
    """No output artifact exists after the convergence loop finished."""

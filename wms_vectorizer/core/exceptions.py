"""Unified pipeline exception taxonomy.

Every domain exception raised by the vectorizer inherits from
``PipelineError`` and carries structured context (stage, code,
retryability) so that the orchestrator and the CLI can report failures
consistently.

Taxonomy categories
-------------------
- ``ValidationError``  : malformed input (bbox text, config), never retryable.
- ``TransientError``   : temporary failures (network, remote 5xx), retryable.
- ``PermanentError``   : unrecoverable failures (missing raster, disk), not retryable.
- ``ContractError``    : a collaborator returned data the pipeline cannot use.

Nothing in the pipeline retries internally; ``retryable`` is advisory
for the caller.
"""

from __future__ import annotations


class PipelineError(Exception):
    """Base exception for all pipeline-domain errors.

    Attributes:
        message: Human-readable error description.
        stage: Pipeline stage where the error occurred
            (e.g. ``"parse_bbox"``, ``"write_document"``).
        code: Machine-readable error code (e.g. ``"INVALID_BBOX"``).
        retryable: Whether a caller could reasonably retry the operation.
        correlation_id: Optional identifier of the run (output path, tile id).
    """

    #: Default stage for subclasses (override via class attribute or kwarg).
    default_stage: str = ""
    #: Default code for subclasses (override via class attribute or kwarg).
    default_code: str = ""

    def __init__(
        self,
        message: str = "",
        *,
        stage: str = "",
        code: str = "",
        retryable: bool = False,
        correlation_id: str = "",
    ) -> None:
        self.message = message
        self.stage = stage or self.default_stage
        self.code = code or self.default_code
        self.retryable = retryable
        self.correlation_id = correlation_id
        super().__init__(message)

    @property
    def category(self) -> str:
        """Return the error category based on concrete class."""
        if isinstance(self, ContractError):
            return "contract"
        if isinstance(self, ValidationError):
            return "validation"
        if isinstance(self, TransientError):
            return "transient"
        if isinstance(self, PermanentError):
            return "permanent"
        return "transient" if self.retryable else "permanent"

    def to_error_dict(self) -> dict[str, object]:
        """Return a structured error payload with stable keys."""
        return {
            "category": self.category,
            "code": self.code,
            "stage": self.stage,
            "message": self.message,
            "retryable": self.retryable,
            "correlation_id": self.correlation_id,
        }


# ---------------------------------------------------------------------------
# Category base classes
# ---------------------------------------------------------------------------


class ValidationError(PipelineError):
    """Input or domain-model validation failure. Never retryable."""

    def __init__(self, message: str = "", **kwargs: object) -> None:
        kwargs.setdefault("retryable", False)
        super().__init__(message, **kwargs)  # type: ignore[arg-type]


class TransientError(PipelineError):
    """Temporary failure that may succeed on retry."""

    def __init__(self, message: str = "", **kwargs: object) -> None:
        kwargs.setdefault("retryable", True)
        super().__init__(message, **kwargs)  # type: ignore[arg-type]


class PermanentError(PipelineError):
    """Unrecoverable domain failure. Not retryable."""

    def __init__(self, message: str = "", **kwargs: object) -> None:
        kwargs.setdefault("retryable", False)
        super().__init__(message, **kwargs)  # type: ignore[arg-type]


class ContractError(PipelineError):
    """A collaborator produced data the pipeline cannot consume. Never retryable."""

    def __init__(self, message: str = "", **kwargs: object) -> None:
        kwargs.setdefault("retryable", False)
        super().__init__(message, **kwargs)  # type: ignore[arg-type]

"""Call-throughs to the model provider, storage and document parsers."""

from .explanation import (
    EXPLANATION_FAILED_MESSAGE,
    ExplanationError,
    ExplanationRequest,
    explain_solution,
)
from .extraction import (
    ExtractionError,
    ExtractorDependencies,
    build_dependencies,
    extract_text,
)
from .generation import (
    GenerationError,
    GenerationRequest,
    QuizValidationError,
    continuation_count,
    generate_quiz,
    validate_request,
)
from .storage import (
    ObjectNotFoundError,
    StorageError,
    StoredObject,
    UploadStore,
    UploadTooLargeError,
    UploadUrlError,
)
from .upload import UploadBroker, UploadError, UploadResult

__all__ = [
    "EXPLANATION_FAILED_MESSAGE",
    "ExplanationError",
    "ExplanationRequest",
    "explain_solution",
    "ExtractionError",
    "ExtractorDependencies",
    "build_dependencies",
    "extract_text",
    "GenerationError",
    "GenerationRequest",
    "QuizValidationError",
    "continuation_count",
    "generate_quiz",
    "validate_request",
    "ObjectNotFoundError",
    "StorageError",
    "StoredObject",
    "UploadStore",
    "UploadTooLargeError",
    "UploadUrlError",
    "UploadBroker",
    "UploadError",
    "UploadResult",
]

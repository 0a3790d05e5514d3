from __future__ import annotations


class AnalysisError(RuntimeError):
    """Base for every failure the analysis pipeline reports to a caller.

    ``code`` is a stable machine-readable identifier, ``status_code`` the HTTP
    status used at the API edge and the message is shown to the user as is.
    """

    code = "analysis_failed"
    status_code = 500
    default_message = "An unexpected error occurred. Please try again."

    def __init__(self, message: str | None = None, *, code: str | None = None):
        super().__init__(message or self.default_message)
        if code:
            self.code = code


class MissingFields(AnalysisError):
    code = "missing_fields"
    status_code = 400
    default_message = "Missing required fields"


class DecodeError(AnalysisError):
    code = "decode_error"
    status_code = 400
    default_message = "Could not decode the uploaded file. Please upload it again."


class FileParsingError(AnalysisError):
    code = "file_parsing_error"
    status_code = 400
    default_message = "Failed to parse resume file. Please ensure it's a valid PDF, DOCX, or TXT file."


class UnsupportedFormat(FileParsingError):
    code = "unsupported_format"
    default_message = "Unsupported file format. Please upload PDF, DOCX, or TXT files."


class ExtractionTooShort(FileParsingError):
    code = "extraction_too_short"
    default_message = "Could not extract sufficient text from the resume. Please try uploading as TXT."


class ServiceNotConfigured(AnalysisError):
    code = "service_not_configured"
    status_code = 503
    default_message = "AI service not configured"


class RateLimited(AnalysisError):
    code = "rate_limited"
    status_code = 429
    default_message = "Rate limit exceeded. Please try again in a moment."


class QuotaExhausted(AnalysisError):
    code = "quota_exhausted"
    status_code = 402
    default_message = "AI service credits exhausted. Please contact support."


class UpstreamFailure(AnalysisError):
    code = "upstream_failure"
    status_code = 502
    default_message = "AI analysis failed. Please try again."


class EmptyModelOutput(AnalysisError):
    code = "empty_model_output"
    status_code = 502
    default_message = "Invalid AI response"


class MalformedModelOutput(AnalysisError):
    code = "malformed_model_output"
    status_code = 502
    default_message = "Failed to parse AI response. Please try again."


class ModelRefused(AnalysisError):
    code = "model_refused"
    status_code = 422
    default_message = "AI could not process the resume. Please ensure the file contains readable text."


class SchemaViolation(AnalysisError):
    code = "schema_violation"
    status_code = 502
    default_message = "Invalid analysis result format"


class PersistenceFailure(AnalysisError):
    code = "persistence_failure"
    status_code = 500
    default_message = "Analysis completed but failed to save. Please try again."


class InputTooLarge(AnalysisError):
    code = "input_too_large"
    status_code = 413
    default_message = "The upload is too large. Please upload a smaller file or shorten the job description."


class InvalidRequest(AnalysisError):
    code = "invalid_request"
    status_code = 400
    default_message = "Invalid request. Please check the submitted fields."

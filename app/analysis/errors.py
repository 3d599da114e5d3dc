from __future__ import annotations


class ATSAnalysisError(RuntimeError):
    def __init__(self, message: str, *, code: str = "analysis_failed"):
        super().__init__(message)
        self.code = code


class DecodeFailure(ATSAnalysisError):
    def __init__(self, message: str):
        super().__init__(message, code="decode_failed")


class InvalidRequest(ATSAnalysisError):
    def __init__(self, message: str):
        super().__init__(message, code="invalid_request")


class AITransportFailure(ATSAnalysisError):
    """The generative-text collaborator could not be reached or answered with an error."""

    def __init__(self, message: str):
        super().__init__(message, code="ai_transport")


class AIFormatFailure(ATSAnalysisError):
    """The collaborator answered, but no usable JSON object could be read from the reply."""

    def __init__(self, message: str):
        super().__init__(message, code="ai_format")

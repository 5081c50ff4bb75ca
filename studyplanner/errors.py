"""Error taxonomy shared by the API, CLI and Streamlit app.

Every error carries the HTTP status it maps to. ``public_message`` is what
callers are allowed to see; upstream failures keep their details in the
log only.
"""


class StudyPlannerError(Exception):
    """Base class for all application errors"""
    status_code = 500

    def __init__(self, message: str, public_message: str = None):
        super().__init__(message)
        self.message = message
        self.public_message = public_message or message


class ValidationError(StudyPlannerError):
    """Missing field, text too short, bad enum value, no exams selected"""
    status_code = 400


class AuthenticationError(StudyPlannerError):
    status_code = 401

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message, public_message="Unauthorized")


class NotFoundError(StudyPlannerError):
    status_code = 404


class UpstreamServiceError(StudyPlannerError):
    """Object storage or LLM failure; the user only sees a generic message"""
    status_code = 500

    def __init__(self, message: str, public_message: str = "Upstream service failed"):
        super().__init__(message, public_message=public_message)


class MalformedResponseError(StudyPlannerError):
    """LLM output was not valid JSON, or did not match the expected shape"""
    status_code = 500


class MalformedPlanError(MalformedResponseError):
    pass


class PersistenceError(StudyPlannerError):
    status_code = 500

    def __init__(self, message: str, public_message: str = "Failed to save changes"):
        super().__init__(message, public_message=public_message)

from typing import Optional


class NutriPlanError(Exception):
    """Base class for every error the API reports to its callers."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidProfileInput(NutriPlanError):
    status_code = 400


class InvalidFeedbackInput(NutriPlanError):
    status_code = 400


class ProfileNotFound(NutriPlanError):
    status_code = 404

    def __init__(self, message: str = "Profile not found. Please complete onboarding."):
        super().__init__(message)


class NotFound(NutriPlanError):
    status_code = 404


class AccessDenied(NutriPlanError):
    status_code = 403


class DuplicateFeedback(NutriPlanError):
    status_code = 409


class InsufficientData(NutriPlanError):
    status_code = 400


class PersistenceFailure(NutriPlanError):
    """
    Wraps any storage-layer error.

    When the weekly feedback row was already written before a later write
    failed, `partial` is True and `feedback_id` points at the saved row so the
    caller can decide what to tell the user.
    """

    status_code = 500

    def __init__(self, message: str, partial: bool = False, feedback_id: Optional[str] = None):
        super().__init__(message)
        self.partial = partial
        self.feedback_id = feedback_id


class AIGatewayError(NutriPlanError):
    status_code = 502


class AIRateLimited(AIGatewayError):
    status_code = 429

    def __init__(self, message: str = "Request limit exceeded. Please try again in a few moments."):
        super().__init__(message)


class AICreditsExhausted(AIGatewayError):
    status_code = 402

    def __init__(self, message: str = "Insufficient AI credits. Please add credits to your workspace."):
        super().__init__(message)


class InvalidRequest(NutriPlanError):
    status_code = 400


class RoleAlreadySelected(NutriPlanError):
    status_code = 409

    def __init__(self, message: str = "A role was already selected for this account"):
        super().__init__(message)

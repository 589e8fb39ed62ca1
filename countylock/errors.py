# countylock/errors.py
"""
Application error hierarchy.

Services raise these; the handlers registered in ``error_handlers`` turn them
into JSON responses carrying the error's status code.
"""


class AppError(Exception):
    status_code = 400

    def __init__(self, message, status_code=None, payload=None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.payload = payload or {}

    def to_dict(self):
        return {
            "success": False,
            "error": self.message,
            "message": self.message,
            **self.payload,
        }


# ============================================
# GENERIC CATEGORIES
# ============================================

class ValidationError(AppError):
    status_code = 400


class AuthenticationError(AppError):
    status_code = 401


class PermissionDenied(AppError):
    status_code = 403


class NotFoundError(AppError):
    status_code = 404


class ConflictError(AppError):
    # Conflicts surface to clients as 400 with a descriptive message
    status_code = 400


class UpstreamError(AppError):
    status_code = 502


# ============================================
# DOMAIN ERRORS
# ============================================

class InvalidAuctionURL(ValidationError):
    def __init__(self, message="Invalid HiBid URL provided", **kwargs):
        super().__init__(message, **kwargs)


class AuctionAlreadyClaimed(ConflictError):
    def __init__(self, message="Auction already claimed by another user", **kwargs):
        super().__init__(message, **kwargs)


class CountyFullyLocked(ConflictError):
    pass


class DuplicateSubscription(ConflictError):
    def __init__(self, message="You already have an active subscription for this county.", **kwargs):
        super().__init__(message, **kwargs)


class TrialAlreadyClaimed(ConflictError):
    def __init__(self, message="This county already has an active trial registration", **kwargs):
        super().__init__(message, **kwargs)


class CountyUnavailableForTrial(ConflictError):
    def __init__(self, message="County is not available for trial registration", **kwargs):
        super().__init__(message, **kwargs)


class PhoneInUse(ConflictError):
    def __init__(self, message="This phone number is already in use by another account.", **kwargs):
        super().__init__(message, **kwargs)


class InsufficientCredits(ConflictError):
    def __init__(self, message="Insufficient credits", **kwargs):
        super().__init__(message, **kwargs)


class ScrapeError(UpstreamError):
    # The caller supplied the URL, so a failed fetch is reported as a bad request
    status_code = 400

    def __init__(self, message="Failed to retrieve auction details. Please check the URL.", **kwargs):
        super().__init__(message, **kwargs)


class BillingError(UpstreamError):
    status_code = 500


class WebhookSignatureError(UpstreamError):
    status_code = 400

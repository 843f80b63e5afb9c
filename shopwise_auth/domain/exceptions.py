"""
Domain exceptions - Semantic error types for registration and login.

Business rule violations are reported to callers as ``Failure`` results
(see ``results.py``). The exceptions below are raised at the seams where a
collaborator has to signal something unusual; the services translate them
into results, except ``InfrastructureError`` which always propagates.
"""


class AuthError(Exception):
    """Base class for authentication domain errors."""

    pass


class InvalidIdentity(AuthError):
    """Identity is neither a well-formed email address nor a phone number."""

    pass


class InvalidToken(AuthError):
    """Token signature, structure, purpose or expiry check failed."""

    pass


class DeliveryError(AuthError):
    """Notification sender could not deliver a message."""

    pass


class UniquenessViolation(AuthError):
    """User store refused a record sharing an email or phone with another."""

    pass


class InfrastructureError(Exception):
    """A backing store is unreachable or failed unexpectedly."""

    pass

"""Application error taxonomy, rendered as JSON by the handlers in main.py."""

from typing import Optional


class AppError(Exception):
    """Base class for errors that map to an HTTP status."""

    status_code: int = 500
    default_message: str = "Erreur serveur"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"error": self.message}


class ValidationError(AppError):
    status_code = 400
    default_message = "Requête invalide"


class AuthError(AppError):
    status_code = 401
    default_message = "Non authentifié"


class ForbiddenError(AuthError):
    status_code = 403
    default_message = "Accès refusé"


class NotFoundError(AppError):
    status_code = 404
    default_message = "Introuvable"


class ConflictError(AppError):
    status_code = 409
    default_message = "Conflit"


class PayloadTooLargeError(AppError):
    status_code = 413
    default_message = "Requête trop volumineuse"


class RateLimitError(AppError):
    status_code = 429
    default_message = "Trop de requêtes"

    def __init__(self, retry_after_sec: int, message: Optional[str] = None):
        self.retry_after_sec = retry_after_sec
        super().__init__(message)

    def to_dict(self) -> dict:
        return {"error": self.message, "retry_after_sec": self.retry_after_sec}


class NotConfiguredError(AppError):
    status_code = 501
    default_message = "Non configuré"


class ServerError(AppError):
    status_code = 500

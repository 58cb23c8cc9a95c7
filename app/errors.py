# app/errors.py
"""
Taxonomie des erreurs métier.

Les services lèvent ces exceptions ; `app.main` les transforme en réponses
JSON uniformes `{"error": "..."}` avec le code HTTP porté par la classe.
"""


class AppError(Exception):
    status_code: int = 500
    default_message: str = "Unexpected error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(AppError):
    """Champ requis manquant ou mal formé."""
    status_code = 400
    default_message = "Invalid request"


class AuthenticationError(AppError):
    """Jeton bearer absent ou invalide."""
    status_code = 401
    default_message = "Unauthorized"


class AuthorizationError(AppError):
    """Rôle ou propriété insuffisants."""
    status_code = 403
    default_message = "Forbidden"


class NotFoundError(AppError):
    status_code = 404
    default_message = "Not found"


class ConflictError(AppError):
    """Clé d'identité déjà prise ou transition d'état interdite."""
    status_code = 409
    default_message = "Conflict"


class TransientError(AppError):
    """Fournisseur externe injoignable ou timeout (rejouable)."""
    status_code = 500
    default_message = "Upstream service unavailable"


class InternalError(AppError):
    status_code = 500
    default_message = "Internal error"

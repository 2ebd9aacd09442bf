"""
Exceptions métier levées par les dépôts et les services.
Les routers les traduisent en codes HTTP (404, 409, 503).
"""


class AttendanceError(Exception):
    """Base de toutes les erreurs métier."""


class NotFoundError(AttendanceError):
    """Session, QR code, élève ou enregistrement de présence introuvable."""


class ConflictError(AttendanceError):
    """Violation d'unicité, ou opération refusée par l'état de la session."""


class ResourceExhaustedError(AttendanceError):
    """Budget de tentatives de génération de code épuisé."""


class StorageUnavailableError(AttendanceError):
    """Panne transitoire du stockage : l'opération complète peut être rejouée."""


class ForbiddenError(AttendanceError):
    """Mutation d'une session par un enseignant qui n'en est pas propriétaire."""

"""
Exceptions personnalisées pour Chat Gateway.

Chaque exception porte le code HTTP que les routes renvoient au client.
"""


class GatewayError(Exception):
    """Exception de base pour toutes les erreurs de la passerelle."""

    status_code = 500

    def __init__(self, message: str, code: str = None, details: dict = None):
        super().__init__(message)
        self.message = message
        self.code = code or "unknown_error"
        self.details = details or {}

    def __str__(self):
        if self.details:
            return f"[{self.code}] {self.message} - Détails: {self.details}"
        return f"[{self.code}] {self.message}"

    def to_dict(self) -> dict:
        """Corps JSON d'erreur renvoyé au client."""
        payload = {"error": self.message, "code": self.code}
        if self.details:
            payload["details"] = self.details
        return payload


class ConfigurationError(GatewayError):
    """Erreur de configuration (fichier manquant, valeur invalide)."""

    def __init__(self, message: str, config_key: str = None):
        super().__init__(
            message=message,
            code="config_error",
            details={"key": config_key} if config_key else {}
        )


class InvalidRequestError(GatewayError):
    """Erreur d'entrée client (paramètre manquant, provider inconnu, data URI invalide)."""

    status_code = 400

    def __init__(self, message: str, field: str = None):
        super().__init__(
            message=message,
            code="invalid_request",
            details={"field": field} if field else {}
        )


class UpstreamError(GatewayError):
    """Réponse non-2xx d'un upstream: le statut est renvoyé tel quel."""

    def __init__(self, message: str, status: int, body: str = "", code: str = "upstream_error"):
        super().__init__(
            message=message,
            code=code,
            details={"upstream_status": status}
        )
        self.status = status
        self.body = body

    @property
    def status_code(self) -> int:
        return self.status if 400 <= self.status <= 599 else 502


class SearchProviderError(UpstreamError):
    """Erreur d'un provider de recherche (statut non-2xx, page illisible)."""

    def __init__(self, provider: str, status: int, body: str = ""):
        label = provider.replace("_", " ").title()
        super().__init__(
            message=f"{label} Error: {body or status}",
            status=status,
            body=body,
            code="search_provider_error"
        )
        self.provider = provider
        self.details["provider"] = provider

    @property
    def status_code(self) -> int:
        return 502


class StreamingError(GatewayError):
    """Erreur de transport pendant la lecture du stream upstream."""

    status_code = 502

    def __init__(self, message: str, error_type: str = None, chunks_received: int = 0):
        super().__init__(
            message=message,
            code="streaming_error",
            details={
                "error_type": error_type,
                "chunks_received": chunks_received,
            }
        )
        self.error_type = error_type


class MediaNotFoundError(GatewayError):
    """Fichier absent du répertoire de cache."""

    status_code = 404

    def __init__(self, filename: str):
        super().__init__(
            message="File not found",
            code="not_found",
            details={"filename": filename}
        )

from typing import List, Optional


class ConfigError(Exception):
    """Configuração de rotas inválida; o processo não deve subir."""


class PayloadValidationError(ValueError):
    """Payload GitLab sem os campos exigidos pelo tipo de evento."""

    def __init__(self, object_kind: str, errors: List[str], message: Optional[str] = None):
        self.object_kind = object_kind
        self.errors = list(errors)
        super().__init__(message or f"{object_kind}: {'; '.join(self.errors)}")

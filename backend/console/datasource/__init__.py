from console.datasource.base import (
    AuthResult,
    CredentialError,
    DataSource,
    DataSourceError,
    EntityNotFoundError,
    Record,
    TransportError,
)

__all__ = [
    "AuthResult", "CredentialError", "DataSource", "DataSourceError",
    "EntityNotFoundError", "Record", "TransportError",
]

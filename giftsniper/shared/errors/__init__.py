from .base import (
    AppError,
    DestinationResolutionError,
    DuplicateRecipientError,
    InfrastructureError,
    NotificationError,
    PersistenceError,
    PriceNotFoundError,
    TransportError,
    UnexpectedNotModifiedError,
)

__all__ = [
    "AppError",
    "DestinationResolutionError",
    "DuplicateRecipientError",
    "InfrastructureError",
    "NotificationError",
    "PersistenceError",
    "PriceNotFoundError",
    "TransportError",
    "UnexpectedNotModifiedError",
]

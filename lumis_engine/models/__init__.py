from lumis_engine.models.requests import (
    ClosePendingWindowRequest,
    RegisterUserRequest,
    RolloverRequest,
    StartSessionRequest,
    WindowRequest,
)

__all__ = [
    "ClosePendingWindowRequest",
    "RegisterUserRequest",
    "RolloverRequest",
    "StartSessionRequest",
    "WindowRequest",
]

"""Collateral vault models, validation, instruction rules and live WebSocket notifications."""

__version__ = "0.1.0"

__all__ = [
    "errors",
    "utils",
    "models",
    "program_errors",
    "state",
    "instructions",
    "websocket",
]
from .logging_config import (
    PrettyConsoleFormatter,
    ProductionJSONFormatter,
    get_core_logger,
    reset_logging_state,
    setup_logging,
)

__all__ = [
    "ProductionJSONFormatter",
    "PrettyConsoleFormatter",
    "setup_logging",
    "reset_logging_state",
    "get_core_logger",
]

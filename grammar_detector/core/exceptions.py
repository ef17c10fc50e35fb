"""
Custom exceptions and engine error taxonomy for the grammar detector
"""

from enum import Enum


class GrammarDetectorError(Exception):
    """Base exception for grammar detector errors"""
    pass


class ConfigurationError(GrammarDetectorError):
    """Raised when configuration is invalid or missing"""
    pass


class ContainerInitializationError(GrammarDetectorError):
    """Raised when dependency injection container fails to initialize"""
    pass


class EngineUnavailableError(GrammarDetectorError):
    """Raised when the requested transcription engine cannot be provided by the host"""
    pass


class ErrorCategory(Enum):
    """How the session treats an engine-reported error"""
    TRANSIENT_NO_SIGNAL = "transient_no_signal"  # Ticho, ignoruj
    USER_ABORTED = "user_aborted"  # Čisté ukončení, ne chyba
    ENGINE_FAILURE = "engine_failure"  # Hlásit přes 'error'


NO_SPEECH = "no-speech"
ABORTED = "aborted"


def classify_engine_error(kind: str) -> ErrorCategory:
    """Map an engine error kind (e.g. 'no-speech', 'network') onto an ErrorCategory."""
    if kind == NO_SPEECH:
        return ErrorCategory.TRANSIENT_NO_SIGNAL
    if kind == ABORTED:
        return ErrorCategory.USER_ABORTED
    return ErrorCategory.ENGINE_FAILURE

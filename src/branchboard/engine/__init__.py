"""Engine package: UCI protocol helpers, process transport and session."""

from branchboard.engine.models import AnalysisRequest, EngineLine, InfoLine, SessionState
from branchboard.engine.session import EngineSession, is_fatal_transport_error
from branchboard.engine.transport import (
    EngineTransport,
    QProcessTransport,
    TransportFactory,
    qprocess_transport_factory,
)

__all__ = [
    "AnalysisRequest",
    "EngineLine",
    "EngineSession",
    "EngineTransport",
    "InfoLine",
    "QProcessTransport",
    "SessionState",
    "TransportFactory",
    "is_fatal_transport_error",
    "qprocess_transport_factory",
]

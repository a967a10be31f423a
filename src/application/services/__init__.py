"""
アプリケーションサービスの公開API。
"""

from .config_resolver import ConfigOverrides, ConfigResolver, basic_authorization
from .flush_coordinator import DEFAULT_FLUSH_TIMEOUT_MILLIS, Closable, FlushCoordinator, Flushable
from .report_printer import NOTEWORTHY_PROPERTY_NAMES, ReportPrinter, noteworthy_properties
from .resource_describer import NULL_PLACEHOLDER, ResourceDescriber
from .signal_emitter import COUNTER_NAME, LOG_BODY, SPAN_NAME, SignalEmitter

__all__ = [
    "ConfigOverrides",
    "ConfigResolver",
    "basic_authorization",
    "DEFAULT_FLUSH_TIMEOUT_MILLIS",
    "Closable",
    "FlushCoordinator",
    "Flushable",
    "NOTEWORTHY_PROPERTY_NAMES",
    "ReportPrinter",
    "noteworthy_properties",
    "NULL_PLACEHOLDER",
    "ResourceDescriber",
    "COUNTER_NAME",
    "LOG_BODY",
    "SPAN_NAME",
    "SignalEmitter",
]

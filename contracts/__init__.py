"""Contracts shared across the converter.

The contracts package defines:
- the request/outcome types exchanged between the CLI and the converter
- the table spec and the SQL it renders
- the structural error hierarchy
- Protocol definitions for dependency injection

Main exports:
- ConversionRequest, ConversionOutcome, OutcomeKind, TableSpec
- Ok, Cancelled, PromptResult
- ConversionError, MalformedSourceError, SinkStructureError, SinkFinalizeError
- DatabaseSink
"""

from contracts import conversion
from contracts import interfaces

# Explicit re-exports to satisfy ruff F401
__all__ = [
    "Cancelled",
    "ConversionError",
    "ConversionOutcome",
    "ConversionRequest",
    "DatabaseSink",
    "MalformedSourceError",
    "Ok",
    "OutcomeKind",
    "PromptResult",
    "SinkFinalizeError",
    "SinkStructureError",
    "TableSpec",
]

Cancelled = conversion.Cancelled
ConversionError = conversion.ConversionError
ConversionOutcome = conversion.ConversionOutcome
ConversionRequest = conversion.ConversionRequest
MalformedSourceError = conversion.MalformedSourceError
Ok = conversion.Ok
OutcomeKind = conversion.OutcomeKind
PromptResult = conversion.PromptResult
SinkFinalizeError = conversion.SinkFinalizeError
SinkStructureError = conversion.SinkStructureError
TableSpec = conversion.TableSpec
DatabaseSink = interfaces.DatabaseSink

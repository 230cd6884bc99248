"""
Error taxonomy for the aggregation engine.

All errors derive from ValueError so callers that already guard the
numeric helpers with ``except ValueError`` keep working.
"""


class QuasiSurvivalError(ValueError):
    """Base class for all input errors raised by quasiSurvival."""


class SchemaError(QuasiSurvivalError):
    """Wrong container type, empty table or missing column."""


class ContractViolationError(QuasiSurvivalError):
    """Column lists of mismatched length, or values outside their domain."""


class StructuralError(QuasiSurvivalError):
    """A subject's time indices are not the complete interval 1..k."""

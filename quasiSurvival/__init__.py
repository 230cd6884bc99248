"""
quasiSurvival: Survival Curves from Quasi Observations

Re-aggregates per-step hazard predictions from a discrete-time
(person-period) classifier into population-level results.

Key Components:
- summarize_hazard / HazardSummarizer: survival, death intensity and
  expected lifetime per subject
- summarize_ages / summarize_ages_by_group / EmpiricalSurvival: empirical
  survival curves from uncensored ages
- Reporting helpers to build the long hazard table and overlay curves

Both aggregators split rows by subject (or group) and can run the
partitions in parallel through joblib.
"""

from .exceptions import (
    QuasiSurvivalError,
    SchemaError,
    ContractViolationError,
    StructuralError,
)
from .hazard_summary import (
    HazardSummary,
    HazardSummarizer,
    summarize_hazard,
    survival_from_hazard,
    death_intensity_from_survival,
    expected_lifetime_from_hazard,
)
from .empirical import EmpiricalSurvival, summarize_ages, summarize_ages_by_group
from .reporting import hazard_frame_from_matrix, average_by_group, overlay_empirical

__all__ = [
    # Errors
    'QuasiSurvivalError',
    'SchemaError',
    'ContractViolationError',
    'StructuralError',
    # Hazard aggregation
    'HazardSummary',
    'HazardSummarizer',
    'summarize_hazard',
    'survival_from_hazard',
    'death_intensity_from_survival',
    'expected_lifetime_from_hazard',
    # Empirical curves
    'EmpiricalSurvival',
    'summarize_ages',
    'summarize_ages_by_group',
    # Reporting
    'hazard_frame_from_matrix',
    'average_by_group',
    'overlay_empirical',
]

__version__ = "0.1.0"

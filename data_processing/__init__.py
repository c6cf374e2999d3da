"""
Data Processing Package.

This package turns typed equity rows into derived metrics.

Main modules:
- types: TypedRow and InstrumentRecord
- metrics: Per-row derived metrics using day aggregates
"""

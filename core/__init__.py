"""
Core Module Package.

This package contains the infrastructure components that
all other modules depend on.

Components:
- clock: Testable time abstraction and market-session checks
- exceptions: Pipeline exception hierarchy
- constants: Reference tables (symbols, months, markers)
"""

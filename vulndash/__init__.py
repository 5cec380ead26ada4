"""Core (UI-agnostic) vulnerability dashboard logic.

This package contains:
- data loading (CSV -> pandas records)
- filter selection state
- aggregation functions (ChartData payloads)
- chart helpers (Altair -> Vega-Lite spec dict)
- the render orchestrator behind a port interface
"""

"""Core (UI-agnostic) dashboard logic.

This package contains:
- observation loading (JSON/CSV -> Observation records)
- filter normalization and record filtering
- page compute functions (JSON-serializable payloads)
- chart helpers (Altair -> Vega-Lite spec dict) and color scales
"""

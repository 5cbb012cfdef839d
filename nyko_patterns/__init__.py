"""
NYKO Patterns — Validation and publishing tooling for the pattern library.

Architecture: Discover → Parse (YAML) → Validate (pure rules) → Report / Export / Sync
Philosophy:  Report every defect at once. Never repair a document silently.
"""

__version__ = "1.0.0"

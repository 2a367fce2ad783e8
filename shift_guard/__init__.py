"""NICU Shift Guard: PHI enforcement for shift-documentation records."""

__version__ = "0.1.0"

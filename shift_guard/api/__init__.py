"""HTTP surface for NICU Shift Guard."""

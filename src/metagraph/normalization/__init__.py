"""Metadata normalization: typed field access, credential extraction and
per-category document normalizers."""

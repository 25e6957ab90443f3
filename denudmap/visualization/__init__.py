"""Figures and map previews."""

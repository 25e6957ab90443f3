"""denudmap: global denudation-rate mapping with Random Forests on Earth Engine."""

__version__ = "0.1.0"

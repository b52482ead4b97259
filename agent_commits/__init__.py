"""Daily share of public GitHub commits made by AI coding agents."""

__version__ = "0.1.0"

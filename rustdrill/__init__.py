"""Run, verify, watch and track progress through a collection of Rust exercises."""

__version__ = "0.1.0"
__all__ = ["__version__"]
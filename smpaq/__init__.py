"""Multi-server private aggregate queries over OPRF-based set matching."""

__version__ = "0.1.0"
"""Access-control backend for the sales reporting dashboard."""

__version__ = "0.3.0"

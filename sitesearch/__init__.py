"""Site search sync: reconciles external documents into a local search table."""

__version__ = "0.1.0"

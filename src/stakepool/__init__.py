"""stakepool — constant-time pooled reward accounting."""

__version__ = "0.1.0"

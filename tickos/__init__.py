"""TickOS: a cooperative, tick-driven script runtime for a fantasy computer."""

__version__ = "0.1.0"

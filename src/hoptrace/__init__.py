"""Multi-round traceroute with hop reports and topology graphs."""

__version__ = "0.1.0"

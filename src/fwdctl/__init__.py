"""fwdctl — client and folder record management for a freight-forwarding back office."""

__version__ = "0.3.0"

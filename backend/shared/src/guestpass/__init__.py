"""Invitation access control: token links, identity checks and device quotas."""

__version__ = "0.1.0"

"""Priority-ranked role, permission and resource authorization core."""

__version__ = "0.1.0"

"""procrastinot - goal tracking that makes postponing hard."""

__version__ = "0.1.0"

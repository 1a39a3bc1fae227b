"""Jobly: job and company listings over a SQL store."""

__version__ = "0.1.0"

"""Baseline Active Directory objects and generate PowerShell remediation scripts."""

__version__ = "0.1.0"
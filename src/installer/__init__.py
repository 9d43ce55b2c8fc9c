"""Dependency installation engine."""

from .orchestrator import DependencyInstaller, InstallOutcome

__all__ = ["DependencyInstaller", "InstallOutcome"]

"""Orchestrator package - coordinates deploy runs."""
from .core import DeployOrchestrator
from .models import DeployReport, PackageOutput
from .selector import PackageSelector

__all__ = ["DeployOrchestrator", "DeployReport", "PackageOutput", "PackageSelector"]

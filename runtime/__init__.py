"""Process runtime: dependency wiring, lifecycle and entry point."""

from .container import DependencyContainer, EngineDependencies
from .lifecycle import LifecycleManager

__all__ = ["DependencyContainer", "EngineDependencies", "LifecycleManager"]

"""
Component registry with config-driven auto-registration.
"""
from __future__ import annotations

import importlib
import logging
from typing import Dict, Mapping, Optional

from core.components.base import Component

logger = logging.getLogger("component_registry")


class ComponentRegistry:
    def __init__(self) -> None:
        self._components: Dict[str, Component] = {}

    @property
    def components(self) -> Mapping[str, Component]:
        return self._components

    def register(self, component: Component, name: Optional[str] = None) -> None:
        name = name or component.name
        if name in self._components:
            raise ValueError(f"Component '{name}' is already registered")
        self._components[name] = component

    def has(self, name: str) -> bool:
        return name in self._components

    def get(self, name: str) -> Optional[Component]:
        return self._components.get(name)

    def load(self, modules: Mapping[str, str]) -> None:
        """Register components from modules exposing a module-level `component`.

        modules: dict of component name -> importable module path
        """
        for name, module_path in modules.items():
            try:
                mod = importlib.import_module(module_path)
                self.register(getattr(mod, "component"), name=name)
            except Exception as e:
                logger.warning(f"Failed to register component {name} from {module_path}: {e}")


registry = ComponentRegistry()

"""Registry for suites with autodiscovery."""

import importlib
import inspect
import pkgutil
from typing import Dict, List, Type

from wpmonke.suites.base import BaseSuite
from wpmonke.utils.logging import get_logger


class SuiteRegistry:
    """Registry for all available suites."""

    _suites: Dict[str, Type[BaseSuite]] = {}

    @classmethod
    def autodiscover(cls) -> None:
        """Discover and register suites in this package automatically."""
        logger = get_logger("suite_registry")
        package = __package__  # wpmonke.suites
        pkg_module = importlib.import_module(package)

        for _, mod_name, _ in pkgutil.iter_modules(pkg_module.__path__):
            if mod_name in ("base", "registry"):
                continue
            module = importlib.import_module(f"{package}.{mod_name}")

            for _, obj in inspect.getmembers(module, inspect.isclass):
                if issubclass(obj, BaseSuite) and obj is not BaseSuite:
                    suite_name = getattr(obj, "suite_name", None)
                    if suite_name and suite_name not in cls._suites:
                        cls._suites[suite_name] = obj
                        logger.debug(f"✅ Registered suite: {suite_name}")

    @classmethod
    def get(cls, suite_name: str) -> Type[BaseSuite]:
        """Get a suite class by name."""
        if not cls._suites:
            cls.autodiscover()
        if suite_name not in cls._suites:
            raise ValueError(
                f"Unknown suite: {suite_name} (available: {', '.join(sorted(cls._suites))})"
            )
        return cls._suites[suite_name]

    @classmethod
    def list_available(cls) -> List[str]:
        """List all available suite names."""
        if not cls._suites:
            cls.autodiscover()
        return sorted(cls._suites)

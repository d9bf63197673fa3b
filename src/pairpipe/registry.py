"""Extension registry for chainable pipeline operations.

Extensions are plain functions that receive the pipeline they are called on
as their first argument and usually return a new Pipeline built from its
cursor:

    @register_extension("every_other")
    def every_other(pipeline):
        def gen():
            while item := pipeline.consume():
                yield item
                pipeline.consume()
        return Pipeline.from_pairs(gen())

    Pipeline.from_([1, 2, 3, 4]).every_other().to_list()   # [1, 3]

Two ways to get an extension into the registry:
1. Decorator or extend() registration (always works)
2. Entry point discovery in the 'pairpipe.extensions' group (fallback when a
   name has not been registered yet)

Entry points are never imported at module import time.  On the first lookup
miss the eager mode (default) imports the whole group, while lazy import mode
(lazy_import config key or PAIRPIPE_LAZY_IMPORT env var) imports only the
entry point with the requested name.  The `.all` property loads everything
regardless.
"""

from typing import Callable, Dict, Optional, Set
import logging

logger = logging.getLogger(__name__)

ENTRY_POINT_GROUP = 'pairpipe.extensions'


def _get_lazy_import_setting() -> bool:
    """Get the lazy_import setting from configuration.

    Returns True if lazy loading is enabled, False for eager loading.
    """
    try:
        from pairpipe.util import constants
        from pairpipe.util.config import get_setting
        return get_setting(constants.LAZY_IMPORT)
    except Exception as e:
        logger.warning(f"Could not load lazy_import from config: {e}. Defaulting to eager loading.")
        return False


LAZY_IMPORT_MODE = _get_lazy_import_setting()


class OperationNotFoundError(AttributeError):
    """Raised when a pipeline operation name resolves to no registered extension."""

    def __init__(self, operation: str, available=()):
        self.operation = operation
        self.available = sorted(available)
        listing = ", ".join(self.available[:10])
        if len(self.available) > 10:
            listing += ", ..."
        super().__init__(
            f"Operation '{operation}' not found. "
            f"Registered extensions: {listing or '(none)'}"
        )


class ExtensionRegistry:
    """
    Name to function table with entry point fallback.

    Workflow for get():
    1. Return the function if it was registered by decorator or extend()
    2. Otherwise try the entry point group; importing the entry point runs
       its decorators, which register the function
    3. Otherwise raise OperationNotFoundError
    """

    def __init__(self,
                 entry_point_group: Optional[str] = None,
                 lazy_import: Optional[bool] = None):
        """
        Args:
            entry_point_group: Entry point group name (e.g., 'pairpipe.extensions').
                             If None, only in-process registration is supported.
            lazy_import: Force lazy import mode. If None, respects configuration setting.
        """
        self._registry: Dict[str, Callable] = {}
        self._entry_point_group = entry_point_group
        self._entry_points_cache: Optional[Dict] = None
        self._attempted_loads: Set[str] = set()
        self._loaded_modules: Set[str] = set()

        if lazy_import is not None:
            self._lazy_import = lazy_import
        else:
            self._lazy_import = LAZY_IMPORT_MODE

        logger.debug(
            f"Registry '{entry_point_group}' in "
            f"{'LAZY' if self._lazy_import else 'EAGER'} import mode"
        )

    def register(self, func: Callable, name: str) -> None:
        """Register an extension function under name, replacing any previous one."""
        if not callable(func):
            raise TypeError(f"Extension '{name}' must be callable, got {type(func).__name__}")

        if name in self._registry:
            existing = self._registry[name]
            if existing is not func:
                logger.warning(
                    f"Extension '{name}' already registered as {existing}. "
                    f"Overwriting with {func}."
                )

        self._registry[name] = func
        self._attempted_loads.discard(name)
        logger.debug(f"Registered '{name}' → {getattr(func, '__module__', '?')}.{getattr(func, '__qualname__', func)}")

    def unregister(self, name: str) -> None:
        self._registry.pop(name, None)

    def __contains__(self, name: str) -> bool:
        return name in self._registry

    def get(self, name: str) -> Callable:
        """
        Get an extension by name, using entry points as fallback.

        Raises:
            OperationNotFoundError: If name is not registered and no entry point provides it
        """
        if name in self._registry:
            return self._registry[name]

        # Avoid retry loops for known failures
        if name in self._attempted_loads:
            raise OperationNotFoundError(name, self._registry.keys())

        if self._entry_point_group:
            if self._lazy_import:
                if self._try_load_from_entry_point(name):
                    return self._registry[name]
            else:
                # Eager mode imports the whole group on the first miss
                self._load_all_entry_points()
                if name in self._registry:
                    return self._registry[name]

        self._attempted_loads.add(name)
        raise OperationNotFoundError(name, self._registry.keys())

    def _discover_entry_points(self):
        """Discover entry points once, rejecting duplicate names across packages."""
        if self._entry_points_cache is not None:
            return

        if not self._entry_point_group:
            self._entry_points_cache = {}
            return

        from importlib.metadata import entry_points
        ep_list = list(entry_points(group=self._entry_point_group))

        seen = {}
        conflicts = []

        for ep in ep_list:
            if ep.name in seen:
                existing_pkg = getattr(getattr(seen[ep.name], 'dist', None), 'name', 'unknown')
                new_pkg = getattr(getattr(ep, 'dist', None), 'name', 'unknown')
                conflicts.append(
                    f"  - Extension '{ep.name}' defined by:\n"
                    f"      • {seen[ep.name].value} (from package '{existing_pkg}')\n"
                    f"      • {ep.value} (from package '{new_pkg}')"
                )
            else:
                seen[ep.name] = ep

        if conflicts:
            raise ValueError(
                f"Entry point name collision detected in group '{self._entry_point_group}'.\n"
                f"Multiple packages are trying to register extensions with the same name:\n"
                + "\n".join(conflicts)
            )

        self._entry_points_cache = seen

        logger.debug(
            f"Discovered {len(self._entry_points_cache)} entry points "
            f"in group '{self._entry_point_group}'"
        )

    def _load_all_entry_points(self):
        self._discover_entry_points()

        for name in list(self._entry_points_cache.keys()):
            if name not in self._registry and name not in self._attempted_loads:
                self._try_load_from_entry_point(name)

    def _try_load_from_entry_point(self, name: str) -> bool:
        """
        Attempt to load an extension from entry points.

        Returns:
            True if the extension was loaded and registered
        """
        self._discover_entry_points()

        if name not in self._entry_points_cache:
            logger.debug(f"Extension '{name}' not found in entry points")
            return False

        ep = self._entry_points_cache[name]

        try:
            logger.info(
                f"Loading '{name}' from entry point: {ep.value} "
                f"(group: {self._entry_point_group})"
            )
            func = ep.load()

            if hasattr(func, '__module__'):
                self._loaded_modules.add(func.__module__)

            if name not in self._registry:
                # Entry point object was not decorated under this name
                logger.warning(
                    f"Entry point '{name}' loaded {func} but it was not "
                    f"registered under that name. Registering manually."
                )
                self.register(func, name)
            return True

        except Exception as e:
            logger.error(
                f"Failed to load '{name}' from entry point {ep.value}: {e}",
                exc_info=True
            )
            self._attempted_loads.add(name)
            return False

    @property
    def all(self) -> Dict[str, Callable]:
        """All registered extensions, loading every entry point first."""
        self._load_all_entry_points()
        return self._registry.copy()

    def list_entry_points(self) -> Dict[str, str]:
        """Map entry point names to "module:object" strings without importing them."""
        self._discover_entry_points()
        return {
            name: ep.value
            for name, ep in self._entry_points_cache.items()
        }

    def invalidate_cache(self):
        """Clear caches (useful for testing)."""
        self._entry_points_cache = None
        self._attempted_loads.clear()

    def stats(self) -> Dict[str, int]:
        self._discover_entry_points()

        return {
            'registered': len(self._registry),
            'entry_points': len(self._entry_points_cache),
            'loaded_modules': len(self._loaded_modules),
            'failed_loads': len(self._attempted_loads),
        }


extension_registry = ExtensionRegistry(entry_point_group=ENTRY_POINT_GROUP)


def register_extension(*names: str, name: str = None):
    """
    Decorator to register an extension function under one or more names.

    Usage:
        @register_extension("squares")
        def squares(pipeline):
            return pipeline.map(lambda x: x * x)

        # Register with multiple names
        @register_extension("evens", "even_only")
        def evens(pipeline):
            return pipeline.filter(lambda x: x % 2 == 0)

        # Keyword argument
        @register_extension(name="odds")
        def odds(pipeline):
            return pipeline.filter(lambda x: x % 2 == 1)

    Args:
        *names: One or more names to register the extension under (positional)
        name: Single name to register the extension under (keyword)
    """
    if name is not None:
        if names:
            raise ValueError("Cannot specify both positional names and 'name' keyword argument")
        names = (name,)

    if not names:
        raise ValueError("At least one name must be provided")

    def wrap(func):
        for extension_name in names:
            extension_registry.register(func, name=extension_name)
        return func
    return wrap


def extend(name: str, func: Callable) -> None:
    """Register func as a pipeline operation called name."""
    extension_registry.register(func, name=name)


def get_registry_stats():
    return {
        'extensions': extension_registry.stats(),
        'lazy_mode': LAZY_IMPORT_MODE,
    }


def enable_lazy_imports():
    """Enable lazy import mode programmatically."""
    global LAZY_IMPORT_MODE
    LAZY_IMPORT_MODE = True
    extension_registry._lazy_import = True
    logger.info("Enabled lazy import mode")


def disable_lazy_imports():
    """Disable lazy import mode (use eager loading) programmatically."""
    global LAZY_IMPORT_MODE
    LAZY_IMPORT_MODE = False
    extension_registry._lazy_import = False
    logger.info("Disabled lazy import mode (eager loading enabled)")

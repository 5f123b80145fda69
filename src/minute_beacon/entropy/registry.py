"""Name -> provider class lookup used to build the configured provider set.

Built-in providers register themselves on import with
``@register_entropy_source(name, priority=...)``. Packages can ship extra
providers under the ``minute_beacon.entropy_sources`` entry-point group;
those are loaded once, the first time a name is not found locally.

The registration also fixes where a provider mixes among others of the same
:class:`~minute_beacon.entropy.types.SourceKind`: the stream-counter
generator has to hash before the stream-cipher block generator regardless of
how ``BEACON_SOURCES`` lists them.
"""

from __future__ import annotations

import importlib.metadata
import logging
from typing import TYPE_CHECKING, ClassVar

from minute_beacon.entropy.base import EntropySource
from minute_beacon.exceptions import ConfigValidationError

if TYPE_CHECKING:
    from collections.abc import Callable

    from minute_beacon.config import BeaconConfig

logger = logging.getLogger("minute_beacon")

_ENTRY_POINT_GROUP = "minute_beacon.entropy_sources"


class EntropySourceRegistry:
    """Provider classes keyed by the names used in ``BeaconConfig.sources``."""

    _registry: ClassVar[dict[str, type[EntropySource]]] = {}
    _entry_points_loaded: ClassVar[bool] = False

    @classmethod
    def register(
        cls,
        name: str,
        *,
        priority: int | None = None,
    ) -> Callable[[type[EntropySource]], type[EntropySource]]:
        """Class decorator registering a provider under *name*.

        Args:
            name: Config name of the provider (e.g. ``'fortuna'``).
            priority: Mixing position among providers of the same kind,
                lower first. Left at the class default when omitted.
        """

        def decorator(source_cls: type[EntropySource]) -> type[EntropySource]:
            if priority is not None:
                source_cls.priority = priority
            cls._registry[name] = source_cls
            return source_cls

        return decorator

    @classmethod
    def get(cls, name: str) -> type[EntropySource]:
        """Return the provider class registered as *name*.

        Raises:
            KeyError: If neither a built-in nor a plugin uses *name*.
        """
        if name not in cls._registry and not cls._entry_points_loaded:
            cls._load_entry_points()
        try:
            return cls._registry[name]
        except KeyError:
            available = ", ".join(sorted(cls._registry)) or "(none)"
            raise KeyError(f"Unknown entropy source: {name!r}. Available: {available}") from None

    @classmethod
    def build(cls, name: str, config: BeaconConfig) -> EntropySource:
        """Instantiate provider *name* from *config*.

        Raises:
            ConfigValidationError: If *name* is not registered, or the built
                provider reports a different name (its contributions would
                be tagged under the wrong key).
        """
        try:
            source_cls = cls.get(name)
        except KeyError as exc:
            raise ConfigValidationError(exc.args[0]) from exc

        source = source_cls.from_config(config)
        if source.name != name:
            source.close()
            raise ConfigValidationError(
                f"Entropy source registered as {name!r} reports name {source.name!r}"
            )
        return source

    @classmethod
    def list_available(cls) -> list[str]:
        """Sorted names of every built-in and plugin provider."""
        if not cls._entry_points_loaded:
            cls._load_entry_points()
        return sorted(cls._registry)

    @classmethod
    def _load_entry_points(cls) -> None:
        cls._entry_points_loaded = True
        try:
            eps = importlib.metadata.entry_points(group=_ENTRY_POINT_GROUP)
        except Exception:  # Broken metadata must not take the beacon down
            logger.warning("Failed to read entry points for %s", _ENTRY_POINT_GROUP, exc_info=True)
            return

        for ep in eps:
            if ep.name in cls._registry:
                continue
            try:
                source_cls = ep.load()
            except Exception:  # One bad plugin must not hide the rest
                logger.warning(
                    "Failed to load entropy source plugin %r (%s)",
                    ep.name,
                    ep.value,
                    exc_info=True,
                )
                continue
            if not (isinstance(source_cls, type) and issubclass(source_cls, EntropySource)):
                logger.warning("Ignoring plugin %r: %r is not an EntropySource", ep.name, source_cls)
                continue
            cls._registry[ep.name] = source_cls
            logger.debug("Loaded entropy source %r from plugin %s", ep.name, ep.value)


register_entropy_source = EntropySourceRegistry.register

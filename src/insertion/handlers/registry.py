"""
Handler registry (class registry).

Maps canonical model names ("User", "BlogPost") to handler classes. The dispatcher
asks the registry for a model's handler and falls back to `BareInsert` when it has none.

Policy:
- Key: the classified `model=` argument, or the handler class name with the suffix
  stripped (`UserInsert` -> `User`).
- Duplicate: the same class registering the same key again is a no-op (DEBUG log only).
- Collision: a different class for an existing key raises `HandlerRegistrationError`
  unless `replace=True`.
- Only `Insert` subclasses are accepted; `BareInsert` is never registered.
- Registration never modifies the handler class: the key (and so the model written to)
  belongs to this registry only.
"""
from __future__ import annotations

import importlib
import inspect
import logging
import threading
from types import ModuleType
from typing import Iterable, Iterator

from insertion.config import get_settings
from insertion.exceptions import HandlerRegistrationError
from insertion.utils.naming import classify, model_name_from_handler

from .base_handler import Insert
from .bare_handler import BareInsert

logger = logging.getLogger(__name__)

__all__ = [
    "HandlerRegistry",
    "handlers",
    "autodiscover",
]


class HandlerRegistry:
    """Registry of handler **classes** keyed by canonical model name."""

    def __init__(self, suffix: str | None = None) -> None:
        self._suffix = suffix
        self._by_model: dict[str, type[Insert]] = {}
        self._lock = threading.RLock()

    @property
    def suffix(self) -> str:
        # read lazily so a registry created at import time follows the settings in effect
        return self._suffix or get_settings().INSERTION_HANDLER_SUFFIX

    # ---- helpers ----
    def _key_for(self, cls: type, model: str | None) -> str:
        if not (isinstance(cls, type) and issubclass(cls, Insert)) or cls is Insert:
            raise HandlerRegistrationError(f"{cls!r} is not an Insert subclass")
        if issubclass(cls, BareInsert):
            raise HandlerRegistrationError("BareInsert handlers are used as fallback and cannot be registered",
                                           class_name=cls)

        if model is not None:
            return classify(model)

        if cls.model_name:
            return classify(cls.model_name)

        name = model_name_from_handler(cls.__name__, self.suffix)
        if name is None:
            raise HandlerRegistrationError(
                f"handler class name must end with '{self.suffix}' or pass model=", class_name=cls
            )
        return name

    # ---- registration API ----
    def register(self, cls: type[Insert] | None = None, *, model: str | None = None, replace: bool = False):
        """
        Register a handler class. Usable directly or as a decorator:

            handlers.register(UserInsert)

            @handlers.register
            class UserInsert(Insert): ...

            @handlers.register(model="accounts")
            class SignupInsert(Insert): ...
        """
        def _register(handler_cls: type[Insert]) -> type[Insert]:
            key = self._key_for(handler_cls, model)

            with self._lock:
                existing = self._by_model.get(key)
                if existing is handler_cls:
                    logger.debug("registry.duplicate", extra={"model": key, "handler": handler_cls.__name__})
                    return handler_cls
                if existing is not None and not replace:
                    raise HandlerRegistrationError(
                        f"model '{key}' already has handler '{existing.__name__}'", class_name=handler_cls
                    )

                self._by_model[key] = handler_cls

            logger.debug("registry.registered", extra={"model": key, "handler": handler_cls.__name__})
            return handler_cls

        if cls is None:
            return _register
        return _register(cls)

    def unregister(self, model: str) -> type[Insert] | None:
        with self._lock:
            return self._by_model.pop(classify(model), None)

    def clear(self) -> None:
        with self._lock:
            self._by_model.clear()

    # ---- resolution API ----
    def get(self, model: str) -> type[Insert] | None:
        return self._by_model.get(classify(model))

    def __contains__(self, model: object) -> bool:
        return isinstance(model, str) and self.get(model) is not None

    def __len__(self) -> int:
        return len(self._by_model)

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self._by_model))

    # ---- discovery ----
    def register_module(self, module: ModuleType | str) -> list[type[Insert]]:
        """
        Register every handler class defined in `module` whose name ends with the suffix.
        """
        if isinstance(module, str):
            module = importlib.import_module(module)

        found = []
        for name, obj in inspect.getmembers(module, inspect.isclass):
            # only classes defined in this module, not ones it imports
            if obj.__module__ != module.__name__:
                continue
            if not issubclass(obj, Insert) or issubclass(obj, BareInsert) or obj is Insert:
                continue
            if model_name_from_handler(name, self.suffix) is None:
                continue
            self.register(obj)
            found.append(obj)

        logger.debug("registry.module_scanned", extra={"module": module.__name__, "handlers": [c.__name__ for c in found]})
        return found


# Process-wide default registry
handlers = HandlerRegistry()


def autodiscover(module_paths: Iterable[str] | None = None, registry: HandlerRegistry | None = None) -> list[type[Insert]]:
    """
    Import handler modules and register their handlers; call once at startup.

    Defaults to the dotted paths in `INSERTION_HANDLER_MODULES` and the default registry.
    Import errors propagate: a configured module that cannot be imported is a deployment error.
    """
    registry = registry if registry is not None else handlers
    if module_paths is None:
        module_paths = get_settings().INSERTION_HANDLER_MODULES
    module_paths = list(module_paths)

    found: list[type[Insert]] = []
    for path in module_paths:
        found.extend(registry.register_module(path))

    logger.info("registry.autodiscover.done", extra={"modules": list(module_paths), "count": len(found)})
    return found

from typing import Any

from .base_handler import Insert


class BareInsert(Insert):
    """
    Fallback handler for models without a registered handler.

    Writes the caller's attributes unchanged to the given model; no hooks.
    """

    def __init__(self, model: type, /, **attributes: Any):
        self._model = model
        super().__init__(**attributes)

    def __repr__(self) -> str:
        return f"<BareInsert(model={self._model.__name__}, keys={sorted(self.attributes)!r})>"

"""Extension hooks and the registry that drivers receive at construction."""

import logging
from typing import TYPE_CHECKING, Iterator, List, Optional

from ..drivers.models import ResultSet, Statement

if TYPE_CHECKING:
    from ..drivers.base import BaseDriver

logger = logging.getLogger(__name__)


class Extension:
    """Base class for driver extensions.

    Hooks run around user queries and batches only; catalog queries
    issued during introspection do not pass through them.
    """

    name: str = "extension"

    def before_query(self, driver: "BaseDriver", statements: List[Statement]) -> None:
        pass

    def after_query(
        self,
        driver: "BaseDriver",
        statements: List[Statement],
        results: Optional[List[ResultSet]],
        duration_ms: float,
        error: Optional[BaseException] = None,
    ) -> None:
        pass

    def close(self) -> None:
        """Release resources held by the extension."""
        pass


class ExtensionRegistry:
    """Explicit collection of extensions, injected into drivers.

    A failing extension is logged and skipped; it never changes the
    outcome of the query it observes.
    """

    def __init__(self, extensions: Optional[List[Extension]] = None):
        self._extensions: List[Extension] = list(extensions or [])

    def register(self, extension: Extension) -> None:
        self._extensions.append(extension)

    def unregister(self, name: str) -> bool:
        """Remove every extension with the given name."""
        before = len(self._extensions)
        self._extensions = [e for e in self._extensions if e.name != name]
        return len(self._extensions) != before

    def get(self, name: str) -> Optional[Extension]:
        for extension in self._extensions:
            if extension.name == name:
                return extension
        return None

    def __iter__(self) -> Iterator[Extension]:
        return iter(list(self._extensions))

    def __len__(self) -> int:
        return len(self._extensions)

    def before_query(self, driver: "BaseDriver", statements: List[Statement]) -> None:
        for extension in self:
            try:
                extension.before_query(driver, statements)
            except Exception as e:
                logger.warning("Extension %s failed in before_query: %s", extension.name, e)

    def after_query(
        self,
        driver: "BaseDriver",
        statements: List[Statement],
        results: Optional[List[ResultSet]],
        duration_ms: float,
        error: Optional[BaseException] = None,
    ) -> None:
        for extension in self:
            try:
                extension.after_query(driver, statements, results, duration_ms, error)
            except Exception as e:
                logger.warning("Extension %s failed in after_query: %s", extension.name, e)

    def close(self) -> None:
        for extension in self:
            extension.close()

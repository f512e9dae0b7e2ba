"""Registry of live target controllers."""

from collections.abc import Callable, Generator
from contextlib import contextmanager

from reposync.core.logger.logger import get_logger
from reposync.propagation.target import TargetController

logger = get_logger(__name__)


class HandlerRegistry:
    """Tracks controllers that still own a working copy.

    Handles are opaque integers; releasing a handle deregisters and cleans
    up its controller exactly once.
    """

    def __init__(self) -> None:
        self._handlers: dict[int, TargetController] = {}
        self._next_id = 0

    def __len__(self) -> int:
        return len(self._handlers)

    def __contains__(self, handle: int) -> bool:
        return handle in self._handlers

    def register(self, controller: TargetController) -> int:
        """Register a controller and return its handle."""
        handle = self._next_id
        self._next_id += 1
        self._handlers[handle] = controller
        return handle

    def get(self, handle: int) -> TargetController | None:
        return self._handlers.get(handle)

    def release(self, handle: int) -> None:
        """Deregister and clean up a controller. Unknown handles are ignored."""
        controller = self._handlers.pop(handle, None)
        if controller is not None:
            controller.cleanup()

    def release_all(self) -> int:
        """Release every registered controller.

        Returns:
            Number of controllers released.
        """
        handles = list(self._handlers)
        for handle in handles:
            self.release(handle)
        if handles:
            logger.debug(f"Released {len(handles)} target controller(s)")
        return len(handles)

    @contextmanager
    def lease(self, factory: Callable[[], TargetController]) -> Generator[TargetController, None, None]:
        """Create, register and always release a controller.

        Args:
            factory: Builds a fresh controller.

        Yields:
            The registered controller.
        """
        controller = factory()
        handle = self.register(controller)
        try:
            yield controller
        finally:
            self.release(handle)

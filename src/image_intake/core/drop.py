"""Drag-and-drop intake: hover bookkeeping and extraction of dropped sources.

A drop zone turns host drag events into the same ordered list of byte
sources a file picker would hand over, so the orchestrator never needs to
know which path a batch came from.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Optional, Union

from .logging_config import get_logger
from .models import FileByteSource
from .protocols import (
    ByteSourceProtocol,
    DataTransferProtocol,
    DragEventProtocol,
    EventTargetProtocol,
)

DRAG_ENTER = "dragenter"
DRAG_OVER = "dragover"
DRAG_LEAVE = "dragleave"
DROP = "drop"
DRAG_EVENTS = (DRAG_ENTER, DRAG_OVER, DRAG_LEAVE, DROP)

logger = get_logger("drop")


def _noop(*args: Any) -> None:
    return None


def sources_from_paths(paths: Iterable[Union[str, Path]]) -> List[FileByteSource]:
    """The selection a file picker would produce for ``paths``, in order."""
    return [FileByteSource(path=Path(path)) for path in paths]


def extract_sources(data_transfer: Optional[DataTransferProtocol]) -> List[ByteSourceProtocol]:
    """
    Pull the dropped files out of a drop payload, in order.

    The structured item list is preferred because it tells files apart from
    dragged text or links; the flat file list is the fallback for hosts that
    do not provide items.
    """
    if data_transfer is None:
        return []

    items = getattr(data_transfer, "items", None)
    if items is not None:
        sources = []
        for item in items:
            if getattr(item, "kind", None) != "file":
                continue
            source = item.get_as_file()
            if source is not None:
                sources.append(source)
        return sources

    files = getattr(data_transfer, "files", None) or []
    return [source for source in files if source is not None]


@dataclass
class DragState:
    """Nesting counter for one attached drop zone."""

    depth: int = 0

    def enter(self) -> bool:
        """Count an enter; True when the pointer just arrived."""
        self.depth += 1
        return self.depth == 1

    def leave(self) -> bool:
        """Count a leave; True when the pointer has left entirely."""
        if self.depth == 0:
            return False
        self.depth -= 1
        return self.depth == 0

    def reset(self) -> None:
        self.depth = 0

    @property
    def hovering(self) -> bool:
        return self.depth > 0


class DropExtractor:
    """
    Listens for drag events on a target and reports hover and drops.

    Args:
        on_enter: Called once when a drag first enters the zone.
        on_leave: Called when the drag leaves the zone or a drop lands.
        on_drop: Called with the non-empty, ordered list of dropped sources.
    """

    def __init__(
        self,
        on_enter: Optional[Callable[[], None]] = None,
        on_leave: Optional[Callable[[], None]] = None,
        on_drop: Optional[Callable[[List[ByteSourceProtocol]], None]] = None,
    ) -> None:
        self.state = DragState()
        self._on_enter = on_enter or _noop
        self._on_leave = on_leave or _noop
        self._on_drop = on_drop or _noop
        self._handlers: Dict[str, Callable[[DragEventProtocol], None]] = {
            DRAG_ENTER: self.handle_drag_enter,
            DRAG_OVER: self.handle_drag_over,
            DRAG_LEAVE: self.handle_drag_leave,
            DROP: self.handle_drop,
        }

    @property
    def handlers(self) -> Dict[str, Callable[[DragEventProtocol], None]]:
        return dict(self._handlers)

    @staticmethod
    def _suppress_default(event: DragEventProtocol) -> None:
        event.prevent_default()
        event.stop_propagation()

    def handle_drag_enter(self, event: DragEventProtocol) -> None:
        self._suppress_default(event)
        if self.state.enter():
            self._on_enter()

    def handle_drag_over(self, event: DragEventProtocol) -> None:
        self._suppress_default(event)

    def handle_drag_leave(self, event: DragEventProtocol) -> None:
        self._suppress_default(event)
        if self.state.leave():
            self._on_leave()

    def handle_drop(self, event: DragEventProtocol) -> None:
        self._suppress_default(event)
        self.state.reset()
        self._on_leave()

        sources = extract_sources(getattr(event, "data_transfer", None))
        logger.debug(f"Drop delivered {len(sources)} file(s)")
        if sources:
            self._on_drop(sources)

    def handle_event(self, event: DragEventProtocol) -> None:
        """Dispatch any drag event by its type; unknown types are ignored."""
        handler = self._handlers.get(getattr(event, "type", ""))
        if handler is not None:
            handler(event)


@dataclass
class DropZoneHandle:
    """Returned by ``attach``; ``detach`` removes every listener it added."""

    target: EventTargetProtocol
    extractor: DropExtractor
    attached: bool = True

    def detach(self) -> None:
        if not self.attached:
            return
        for event_type, handler in self.extractor.handlers.items():
            self.target.remove_event_listener(event_type, handler)
        self.extractor.state.reset()
        self.attached = False


def attach(
    target: EventTargetProtocol,
    on_enter: Optional[Callable[[], None]] = None,
    on_leave: Optional[Callable[[], None]] = None,
    on_drop: Optional[Callable[[List[ByteSourceProtocol]], None]] = None,
) -> DropZoneHandle:
    """Make ``target`` a drop zone. Each call gets its own DragState."""
    extractor = DropExtractor(on_enter=on_enter, on_leave=on_leave, on_drop=on_drop)
    for event_type, handler in extractor.handlers.items():
        target.add_event_listener(event_type, handler)
    return DropZoneHandle(target=target, extractor=extractor)


@dataclass
class SimpleEventTarget:
    """In-process listener registry for hosts without an event system."""

    listeners: Dict[str, List[Callable[[Any], None]]] = field(default_factory=dict)

    def add_event_listener(self, event_type: str, listener: Callable[[Any], None]) -> None:
        self.listeners.setdefault(event_type, []).append(listener)

    def remove_event_listener(self, event_type: str, listener: Callable[[Any], None]) -> None:
        registered = self.listeners.get(event_type, [])
        if listener in registered:
            registered.remove(listener)

    def dispatch(self, event: Any) -> None:
        for listener in list(self.listeners.get(getattr(event, "type", ""), [])):
            listener(event)

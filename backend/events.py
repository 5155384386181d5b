"""Change events emitted by the mutation service."""

from dataclasses import dataclass, field
from typing import Any, Callable

NEW_POST = "newPost"
NEW_REPLY = "newReply"
POST_UPDATED = "postUpdated"


@dataclass(frozen=True)
class ForumEvent:
    name: str
    data: Any = field(default_factory=dict)

    def to_frame(self) -> dict:
        return {"event": self.name, "data": self.data}


EventSink = Callable[[ForumEvent], None]


class EventLog:
    """In-memory sink recording events in emission order."""

    def __init__(self) -> None:
        self.events: list[ForumEvent] = []

    def __call__(self, event: ForumEvent) -> None:
        self.events.append(event)

    @property
    def names(self) -> list[str]:
        return [e.name for e in self.events]

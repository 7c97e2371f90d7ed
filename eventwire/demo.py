"""A scripted publish/subscribe exchange used by ``eventwire demo``."""

from __future__ import annotations

from dataclasses import dataclass

from .listener import Listener, on
from .publisher import Publisher


@dataclass
class SuccessEvent:
    message: str


@dataclass
class FailureEvent:
    message: str


class Command(Publisher):
    def execute(self, be_successful: bool) -> None:
        if be_successful:
            self.broadcast("success", message="hello")
            self.broadcast(SuccessEvent(message="hello"))
        else:
            self.broadcast("failure", "world")
            self.broadcast(FailureEvent("world"))


class ClassicListener:
    def __init__(self) -> None:
        self.lines: list[str] = []

    def success(self, message: str) -> None:
        self.lines.append(f"classic listener: success(message={message!r})")

    def failure(self, message: str) -> None:
        self.lines.append(f"classic listener: failure({message!r})")


class StructuredListener(Listener):
    def __init__(self) -> None:
        self.lines: list[str] = []

    @on(SuccessEvent)
    def record_success(self, event: SuccessEvent) -> None:
        self.lines.append(f"structured listener: SuccessEvent({event.message!r})")

    @on(FailureEvent)
    def record_failure(self, event: FailureEvent) -> None:
        self.lines.append(f"structured listener: FailureEvent({event.message!r})")


def run_demo(succeed: bool = True) -> list[str]:
    """Broadcast one symbolic and one structured event; return what was received."""

    classic = ClassicListener()
    structured = StructuredListener()
    command = Command().subscribe(classic).subscribe(structured)
    command.execute(succeed)
    return classic.lines + structured.lines

from typing import Any
from typing import Callable
from typing import Optional

import pytest


class RecordingWidget(object):
    """
    Widget that records every snapshot it is given and can emit changes the
    way a real widget would after user input.
    """

    def __init__(self, name: str = "widget") -> None:
        self.__name__ = name
        self.received: list[dict[str, Any]] = []
        self.callbacks: list[Callable[[Any], None]] = []
        self.released = 0

    def update(self, config: dict[str, Any]) -> None:
        self.received.append(config)

    def on_changed(self, callback: Callable[[Any], None]) -> Callable[[], None]:
        self.callbacks.append(callback)

        def release() -> None:
            self.released += 1
            self.callbacks.remove(callback)

        return release

    def emit(self, change: Any) -> None:
        for callback in list(self.callbacks):
            callback(change)

    @property
    def last(self) -> Optional[dict[str, Any]]:
        return self.received[-1] if self.received else None


@pytest.fixture
def make_widget() -> Callable[..., RecordingWidget]:
    return RecordingWidget

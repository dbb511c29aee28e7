"""Status message area for tmuxman UI."""

import time

from textual.widgets import Static


class StatusArea(Static):
    """Shows recent status messages until they expire."""

    MAX_MESSAGES = 3
    CHECK_INTERVAL = 0.5

    def __init__(self, duration: float = 4.0) -> None:
        super().__init__("", id="status-area")
        self.duration = duration
        self._messages: dict[int, tuple[str, bool, float]] = {}
        self._next_id = 0

    def on_mount(self) -> None:
        self.set_interval(self.CHECK_INTERVAL, self._check_expired)

    def show_message(self, message: str, error: bool = False) -> None:
        msg_id = self._next_id
        self._next_id += 1
        self._messages[msg_id] = (message, error, time.time() + self.duration)

        while len(self._messages) > self.MAX_MESSAGES:
            del self._messages[min(self._messages)]

        self._update_display()

    def _check_expired(self) -> None:
        now = time.time()
        expired = [msg_id for msg_id, (_, _, expire) in self._messages.items() if now >= expire]
        if expired:
            for msg_id in expired:
                del self._messages[msg_id]
            self._update_display()

    def _update_display(self) -> None:
        if self._messages:
            newest_first = sorted(self._messages.items(), reverse=True)
            self.update("\n".join(msg for _, (msg, _, _) in newest_first))
            self.add_class("visible")
            newest_error = newest_first[0][1][1]
            self.set_class(newest_error, "error")
        else:
            self.update("")
            self.remove_class("visible", "error")

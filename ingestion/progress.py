"""
Observable progress log for user-facing import feedback.

The log is an ordered sequence of ``LogMessage`` entries. Appending a message
whose text equals the last entry's text replaces that entry instead, so a
stream of "Loading data from URL..." ticks updates one visible line.

Subscribers receive an immutable snapshot (a tuple) right away and after
every change. Operator logging goes through the standard ``logging`` module;
this log is what the person importing the data sees.
"""

from typing import Any, Callable, List, Tuple

from core.exceptions import LoggableError
from schemas.progress import LogMessage

Snapshot = Tuple[LogMessage, ...]
Subscriber = Callable[[Snapshot], None]


class ProgressLog:
    """
    Append-ordered message sink with last-entry coalescing.

    One instance is created per import and passed explicitly to every
    component that reports progress.
    """

    def __init__(self):
        self._messages: Snapshot = ()
        self._subscribers: List[Subscriber] = []

    @property
    def messages(self) -> Snapshot:
        """Current snapshot of the log"""
        return self._messages

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """
        Register ``callback`` for snapshots.

        The callback is invoked immediately with the current snapshot.

        Returns:
            A function that removes the subscription
        """
        self._subscribers.append(callback)
        callback(self._messages)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def info(self, text: str, **options: Any) -> None:
        self._append(LogMessage(text=text, **options))

    def error(self, text: str, **options: Any) -> None:
        options["error"] = True
        self._append(LogMessage(text=text, **options))

    def exception(self, exc: object) -> None:
        """Append an error entry describing ``exc``."""
        if isinstance(exc, LoggableError):
            options = dict(exc.logger_options)
            options["error"] = True
            self._append(LogMessage(text=exc.message, **options))
        elif isinstance(exc, BaseException):
            self._append(LogMessage(text=str(exc) or type(exc).__name__, error=True))
        else:
            self._append(LogMessage(text=str(exc), error=True))

    def clear(self) -> None:
        self._messages = ()
        self._notify()

    def _append(self, message: LogMessage) -> None:
        current = self._messages
        if current and current[-1].text == message.text:
            self._messages = current[:-1] + (message,)
        else:
            self._messages = current + (message,)
        self._notify()

    def _notify(self) -> None:
        snapshot = self._messages
        for callback in list(self._subscribers):
            callback(snapshot)

"""Cooperative cancellation."""


class CancellationToken:
    """Shared cancellation signal passed into long-running operations.

    Cancellation is cooperative: operations poll ``is_cancelled()`` at well
    defined points and stop issuing new work once it returns True.
    """

    def __init__(self) -> None:
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    def is_cancelled(self) -> bool:
        return self._cancelled

    def __repr__(self) -> str:
        return f"CancellationToken(cancelled={self._cancelled})"

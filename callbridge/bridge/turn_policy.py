"""Turn-taking policy for the model input buffer.

The realtime protocol does not close turns on its own in this setup: the
bridge has to commit the input buffer and ask for a response. A turn is
closed every ``commit_every`` caller chunks, and always when the caller
stream stops.
"""


class TurnPolicy:
    """Fixed-cadence turn accumulator.

    With ``commit_every=1`` every chunk closes a turn (pure passthrough).
    """

    def __init__(self, commit_every: int) -> None:
        """Initialize turn policy.

        Args:
            commit_every: Number of media chunks per forced turn

        Raises:
            ValueError: If commit_every is not positive
        """
        if commit_every <= 0:
            raise ValueError(f"commit_every must be positive, got {commit_every}")

        self._commit_every = commit_every
        self._pending = 0
        self._turns = 0

    @property
    def commit_every(self) -> int:
        """Configured cadence in chunks."""
        return self._commit_every

    @property
    def pending(self) -> int:
        """Media chunks received since the last commit."""
        return self._pending

    @property
    def turns(self) -> int:
        """Turns closed so far."""
        return self._turns

    def on_media(self) -> bool:
        """Count one caller chunk.

        Returns:
            True if this chunk closes a turn (the accumulator is then reset)
        """
        self._pending += 1
        if self._pending >= self._commit_every:
            self._close_turn()
            return True
        return False

    def on_stop(self) -> None:
        """Close the turn unconditionally."""
        self._close_turn()

    def reset(self) -> None:
        """Reset the accumulator without closing a turn."""
        self._pending = 0

    def _close_turn(self) -> None:
        self._pending = 0
        self._turns += 1

class DisplayError(Exception):
    """Base class for display-side failures. None of them are fatal to a session."""


class MediaLoadError(DisplayError):
    """A playlist entry could not be loaded or rendered."""

    def __init__(self, entry_id: str, reason: str = ""):
        self.entry_id = entry_id
        self.reason = reason
        super().__init__(f"Failed to load {entry_id}: {reason}" if reason else f"Failed to load {entry_id}")


class SyncError(DisplayError):
    """The content server answered, but not with something we can use."""

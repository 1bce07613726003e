"""pandas integration."""

from shapesketch.data.frames import facts_frame, profile_frame, profile_series

__all__ = ["facts_frame", "profile_frame", "profile_series"]

from .resolver import DEFAULT_CHANNELS, DEFAULT_SUFFIXES, NO_DEPLOY, ChannelResolution, resolve_channel
from .segments import compose_segments, join_segments, lookup_translation, split_segments, translate_first_segment

__all__ = [
    "DEFAULT_CHANNELS",
    "DEFAULT_SUFFIXES",
    "NO_DEPLOY",
    "ChannelResolution",
    "compose_segments",
    "join_segments",
    "lookup_translation",
    "resolve_channel",
    "split_segments",
    "translate_first_segment",
]

"""Decoding of M3U8 playlists whose kind is not known in advance."""

from __future__ import annotations

from typing import Union

from hlstools.media import Media
from hlstools.multivariant import Multivariant
from hlstools.primitives import PlaylistError

Playlist = Union[Multivariant, Media]


def unmarshal(data: bytes | str) -> Playlist:
    """Detect whether ``data`` is a multivariant or a media playlist and decode it."""
    text = data if isinstance(data, str) else data.decode("utf-8", errors="replace")

    # only newline-terminated lines take part in detection
    for line in text.split("\n")[:-1]:
        if line.startswith("#EXT-X-STREAM-INF:"):
            return Multivariant.unmarshal(text)
        if line.startswith("#EXTINF:"):
            return Media.unmarshal(text)

    raise PlaylistError("unable to detect the playlist type")
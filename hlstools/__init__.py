"""HLS playlists, codec parameter strings, part durations and segment storage."""

__version__ = "0.1.0"
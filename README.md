# hlstools

Building blocks for HTTP Live Streaming (HLS) in pure Python, with no
third-party dependencies.

## Modules

- `hlstools.playlist` – `unmarshal(data)` reads an M3U8 playlist (bytes or
  str) and returns either a `Multivariant` or a `Media` playlist, depending on
  whether it finds an `#EXT-X-STREAM-INF:` or an `#EXTINF:` line first.
- `hlstools.multivariant` – `Multivariant`, `MultivariantVariant`,
  `MultivariantRendition`, `MultivariantStart` and the `RenditionType` enum.
  Each class has a classmethod `unmarshal(...)` and a `marshal()` method.
- `hlstools.media` – `Media` and its tags: `MediaSegment`, `MediaPart`,
  `MediaPartInf`, `MediaMap`, `MediaSkip`, `MediaServerControl`,
  `MediaPreloadHint`, plus the `MediaPlaylistType` enum and `parse_time(v)`,
  which accepts `Z`, `+hh:mm` and `+hhmm` zones. Low-latency HLS tags are
  supported.
- `hlstools.primitives` – the shared helpers (`read_line`,
  `unmarshal_header`, `unmarshal_attributes`, `unmarshal_byte_range`,
  `marshal_byte_range`, `unmarshal_duration`) and `PlaylistError`, a
  `ValueError` raised whenever a playlist cannot be decoded.
- `hlstools.codec_types` – frozen dataclasses describing codecs (`AV1`, `VP9`,
  `H264`, `H265`, `Opus`, `MPEG4Audio` with its `MPEG4AudioConfig`) and
  `Track`.
- `hlstools.codecparams` – `marshal(codec)` builds the `CODECS` attribute
  value for a codec, such as `avc1.42c028`, `hvc1.1.6.L120.90` or
  `mp4a.40.2`. It returns `""` when the codec data cannot be read.
- `hlstools.partduration` – helpers for low-latency fMP4 streams:
  `fmp4_time_scale(codec)` and `find_compatible_part_duration(min, durations)`,
  which searches in 5 ms steps (up to 5 seconds) for a part duration that
  keeps every part above 85% of its maximum length.
- `hlstools.storage` – files made of consecutive parts, kept in memory
  (`RAMFactory`, `RAMFile`, `RAMPart`) or on disk (`DiskFactory`, `DiskFile`,
  `DiskPart`).

## Installing

```
pip install .
```

## Reading a playlist

```python
from hlstools.multivariant import Multivariant
from hlstools.playlist import unmarshal

with open("index.m3u8", "rb") as fh:
    pl = unmarshal(fh.read())

if isinstance(pl, Multivariant):
    for variant in pl.variants:
        print(variant.bandwidth, variant.codecs, variant.uri)
else:
    for segment in pl.segments:
        print(segment.duration, segment.uri)
```

## Writing a media playlist

```python
from datetime import timedelta
from hlstools.media import Media, MediaSegment

pl = Media(
    version=3,
    target_duration=2,
    media_sequence=0,
    segments=[MediaSegment(duration=timedelta(seconds=2), uri="seg0.ts")],
)
print(pl.marshal().decode())
```

`marshal()` returns bytes.

## Codec parameters

```python
from hlstools.codec_types import MPEG4Audio, MPEG4AudioConfig
from hlstools.codecparams import marshal

marshal(MPEG4Audio(config=MPEG4AudioConfig(type=2, sample_rate=44100, channel_count=2)))
# 'mp4a.40.2'
```

## Storing segments

```python
from hlstools.storage import RAMFactory

f = RAMFactory().new_file("seg0.mp4")
f.new_part().writer().write(b"\x00\x01")
f.finalize()
with f.reader() as r:
    data = r.read()
```

A file can only be read as a whole after `finalize()`; reading it earlier
raises `StorageError`. Parts can be read at any time. `DiskFactory(dir_path)`
creates its files inside an existing directory; `remove()` deletes a disk
file.

## What it does not do

The package deals with playlists, codec strings and storage only. It does not
mux media into fMP4 or MPEG-TS segments, does not extract timestamps from
video streams, does not serve playlists or segments over HTTP and does not
download or play streams. There is no command-line program.

## Running the tests

```
pip install .[test]
pytest
```
from __future__ import annotations

# Vorbis comment keys and FLAC constants shared across the fixer and codec.
# Keep these centralized to reduce magic strings and accidental divergence.

MUSICBRAINZ_ARTISTID = "MUSICBRAINZ_ARTISTID"
MUSICBRAINZ_ALBUMARTISTID = "MUSICBRAINZ_ALBUMARTISTID"
MUSICBRAINZ_RELEASE_ARTISTID = "MUSICBRAINZ_RELEASE_ARTISTID"

DEFAULT_MERGE_TARGETS = (
    MUSICBRAINZ_ARTISTID,
    MUSICBRAINZ_ALBUMARTISTID,
    MUSICBRAINZ_RELEASE_ARTISTID,
)

# Repeated values under this prefix are reported but never merged.
MUSICBRAINZ_PREFIX = "MUSICBRAINZ_"

MERGE_SEPARATOR = "+"

# FLAC metadata block type codes.
BLOCK_VORBIS_COMMENT = 4
BLOCK_PICTURE = 6

PICTURE_FRONT_COVER = 3
JPEG_MIME = "image/jpeg"
JPEG_DEPTH = 24

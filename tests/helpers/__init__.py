"""
Test helpers for logical_db.

Shared item types for the music library the tests read and write.
"""

from .music_db import (
    MUSIC_ITEM_TYPES,
    MUSIC_TABLE,
    AlbumTrack,
    AlbumTrackKey,
    PlaylistEntry,
    PlaylistEntryKey,
    PlaylistInfo,
    PlaylistInfoKey,
    the_wall_tracks,
)

__all__ = [
    'MUSIC_ITEM_TYPES',
    'MUSIC_TABLE',
    'AlbumTrack',
    'AlbumTrackKey',
    'PlaylistEntry',
    'PlaylistEntryKey',
    'PlaylistInfo',
    'PlaylistInfoKey',
    'the_wall_tracks',
]

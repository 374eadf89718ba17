"""
Music library item types used across the test suite.

Albums' tracks, playlist headers and playlist entries all live in one
physical table, told apart by sort key prefixes.
"""

from datetime import timedelta

from logical_db import KeyMeta, LogicalItem, LogicalKey, TableMeta

MUSIC_TABLE = "music_items"


class AlbumTrack(LogicalItem):
    album_token: str
    track_token: str
    track_title: str
    run_length: timedelta

    class Meta(TableMeta):
        table_name = MUSIC_TABLE
        partition_key = "album_token"
        sort_key = "track_token"
        attribute_names = {"album_token": "partition_key", "track_token": "sort_key"}
        attribute_prefixes = {"track_token": "TRACK_"}


class AlbumTrackKey(LogicalKey):
    album_token: str
    track_token: str

    class Meta(KeyMeta):
        item_type = AlbumTrack


class PlaylistInfo(LogicalItem):
    playlist_token: str
    playlist_name: str
    playlist_size: int
    sort_key: str = ""

    class Meta(TableMeta):
        table_name = MUSIC_TABLE
        partition_key = "playlist_token"
        sort_key = "sort_key"
        attribute_names = {"playlist_token": "partition_key"}
        attribute_prefixes = {"sort_key": "INFO_"}


class PlaylistInfoKey(LogicalKey):
    playlist_token: str
    sort_key: str = ""

    class Meta(KeyMeta):
        item_type = PlaylistInfo


class PlaylistEntry(LogicalItem):
    playlist_token: str
    album_track_token: str

    class Meta(TableMeta):
        table_name = MUSIC_TABLE
        partition_key = "playlist_token"
        sort_key = "album_track_token"
        attribute_names = {"playlist_token": "partition_key", "album_track_token": "sort_key"}
        attribute_prefixes = {"album_track_token": "PLAYLIST_ENTRY_"}


class PlaylistEntryKey(LogicalKey):
    playlist_token: str
    album_track_token: str

    class Meta(KeyMeta):
        item_type = PlaylistEntry


MUSIC_ITEM_TYPES = (AlbumTrack, PlaylistInfo, PlaylistEntry)


def the_wall_tracks():
    """Two tracks of one album, in track order."""
    return [
        AlbumTrack(
            album_token="M_1",
            track_token="T_1",
            track_title="In the Flesh?",
            run_length=timedelta(minutes=3, seconds=20),
        ),
        AlbumTrack(
            album_token="M_1",
            track_token="T_2",
            track_title="The Thin Ice",
            run_length=timedelta(minutes=2, seconds=28),
        ),
    ]

"""
Last.fm lookup for a search.

Resolves the requested artist (or artist + track) through artist.getInfo or
track.getInfo, rejects anything that is not the artist that was asked for or
is too obscure, and derives the display fields plus the GIF search query.
"""

from errors import SearchRejected, UpstreamError
from http_client import get_json

LASTFM_API_URL = 'https://ws.audioscrobbler.com/2.0/'

MIN_LISTENERS = 100000

# GIF pagination spread: songs need tight relevance, artists can range across eras
TRACK_RANDOM_LIMIT = 15
ARTIST_RANDOM_LIMIT = 50


def parse_listeners(value):
    """Last.fm sends counts as strings; anything unparseable counts as 0."""
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def tag_names(container):
    """Names from a Last.fm {"tag": [...]} block, which may hold a single dict or be a bare string."""
    if not isinstance(container, dict):
        return []
    tags = container.get('tag')
    if isinstance(tags, dict):
        tags = [tags]
    if not isinstance(tags, list):
        return []
    return [t['name'] for t in tags if isinstance(t, dict) and t.get('name')]


def _artist_from_track(track_data):
    artist = track_data.get('artist')
    if isinstance(artist, dict):
        return artist.get('name')
    # Some responses flatten the artist to a plain string
    if isinstance(artist, str):
        return artist
    return None


class MetadataResolver:
    """Looks up an artist or track on Last.fm and builds a partial result record."""

    def __init__(self, session, api_key, timeout=10):
        self.session = session
        self.api_key = api_key
        self.timeout = timeout

    def fetch(self, artist, track=None):
        """Raw getInfo response for artist, or for artist + track when track is given."""
        params = {
            'method': 'track.getInfo' if track else 'artist.getInfo',
            'api_key': self.api_key,
            'artist': artist,
            'format': 'json',
        }
        if track:
            params['track'] = track
        print(f"Calling Last.fm {params['method']} for {artist!r}" + (f" / {track!r}" if track else ""))
        # Last.fm reports lookup errors as JSON on non-2xx statuses
        return get_json(self.session, LASTFM_API_URL, params, self.timeout, 'Last.fm',
                        accept_error_status=True)

    def resolve(self, artist, track=None):
        data = self.fetch(artist, track)

        if data.get('error'):
            message = data.get('message') or f"Last.fm error {data['error']}"
            raise SearchRejected(message)

        track_data = data.get('track')
        artist_data = data.get('artist')

        if isinstance(track_data, dict):
            returned_name = _artist_from_track(track_data)
            if returned_name is None:
                raise UpstreamError("Last.fm returned a track without an artist.")
            listener_count = parse_listeners(track_data.get('listeners'))
        elif isinstance(artist_data, dict):
            returned_name = artist_data.get('name')
            if not isinstance(returned_name, str):
                raise UpstreamError("Last.fm returned an artist without a name.")
            stats = artist_data.get('stats')
            listener_count = parse_listeners(stats.get('listeners')) if isinstance(stats, dict) else 0
        else:
            returned_name = ""
            listener_count = 0

        if returned_name.casefold() != artist.casefold():
            raise SearchRejected(
                f"Artist name mismatch. You searched '{artist}', but Last.fm returned '{returned_name}'."
            )

        if listener_count < MIN_LISTENERS:
            raise SearchRejected(
                f"'{returned_name}' was found, but has only {listener_count} listeners. "
                f"This app requires at least {MIN_LISTENERS} listeners to ensure high-quality GIF results."
            )

        return self.build_record(returned_name, track, track_data if isinstance(track_data, dict) else None,
                                 artist_data if isinstance(artist_data, dict) else None)

    @staticmethod
    def build_record(artist_name, track, track_data, artist_data):
        """Display fields and search parameters for a name-matched, popular enough result."""
        tags = []
        date_info = ""
        title = artist_name
        subtitle = "Artist Profile"

        if track_data is not None:
            title = track_data.get('name') or track
            subtitle = f"Song by {artist_name}"
            wiki = track_data.get('wiki')
            if isinstance(wiki, dict) and wiki.get('published'):
                date_info = f"Released: {wiki['published']}"
            tags = tag_names(track_data.get('toptags'))
        elif artist_data is not None:
            tags = tag_names(artist_data.get('tags'))

        tag_string = ", ".join(tags)
        if date_info:
            tag_string = f"{date_info} | Tags: {tag_string}"

        if track:
            search_q = f"{artist_name} {track}"
            random_limit = TRACK_RANDOM_LIMIT
        else:
            search_q = artist_name
            random_limit = ARTIST_RANDOM_LIMIT

        return {
            'title': title,
            'subtitle': subtitle,
            'tags': tag_string,
            'search_q': search_q,
            'random_limit': random_limit,
        }

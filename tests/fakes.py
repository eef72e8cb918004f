"""Canned upstream responses and a fake requests session."""

from unittest.mock import MagicMock


def fake_response(payload, status=200):
    """Stand-in for requests.Response carrying a JSON payload."""
    response = MagicMock()
    response.status_code = status
    response.ok = status < 400
    if isinstance(payload, Exception):
        response.json.side_effect = payload
    else:
        response.json.return_value = payload
    return response


def lastfm_artist(name="Radiohead", listeners="500000", tags=("alternative", "rock")):
    """Last.fm artist.getInfo body."""
    return {
        "artist": {
            "name": name,
            "stats": {"listeners": listeners, "playcount": "1000000"},
            "tags": {"tag": [{"name": t, "url": f"https://www.last.fm/tag/{t}"} for t in tags]},
        }
    }


def lastfm_track(artist="Radiohead", name="Creep", listeners="900000",
                 tags=("grunge",), published="21 Sep 1992, 00:00"):
    """Last.fm track.getInfo body."""
    track = {
        "name": name,
        "listeners": listeners,
        "artist": {"name": artist, "url": "https://www.last.fm/music/Radiohead"},
        "toptags": {"tag": [{"name": t} for t in tags]},
    }
    if published:
        track["wiki"] = {"published": published, "summary": "..."}
    return {"track": track}


def giphy_results(count=6, prefix="https://media.giphy.com/media/gif"):
    return {
        "data": [{"images": {"original": {"url": f"{prefix}{i}.gif"}}} for i in range(count)],
        "pagination": {"count": count, "offset": 0},
    }


class FakeSession:
    """Routes GETs to canned Last.fm / Giphy responses and records every call."""

    def __init__(self, lastfm=None, giphy=None):
        self.lastfm = lastfm if lastfm is not None else lastfm_artist()
        self.giphy = giphy if giphy is not None else giphy_results()
        self.calls = []

    def _reply(self, payload):
        if isinstance(payload, BaseException):
            raise payload
        if isinstance(payload, MagicMock):
            return payload
        return fake_response(payload)

    def get(self, url, params=None, timeout=None):
        self.calls.append((url, dict(params or {}), timeout))
        if "audioscrobbler" in url:
            return self._reply(self.lastfm)
        if "giphy" in url:
            return self._reply(self.giphy)
        raise AssertionError(f"unexpected URL {url}")

    def calls_to(self, host):
        return [c for c in self.calls if host in c[0]]

import random

from http_client import get_json

GIPHY_SEARCH_URL = 'https://api.giphy.com/v1/gifs/search'

RESULT_COUNT = 6


class ImageFinder:
    """Finds GIFs for a partial result record and completes it with their URLs."""

    def __init__(self, session, api_key, timeout=10, rng=None):
        self.session = session
        self.api_key = api_key
        self.timeout = timeout
        self.rng = rng or random.Random()

    def pick_offset(self, random_limit):
        """Uniform pagination offset in [0, random_limit) so repeat searches vary."""
        return self.rng.randrange(max(int(random_limit), 1))

    def search(self, query, offset):
        """Original-size GIF URLs for query, at most RESULT_COUNT, possibly none."""
        params = {
            'api_key': self.api_key,
            'q': query,
            'limit': RESULT_COUNT,
            'offset': offset,
        }
        print(f"Calling Giphy search for {query!r} (offset {offset})")
        data = get_json(self.session, GIPHY_SEARCH_URL, params, self.timeout, 'Giphy')

        images = []
        results = data.get('data')
        if not isinstance(results, list):
            return images
        for gif in results:
            if len(images) >= RESULT_COUNT:
                break
            try:
                url = gif['images']['original']['url']
            except (KeyError, TypeError):
                continue
            if url:
                images.append(url)
        return images

    def complete(self, record):
        """Return a copy of record with an `images` list attached."""
        offset = self.pick_offset(record['random_limit'])
        images = self.search(record['search_q'], offset)
        print(f"Giphy returned {len(images)} images for {record['search_q']!r}")
        return dict(record, images=images)

from flask import Blueprint, Flask, Response, current_app, request
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from werkzeug.routing import BaseConverter

from cache_store import CacheStore, key_lock, make_cache_key
from config import load_config
from errors import SearchError, SearchRejected
from giphy import ImageFinder
from http_client import build_session
from lastfm import MetadataResolver
from render import PageRenderer

EXTENSION_KEY = 'gif_search'

# Rate limiting; limits come from the app config in create_app()
limiter = Limiter(get_remote_address, storage_uri="memory://")

bp = Blueprint('gif_search', __name__)


class SuffixConverter(BaseConverter):
    """Matches any remainder of the path, slashes included, or nothing at all."""
    regex = ".*"
    part_isolating = False


class SearchPipeline:
    """Cache lookup, then Last.fm -> Giphy -> cache write on a miss, then render."""

    def __init__(self, cache, resolver, finder, renderer):
        self.cache = cache
        self.resolver = resolver
        self.finder = finder
        self.renderer = renderer

    def cached(self, key):
        if not self.cache.exists(key):
            return None
        return self.cache.read(key)

    def lookup(self, artist, track=None):
        """Completed result record for a search, from cache when possible."""
        key = make_cache_key(artist, track)
        record = self.cached(key)
        if record is not None:
            print(f"Cache hit for {key}, serving from file")
            return record

        # Concurrent misses for the same key wait here and reuse the first one's result
        with key_lock(key):
            record = self.cached(key)
            if record is not None:
                print(f"Cache filled for {key} while waiting")
                return record

            print(f"Cache miss for {key}, calling APIs")
            partial = self.resolver.resolve(artist, track)
            record = self.finder.complete(partial)
            self.cache.write(key, record)
            return record

    def search(self, artist, track=None):
        return self.renderer.render(self.lookup(artist, track))


def get_pipeline():
    return current_app.extensions[EXTENSION_KEY]


def text_response(body, status):
    return Response(body, status=status, mimetype='text/plain')


@bp.before_app_request
def log_request():
    print(f"New request for {request.full_path} from {request.remote_addr}")


@bp.route("/")
def home():
    """Static landing page with the search form."""
    return Response(get_pipeline().renderer.landing_page(), mimetype='text/html')


@bp.route("/search<suffix:rest>")
@limiter.limit(lambda: current_app.config["SEARCH_RATE_LIMIT"])
def search(rest=""):
    """Results page for ?artist=...&track=... (track optional)."""
    artist = request.args.get('artist', '').strip()
    track = request.args.get('track', '').strip() or None

    if not artist:
        raise SearchRejected("You must provide an Artist Name.")

    html_page = get_pipeline().search(artist, track)
    return Response(html_page, mimetype='text/html')


@bp.route("/healthz")
@limiter.exempt
def healthz():
    """Health check endpoint for Docker/reverse proxies."""
    return "ok", 200


@bp.app_errorhandler(SearchError)
def search_error(error):
    return text_response(error.body(), error.status)


@bp.app_errorhandler(404)
def not_found(error):
    return text_response("404 Not Found", 404)


@bp.app_errorhandler(429)
def rate_limited(error):
    return text_response(f"429 Error: Too many requests ({error.description}). Try again later.", 429)


def create_app(config=None, session=None, rng=None):
    """Build the Flask app; config defaults to environment/credentials file settings."""
    if config is None:
        config = load_config()
    if session is None:
        session = build_session(config.upstream_retries)

    app = Flask(__name__)
    app.config["RATELIMIT_ENABLED"] = config.rate_limit_enabled
    app.config["RATELIMIT_DEFAULT"] = config.rate_limits
    app.config["SEARCH_RATE_LIMIT"] = config.search_rate_limit
    app.url_map.converters['suffix'] = SuffixConverter

    print(f"Checking if {config.cache_dir} exists")
    try:
        config.cache_dir.mkdir(parents=True, exist_ok=True)
        print(f"Directory {config.cache_dir} ready.")
    except OSError as e:
        # Cache writes are best-effort; searches still work without it
        print(f"WARNING: Unable to create cache directory {config.cache_dir}: {e}")

    app.extensions[EXTENSION_KEY] = SearchPipeline(
        cache=CacheStore(config.cache_dir, ttl_days=config.cache_ttl_days),
        resolver=MetadataResolver(session, config.lastfm_key, timeout=config.upstream_timeout),
        finder=ImageFinder(session, config.giphy_key, timeout=config.upstream_timeout, rng=rng),
        renderer=PageRenderer(config.template_dir),
    )
    app.register_blueprint(bp)
    limiter.init_app(app)
    return app


if __name__ == '__main__':
    app = create_app()
    print("Server listening on port 3000")
    app.run(host="127.0.0.1", port=3000)

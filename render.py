import html
import re
from pathlib import Path

from errors import SearchError

NO_RESULTS_HTML = "<p>No GIFs found.</p>"

PLACEHOLDER = re.compile(r"\{\{(title|subtitle|tags|images)\}\}")


class TemplateError(SearchError):
    status = 500

    def body(self):
        return self.message


class PageRenderer:
    """Fills the results page template with a completed result record."""

    def __init__(self, template_dir):
        self.template_dir = Path(template_dir)

    def load(self, name):
        try:
            return (self.template_dir / name).read_text(encoding="utf-8")
        except OSError as e:
            print(f"Error loading template {name}: {e}")
            raise TemplateError("Error loading template")

    def landing_page(self):
        return self.load("main.html")

    @staticmethod
    def image_block(images):
        if not images:
            return NO_RESULTS_HTML
        return "".join(
            f'<img src="{html.escape(url, quote=True)}" style="width: 100%; border: 1px solid #ccc;">'
            for url in images
        )

    def render(self, record):
        template = self.load("results.html")
        values = {
            'title': html.escape(record['title']),
            'subtitle': html.escape(record['subtitle']),
            'tags': html.escape(record['tags']),
            'images': self.image_block(record['images']),
        }
        # Single pass: every occurrence (the title appears twice), and substituted
        # text is never scanned for placeholders again
        return PLACEHOLDER.sub(lambda m: values[m.group(1)], template)

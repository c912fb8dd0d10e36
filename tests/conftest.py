import os
import pytest
from unittest.mock import MagicMock

from rich_text_extraction import config as config_module
from rich_text_extraction.metadata import MetadataFetcher


OG_HTML = b"""<html>
<head>
  <title>Fallback Title</title>
  <meta name="description" content="Fallback description">
  <meta property="og:title" content="Example Title">
  <meta property="og:description" content="An example page">
  <meta property="og:image" content="/img/cover.png">
  <meta property="og:site_name" content="Example">
  <meta property="og:title" content="Second Title">
  <meta name="og:type" content="website">
  <meta property="og:unknown" content="ignored">
</head>
<body><p>Hello</p></body>
</html>"""

PLAIN_HTML = b"""<html>
<head>
  <title>Plain Page</title>
  <meta name="description" content="No OpenGraph here">
</head>
<body></body>
</html>"""


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Keep config loading away from the real home directory and environment."""
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.chdir(tmp_path)
    for key in list(os.environ):
        if key.startswith("RTE_"):
            monkeypatch.delenv(key)
    monkeypatch.setattr(config_module, "_config", None)
    yield tmp_path


@pytest.fixture
def og_html():
    """HTML page carrying OpenGraph properties."""
    return OG_HTML


@pytest.fixture
def plain_html():
    """HTML page with only <title> and a description meta tag."""
    return PLAIN_HTML


@pytest.fixture
def make_response():
    """Build a fake requests response."""
    def _make(status_code=200, content=OG_HTML, url="https://example.com/page"):
        response = MagicMock()
        response.status_code = status_code
        response.content = content
        response.url = url
        return response
    return _make


@pytest.fixture
def fetcher():
    """Create a MetadataFetcher instance."""
    return MetadataFetcher(timeout=5)

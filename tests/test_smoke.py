"""
Smoke tests against the published STIX samples.

Requires network access. Deselected by default; run with:
    pytest -m smoke
"""

import pytest
from dotenv import load_dotenv

pytestmark = pytest.mark.smoke

load_dotenv()


@pytest.fixture(scope="module")
def settings():
    from stix_codec.config import get_settings
    return get_settings()


class TestWatchlistSmoke:
    """Live fetch and round trip of the domain watchlist sample."""

    def test_fetch_watchlist(self, settings):
        from stix_codec.services import DocumentFetchService

        text = DocumentFetchService().fetch(settings.source_url)
        assert 'STIX_Package' in text

    def test_round_trip_watchlist(self, settings):
        from stix_codec.api import RoundTripPipeline
        from stix_codec.codec import DocumentCodec
        from stix_codec.schema import load_schema

        codec = DocumentCodec(load_schema(settings.schema_path), strict=False)
        result = RoundTripPipeline(codec).run(settings.source_url)

        assert result.indicator_count >= 1
        assert len(codec.decode(result.xml).indicators) == result.indicator_count
        print(f"\n✓ Round-tripped {result.indicator_count} indicator(s) in {result.elapsed_sec:.2f}s")

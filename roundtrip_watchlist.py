"""
Watchlist Round-Trip Script

Downloads the STIX Domain Watchlist sample, binds it into the typed
document model and prints it back out as XML.

Source: STIX_CODEC_SOURCE_URL (default: STIX_Domain_Watchlist.xml from
        the STIXProject schemas repository)

Usage:
    python roundtrip_watchlist.py [URL]
"""

import logging
import sys

from dotenv import load_dotenv

from stix_codec import DocumentCodec, RoundTripPipeline
from stix_codec.config import get_settings

load_dotenv()
settings = get_settings()
logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    stream=sys.stderr
)

url = sys.argv[1] if len(sys.argv) > 1 else settings.source_url

codec = DocumentCodec.from_settings(settings)
pipeline = RoundTripPipeline(codec)
result = pipeline.run(url)

print(result.xml)

"""
User-facing API interfaces for stix-codec.

This module provides the fetch → decode → encode round trip as a
single pipeline call.
"""

from stix_codec.api.roundtrip import RoundTripPipeline, RoundTripResult

__all__ = [
    'RoundTripPipeline',
    'RoundTripResult',
]

"""CelesTrak client for fetching a single current element set.

Downloads the latest 3-line TLE for one NORAD catalog number from
CelesTrak's GP query endpoint. Responses are cached on disk for a day and
requests are spaced out to stay well inside CelesTrak's usage policy.

Configure via environment variables::

    export TLETRACK_CELESTRAK_URL="https://celestrak.org/NORAD/elements/gp.php"
    export TLETRACK_CACHE_DIR="data/cache"

Or pass them directly to the ``CelesTrakClient`` constructor.
"""

from __future__ import annotations

import os
import time
import logging
from pathlib import Path
from typing import Optional

import requests

from .errors import FormatError
from .tle_parser import OrbitalElementSet, parse

logger = logging.getLogger(__name__)

DEFAULT_URL = "https://celestrak.org/NORAD/elements/gp.php"

CACHE_MAX_AGE_HOURS = 24
REQUEST_DELAY = 1.0  # seconds between requests
REQUEST_TIMEOUT = 30.0
NO_DATA = "No GP data found"


class CelesTrakClient:
    """Client for CelesTrak's GP element set query."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        cache_dir: Optional[Path] = None,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url or os.environ.get("TLETRACK_CELESTRAK_URL", DEFAULT_URL)
        self.cache_dir = Path(cache_dir or os.environ.get("TLETRACK_CACHE_DIR", "data/cache"))
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        self.session = session or requests.Session()
        self._last_request_time = 0.0

    def _rate_limit(self):
        """Keep at least REQUEST_DELAY seconds between requests."""
        elapsed = time.time() - self._last_request_time
        if elapsed < REQUEST_DELAY:
            time.sleep(REQUEST_DELAY - elapsed)
        self._last_request_time = time.time()

    def _cache_file(self, catalog_number: int) -> Path:
        return self.cache_dir / f"catnr_{catalog_number}.tle"

    def _query(self, catalog_number: int, use_cache: bool = True) -> tuple[str, bool]:
        """Fetch the raw TLE text for one catalog number and whether it came from cache."""
        cache_file = self._cache_file(catalog_number)

        if use_cache and cache_file.exists():
            age_hours = (time.time() - cache_file.stat().st_mtime) / 3600
            if age_hours < CACHE_MAX_AGE_HOURS:
                logger.debug("Cache hit: %s", cache_file.name)
                return cache_file.read_text(), True

        self._rate_limit()
        logger.info("Querying %s for CATNR %d", self.base_url, catalog_number)

        resp = self.session.get(
            self.base_url,
            params={"CATNR": catalog_number, "FORMAT": "TLE"},
            timeout=REQUEST_TIMEOUT,
        )
        resp.raise_for_status()
        return resp.text, False

    def get_element_set(
        self,
        catalog_number: int,
        use_cache: bool = True,
    ) -> Optional[OrbitalElementSet]:
        """
        Fetch the current element set for a satellite.

        Only responses that decode are written to the cache; a cached
        record that no longer decodes is discarded.

        Args:
            catalog_number: NORAD catalog number
            use_cache: Reuse a cached response younger than a day

        Returns:
            The decoded element set, or None if CelesTrak has no record.

        Raises:
            FormatError: If the returned record does not decode.
            requests.HTTPError: On a non-2xx response.
        """
        cache_file = self._cache_file(catalog_number)
        raw, cached = self._query(catalog_number, use_cache=use_cache)
        if not raw.strip() or raw.strip() == NO_DATA:
            logger.warning("No element set found for catalog number %d", catalog_number)
            return None

        try:
            elements = parse(raw.strip())
        except FormatError:
            cache_file.unlink(missing_ok=True)
            raise

        if use_cache and not cached:
            cache_file.write_text(raw)
        return elements


def load_tle_file(filepath: str | Path) -> OrbitalElementSet:
    """Load a single 2-line or 3-line record from a local file."""
    text = Path(filepath).read_text()
    return parse(text.strip("\n"))

import asyncio
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import geopandas as gpd
import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .config import MapConfig
from .errors import TopologyError
from .topology import read_countries, validate_topology

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WorldData:
    """Write-once result of the loader: id mapping plus country features."""

    numeric_to_alpha3: Dict[str, str]
    features: gpd.GeoDataFrame


def get_session(cfg: MapConfig) -> requests.Session:
    """Creates a session with retries."""
    session = requests.Session()
    session.headers.update(cfg.HEADERS)
    retries = Retry(
        total=cfg.MAX_RETRIES,
        backoff_factor=1,
        status_forcelist=[500, 502, 503, 504],
        allowed_methods=["HEAD", "GET"],
    )
    session.mount("https://", HTTPAdapter(max_retries=retries))
    session.mount("http://", HTTPAdapter(max_retries=retries))
    return session


def fetch_bytes(source: str, session: requests.Session, timeout: int = 15) -> bytes:
    """Reads a URL or a local file path."""
    if source.startswith(("http://", "https://")):
        resp = session.get(source, timeout=timeout)
        resp.raise_for_status()
        return resp.content

    with open(Path(source), "rb") as f:
        return f.read()


def fetch_json(source: str, session: requests.Session, timeout: int = 15) -> Any:
    return json.loads(fetch_bytes(source, session, timeout))


async def load_world(cfg: MapConfig, session: Optional[requests.Session] = None) -> Optional[WorldData]:
    """
    Fetches the country-code mapping and the world topology in parallel.
    Returns None (after logging) if either one fails, so nothing half-loaded
    ever reaches the renderer.
    """
    own_session = session is None
    if own_session:
        session = get_session(cfg)

    logger.info("Fetching country codes and world topology...")
    try:
        codes, raw_topology = await asyncio.gather(
            asyncio.to_thread(fetch_json, cfg.CODES_URL, session, cfg.REQUEST_TIMEOUT),
            asyncio.to_thread(fetch_bytes, cfg.TOPOLOGY_URL, session, cfg.REQUEST_TIMEOUT),
        )
        if not isinstance(codes, dict):
            raise ValueError("Country code mapping must be a JSON object")
        validate_topology(json.loads(raw_topology), cfg.TOPOLOGY_OBJECT)
        features = await asyncio.to_thread(read_countries, raw_topology, cfg.TOPOLOGY_OBJECT)
    except (requests.RequestException, OSError, ValueError, TopologyError) as e:
        logger.error(f"❌ Failed to load map data: {e}")
        return None
    finally:
        if own_session:
            session.close()

    numeric_to_alpha3 = {str(k): str(v) for k, v in codes.items()}
    logger.info(f"Loaded {len(numeric_to_alpha3)} country codes and {len(features)} features.")
    return WorldData(numeric_to_alpha3=numeric_to_alpha3, features=features)

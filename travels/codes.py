import json
import logging
from pathlib import Path
from typing import Dict, List, Optional

import requests

from .config import MapConfig
from .loader import get_session

logger = logging.getLogger(__name__)


def build_mapping(iso_data: List[Dict]) -> Dict[str, str]:
    """Maps zero-padded ISO numeric codes ("004") to alpha-3 codes ("AFG")."""
    mapping = {}
    for c in iso_data:
        numeric = str(c.get("country-code", "")).strip()
        alpha3 = str(c.get("alpha-3", "")).strip().upper()
        if not numeric or not alpha3:
            continue
        mapping[numeric.zfill(3)] = alpha3
    return dict(sorted(mapping.items()))


def build_country_codes(
    cfg: MapConfig, out_path: Optional[Path] = None, session: Optional[requests.Session] = None
) -> Path:
    """Downloads the ISO 3166 list and writes the numeric -> alpha-3 mapping."""
    out_path = Path(out_path or cfg.OUTPUT_DIR / cfg.CODES_FILE)
    own_session = session is None
    if own_session:
        session = get_session(cfg)

    logger.info("Fetching ISO 3166 country list...")
    try:
        resp = session.get(cfg.COUNTRY_CODES_SOURCE_URL, timeout=cfg.REQUEST_TIMEOUT)
        resp.raise_for_status()
        iso_data = resp.json()
    finally:
        if own_session:
            session.close()

    mapping = build_mapping(iso_data)

    out_path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = out_path.with_suffix(".tmp")
    with open(tmp_path, "w", encoding="utf-8") as f:
        # Minified, this file is shipped to the page
        json.dump(mapping, f, separators=(",", ":"))
    tmp_path.replace(out_path)

    logger.info(f"Mapped {len(mapping)}/{len(iso_data)} countries. Saved to {out_path}")
    return out_path

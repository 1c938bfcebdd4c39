"""Default location → sales tax rate lookup.

A deterministic stand-in for the external jurisdiction service. Lookup order:
Bay Area ZIP table, exact state name, state name anywhere in the address,
two-letter state code as a whole word, then the default rate.
"""

from __future__ import annotations

import logging
import re
from decimal import Decimal
from typing import Dict, Optional, Tuple

from .types import TaxJurisdiction

logger = logging.getLogger(__name__)

DEFAULT_TAX_RATE = Decimal("0.08")

_ZIP = re.compile(r"\b(\d{5})\b")

# (rate, city, county) -> ZIP codes
_BAY_AREA: Dict[Tuple[str, str, str], Tuple[str, ...]] = {
    ("0.0863", "San Francisco", "San Francisco"): (
        "94102", "94103", "94104", "94105", "94107", "94108", "94109", "94110",
        "94111", "94112", "94114", "94115", "94116", "94117", "94118", "94121",
        "94122", "94123", "94124", "94127", "94129", "94131", "94132", "94133",
        "94134", "94158",
    ),
    ("0.1025", "Alameda", "Alameda"): ("94501", "94502"),
    ("0.1075", "Fremont", "Alameda"): ("94536", "94537", "94538", "94539"),
    ("0.0975", "Fremont", "Alameda"): ("94555",),
    ("0.1025", "Hayward", "Alameda"): ("94541", "94542", "94544", "94545"),
    ("0.0975", "Castro Valley", "Alameda"): ("94546", "94552"),
    ("0.1025", "Livermore", "Alameda"): ("94550", "94551"),
    ("0.0975", "Newark", "Alameda"): ("94560",),
    ("0.1025", "Pleasanton", "Alameda"): ("94566", "94588"),
    ("0.1025", "Dublin", "Alameda"): ("94568",),
    ("0.1025", "San Leandro", "Alameda"): ("94577", "94578", "94579"),
    ("0.0975", "Union City", "Alameda"): ("94587",),
    ("0.1075", "Oakland", "Alameda"): (
        "94601", "94602", "94603", "94605", "94606", "94607", "94608", "94609",
        "94610", "94611", "94612", "94613", "94618", "94619", "94621",
    ),
    ("0.1025", "Berkeley", "Alameda"): (
        "94702", "94703", "94704", "94705", "94707", "94708", "94709", "94710", "94720",
    ),
    ("0.1025", "Albany", "Alameda"): ("94706",),
    ("0.0875", "Danville", "Contra Costa"): ("94506", "94526"),
    ("0.0875", "Antioch", "Contra Costa"): ("94509",),
    ("0.0875", "Brentwood", "Contra Costa"): ("94513",),
    ("0.0875", "Concord", "Contra Costa"): ("94518", "94519", "94520", "94521"),
    ("0.0875", "Pleasant Hill", "Contra Costa"): ("94523",),
    ("0.0875", "El Cerrito", "Contra Costa"): ("94530",),
}

ZIP_RATES: Dict[str, TaxJurisdiction] = {
    zip_code: TaxJurisdiction(
        rate=Decimal(rate),
        description=f"{city} Tax ({county} County)",
        jurisdiction=f"{city}, {county} County",
    )
    for (rate, city, county), zips in _BAY_AREA.items()
    for zip_code in zips
}

_STATES: Dict[str, Tuple[str, str, str]] = {
    # name: (code, rate, label)
    "california": ("ca", "0.0875", "California"),
    "new york": ("ny", "0.08", "New York"),
    "texas": ("tx", "0.0625", "Texas"),
    "florida": ("fl", "0.06", "Florida"),
    "nevada": ("nv", "0.0685", "Nevada"),
    "washington": ("wa", "0.065", "Washington"),
}

STATE_RATES: Dict[str, TaxJurisdiction] = {
    name: TaxJurisdiction(Decimal(rate), f"{code.upper()} State Tax", label)
    for name, (code, rate, label) in _STATES.items()
}
STATE_CODE_RATES: Dict[str, TaxJurisdiction] = {
    code: STATE_RATES[name] for name, (code, _rate, _label) in _STATES.items()
}


def extract_zip(address: Optional[str]) -> Optional[str]:
    if not address:
        return None
    match = _ZIP.search(address)
    return match.group(1) if match else None


def lookup_tax_rate(location: Optional[str], default_rate: Decimal = DEFAULT_TAX_RATE) -> TaxJurisdiction:
    """Return the sales tax jurisdiction for a free-form address."""
    default = TaxJurisdiction(default_rate, "Default Tax", "Unknown")
    if not location or not location.strip():
        logger.warning("No location provided for tax lookup; using default rate")
        return default

    zip_code = extract_zip(location)
    if zip_code and zip_code in ZIP_RATES:
        return ZIP_RATES[zip_code]

    normalized = location.strip().lower()
    if normalized in STATE_RATES:
        return STATE_RATES[normalized]
    for name, found in STATE_RATES.items():
        if name in normalized:
            return found
    # Whole words only so "ca" in "Africa" does not match.
    for word in re.split(r"[\s,]+", normalized):
        if word in STATE_CODE_RATES:
            return STATE_CODE_RATES[word]

    logger.warning("No tax rate found for location %r; using default rate", location)
    return default

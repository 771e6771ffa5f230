"""Postal code → Craigslist subdomain lookup (major US metros)."""

DEFAULT_SUBDOMAIN = "newyork"

# Keyed by the first two digits of the postal code.
_PREFIX_TO_SUBDOMAIN: dict[str, str] = {
    "01": "boston", "02": "boston", "06": "hartford",
    "10": "newyork", "11": "newyork", "12": "albany",
    "15": "pittsburgh", "16": "pittsburgh",
    "17": "philadelphia", "18": "philadelphia", "19": "philadelphia",
    "21": "baltimore", "25": "greenville",
    "27": "raleigh", "28": "charlotte", "29": "charlotte",
    "30": "atlanta", "31": "atlanta",
    "32": "jacksonville", "33": "miami", "34": "miami",
    "35": "huntsville", "36": "birmingham",
    "37": "nashville", "38": "memphis", "39": "jackson",
    "40": "louisville",
    "43": "columbus", "44": "cleveland", "45": "cincinnati",
    "46": "indianapolis", "47": "fortwayne",
    "48": "detroit", "49": "grandrapids",
    "52": "desmoines", "53": "milwaukee", "54": "madison",
    "55": "minneapolis", "56": "minneapolis",
    "60": "chicago", "61": "chicago",
    "63": "stlouis", "64": "kansascity", "65": "kansascity",
    "66": "wichita", "67": "wichita",
    "68": "omaha", "69": "omaha",
    "70": "neworleans", "72": "littlerock",
    "73": "oklahomacity", "74": "tulsa",
    "75": "dallas", "76": "dallas", "77": "houston",
    "78": "sanantonio", "79": "austin",
    "80": "denver", "81": "denver",
    "83": "boise", "84": "saltlakecity",
    "85": "phoenix", "86": "phoenix",
    "87": "albuquerque", "88": "albuquerque",
    "89": "lasvegas",
    "90": "losangeles", "91": "losangeles", "92": "losangeles", "93": "losangeles",
    "94": "sfbay", "95": "sfbay", "96": "honolulu",
    "97": "portland", "98": "seattle", "99": "anchorage",
}


def craigslist_subdomain(postal_code: str) -> str:
    """Map a 5-digit postal code to a Craigslist site, falling back to DEFAULT_SUBDOMAIN."""
    return _PREFIX_TO_SUBDOMAIN.get(postal_code[:2], DEFAULT_SUBDOMAIN)

"""
Built-in dispatch tables for the East Bay deployment.

This module is the fallback for every section of the dispatch configuration
file: a section present in the YAML file replaces the matching table here
wholesale, a missing section keeps the built-in value.

Note: This module contains only data structures to avoid circular imports.
"""

from typing import Dict, List

# ==============================================================================
# CHANNELS
# ==============================================================================

# Channel alias -> Slack channel ID. Aliases without a known ID are passed to
# Slack unchanged and must be mapped in the deployment's configuration file.
BUILTIN_CHANNELS: Dict[str, str] = {
    "berkeley": "C06A28PMXFZ",      # #scanner-dispatches
    "ucpd": "C06J8T3EUP9",          # #scanner-dispatches-ucpd
    "oakland": "C070R7LGVDY",
    "albany": "C0713T4KMMX",
    "emeryville": "C07123TKG3E",
}

BUILTIN_CHANNEL_GROUPS: Dict[str, List[str]] = {
    "berkeley-area": ["berkeley", "berkeley-secondary", "ucpd", "albany", "emeryville"],
    "oakland-area": ["oakland", "oakland-secondary", "oakland-fire", "oakland-fire-secondary"],
}


# ==============================================================================
# ROUTING
# ==============================================================================

def _talkgroup_range(channels: List[str], *talkgroups: int) -> Dict[int, List[str]]:
    return {talkgroup: list(channels) for talkgroup in talkgroups}


# Direct talkgroup routes always win over the group/tag fallback below
BUILTIN_TALKGROUPS: Dict[int, List[str]] = {
    **_talkgroup_range(
        ["berkeley"],
        2100, 2105, 2106, 2107, 2108, 2109, 2110, 2111, 2112,
        2671, 2672, 2691, 2692, 2711, 2712,
        3100, 3105, 3106, 3108, 3110, 3112,
        4100, 4105, 4106, 4107, 4108, 4109, 4110, 4111, 4112,
    ),
    **_talkgroup_range(["ucpd"], 3605, 3606, 3608, 3609),
    **_talkgroup_range(
        ["albany"],
        3055, 3056, 3057, 3058, 3059, 2050, 2055, 2056, 2057, 2058, 2059, 4055,
    ),
    **_talkgroup_range(["emeryville"], 3155, 3156, 3157, 4155),
    **_talkgroup_range(
        ["oakland"],
        3405, 3406, 3407, 3408, 3409, 3410, 3411, 3418, 3419, 3420, 3421, 3422,
        3423, 3424, 3425, 3426, 3428, 3429, 3447, 3448,
        4405, 4407, 4415, 4421, 4422, 4423,
    ),
    **_talkgroup_range(
        ["oakland-fire"],
        2400, 2405, 2406, 2407, 2408, 2409, 2410, 2411, 2412, 2413, 2414, 2416,
        2417, 2434, 2436,
    ),
    # Only the two hospital talkgroups below are known. Trauma and other
    # hospital IDs differ per county and must come from the deployment YAML.
    5516: ["hospitals"],  # Summit Hospital
    5512: ["hospitals"],
}

# Evaluated in order; tag-specific routes must precede the generic route for a group
BUILTIN_GROUP_ROUTES: List[Dict] = [
    {"group": "al co sheriff", "channels": ["alameda-county"]},
    {"group": "al co ems", "channels": ["alameda-county-ems"]},
    {"group": "al co fire", "channels": ["alameda-county-fire"]},
    {"group": "al co services", "channels": ["alameda-county-services"]},
    {"group": "alameda", "channels": ["alameda"]},
    {"group": "amr (ccc)", "channels": ["amr-ccc"]},
    {"group": "berkeley", "channels": ["berkeley", "berkeley-secondary"]},
    {"group": "oakland", "tags": ["fire dispatch"], "channels": ["oakland", "oakland-fire-secondary"]},
    {"group": "oakland", "channels": ["oakland", "oakland-secondary"]},
    {"group": "east bay regional park district", "channels": ["east-bay-regional-park"]},
    {"group": "falck ambulance", "channels": ["falck-ambulance"]},
    {"group": "piedmont", "channels": ["piedmont"]},
    {"group": "albany", "channels": ["albany"]},
    {"group": "emeryville", "channels": ["emeryville"]},
    {"group": "hayward", "channels": ["hayward"]},
    {"group": "bart", "channels": ["bart"]},
    {"group": "us coast guard", "channels": ["us-coast-guard"]},
]

# Unresolved calls are archived but not posted
BUILTIN_DEFAULT_CHANNELS: List[str] = []


# ==============================================================================
# NOTIFICATION RULES
# ==============================================================================

MODE_PATTERN = r"(auto|car|driver|vehicle|bike|pedestrian|ped|bicycle|cyclist|bicyclist|pavement)s?"

# "vehicle versus bicyclist", "car vs. pedestrian" and similar cross-mode collisions
VERSUS_PATTERN = MODE_PATTERN + r".+(vs|versus|verses)(\.)?.+" + MODE_PATTERN

BUILTIN_PATTERNS: Dict[str, str] = {
    "versus": VERSUS_PATTERN,
    "no-weapon": r"no (weapon|gun)s?",
}

# Recipients are Slack user IDs and therefore deployment specific
BUILTIN_RECIPIENTS: Dict[str, List[Dict]] = {}


# ==============================================================================
# GAZETTEER AND TRANSCRIPTION HINTS
# ==============================================================================

BUILTIN_GAZETTEER: List[str] = [
    "Acton", "Ada", "Addison", "Adeline", "Alcatraz", "Allston", "Ashby", "Bancroft",
    "Benvenue", "Berryman", "Blake", "Bonar", "Bonita", "Bowditch", "Buena", "California",
    "Camelia", "Carleton", "Carlotta", "Cedar", "Center", "Channing", "Chestnut",
    "Claremont", "Codornices", "College", "Cragmont", "Delaware", "Derby", "Dwight",
    "Eastshore", "Edith", "Elmwood", "Euclid", "Francisco", "Fresno", "Gilman", "Grizzly",
    "Harrison", "Hearst", "Heinz", "Henry", "Hillegass", "Holly", "Hopkins", "Josephine",
    "Kains", "Keoncrest", "King", "LeConte", "LeRoy", "Hilgard", "Mabel", "Marin", "Martin",
    "MLK", "Milvia", "Monterey", "Napa", "Neilson", "Oregon", "Parker", "Piedmont", "Posen",
    "Rose", "Russell", "Sacramento", "San Pablo", "Santa", "Fe", "Shattuck", "Solano",
    "Sonoma", "Spruce", "Telegraph", "Alameda", "Thousand", "Oaks", "University", "Vine",
    "Virginia", "Ward", "Woolsey",
]

BUILTIN_STREET_MODIFIERS: List[str] = [
    "street", "boulevard", "road", "path", "way", "avenue", "highway",
]

BUILTIN_TRANSCRIPTION_TERMS: List[str] = [
    "bike", "bicycle", "pedestrian", "vehicle", "injury", "victim", "versus", "transport",
    "concious", "breathing", "alta bates", "highland", "BFD", "Adam", "ID tech",
    "ring on three", "code 2", "code 3", "code 4", "code 34", "en route", "case number",
    "berry brothers", "rita run", "DBF", "Falck", "Falck on order", "this is Falck",
    "Flock camera", "10-four", "10-4", "10 four", "His Lordships", "Cesar Chavez Park",
    "10-9 your traffic", "copy", "tow", "the beat",
]

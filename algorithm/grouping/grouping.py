"""
Proximity grouping: visits close enough to be served without moving the
vehicle are merged into one Group, which the partitioner and balancer then
treat as a single unit.

Two policies:
  - radius: first-unused-first sweep, every unused visit within the radius
    of the seed joins the seed's group.
  - street: visits on the same normalized street whose house numbers are
    within a small gap of each other are chained into one group.
"""

import re

from logger import get_logger
from algorithm.base.base import (
    distance, HOUSE_GROUP_RADIUS_MILES, STREET_GROUP_MAX_NUMBER_GAP, GROUPING_POLICY
)
from algorithm.base.models import Group

logger = get_logger()

GROUPING_POLICIES = ("radius", "street", "auto")

# Leading house number, optional unit letter or fraction, then the street
HOUSE_NUMBER_RE = re.compile(r"^\s*(\d+)(?:-?[A-Za-z]\b|\s+\d/\d)?\s+(.+?)\s*$")

# Apartment or unit designator and everything after it
UNIT_TAIL_RE = re.compile(r"\s*(?:\b(?:apt|apartment|unit|suite)\b|#).*$")

DIRECTIONALS = {
    'n', 's', 'e', 'w', 'ne', 'nw', 'se', 'sw',
    'north', 'south', 'east', 'west',
    'northeast', 'northwest', 'southeast', 'southwest',
}

STREET_SUFFIXES = {
    'st', 'street', 'ave', 'av', 'avenue', 'rd', 'road', 'dr', 'drive',
    'ln', 'lane', 'blvd', 'boulevard', 'ct', 'court', 'pl', 'place',
    'way', 'cir', 'circle',
}


def _make_group(index, members):
    return Group(id=f"group-{index}", members=tuple(members))


def group_by_radius(visits, radius_miles=None):
    """
    Sweep the visits in input order; each unused visit seeds a group and
    pulls in every unused visit within radius_miles of the seed.
    """
    if radius_miles is None:
        radius_miles = HOUSE_GROUP_RADIUS_MILES

    groups = []
    used = set()

    for seed in visits:
        if seed.id in used:
            continue

        members = [seed]
        used.add(seed.id)

        for other in visits:
            if other.id in used:
                continue
            if distance(seed.coordinate, other.coordinate) <= radius_miles:
                members.append(other)
                used.add(other.id)

        groups.append(_make_group(len(groups), members))

    return groups


def normalize_street_name(street):
    """Lowercase street name with unit, directionals and suffixes stripped"""
    street = UNIT_TAIL_RE.sub("", street.lower())
    tokens = re.sub(r"[.,#]", " ", street).split()

    # Stripping never removes the last remaining token, so "N St" stays "n"
    while len(tokens) > 1 and (tokens[-1] in DIRECTIONALS or tokens[-1] in STREET_SUFFIXES):
        tokens.pop()
    while len(tokens) > 1 and tokens[0] in DIRECTIONALS:
        tokens.pop(0)

    return " ".join(tokens)


def parse_street_address(address):
    """
    Split an address into (house_number, normalized_street).

    Only the first comma-separated part is read, so city and state are
    ignored. Returns None when no house number or street name is found.
    """
    if not address:
        return None

    street_line = str(address).split(',')[0]
    match = HOUSE_NUMBER_RE.match(street_line)
    if not match:
        return None

    street = normalize_street_name(match.group(2))
    if not street:
        return None

    return int(match.group(1)), street


def group_by_street(visits, max_number_gap=None):
    """
    Chain visits on the same street into groups while consecutive house
    numbers differ by at most max_number_gap. Unparseable addresses are
    singletons. Groups come out in the input order of their first member.
    """
    if max_number_gap is None:
        max_number_gap = STREET_GROUP_MAX_NUMBER_GAP

    position = {visit.id: i for i, visit in enumerate(visits)}
    streets = {}
    chains = []

    for visit in visits:
        parsed = parse_street_address(visit.address)
        if parsed is None:
            chains.append([visit])
            continue
        house_number, street = parsed
        streets.setdefault(street, []).append((house_number, visit))

    for street, entries in streets.items():
        entries.sort(key=lambda entry: entry[0])

        chain = [entries[0][1]]
        last_number = entries[0][0]
        for house_number, visit in entries[1:]:
            if house_number - last_number > max_number_gap:
                chains.append(chain)
                chain = []
            chain.append(visit)
            last_number = house_number
        chains.append(chain)

    chains.sort(key=lambda chain: min(position[v.id] for v in chain))
    return [_make_group(i, chain) for i, chain in enumerate(chains)]


def resolve_grouping_policy(visits, policy=None):
    """Pick the concrete policy; `auto` means street when every visit has an address"""
    policy = (policy or GROUPING_POLICY).lower()
    if policy not in GROUPING_POLICIES:
        logger.warning(f"Unknown grouping policy {policy!r}, falling back to radius")
        return "radius"
    if policy == "auto":
        if visits and all(v.address and v.address.strip() for v in visits):
            return "street"
        return "radius"
    return policy


def identify_proximity_groups(visits, policy=None, radius_miles=None, max_number_gap=None):
    """Group visits with the requested policy; every visit lands in exactly one group"""
    visits = list(visits)
    resolved = resolve_grouping_policy(visits, policy)

    if resolved == "street":
        groups = group_by_street(visits, max_number_gap)
    else:
        groups = group_by_radius(visits, radius_miles)

    logger.log_grouping_decision(resolved, len(visits), len(groups), "grouping.py")
    return groups

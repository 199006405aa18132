import os
import math
import json
import numpy as np
import pandas as pd
from dotenv import load_dotenv
from sklearn.metrics.pairwise import haversine_distances

from logger import get_logger
from algorithm.base.models import Coordinate, Visit

load_dotenv()

EARTH_RADIUS_MILES = 3959.0


# Load and validate configuration
def load_and_validate_config(config_path=None):
    """Load planning configuration from config.json with env overrides"""
    if config_path is None:
        # __file__ is algorithm/base/base.py, project root is three levels up
        script_dir = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
        config_path = os.path.join(script_dir, 'config.json')

    logger = get_logger()
    try:
        with open(config_path) as f:
            cfg = json.load(f)
    except (FileNotFoundError, json.JSONDecodeError) as e:
        logger.warning(
            f"Could not load config.json from {config_path}, using defaults. Error: {e}")
        cfg = {}

    def setting(key, default, cast=float):
        env_key = f"PLANNER_{key.upper()}"
        value = os.getenv(env_key)
        source = env_key
        if value is None:
            value = cfg.get(key, default)
            source = f"config.json {key}"
        try:
            return cast(value)
        except (TypeError, ValueError):
            logger.warning(f"Invalid value {value!r} for {source}, using default {default}")
            return cast(default)

    config = {}

    # Distance thresholds (miles)
    config['HOUSE_GROUP_RADIUS_MILES'] = max(
        0.0, setting("house_group_radius_miles", 0.1))
    config['KMEANS_CONVERGENCE_MILES'] = max(
        0.001, setting("kmeans_convergence_miles", 0.1))

    # Street grouping
    config['STREET_GROUP_MAX_NUMBER_GAP'] = max(
        0, setting("street_group_max_number_gap", 10, int))
    policy = setting("grouping_policy", "auto", str).strip().lower()
    if policy not in ("auto", "radius", "street"):
        logger.warning(f"Unknown grouping policy {policy!r}, using auto")
        policy = "auto"
    config['GROUPING_POLICY'] = policy

    # Iteration caps
    config['KMEANS_MAX_ITERATIONS'] = max(
        1, min(50, setting("kmeans_max_iterations", 20, int)))
    config['BALANCE_MAX_ATTEMPTS'] = max(
        0, setting("balance_max_attempts", 20, int))

    # Cost model
    config['BALANCE_TOLERANCE_RATIO'] = max(
        0.0, min(1.0, setting("balance_tolerance_ratio", 0.15)))
    config['DRIVE_MINUTES_PER_MILE'] = max(
        0.0, setting("drive_minutes_per_mile", 2.0))

    # Service time estimate (minutes)
    min_service = max(1.0, setting("min_service_minutes", 30))
    max_service = max(min_service, setting("max_service_minutes", 120))
    config['MIN_SERVICE_MINUTES'] = min_service
    config['MAX_SERVICE_MINUTES'] = max_service
    config['DEFAULT_SERVICE_MINUTES'] = max(
        min_service, min(max_service, setting("default_service_minutes", 45)))

    logger.info(f"🎯 Planning configuration loaded")
    logger.info(f"   📊 House group radius: {config['HOUSE_GROUP_RADIUS_MILES']} mi")
    logger.info(f"   📊 Grouping policy: {config['GROUPING_POLICY']}")
    logger.info(f"   📊 K-means cap: {config['KMEANS_MAX_ITERATIONS']} iterations")
    logger.info(f"   📊 Balance tolerance: {config['BALANCE_TOLERANCE_RATIO'] * 100:.0f}%")
    logger.info(f"   📊 Drive rate: {config['DRIVE_MINUTES_PER_MILE']} min/mi")

    return config


_config = load_and_validate_config()
HOUSE_GROUP_RADIUS_MILES = _config['HOUSE_GROUP_RADIUS_MILES']
STREET_GROUP_MAX_NUMBER_GAP = _config['STREET_GROUP_MAX_NUMBER_GAP']
GROUPING_POLICY = _config['GROUPING_POLICY']
KMEANS_MAX_ITERATIONS = _config['KMEANS_MAX_ITERATIONS']
KMEANS_CONVERGENCE_MILES = _config['KMEANS_CONVERGENCE_MILES']
BALANCE_MAX_ATTEMPTS = _config['BALANCE_MAX_ATTEMPTS']
BALANCE_TOLERANCE_RATIO = _config['BALANCE_TOLERANCE_RATIO']
DRIVE_MINUTES_PER_MILE = _config['DRIVE_MINUTES_PER_MILE']
DEFAULT_SERVICE_MINUTES = _config['DEFAULT_SERVICE_MINUTES']
MIN_SERVICE_MINUTES = _config['MIN_SERVICE_MINUTES']
MAX_SERVICE_MINUTES = _config['MAX_SERVICE_MINUTES']


def haversine_distance(lat1, lon1, lat2, lon2):
    """Great circle distance between two points on Earth, in miles"""
    lat1, lon1, lat2, lon2 = map(math.radians, [lat1, lon1, lat2, lon2])

    dlat = lat2 - lat1
    dlon = lon2 - lon1
    a = math.sin(
        dlat / 2)**2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2)**2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return EARTH_RADIUS_MILES * c


def distance(coord_a, coord_b):
    """Miles between two Coordinates"""
    return haversine_distance(coord_a.latitude, coord_a.longitude,
                              coord_b.latitude, coord_b.longitude)


def haversine_distance_matrix(lats_a, lons_a, lats_b, lons_b):
    """Vectorized pairwise distances in miles, shape (len(a), len(b))"""
    points_a = np.radians(np.column_stack([np.asarray(lats_a, dtype=float), np.asarray(lons_a, dtype=float)]))
    points_b = np.radians(np.column_stack([np.asarray(lats_b, dtype=float), np.asarray(lons_b, dtype=float)]))
    return haversine_distances(points_a, points_b) * EARTH_RADIUS_MILES


def estimate_service_minutes(price=None):
    """On-site minutes estimated from a price, clamped to the configured band"""
    if price is None:
        return DEFAULT_SERVICE_MINUTES
    if isinstance(price, (int, float)) and not isinstance(price, bool):
        value = float(price)
    else:
        text = str(price).replace('$', '').replace(',', '').strip()
        try:
            value = float(text)
        except ValueError:
            value = DEFAULT_SERVICE_MINUTES
    if math.isnan(value) or value <= 0:
        value = DEFAULT_SERVICE_MINUTES
    return max(MIN_SERVICE_MINUTES, min(MAX_SERVICE_MINUTES, value))


def coordinate_from_dict(data):
    """Coordinate from a dict using latitude/lat and longitude/lng/lon keys"""
    if data is None:
        return None
    if isinstance(data, Coordinate):
        return data
    lat = data.get('latitude', data.get('lat'))
    lng = data.get('longitude', data.get('lng', data.get('lon')))
    if lat is None or lng is None:
        return None
    try:
        lat, lng = float(lat), float(lng)
    except (TypeError, ValueError):
        return None
    if not (-90 <= lat <= 90) or not (-180 <= lng <= 180):
        return None
    return Coordinate(lat, lng)


def validate_input_data(data):
    """Validate a planning request before any visits are prepared"""
    logger = get_logger()
    errors = []

    if not isinstance(data, dict):
        return ["Planning request must be a dictionary"]

    visits = data.get('visits')
    if visits is None:
        errors.append("visits is required")
    elif not isinstance(visits, list):
        errors.append("visits must be a list")
    else:
        for i, visit in enumerate(visits):
            if not isinstance(visit, dict):
                errors.append(f"visits[{i}] must be a dictionary")

    num_days = data.get('num_days')
    if num_days is None:
        errors.append("num_days is required")
    else:
        try:
            int(num_days)
        except (TypeError, ValueError):
            errors.append("num_days must be an integer")

    home_base = data.get('home_base')
    if home_base is not None and coordinate_from_dict(home_base) is None:
        errors.append("home_base must carry a valid latitude and longitude")

    if errors:
        logger.warning(f"Input validation failed: {errors}")
    return errors


_LAT_KEYS = ('latitude', 'lat')
_LNG_KEYS = ('longitude', 'lng', 'lon')


def _first_column(df, keys):
    """Row-wise first non-null value across the alias columns"""
    column = pd.Series([np.nan] * len(df), index=df.index, dtype=object)
    for key in reversed(keys):
        if key in df.columns:
            column = df[key].combine_first(column)
    return column


def prepare_visits(records, default_service_minutes=None):
    """
    Turn raw visit records into Visit values.

    Returns (visits, rejected) where rejected is a list of
    {'id', 'reason', 'record'} for rows that cannot be planned.
    """
    logger = get_logger()
    if not records:
        return [], []

    records = list(records)
    df = pd.DataFrame(records)
    df['_row'] = range(len(df))

    df['_id'] = [
        str(record['id']) if not _is_missing(record.get('id')) else f"visit-{row + 1}"
        for row, record in enumerate(records)
    ]

    df['_lat'] = pd.to_numeric(_first_column(df, _LAT_KEYS), errors='coerce')
    df['_lng'] = pd.to_numeric(_first_column(df, _LNG_KEYS), errors='coerce')
    valid_coords = (df['_lat'].between(-90, 90) & df['_lng'].between(-180, 180))

    completed = pd.Series([record.get('completed') is True for record in records], index=df.index)

    duplicated = df['_id'].duplicated(keep='first')

    visits = []
    rejected = []
    for idx, row in df.iterrows():
        record = {k: v for k, v in records[int(row['_row'])].items() if not _is_missing(v)}
        if duplicated[idx]:
            rejected.append({'id': row['_id'], 'reason': 'duplicate id', 'record': record})
            continue
        if not valid_coords[idx]:
            rejected.append({'id': row['_id'], 'reason': 'invalid coordinates', 'record': record})
            continue
        if completed[idx]:
            rejected.append({'id': row['_id'], 'reason': 'completed', 'record': record})
            continue

        service = record.get('service_minutes', record.get('estimated_time'))
        if service is None:
            if default_service_minutes is not None:
                service = default_service_minutes
            else:
                service = estimate_service_minutes(record.get('price'))
        else:
            try:
                service = float(service)
            except (TypeError, ValueError):
                service = estimate_service_minutes(record.get('price'))
            if not math.isfinite(service) or service <= 0:
                service = estimate_service_minutes(record.get('price'))

        address = record.get('address')
        visits.append(Visit(
            id=row['_id'],
            coordinate=Coordinate(float(row['_lat']), float(row['_lng'])),
            service_minutes=float(service),
            address=str(address) if address is not None else None,
            completed=False,
            payload=record,
        ))

    if rejected:
        logger.warning(f"{len(rejected)} visit records were not planned")
        for item in rejected:
            logger.debug(f"  Visit {item['id']}: {item['reason']}")
    logger.info(f"Prepared {len(visits)} visits from {len(df)} records")

    return visits, rejected


def _is_missing(value):
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    return False


def visit_to_dict(visit):
    """Flat dict for a visit, payload fields first so computed fields win"""
    data = dict(visit.payload)
    data['id'] = visit.id
    data['latitude'] = visit.latitude
    data['longitude'] = visit.longitude
    data['service_minutes'] = visit.service_minutes
    if visit.address is not None:
        data['address'] = visit.address
    for key in ('lat', 'lng', 'lon'):
        data.pop(key, None)
    return data

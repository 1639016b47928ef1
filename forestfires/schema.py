"""
Dataset Schema
==============

Column names, categorical level orders and valid value ranges for the
forest fires dataset.
"""

from typing import Dict, List, Optional, Tuple

# Header of the input file, in order
FILE_COLUMNS: List[str] = [
    'X', 'Y', 'month', 'day', 'FFMC', 'DMC', 'DC', 'ISI',
    'temp', 'RH', 'wind', 'rain', 'area'
]

# File header -> internal column name
COLUMN_MAP: Dict[str, str] = {
    'X': 'x_coord',
    'Y': 'y_coord',
    'month': 'month',
    'day': 'day',
    'FFMC': 'ffmc',
    'DMC': 'dmc',
    'DC': 'dc',
    'ISI': 'isi',
    'temp': 'temp',
    'RH': 'relative_humidity',
    'wind': 'wind',
    'rain': 'rain',
    'area': 'area',
}

COLUMNS: List[str] = [COLUMN_MAP[col] for col in FILE_COLUMNS]

MONTHS: List[str] = [
    'jan', 'feb', 'mar', 'apr', 'may', 'jun',
    'jul', 'aug', 'sep', 'oct', 'nov', 'dec'
]
DAYS: List[str] = ['mon', 'tue', 'wed', 'thu', 'fri', 'sat', 'sun']

CATEGORICAL_LEVELS: Dict[str, List[str]] = {
    'month': MONTHS,
    'day': DAYS,
}

INTEGER_COLUMNS: List[str] = ['x_coord', 'y_coord']
NUMERIC_COLUMNS: List[str] = [col for col in COLUMNS if col not in CATEGORICAL_LEVELS]

# Inclusive (low, high); None means unbounded
VALID_RANGES: Dict[str, Tuple[Optional[float], Optional[float]]] = {
    'x_coord': (1, 9),
    'y_coord': (2, 9),
    'ffmc': (0.0, 101.0),
    'dmc': (0.0, None),
    'dc': (0.0, None),
    'isi': (0.0, None),
    'temp': (-50.0, 60.0),
    'relative_humidity': (0.0, 100.0),
    'wind': (0.0, None),
    'rain': (0.0, None),
    'area': (0.0, None),
}

# Collinear with temp and dc respectively
DROPPED_COLUMNS: List[str] = ['relative_humidity', 'dmc']

TARGET_COLUMN = 'area_log'

PREDICTOR_COLUMNS: List[str] = [
    'x_coord', 'y_coord', 'month', 'day',
    'ffmc', 'dc', 'isi', 'temp', 'wind', 'rain'
]

WEATHER_COLUMNS: List[str] = [
    'ffmc', 'dmc', 'dc', 'isi', 'temp', 'relative_humidity', 'wind', 'rain', 'area'
]

COLLINEAR_PAIRS: List[Tuple[str, str]] = [
    ('dc', 'dmc'),
    ('relative_humidity', 'temp'),
]

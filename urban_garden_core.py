"""
Urban Garden Core Module
Plant compatibility scoring, space suitability analysis and the data
collaborators (plant catalog, climate readings, reports) around them
"""

import io
import json
import logging
import math
import os
import re
import sqlite3
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Dict, FrozenSet, Iterable, List, Mapping, Optional, Sequence, Set, Tuple

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import requests
from geopy.geocoders import Nominatim
from meteostat import Daily, Hourly, Point

logger = logging.getLogger(__name__)

RangeTuple = Tuple[float, float]


# ============================================================================
# CONFIGURATION
# ============================================================================

@dataclass(frozen=True)
class ScoringWeights:
    """Constants for one environmental scoring formula"""
    name: str
    temp_weight: float
    temp_decay: float
    humidity_weight: float
    humidity_decay: float
    light_weight: float
    soil_weight: float
    light_curve: str = "step"  # "step" or "need_aware"
    apply_bonuses: bool = True
    itemized_reasons: bool = True
    fallback_reason: str = "Generally suitable for typical urban conditions"


class Config:
    """Application configuration"""
    DB_PATH = "urban_garden.db"

    API_TIMEOUT = 10
    OPENWEATHER_API_KEY = os.environ.get("OPENWEATHER_API_KEY")
    OPENWEATHER_URL = "https://api.openweathermap.org/data/2.5"
    GEOCODER_USER_AGENT = "urban_garden_planner"

    MIN_COMPATIBILITY = 60
    FALLBACK_COMPATIBILITY = 70
    PRIORITY_THRESHOLDS = {'high': 85, 'medium': 75}

    DEFAULT_SOIL_MOISTURE = 65.0
    FALLBACK_CLIMATE = {'temperature': 22.0, 'humidity': 45.0, 'pressure': 1013.0, 'light_hours': 8.0}
    SCAN_HISTORY_LIMIT = 10

    STANDARD_WEIGHTS = ScoringWeights(
        name="standard",
        temp_weight=0.4, temp_decay=2.0,
        humidity_weight=0.3, humidity_decay=1.5,
        light_weight=0.2, soil_weight=0.1,
    )

    # Environmental match inside space and companion recommendations.
    # Not interchangeable with STANDARD_WEIGHTS: scores shift by several points.
    SPACE_AWARE_WEIGHTS = ScoringWeights(
        name="space_aware",
        temp_weight=0.4, temp_decay=3.0,
        humidity_weight=0.3, humidity_decay=2.0,
        light_weight=0.3, soil_weight=0.0,
        light_curve="need_aware",
        apply_bonuses=False,
        itemized_reasons=False,
        fallback_reason="Generally suitable",
    )

    SPACE_WEIGHTS = {
        'environment': 0.4,
        'size': 30,
        'light': 20,
        'surface': 10,
    }

    SIZE_MIN_AREA = {'small': 0.3, 'medium': 0.5, 'large': 1.0}
    SIZE_IDEAL_AREA = {'small': 0.5, 'medium': 1.0, 'large': 2.0}

    SURFACE_TYPES = ('balcony', 'floor', 'table', 'shelf', 'wall', 'unknown')
    LIGHT_ACCESS = ('direct', 'indirect', 'artificial', 'low')

    MAX_SPACE_RECOMMENDATIONS = 10
    MIN_SPACE_RECOMMENDATIONS = 3
    MAX_COMPANION_RECOMMENDATIONS = 5


LIGHT_TAGS = ('full', 'partial', 'low', 'artificial', 'shade', 'direct', 'indirect')

SMALL_PLANT_KEYWORDS = ('basil', 'herb', 'lettuce')
LARGE_PLANT_KEYWORDS = ('tomato', 'pepper', 'eggplant')

COMPANION_RULES = {
    'tomato': ['basil', 'lettuce', 'pepper', 'marigold'],
    'basil': ['tomato', 'pepper', 'oregano', 'lettuce'],
    'lettuce': ['tomato', 'basil', 'radish', 'carrot'],
    'eggplant': ['basil', 'pepper', 'beans', 'marigold'],
    'pepper': ['basil', 'tomato', 'eggplant', 'oregano'],
}

_RANGE_PATTERN = re.compile(r"(-?\d+(?:\.\d+)?)\s*(?:-|–|to)\s*(-?\d+(?:\.\d+)?)")


# ============================================================================
# HELPERS
# ============================================================================

def round_half_up(value):
    """Round .5 away from zero for positive scores, scalar or array"""
    return np.floor(np.asarray(value, dtype=float) + 0.5)


def _finite(value: Any, default: float = 0.0) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    return number if math.isfinite(number) else default


def parse_range(value: Any) -> Optional[RangeTuple]:
    """Parse ``{min, max}`` mappings, pairs, JSON or "a-b" strings into a range.

    Anything that does not yield two finite numbers returns ``None`` so the
    plant takes the neutral fallback path instead of producing NaN scores.
    """
    if value is None:
        return None
    if isinstance(value, float) and math.isnan(value):
        return None
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            return parse_range(json.loads(text))
        except ValueError:
            match = _RANGE_PATTERN.search(text)
            if not match:
                return None
            value = match.groups()
    if isinstance(value, Mapping):
        value = (value.get('min'), value.get('max'))
    if not isinstance(value, (list, tuple)) or len(value) != 2:
        return None
    try:
        low, high = float(value[0]), float(value[1])
    except (TypeError, ValueError):
        return None
    if not (math.isfinite(low) and math.isfinite(high)):
        return None
    return (low, high) if low <= high else (high, low)


def tag_light_requirements(text: Optional[str]) -> FrozenSet[str]:
    """Map free-text light requirements to the closed set of light tags"""
    needs = (text or "").lower()
    return frozenset(tag for tag in LIGHT_TAGS if tag in needs)


def _optional_text(value: Any) -> Optional[str]:
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return None
    text = str(value).strip()
    return text or None


def _text_list(value: Any) -> Tuple[str, ...]:
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return ()
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except ValueError:
            value = value.split(";")
    if isinstance(value, str) or not isinstance(value, Iterable):
        return (str(value),)
    return tuple(str(item).strip() for item in value if str(item).strip())


def _slug(name: str) -> str:
    return re.sub(r"[^a-z0-9]+", "_", name.lower()).strip("_")


# ============================================================================
# DATA MODELS
# ============================================================================

@dataclass(frozen=True)
class PlantProfile:
    """Plant care reference data"""
    id: str
    name: str
    scientific_name: Optional[str] = None
    care_difficulty: Optional[str] = None
    temperature_range: Optional[RangeTuple] = None
    humidity_range: Optional[RangeTuple] = None
    light_requirements: Optional[str] = None
    growth_rate: Optional[str] = None
    watering_frequency: Optional[str] = None
    soil_type: Optional[str] = None
    max_height: Optional[str] = None
    care_tips: Tuple[str, ...] = ()
    common_issues: Tuple[str, ...] = ()
    light_tags: FrozenSet[str] = field(default=frozenset(), compare=False)

    def __post_init__(self):
        object.__setattr__(self, 'temperature_range', parse_range(self.temperature_range))
        object.__setattr__(self, 'humidity_range', parse_range(self.humidity_range))
        object.__setattr__(self, 'light_tags', tag_light_requirements(self.light_requirements))

    @property
    def has_ranges(self) -> bool:
        return self.temperature_range is not None and self.humidity_range is not None

    @property
    def size_class(self) -> str:
        name = self.name.lower()
        if any(keyword in name for keyword in SMALL_PLANT_KEYWORDS):
            return 'small'
        if any(keyword in name for keyword in LARGE_PLANT_KEYWORDS):
            return 'large'
        return 'medium'

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "PlantProfile":
        """Build a profile from a catalog row (dict, sqlite row or DataFrame record)"""
        record = dict(record)
        name = _optional_text(record.get('plant_name', record.get('name'))) or "Unknown plant"
        plant_id = _optional_text(record.get('id')) or f"plant_{_slug(name)}"
        return cls(
            id=plant_id,
            name=name,
            scientific_name=_optional_text(record.get('scientific_name')),
            care_difficulty=_optional_text(record.get('care_difficulty')),
            temperature_range=record.get('temperature_range'),
            humidity_range=record.get('humidity_range'),
            light_requirements=_optional_text(record.get('light_requirements')),
            growth_rate=_optional_text(record.get('growth_rate')),
            watering_frequency=_optional_text(record.get('watering_frequency')),
            soil_type=_optional_text(record.get('soil_type')),
            max_height=_optional_text(record.get('max_height')),
            care_tips=_text_list(record.get('care_tips')),
            common_issues=_text_list(record.get('common_issues')),
        )

    def as_dict(self) -> Dict[str, Any]:
        def as_range(value):
            return None if value is None else {'min': value[0], 'max': value[1]}

        return {
            'id': self.id,
            'plant_name': self.name,
            'scientific_name': self.scientific_name,
            'care_difficulty': self.care_difficulty,
            'temperature_range': as_range(self.temperature_range),
            'humidity_range': as_range(self.humidity_range),
            'light_requirements': self.light_requirements,
            'growth_rate': self.growth_rate,
            'watering_frequency': self.watering_frequency,
            'soil_type': self.soil_type,
            'max_height': self.max_height,
            'care_tips': list(self.care_tips),
            'common_issues': list(self.common_issues),
        }


@dataclass(frozen=True)
class EnvironmentalConditions:
    """One environmental reading"""
    temperature: float
    humidity: float
    soil_moisture: float
    light_hours: float

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "EnvironmentalConditions":
        return cls(
            temperature=float(data['temperature']),
            humidity=float(data['humidity']),
            soil_moisture=float(data.get('soil_moisture', data.get('soilMoisture', Config.DEFAULT_SOIL_MOISTURE))),
            light_hours=float(data.get('light_hours', data.get('lightHours', 0.0))),
        )

    def as_dict(self) -> Dict[str, float]:
        return {
            'temperature': self.temperature,
            'humidity': self.humidity,
            'soilMoisture': self.soil_moisture,
            'lightHours': self.light_hours,
        }


@dataclass(frozen=True)
class SpaceMeasurement:
    """Raw space scan"""
    area: float
    surface_type: str = 'unknown'
    light_access: str = 'low'
    width: Optional[float] = None
    depth: Optional[float] = None
    height: Optional[float] = None

    @classmethod
    def from_dimensions(cls, width: float, depth: float, height: Optional[float] = None,
                        surface_type: str = 'unknown', light_access: str = 'low') -> "SpaceMeasurement":
        return cls(
            area=width * depth,
            surface_type=surface_type,
            light_access=light_access,
            width=round(width, 2),
            depth=round(depth, 2),
            height=None if height is None else round(height, 2),
        )


@dataclass(frozen=True)
class SpaceAnalysis:
    """Derived suitability of a scanned space; area is rounded to cm² precision"""
    area: float
    surface_type: str
    light_access: str
    suitability_score: int
    suitability: str
    recommended_plants: int

    def as_dict(self) -> Dict[str, Any]:
        return {
            'area': self.area,
            'surfaceType': self.surface_type,
            'lightAccess': self.light_access,
            'suitabilityScore': self.suitability_score,
            'suitability': self.suitability,
            'recommendedPlants': self.recommended_plants,
        }


@dataclass(frozen=True)
class Recommendation:
    """Scored plant recommendation"""
    plant: PlantProfile
    compatibility: int
    reason: str
    priority: str = 'low'

    @property
    def name(self) -> str:
        return self.plant.name

    def as_dict(self) -> Dict[str, Any]:
        return {
            'plant_id': self.plant.id,
            'name': self.plant.name,
            'compatibility': self.compatibility,
            'reason': self.reason,
            'priority': self.priority,
        }


@dataclass
class ClimateReading:
    """Current climate at a location"""
    temperature: float
    humidity: float
    light_hours: float
    pressure: float = 1013.0
    uv_index: float = 0.0
    wind_speed: float = 0.0
    cloudiness: float = 0.0
    weather: str = "Unknown"
    description: str = ""
    visibility: float = 10.0
    city: str = "Unknown"
    country: str = "Unknown"
    latitude: float = 0.0
    longitude: float = 0.0
    timestamp: str = ""
    source: str = "simulated"

    def to_conditions(self, soil_moisture: float = Config.DEFAULT_SOIL_MOISTURE) -> EnvironmentalConditions:
        return EnvironmentalConditions(
            temperature=self.temperature,
            humidity=self.humidity,
            soil_moisture=soil_moisture,
            light_hours=self.light_hours,
        )


@dataclass
class GardenZone:
    """Live readings for one garden zone"""
    id: str
    name: str
    temperature: float = 22.0
    humidity: float = 50.0
    soil_moisture: float = 65.0
    light_hours: float = 6.0
    plants_count: int = 0
    status: str = "good"


@dataclass(frozen=True)
class ZoneAlert:
    """Alert raised for a garden zone"""
    alert_id: str
    zone_id: str
    level: str
    message: str


def priority_for(compatibility: int) -> str:
    if compatibility >= Config.PRIORITY_THRESHOLDS['high']:
        return 'high'
    if compatibility >= Config.PRIORITY_THRESHOLDS['medium']:
        return 'medium'
    return 'low'


# Built-in fallback catalog, used whenever the stored catalog is empty or unreachable
DEFAULT_PLANTS: Tuple[PlantProfile, ...] = (
    PlantProfile(
        id='plant_tomato', name='Tomato', scientific_name='Solanum lycopersicum',
        care_difficulty='easy', temperature_range=(18, 30), humidity_range=(40, 70),
        light_requirements='Full sun', growth_rate='fast', watering_frequency='Moderate',
        soil_type='Well-draining, fertile', max_height='1–2 m',
        care_tips=('Provide staking', 'Consistent watering', 'Full sun exposure'),
        common_issues=('Blossom end rot', 'Aphids'),
    ),
    PlantProfile(
        id='plant_basil', name='Basil', scientific_name='Ocimum basilicum',
        care_difficulty='very easy', temperature_range=(18, 32), humidity_range=(40, 70),
        light_requirements='Full sun to partial shade', growth_rate='fast',
        watering_frequency='Regular, keep evenly moist', soil_type='Rich, well-drained',
        max_height='30–60 cm',
        care_tips=('Pinch flowers to promote leaves', 'Warm temperatures preferred'),
        common_issues=('Downy mildew', 'Leaf scorch'),
    ),
    PlantProfile(
        id='plant_lettuce', name='Lettuce', scientific_name='Lactuca sativa',
        care_difficulty='easy', temperature_range=(10, 24), humidity_range=(40, 70),
        light_requirements='Full sun to partial shade', growth_rate='fast',
        watering_frequency='Frequent, shallow watering', soil_type='Loose, fertile',
        max_height='20–30 cm',
        care_tips=('Prefers cooler temps', 'Keep soil consistently moist'),
        common_issues=('Bolting in heat', 'Slugs'),
    ),
    PlantProfile(
        id='plant_eggplant', name='Eggplant', scientific_name='Solanum melongena',
        care_difficulty='medium', temperature_range=(20, 32), humidity_range=(40, 70),
        light_requirements='Full sun', growth_rate='medium',
        watering_frequency='Moderate, steady moisture', soil_type='Rich, well-drained',
        max_height='0.6–1 m',
        care_tips=('Warm soil needed', 'Mulch to retain moisture'),
        common_issues=('Flea beetles', 'Spider mites'),
    ),
    PlantProfile(
        id='plant_pepper', name='Pepper', scientific_name='Capsicum annuum',
        care_difficulty='medium', temperature_range=(18, 32), humidity_range=(40, 70),
        light_requirements='Full sun', growth_rate='medium',
        watering_frequency='Moderate, avoid waterlogging', soil_type='Well-draining, fertile',
        max_height='0.5–1 m',
        care_tips=('Warm conditions', 'Consistent moisture'),
        common_issues=('Blossom drop', 'Aphids'),
    ),
)


# ============================================================================
# PLANT CATALOG
# ============================================================================

PLANT_COLUMNS = [
    'id', 'plant_name', 'scientific_name', 'care_difficulty', 'watering_frequency',
    'light_requirements', 'temperature_range', 'humidity_range', 'soil_type',
    'growth_rate', 'max_height', 'care_tips', 'common_issues',
]


class PlantCatalog:
    """Handles plant catalog and scan history storage"""

    def __init__(self, db_path: str = Config.DB_PATH):
        self.db_path = db_path
        self._ensure_directories()

    def _ensure_directories(self):
        """Create the database parent directory"""
        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)

    def get_connection(self) -> sqlite3.Connection:
        """Get database connection"""
        return sqlite3.connect(self.db_path)

    def create_schema(self):
        """Create catalog and scan tables"""
        with self.get_connection() as conn:
            cursor = conn.cursor()

            cursor.execute('''
                CREATE TABLE IF NOT EXISTS plant_care_data (
                    id TEXT PRIMARY KEY,
                    plant_name TEXT NOT NULL,
                    scientific_name TEXT,
                    care_difficulty TEXT,
                    watering_frequency TEXT,
                    light_requirements TEXT,
                    temperature_range TEXT,
                    humidity_range TEXT,
                    soil_type TEXT,
                    growth_rate TEXT,
                    max_height TEXT,
                    care_tips TEXT,
                    common_issues TEXT
                )
            ''')

            cursor.execute('''
                CREATE TABLE IF NOT EXISTS space_scans (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    area REAL,
                    surface_type TEXT,
                    light_access TEXT,
                    suitability TEXT,
                    recommended_plants INTEGER,
                    environmental_data TEXT,
                    recommendations TEXT,
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            ''')

            conn.commit()

    def add_plant(self, profile: PlantProfile):
        """Insert or replace a single profile"""
        row = profile.as_dict()
        values = [
            json.dumps(row[col]) if col in ('temperature_range', 'humidity_range', 'care_tips', 'common_issues')
            else row[col]
            for col in PLANT_COLUMNS
        ]
        placeholders = ', '.join('?' * len(PLANT_COLUMNS))
        with self.get_connection() as conn:
            conn.execute(
                f"INSERT OR REPLACE INTO plant_care_data ({', '.join(PLANT_COLUMNS)}) VALUES ({placeholders})",
                values,
            )
            conn.commit()

    def load_plants(self, csv_path: str) -> int:
        """Load plant profiles from CSV"""
        df = pd.read_csv(csv_path)
        if 'plant_name' not in df.columns and 'name' in df.columns:
            df = df.rename(columns={'name': 'plant_name'})
        profiles = [PlantProfile.from_record(record) for record in df.to_dict(orient='records')]
        for profile in profiles:
            self.add_plant(profile)
        logger.info("Loaded %d plants from %s", len(profiles), csv_path)
        return len(profiles)

    def fetch_profiles(self, hidden_ids: FrozenSet[str] = frozenset()) -> List[PlantProfile]:
        """Return visible catalog profiles, or the built-in defaults"""
        try:
            with self.get_connection() as conn:
                conn.row_factory = sqlite3.Row
                rows = conn.execute("SELECT * FROM plant_care_data ORDER BY plant_name").fetchall()
        except sqlite3.Error as e:
            logger.warning("Plant catalog unavailable, using defaults: %s", e)
            rows = []

        profiles = [PlantProfile.from_record(row) for row in rows]
        profiles = [p for p in profiles if p.id not in hidden_ids]
        if not profiles:
            logger.info("Plant catalog empty, using %d built-in plants", len(DEFAULT_PLANTS))
            return [p for p in DEFAULT_PLANTS if p.id not in hidden_ids] or list(DEFAULT_PLANTS)
        return profiles

    def save_scan(self, space: SpaceAnalysis, conditions: EnvironmentalConditions,
                  recommendations: Sequence[Recommendation]) -> int:
        """Save a space scan and keep only the most recent ones"""
        with self.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute('''
                INSERT INTO space_scans
                (area, surface_type, light_access, suitability, recommended_plants,
                 environmental_data, recommendations)
                VALUES (?, ?, ?, ?, ?, ?, ?)
            ''', (
                space.area, space.surface_type, space.light_access, space.suitability,
                space.recommended_plants, json.dumps(conditions.as_dict()),
                json.dumps([rec.name for rec in recommendations]),
            ))
            scan_id = cursor.lastrowid
            cursor.execute('''
                DELETE FROM space_scans WHERE id NOT IN (
                    SELECT id FROM space_scans ORDER BY id DESC LIMIT ?
                )
            ''', (Config.SCAN_HISTORY_LIMIT,))
            conn.commit()
            return scan_id

    def recent_scans(self, limit: int = Config.SCAN_HISTORY_LIMIT) -> pd.DataFrame:
        """Most recent scans first"""
        with self.get_connection() as conn:
            return pd.read_sql(
                "SELECT * FROM space_scans ORDER BY id DESC LIMIT ?", conn, params=(limit,)
            )


# ============================================================================
# CLIMATE DATA FETCHER
# ============================================================================

class ClimateDataFetcher:
    """Fetches current climate readings, with station and simulated fallbacks"""

    def __init__(self, api_key: Optional[str] = None):
        self.api_key = api_key or Config.OPENWEATHER_API_KEY

    def fetch_current(self, lat: float, lon: float) -> ClimateReading:
        """Return the best available reading for ``(lat, lon)``"""
        logger.info("Fetching climate data for (%.4f, %.4f)", lat, lon)

        reading = None
        if self.api_key:
            reading = self.fetch_openweather(lat, lon)
        if reading is None:
            reading = self.fetch_meteostat(lat, lon)
        if reading is None:
            logger.warning("No climate source available, using simulated data")
            reading = self.simulated_reading(lat, lon)
        return reading

    def fetch_openweather(self, lat: float, lon: float) -> Optional[ClimateReading]:
        """Current weather from OpenWeather"""
        try:
            params = {'lat': lat, 'lon': lon, 'appid': self.api_key, 'units': 'metric'}
            response = requests.get(f"{Config.OPENWEATHER_URL}/weather", params=params,
                                    timeout=Config.API_TIMEOUT)
            if response.status_code != 200:
                logger.warning("OpenWeather returned HTTP %s", response.status_code)
                return None
            data = response.json()
            sunrise = data['sys']['sunrise']
            sunset = data['sys']['sunset']
            weather = (data.get('weather') or [{}])[0]
            reading = ClimateReading(
                temperature=float(data['main']['temp']),
                humidity=float(data['main']['humidity']),
                light_hours=round((sunset - sunrise) / 3600, 1),
                pressure=float(data['main'].get('pressure', 1013.0)),
                wind_speed=float(data.get('wind', {}).get('speed', 0.0)),
                cloudiness=float(data.get('clouds', {}).get('all', 0.0)),
                weather=weather.get('main', 'Unknown'),
                description=weather.get('description', ''),
                visibility=data.get('visibility', 10000) / 1000,
                city=data.get('name') or 'Unknown',
                country=data['sys'].get('country', 'Unknown'),
                latitude=lat,
                longitude=lon,
                timestamp=datetime.now(timezone.utc).isoformat(),
                source='openweather',
            )
        except Exception as e:
            logger.warning("OpenWeather fetch failed: %s", e)
            return None

        reading.uv_index = self.fetch_uv_index(lat, lon)
        return reading

    def fetch_uv_index(self, lat: float, lon: float) -> float:
        """UV index, 0 when unavailable"""
        try:
            params = {'lat': lat, 'lon': lon, 'appid': self.api_key}
            response = requests.get(f"{Config.OPENWEATHER_URL}/uvi", params=params,
                                    timeout=Config.API_TIMEOUT)
            if response.status_code == 200:
                return float(response.json().get('value') or 0.0)
        except Exception as e:
            logger.warning("UV index fetch failed: %s", e)
        return 0.0

    def fetch_meteostat(self, lat: float, lon: float) -> Optional[ClimateReading]:
        """Latest station observations from Meteostat"""
        try:
            location = Point(lat, lon)
            end = datetime.now(timezone.utc).replace(tzinfo=None)
            hourly = Hourly(location, end - timedelta(days=1), end).fetch()
            daily = Daily(location, end - timedelta(days=7), end).fetch()
        except Exception as e:
            logger.warning("Meteostat fetch failed: %s", e)
            return None

        if hourly.empty or hourly['temp'].dropna().empty or hourly['rhum'].dropna().empty:
            return None

        light_hours = Config.FALLBACK_CLIMATE['light_hours']
        if not daily.empty and 'tsun' in daily and not daily['tsun'].dropna().empty:
            light_hours = round(daily['tsun'].dropna().iloc[-1] / 60, 1)

        latest = hourly.iloc[-1]
        address = self.fetch_address(lat, lon)
        return ClimateReading(
            temperature=round(float(hourly['temp'].dropna().iloc[-1]), 1),
            humidity=round(float(hourly['rhum'].dropna().iloc[-1]), 1),
            light_hours=light_hours,
            pressure=_finite(latest.get('pres'), 1013.0),
            wind_speed=_finite(latest.get('wspd')),
            description='Station observation',
            city=address.get('city', address.get('town', 'Unknown')),
            country=address.get('country', 'Unknown'),
            latitude=lat,
            longitude=lon,
            timestamp=end.isoformat(),
            source='meteostat',
        )

    @staticmethod
    def fetch_address(lat: float, lon: float) -> Dict[str, str]:
        """Fetch address information via reverse geocoding"""
        try:
            geolocator = Nominatim(user_agent=Config.GEOCODER_USER_AGENT)
            location = geolocator.reverse((lat, lon), timeout=Config.API_TIMEOUT)
            if location:
                return location.raw.get('address', {})
        except Exception as e:
            logger.warning("Geocoding failed: %s", e)
        return {}

    @staticmethod
    def simulated_reading(lat: float = 0.0, lon: float = 0.0) -> ClimateReading:
        """Fixed fallback reading"""
        fallback = Config.FALLBACK_CLIMATE
        return ClimateReading(
            temperature=fallback['temperature'],
            humidity=fallback['humidity'],
            light_hours=fallback['light_hours'],
            pressure=fallback['pressure'],
            weather='Clear',
            description='Simulated data',
            latitude=lat,
            longitude=lon,
            timestamp=datetime.now(timezone.utc).isoformat(),
            source='simulated',
        )


# ============================================================================
# COMPATIBILITY SCORER
# ============================================================================

class CompatibilityScorer:
    """Scores a plant catalog against one environmental reading using vectorized operations"""

    FRAME_COLUMNS = ['plant_id', 'name', 'temp_min', 'temp_max', 'humidity_min', 'humidity_max',
                     'has_ranges', 'full_sun', 'easy', 'fast']

    def __init__(self, weights: ScoringWeights = Config.STANDARD_WEIGHTS,
                 min_compatibility: int = Config.MIN_COMPATIBILITY):
        self.weights = weights
        self.min_compatibility = min_compatibility

    def score(self, conditions: EnvironmentalConditions,
              catalog: Sequence[PlantProfile]) -> List[Recommendation]:
        """Ranked recommendations at or above the minimum compatibility"""
        plants = tuple(catalog)
        if not plants:
            return []

        scores_df = self.score_frame(conditions, plants)
        scores_df = scores_df[scores_df['compatibility'] >= self.min_compatibility]
        scores_df = scores_df.sort_values('compatibility', ascending=False, kind='mergesort')

        logger.debug("%d of %d plants compatible (%s)", len(scores_df), len(plants), self.weights.name)
        return [
            Recommendation(
                plant=plants[idx],
                compatibility=int(row.compatibility),
                reason=row.reason,
                priority=priority_for(int(row.compatibility)),
            )
            for idx, row in zip(scores_df.index, scores_df.itertuples(index=False))
        ]

    def environmental_match(self, conditions: EnvironmentalConditions,
                            catalog: Sequence[PlantProfile]) -> List[Tuple[int, str]]:
        """Unfiltered ``(compatibility, reason)`` per plant, in catalog order"""
        plants = tuple(catalog)
        if not plants:
            return []
        scores_df = self.score_frame(conditions, plants)
        return [(int(c), r) for c, r in zip(scores_df['compatibility'], scores_df['reason'])]

    def score_frame(self, conditions: EnvironmentalConditions,
                    catalog: Sequence[PlantProfile]) -> pd.DataFrame:
        """Every plant with its sub-scores, in catalog order"""
        plants = self._catalog_frame(catalog)
        w = self.weights

        temp_scores = self._range_score(
            conditions.temperature, plants['temp_min'].values, plants['temp_max'].values, w.temp_decay)
        humidity_scores = self._range_score(
            conditions.humidity, plants['humidity_min'].values, plants['humidity_max'].values, w.humidity_decay)
        light_scores = self._light_score(conditions.light_hours, plants['full_sun'].values)
        soil_scores = np.full(len(plants), self._soil_score(conditions.soil_moisture))

        total_scores = (
            temp_scores * w.temp_weight
            + humidity_scores * w.humidity_weight
            + light_scores * w.light_weight
            + soil_scores * w.soil_weight
        )

        bonus = np.zeros(len(plants))
        if w.apply_bonuses:
            bonus = bonus + np.where(plants['easy'].values, 5, 0) + np.where(plants['fast'].values, 3, 0)
        total_scores = total_scores + bonus

        has_ranges = plants['has_ranges'].values
        compatibility = round_half_up(np.clip(total_scores, 0, 100))
        compatibility = np.where(has_ranges, compatibility, Config.FALLBACK_COMPATIBILITY).astype(int)

        if w.itemized_reasons:
            reasons = self._itemized_reasons(temp_scores, humidity_scores, light_scores, soil_scores,
                                             plants['easy'].values, plants['fast'].values)
        else:
            reasons = self._overall_reasons(compatibility)
        reasons = [r if ok else w.fallback_reason for r, ok in zip(reasons, has_ranges)]

        return pd.DataFrame({
            'plant_id': plants['plant_id'],
            'name': plants['name'],
            'temperature_score': np.round(temp_scores, 2),
            'humidity_score': np.round(humidity_scores, 2),
            'light_score': light_scores,
            'soil_score': soil_scores,
            'bonus': bonus,
            'compatibility': compatibility,
            'reason': reasons,
            'has_ranges': has_ranges,
        })

    @staticmethod
    def _catalog_frame(catalog: Sequence[PlantProfile]) -> pd.DataFrame:
        rows = []
        for plant in catalog:
            temp = plant.temperature_range or (np.nan, np.nan)
            humidity = plant.humidity_range or (np.nan, np.nan)
            difficulty = " ".join(re.split(r"[-_\s]+", (plant.care_difficulty or "").strip().lower()))
            rows.append({
                'plant_id': plant.id,
                'name': plant.name,
                'temp_min': temp[0],
                'temp_max': temp[1],
                'humidity_min': humidity[0],
                'humidity_max': humidity[1],
                'has_ranges': plant.has_ranges,
                'full_sun': 'full' in plant.light_tags,
                'easy': difficulty in ('easy', 'very easy'),
                'fast': (plant.growth_rate or "").lower() == 'fast',
            })
        return pd.DataFrame(rows, columns=CompatibilityScorer.FRAME_COLUMNS)

    @staticmethod
    def _range_score(value: float, low: np.ndarray, high: np.ndarray, decay: float) -> np.ndarray:
        value = float(value)
        diff = np.where(
            (value >= low) & (value <= high),
            0.0,
            np.minimum(np.abs(value - low), np.abs(value - high)),
        )
        scores = np.maximum(0.0, 100 - diff * decay)
        return np.nan_to_num(scores, nan=0.0)

    def _light_score(self, light_hours: float, full_sun: np.ndarray) -> np.ndarray:
        hours = float(light_hours)
        if self.weights.light_curve == 'need_aware':
            full = 100.0 if hours >= 6 else hours * 15
            other = 100.0 if hours >= 4 else hours * 20
            scores = np.where(full_sun, full, other)
            return np.clip(np.nan_to_num(scores, nan=0.0), 0, 100)
        if hours >= 6:
            score = 100.0
        elif hours >= 4:
            score = 80.0
        elif hours >= 2:
            score = 60.0
        else:
            score = 40.0
        return np.full(len(full_sun), score)

    @staticmethod
    def _soil_score(soil_moisture: float) -> float:
        if 60 <= soil_moisture <= 80:
            return 100.0
        if 40 <= soil_moisture <= 90:
            return 80.0
        return 60.0

    @staticmethod
    def _itemized_reasons(temp_scores, humidity_scores, light_scores, soil_scores, easy, fast) -> List[str]:
        temp_labels = np.select(
            [temp_scores >= 80, temp_scores >= 60, temp_scores >= 40],
            ["Perfect temperature range", "Good temperature match", "Acceptable temperature"],
            default="",
        )
        humidity_labels = np.select(
            [humidity_scores >= 80, humidity_scores >= 60],
            ["Ideal humidity level", "Good humidity match"],
            default="",
        )
        light_labels = np.select(
            [light_scores >= 80, light_scores >= 60],
            ["Excellent light conditions", "Good light availability"],
            default="",
        )
        soil_labels = np.where(soil_scores >= 80, "Optimal soil moisture", "")
        easy_labels = np.where(easy, "Easy to care for", "")
        fast_labels = np.where(fast, "Fast growing", "")

        reasons = []
        for labels in zip(temp_labels, humidity_labels, light_labels, soil_labels, easy_labels, fast_labels):
            earned = [str(label) for label in labels if label]
            reasons.append(", ".join(earned) if earned else "Suitable for your conditions")
        return reasons

    @staticmethod
    def _overall_reasons(compatibility: np.ndarray) -> List[str]:
        labels = np.select(
            [compatibility >= 85, compatibility >= 75],
            ["Perfect environmental match", "Good environmental conditions"],
            default="Acceptable conditions",
        )
        return [str(label) for label in labels]


def score(conditions: EnvironmentalConditions, catalog: Sequence[PlantProfile]) -> List[Recommendation]:
    """Rank ``catalog`` against ``conditions`` with the standard weights"""
    return CompatibilityScorer(Config.STANDARD_WEIGHTS).score(conditions, catalog)


# ============================================================================
# SPACE SUITABILITY ANALYZER
# ============================================================================

class SpaceSuitabilityAnalyzer:
    """Classifies scanned spaces and recommends plants that fit them"""

    AREA_BONUSES = ((1.0, 25), (2.0, 25))
    LIGHT_POINTS = {'direct': 30, 'indirect': 20, 'artificial': 10, 'low': 0}
    GROUND_SURFACES = ('balcony', 'floor')
    SURFACE_POINTS = 20
    TIERS = ((75, 'excellent'), (50, 'good'), (25, 'fair'))

    def __init__(self, env_weights: ScoringWeights = Config.SPACE_AWARE_WEIGHTS):
        self.env_scorer = CompatibilityScorer(env_weights)

    def analyze_space(self, measurement: SpaceMeasurement) -> SpaceAnalysis:
        """Derive the suitability tier and recommended plant count"""
        area = _finite(measurement.area)
        surface_type = measurement.surface_type if measurement.surface_type in Config.SURFACE_TYPES else 'unknown'
        light_access = measurement.light_access if measurement.light_access in Config.LIGHT_ACCESS else 'low'

        suitability_score = 0
        for threshold, points in self.AREA_BONUSES:
            if area > threshold:
                suitability_score += points
        suitability_score += self.LIGHT_POINTS[light_access]
        if surface_type in self.GROUND_SURFACES:
            suitability_score += self.SURFACE_POINTS

        suitability = 'poor'
        for threshold, tier in self.TIERS:
            if suitability_score >= threshold:
                suitability = tier
                break

        recommended = int(round_half_up(area * (suitability_score / 100) * 3))
        return SpaceAnalysis(
            area=round(area, 2),
            surface_type=surface_type,
            light_access=light_access,
            suitability_score=suitability_score,
            suitability=suitability,
            recommended_plants=max(1, recommended),
        )

    @staticmethod
    def get_space_recommendations(space: SpaceAnalysis) -> List[str]:
        """Advisory text; every matching rule contributes"""
        recommendations = []

        if space.area < 0.5:
            recommendations.append("Consider vertical growing with wall-mounted planters")
            recommendations.append("Small herbs like basil, mint, or cilantro would work well")
        elif space.area < 1.5:
            recommendations.append("Perfect for 2-4 medium plants or 6-8 small plants")
            recommendations.append("Mix of leafy greens and herbs recommended")
        else:
            recommendations.append("Excellent space for diverse vegetable garden")
            recommendations.append("Consider larger plants like tomatoes or peppers")

        if space.light_access == 'low':
            recommendations.append("Add grow lights for better plant health")
            recommendations.append("Focus on low-light tolerant plants")
        elif space.light_access == 'direct':
            recommendations.append("Excellent for sun-loving vegetables")
            recommendations.append("Consider shade cloth for sensitive plants")

        if space.surface_type == 'balcony':
            recommendations.append("Ensure proper drainage for containers")
            recommendations.append("Consider wind protection for tall plants")

        return recommendations

    def recommend_for_space(self, space: SpaceAnalysis, conditions: EnvironmentalConditions,
                            catalog: Sequence[PlantProfile]) -> List[Recommendation]:
        """Space-specific recommendations, capped by the recommended plant count"""
        eligible = [plant for plant in catalog if self.is_plant_suitable(plant, space)]
        env_matches = self.env_scorer.environmental_match(conditions, eligible)

        scored = []
        for plant, (env_score, _) in zip(eligible, env_matches):
            compatibility, reason = self._space_compatibility(plant, space, env_score)
            if compatibility >= Config.MIN_COMPATIBILITY:
                scored.append(Recommendation(plant, compatibility, reason, priority_for(compatibility)))

        scored.sort(key=lambda rec: rec.compatibility, reverse=True)
        limit = max(Config.MIN_SPACE_RECOMMENDATIONS,
                    min(space.recommended_plants, Config.MAX_SPACE_RECOMMENDATIONS))
        logger.info("Found %d plants for %.2fm² %s", min(len(scored), limit), space.area, space.surface_type)
        return scored[:limit]

    def recommend_companions(self, detected_plant: str, conditions: EnvironmentalConditions,
                             catalog: Sequence[PlantProfile]) -> List[Recommendation]:
        """Companion-planting recommendations for a detected plant"""
        detected = detected_plant.lower()
        plants = tuple(catalog)
        # keyed by position, catalog ids may repeat
        scored = [
            (idx, plant, match[0])
            for idx, (plant, match) in enumerate(
                zip(plants, self.env_scorer.environmental_match(conditions, plants)))
        ]

        recommendations = []
        for companion in COMPANION_RULES.get(detected, []):
            entry = next((e for e in scored if companion in e[1].name.lower()), None)
            if entry is None:
                continue
            _, plant, env_score = entry
            compatibility = int(round_half_up((85 + env_score) / 2))
            reason = " • ".join([
                f"Great companion for {detected_plant}",
                "Similar growing conditions" if env_score >= 75 else "Good environmental match",
            ])
            recommendations.append(Recommendation(plant, compatibility, reason, 'high'))

        reference = next((e for e in scored if detected in e[1].name.lower()), None)
        if reference is not None:
            reference_idx, reference_plant, _ = reference
            seen = {rec.name for rec in recommendations}
            for idx, plant, env_score in scored:
                if idx == reference_idx or plant.name in seen:
                    continue
                if not self.have_similar_needs(reference_plant, plant):
                    continue
                if env_score >= 70:
                    recommendations.append(Recommendation(
                        plant, env_score, f"Similar growing conditions to {detected_plant}", 'medium'))

        recommendations.sort(key=lambda rec: rec.compatibility, reverse=True)
        return recommendations[:Config.MAX_COMPANION_RECOMMENDATIONS]

    # Eligibility ----------------------------------------------------------

    def is_plant_suitable(self, plant: PlantProfile, space: SpaceAnalysis) -> bool:
        return (
            space.area >= Config.SIZE_MIN_AREA[plant.size_class]
            and self.check_light_compatibility(plant, space.light_access)
            and self.check_surface_compatibility(plant, space.surface_type)
        )

    @staticmethod
    def check_light_compatibility(plant: PlantProfile, light_access: str) -> bool:
        tags = plant.light_tags
        if light_access == 'direct':
            return bool(tags & {'full', 'direct'})
        if light_access == 'indirect':
            return bool(tags & {'partial', 'indirect', 'full'})
        if light_access == 'artificial':
            return bool(tags & {'artificial', 'low'})
        if light_access == 'low':
            return bool(tags & {'low', 'shade'})
        return True

    @staticmethod
    def check_surface_compatibility(plant: PlantProfile, surface_type: str) -> bool:
        if surface_type == 'wall':
            name = plant.name.lower()
            return 'herb' in name or 'basil' in name
        return True

    # Scoring --------------------------------------------------------------

    def _space_compatibility(self, plant: PlantProfile, space: SpaceAnalysis, env_score: int) -> Tuple[int, str]:
        reasons = []
        score = env_score * Config.SPACE_WEIGHTS['environment']
        if env_score >= 80:
            reasons.append("Perfect environmental match")

        size_score = self.size_score(plant.size_class, space.area)
        score += size_score * Config.SPACE_WEIGHTS['size']
        if size_score >= 0.8:
            reasons.append(f"Fits well in {space.area:g}m² space")

        light_score = self.light_score(plant, space.light_access)
        score += light_score * Config.SPACE_WEIGHTS['light']
        if light_score >= 0.8:
            reasons.append(f"Thrives in {space.light_access} light")

        score += self.surface_score(plant, space.surface_type) * Config.SPACE_WEIGHTS['surface']

        compatibility = int(round_half_up(min(max(score, 0), 100)))
        reason = ", ".join(reasons[:2]) if reasons else f"{compatibility}% compatible with your space"
        return compatibility, reason

    @staticmethod
    def size_score(size_class: str, area: float) -> float:
        minimum = Config.SIZE_MIN_AREA[size_class]
        ideal = Config.SIZE_IDEAL_AREA[size_class]
        if area < minimum:
            return 0.0
        if area >= ideal:
            return 1.0
        return (area - minimum) / (ideal - minimum)

    @staticmethod
    def light_score(plant: PlantProfile, light_access: str) -> float:
        tags = plant.light_tags
        if light_access == 'direct':
            return 1.0 if 'full' in tags else 0.7 if 'partial' in tags else 0.5
        if light_access == 'indirect':
            return 1.0 if 'partial' in tags else 0.8 if 'full' in tags else 0.6
        if light_access == 'artificial':
            return 1.0 if 'artificial' in tags else 0.8 if 'low' in tags else 0.6
        if light_access == 'low':
            return 1.0 if 'low' in tags else 0.9 if 'shade' in tags else 0.5
        return 0.6

    @staticmethod
    def surface_score(plant: PlantProfile, surface_type: str) -> float:
        name = plant.name.lower()
        if surface_type == 'wall':
            return 0.9 if ('herb' in name or 'basil' in name) else 0.6
        if surface_type == 'balcony':
            return 0.95
        if surface_type in ('table', 'shelf'):
            return 1.0 if ('herb' in name or 'lettuce' in name) else 0.8
        return 0.9

    @staticmethod
    def have_similar_needs(first: PlantProfile, second: PlantProfile) -> bool:
        if not first.temperature_range or not second.temperature_range:
            return False
        first_min, first_max = first.temperature_range
        second_min, second_max = second.temperature_range
        return not (first_max < second_min or second_max < first_min)


def analyze_space(measurement: SpaceMeasurement) -> SpaceAnalysis:
    return SpaceSuitabilityAnalyzer().analyze_space(measurement)


def get_space_recommendations(space: SpaceAnalysis) -> List[str]:
    return SpaceSuitabilityAnalyzer.get_space_recommendations(space)


# ============================================================================
# ZONE MONITOR
# ============================================================================

class ZoneMonitor:
    """Derives zone health and alerts from live readings"""

    @staticmethod
    def health_status(zone: GardenZone) -> str:
        if zone.soil_moisture < 20:
            return 'critical'
        if zone.soil_moisture < 40:
            return 'needs_water'
        if zone.temperature < 10 or zone.temperature > 35:
            return 'needs_water'
        if zone.humidity < 30:
            return 'needs_water'
        return 'good'

    @classmethod
    def alerts(cls, zones: Iterable[GardenZone], dismissed: Set[str] = frozenset()) -> List[ZoneAlert]:
        """Alerts for unhealthy zones, minus the ones the user dismissed"""
        alerts = []
        for zone in zones:
            status = cls.health_status(zone)
            if status == 'critical':
                alert_id = f"critical_{zone.id}"
                message = (f"CRITICAL: {zone.name} needs immediate attention - "
                           f"{zone.soil_moisture:.0f}% moisture")
            elif status == 'needs_water':
                alert_id = f"warning_{zone.id}"
                message = f"{zone.name} needs water - moisture at {zone.soil_moisture:.0f}%"
            else:
                continue
            if alert_id in dismissed:
                continue
            alerts.append(ZoneAlert(alert_id, zone.id, 'critical' if status == 'critical' else 'warning', message))
        return alerts


# ============================================================================
# REPORTS
# ============================================================================

class RecommendationReport:
    """Tabular, chart and spreadsheet output for recommendations"""

    COLUMNS = ['plant_id', 'name', 'scientific_name', 'compatibility', 'priority', 'reason']

    @staticmethod
    def to_frame(recommendations: Sequence[Recommendation]) -> pd.DataFrame:
        rows = [
            {**rec.as_dict(), 'scientific_name': rec.plant.scientific_name}
            for rec in recommendations
        ]
        return pd.DataFrame(rows, columns=RecommendationReport.COLUMNS)

    @staticmethod
    def plot_scores(df: pd.DataFrame, title: str):
        """Horizontal bar chart of compatibility scores"""
        colors = {'high': '#2e7d32', 'medium': '#f9a825', 'low': '#c62828'}
        fig, ax = plt.subplots(figsize=(8, max(2, 0.5 * len(df) + 1)))
        ordered = df.iloc[::-1]
        ax.barh(ordered['name'], ordered['compatibility'],
                color=[colors.get(p, '#757575') for p in ordered['priority']], edgecolor='black')
        ax.set_xlim(0, 100)
        ax.axvline(Config.MIN_COMPATIBILITY, color='grey', linestyle='--', linewidth=1)
        ax.set_xlabel("Compatibility (%)")
        ax.set_title(title)
        ax.grid(True, axis='x', alpha=0.3)
        fig.tight_layout()
        return fig

    @staticmethod
    def export_to_excel(df: pd.DataFrame, advice: Sequence[str], fig, garden_name: str, filename: str):
        """Export recommendations, advice and chart to Excel"""
        with pd.ExcelWriter(filename, engine="xlsxwriter") as writer:
            df.to_excel(writer, sheet_name="recommendations", index=False)
            pd.DataFrame({'advice': list(advice)}).to_excel(writer, sheet_name="advice", index=False)

            workbook = writer.book
            ws_plot = workbook.add_worksheet("chart")
            ws_plot.write(0, 0, f"Garden: {garden_name}")

            img = io.BytesIO()
            fig.savefig(img, format="png", dpi=150, bbox_inches="tight")
            img.seek(0)
            ws_plot.insert_image("B3", "", {"image_data": img})


# ============================================================================
# MAIN APPLICATION CLASS
# ============================================================================

class UrbanGardenPlanner:
    """Main application orchestrator"""

    def __init__(self, db_path: str = Config.DB_PATH, weights: ScoringWeights = Config.STANDARD_WEIGHTS,
                 climate_fetcher: Optional[ClimateDataFetcher] = None):
        self.catalog = PlantCatalog(db_path)
        self.climate_fetcher = climate_fetcher or ClimateDataFetcher()
        self.scorer = CompatibilityScorer(weights)
        self.analyzer = SpaceSuitabilityAnalyzer()

    def initialize(self, plant_csv_path: Optional[str] = None) -> int:
        """Create the catalog schema and optionally import plants"""
        self.catalog.create_schema()
        if plant_csv_path:
            return self.catalog.load_plants(plant_csv_path)
        return 0

    def current_conditions(self, lat: float, lon: float,
                           soil_moisture: float = Config.DEFAULT_SOIL_MOISTURE
                           ) -> Tuple[ClimateReading, EnvironmentalConditions]:
        reading = self.climate_fetcher.fetch_current(lat, lon)
        return reading, reading.to_conditions(soil_moisture)

    def get_recommendations(self, conditions: EnvironmentalConditions,
                            hidden_ids: FrozenSet[str] = frozenset()) -> List[Recommendation]:
        """Plant recommendations for the given conditions"""
        catalog = self.catalog.fetch_profiles(hidden_ids)
        recommendations = self.scorer.score(conditions, catalog)
        logger.info("Found %d suitable plants", len(recommendations))
        return recommendations

    def scan_space(self, measurement: SpaceMeasurement, conditions: EnvironmentalConditions,
                   hidden_ids: FrozenSet[str] = frozenset(), save: bool = True
                   ) -> Tuple[SpaceAnalysis, List[str], List[Recommendation]]:
        """Analyze a scanned space and recommend plants for it"""
        space = self.analyzer.analyze_space(measurement)
        advice = self.analyzer.get_space_recommendations(space)
        catalog = self.catalog.fetch_profiles(hidden_ids)
        recommendations = self.analyzer.recommend_for_space(space, conditions, catalog)
        if save:
            try:
                self.catalog.save_scan(space, conditions, recommendations)
            except sqlite3.Error as e:
                logger.warning("Could not save scan: %s", e)
        return space, advice, recommendations

    def get_companions(self, detected_plant: str, conditions: EnvironmentalConditions,
                       hidden_ids: FrozenSet[str] = frozenset()) -> List[Recommendation]:
        catalog = self.catalog.fetch_profiles(hidden_ids)
        return self.analyzer.recommend_companions(detected_plant, conditions, catalog)

    def export_recommendations(self, recommendations: Sequence[Recommendation], filepath: str):
        """Export recommendations to CSV"""
        RecommendationReport.to_frame(recommendations).to_csv(filepath, index=False)

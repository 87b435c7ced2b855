"""Initial schema: city catalog, weather time series, forecasts, favorites, profiles."""

import sqlite3

DDL = [
    # City catalog
    """
    CREATE TABLE IF NOT EXISTS cities (
        id TEXT PRIMARY KEY,
        city_name TEXT NOT NULL,
        country TEXT NOT NULL,
        latitude REAL,
        longitude REAL,
        created_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%S+00:00', 'now'))
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_cities_name ON cities(city_name)",

    # Observed weather, one row per reading
    """
    CREATE TABLE IF NOT EXISTS weather_data (
        id TEXT PRIMARY KEY,
        city_id TEXT NOT NULL REFERENCES cities(id) ON DELETE CASCADE,
        temperature REAL NOT NULL,
        humidity INTEGER NOT NULL CHECK (humidity BETWEEN 0 AND 100),
        condition TEXT NOT NULL,
        recorded_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%S+00:00', 'now'))
    )
    """,
    (
        "CREATE INDEX IF NOT EXISTS idx_weather_data_city_recorded "
        "ON weather_data(city_id, recorded_at)"
    ),

    # Daily forecasts
    """
    CREATE TABLE IF NOT EXISTS forecasts (
        id TEXT PRIMARY KEY,
        city_id TEXT NOT NULL REFERENCES cities(id) ON DELETE CASCADE,
        date TEXT NOT NULL,
        min_temp REAL NOT NULL,
        max_temp REAL NOT NULL,
        condition TEXT NOT NULL,
        created_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%S+00:00', 'now'))
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_forecasts_city_date ON forecasts(city_id, date)",

    # User profiles
    """
    CREATE TABLE IF NOT EXISTS profiles (
        id TEXT PRIMARY KEY,
        username TEXT NOT NULL,
        created_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%S+00:00', 'now')),
        updated_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%S+00:00', 'now'))
    )
    """,

    # Favorite relations
    """
    CREATE TABLE IF NOT EXISTS user_preferences (
        id TEXT PRIMARY KEY,
        user_id TEXT NOT NULL,
        city_id TEXT NOT NULL REFERENCES cities(id) ON DELETE CASCADE,
        created_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%S+00:00', 'now')),
        UNIQUE(user_id, city_id)
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_user_preferences_user ON user_preferences(user_id)",
]


def up(conn: sqlite3.Connection) -> None:
    for stmt in DDL:
        conn.execute(stmt)
    conn.commit()

"""Tests for CLI commands."""

from pathlib import Path

import pytest

from citycast.cli import main
from citycast.store.database import connect, run_migrations


@pytest.fixture
def db_path(tmp_path: Path) -> str:
    path = tmp_path / "cli.db"
    conn = connect(path)
    run_migrations(conn)
    conn.executemany(
        "INSERT INTO cities (id, city_name, country, latitude, longitude) "
        "VALUES (?, ?, ?, ?, ?)",
        [("c1", "Berlin", "Germany", 52.52, 13.405), ("c2", "Paris", "France", None, None)],
    )
    conn.execute(
        "INSERT INTO weather_data (id, city_id, temperature, humidity, condition, recorded_at) "
        "VALUES ('w1', 'c1', 25.0, 55, 'Sunny', '2026-02-11T15:00:00+00:00')"
    )
    conn.commit()
    conn.close()
    return str(path)


def _run(config_yaml_path: Path, db_path: str, *args: str) -> int:
    return main(["--config", str(config_yaml_path), "--db", db_path, *args])


class TestCLI:
    def test_no_command_returns_1(self, capsys):
        assert main([]) == 1

    def test_config_show(self, config_yaml_path: Path, capsys):
        assert main(["--config", str(config_yaml_path), "config", "show"]) == 0
        assert "sqlite" in capsys.readouterr().out

    def test_cities_search(self, config_yaml_path: Path, db_path: str, capsys):
        assert _run(config_yaml_path, db_path, "cities", "--search", "par") == 0
        out = capsys.readouterr().out
        assert "Paris, France" in out
        assert "Berlin" not in out
        assert "°," not in out

    def test_cities_show_coordinates(self, config_yaml_path: Path, db_path: str, capsys):
        assert _run(config_yaml_path, db_path, "cities") == 0
        out = capsys.readouterr().out
        assert "Berlin, Germany  (52.5200°, 13.4050°)" in out
        assert "2 cities" in out

    def test_weather(self, config_yaml_path: Path, db_path: str, capsys):
        assert _run(config_yaml_path, db_path, "weather", "c1", "c2") == 0
        out = capsys.readouterr().out
        assert "25.0°C" in out
        assert "Unknown" in out

    def test_weather_missing_city(self, config_yaml_path: Path, db_path: str, capsys):
        assert _run(config_yaml_path, db_path, "weather", "c1", "zz") == 1
        out = capsys.readouterr().out
        assert "Berlin" in out
        assert "zz: FAILED" in out

    def test_favorites_toggle_and_dashboard(
        self, config_yaml_path: Path, db_path: str, capsys
    ):
        assert _run(config_yaml_path, db_path, "favorites", "toggle", "--user", "u1", "c1") == 0
        assert "Added c1" in capsys.readouterr().out

        assert _run(config_yaml_path, db_path, "favorites", "list", "--user", "u1") == 0
        assert "Berlin" in capsys.readouterr().out

        assert _run(config_yaml_path, db_path, "dashboard", "--user", "u1") == 0
        assert "Sunny" in capsys.readouterr().out

        assert _run(config_yaml_path, db_path, "favorites", "toggle", "--user", "u1", "c1") == 0
        assert "Removed c1" in capsys.readouterr().out

    def test_empty_dashboard(self, config_yaml_path: Path, db_path: str, capsys):
        assert _run(config_yaml_path, db_path, "dashboard", "--user", "nobody") == 0
        assert "No favorite cities yet" in capsys.readouterr().out

    def test_toggle_unknown_city_fails(self, config_yaml_path: Path, db_path: str, capsys):
        assert _run(config_yaml_path, db_path, "favorites", "toggle", "--user", "u1", "zz") == 1
        assert "Error" in capsys.readouterr().out

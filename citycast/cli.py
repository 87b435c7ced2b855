"""CLI entry point for the city weather tracker."""

import argparse
import asyncio
import logging

from citycast.config.factory import build_aggregator, build_favorites, build_store
from citycast.config.loader import load_config
from citycast.config.schema import AppConfig
from citycast.models.weather import BatchItemFailure, CityWeatherView
from citycast.services.dashboard import load_dashboard
from citycast.store.errors import StoreError

DEFAULT_CONFIG = "config/citycast.yaml"


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="citycast",
        description="Favorite cities and their weather",
    )
    parser.add_argument(
        "--config", default=DEFAULT_CONFIG, help="Config YAML path"
    )
    parser.add_argument("--db", default=None, help="SQLite DB path (sqlite backend)")

    sub = parser.add_subparsers(dest="command")

    # cities
    cities_p = sub.add_parser("cities", help="List known cities")
    cities_p.add_argument("--search", default=None, help="Filter by name or country")

    # weather
    weather_p = sub.add_parser("weather", help="Show weather for cities")
    weather_p.add_argument("city_ids", nargs="+", metavar="CITY_ID")

    # favorites list / favorites toggle
    fav_p = sub.add_parser("favorites", help="Favorite operations")
    fav_sub = fav_p.add_subparsers(dest="favorites_command")
    list_p = fav_sub.add_parser("list", help="List favorite cities")
    list_p.add_argument("--user", required=True)
    toggle_p = fav_sub.add_parser("toggle", help="Favorite or unfavorite a city")
    toggle_p.add_argument("--user", required=True)
    toggle_p.add_argument("city_id")

    # dashboard
    dash_p = sub.add_parser("dashboard", help="Weather for a user's favorites")
    dash_p.add_argument("--user", required=True)

    # config show
    config_p = sub.add_parser("config", help="Config operations")
    config_sub = config_p.add_subparsers(dest="config_command")
    config_sub.add_parser("show", help="Display current config")

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    config = load_config(args.config)

    logging.basicConfig(
        level=config.logging.level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "config":
        return _cmd_config(config, args)

    commands = {
        "cities": _cmd_cities,
        "weather": _cmd_weather,
        "favorites": _cmd_favorites,
        "dashboard": _cmd_dashboard,
    }
    try:
        return asyncio.run(commands[args.command](config, args))
    except StoreError as e:
        print(f"Error: {e}")
        return 1


async def _cmd_cities(config: AppConfig, args) -> int:
    async with build_store(config, args.db) as store:
        aggregator = build_aggregator(config, store)
        cities = await aggregator.catalog.list_cities(args.search)
    for c in cities:
        line = f"{c.id}  {c.name}, {c.country}"
        if c.has_coordinates:
            line += f"  ({c.latitude:.4f}°, {c.longitude:.4f}°)"
        print(line)
    print(f"{len(cities)} cities")
    return 0


async def _cmd_weather(config: AppConfig, args) -> int:
    city_ids = list(dict.fromkeys(args.city_ids))
    async with build_store(config, args.db) as store:
        results = await build_aggregator(config, store).assemble_batch(city_ids)
    for r in results:
        if isinstance(r, BatchItemFailure):
            print(f"{r.city_id}: FAILED ({r.message})")
        else:
            _print_view(r)
    return 1 if any(isinstance(r, BatchItemFailure) for r in results) else 0


async def _cmd_favorites(config: AppConfig, args) -> int:
    if args.favorites_command not in ("list", "toggle"):
        print("Use: favorites list --user U | favorites toggle --user U CITY_ID")
        return 1
    async with build_store(config, args.db) as store:
        favorites = build_favorites(config, store)
        await favorites.hydrate(args.user)
        if args.favorites_command == "toggle":
            added = await favorites.toggle_favorite(args.user, args.city_id)
            print(f"{'Added' if added else 'Removed'} {args.city_id}")
            return 0
        aggregator = build_aggregator(config, store)
        cities = await favorites.favorite_cities(args.user, aggregator.catalog)
    for c in cities:
        print(f"{c.id}  {c.name}, {c.country}")
    print(f"{len(cities)} favorites")
    return 0


async def _cmd_dashboard(config: AppConfig, args) -> int:
    async with build_store(config, args.db) as store:
        views = await load_dashboard(
            args.user,
            build_favorites(config, store),
            build_aggregator(config, store),
        )
    if not views:
        print("No favorite cities yet")
    for v in views:
        _print_view(v)
    return 0


def _cmd_config(config: AppConfig, args) -> int:
    if args.config_command == "show":
        print(config.model_dump_json(indent=2))
        return 0
    print("Use: config show")
    return 1


def _print_view(view: CityWeatherView) -> None:
    cur = view.current
    print(f"{view.city.name}, {view.city.country}")
    print(
        f"  Now: {cur.temperature:.1f}°C, {cur.humidity}% humidity, {cur.condition} "
        f"({cur.recorded_at:%Y-%m-%d %H:%M})"
    )
    for day in view.forecast:
        print(
            f"  {day.date:%a %b %d}: {day.max_temp:.0f}° / {day.min_temp:.0f}° "
            f"{day.condition}"
        )

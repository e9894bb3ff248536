#!/usr/bin/env python3
import argparse
import asyncio
import logging
import json
import sys
import os

# Add the parent directory to the path so we can import the package
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from itinerary_logic.config import Config, ScheduleConfig, route_cache_ttl_seconds
from itinerary_logic.day_scheduler import ScheduleContext, schedule_day
from itinerary_logic.errors import InvalidDateError
from itinerary_logic.event_validator import validate_event
from itinerary_logic.place import Place, Closure, select_closures
from itinerary_logic.route_cache import MemoryRouteCache
from itinerary_logic.route_resolver import RouteResolver


def setup_logging(debug=False):
    """Configure logging based on debug flag."""
    level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )


def parse_point(text):
    """Parse "lon,lat" into a [lon, lat] list."""
    try:
        lon, lat = (float(part) for part in text.split(','))
    except ValueError:
        raise argparse.ArgumentTypeError(f"Expected 'lon,lat', got {text!r}")
    return [lon, lat]


def load_day_file(path):
    """
    Load a day description:
    {"date": ..., "places": [...], "closures": [...], "events": [...], "settings": {...}}
    """
    with open(path, 'r') as f:
        data = json.load(f)
    places = {}
    for place_data in data.get("places", []):
        place = Place.from_dict(place_data)
        places[place.place_id] = place
    closures = [Closure.from_dict(c) for c in data.get("closures", [])]
    return data, places, closures


def build_config(settings, args):
    return ScheduleConfig.from_settings(
        settings,
        day_start_time=getattr(args, 'start', None),
        transition_buffer_min=getattr(args, 'buffer', None),
        timezone=getattr(args, 'timezone', None),
        osrm_base_url=getattr(args, 'osrm_url', None),
    )


def route_between(origin, destination, args):
    """Estimate one leg between two points."""
    config = build_config({}, args)
    resolver = RouteResolver(cache=MemoryRouteCache())
    route = asyncio.run(resolver.resolve(origin, destination, config))

    print(f"✅ Route resolved by {route.provider.value}:")
    print(f"  📍 From: {origin[0]}, {origin[1]}")
    print(f"  🏁 To: {destination[0]}, {destination[1]}")
    print(f"  📏 Distance: {route.distance_km:.2f} km")
    print(f"  ⏱️ Travel time: {route.travel_time_min} minutes")


def schedule_file(events_file, args):
    """Schedule a full day from a JSON file."""
    try:
        data, places, closures = load_day_file(events_file)
        config = build_config(data.get("settings", {}), args)
        cache = MemoryRouteCache(ttl_seconds=route_cache_ttl_seconds(data.get("settings")))
        context = ScheduleContext(
            data.get("date"),
            places=places,
            closures=select_closures(closures, data.get("date"), timezone=config.timezone),
            route_fn=RouteResolver(cache=cache),
            config=config,
        )
        result = asyncio.run(schedule_day(data.get("events", []), context))
    except FileNotFoundError:
        print(f"❌ Events file not found: {events_file}")
        return 1
    except json.JSONDecodeError:
        print(f"❌ Invalid JSON in events file: {events_file}")
        return 1
    except InvalidDateError as e:
        print(f"❌ {e.code}: {e}")
        return 1
    except ValueError as e:
        print(f"❌ Invalid day description: {e}")
        return 1

    if args.json:
        print(json.dumps({**result.to_dict(), "stats": result.stats.to_dict()}, indent=2))
        return 0

    print(f"📅 Schedule for {data.get('date')} ({len(result.events)} stops):")
    for event in result.events:
        place = places.get(event.place_id)
        name = place.name if place and place.name else event.place_id
        mark = "✅" if event.is_valid else "❌"
        line = f"  {mark} {event.start_time}-{event.end_time}  {name}"
        if event.travel_time_min:
            line += f"  (+{event.travel_time_min} min, {event.distance_km:.2f} km via {event.route_provider.value})"
        if not event.is_valid:
            line += f"  [{event.validation_reason.value}]"
        print(line)
    if result.warnings:
        print(f"⚠️  Warnings: {', '.join(result.warnings)}")
    return 0


def validate_file(events_file, place_id, time_str, args):
    """Check a single stop of a day file at a given time."""
    try:
        data, places, closures = load_day_file(events_file)
        config = build_config(data.get("settings", {}), args)
        date = args.date or data.get("date")
        closure = select_closures(closures, date, timezone=config.timezone).get(place_id)
        result = validate_event(places.get(place_id), date, time_str,
                                closure=closure, timezone=config.timezone)
    except (FileNotFoundError, json.JSONDecodeError) as e:
        print(f"❌ Could not read {events_file}: {e}")
        return 1
    except InvalidDateError as e:
        print(f"❌ {e.code}: {e}")
        return 1
    except ValueError as e:
        print(f"❌ {e}")
        return 1

    if result.is_valid:
        print(f"✅ {place_id} at {time_str} on {date} is valid")
    else:
        print(f"❌ {place_id} at {time_str} on {date} is invalid: {result.reason.value}")
    return 0


def main():
    parser = argparse.ArgumentParser(
        description="Itinerary Logic CLI - day scheduling and route estimation",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Estimate a leg between two points (lon,lat)
  ./main_cli.py route 75.8513,26.9855 75.8237,26.9239

  # Schedule a day described in a JSON file
  ./main_cli.py schedule day.json --start 08:30 --buffer 15

  # Check one stop of that day at a given time
  ./main_cli.py validate day.json palace --time 10:00
        """
    )

    parser.add_argument('--debug', action='store_true', default=Config.DEBUG, help='Enable debug logging')
    parser.add_argument('--timezone', type=str, help=f'IANA timezone (default {Config.LOGIC_TIMEZONE})')
    parser.add_argument('--osrm-url', type=str, help=f'Routing service base URL (default {Config.OSRM_BASE_URL})')

    subparsers = parser.add_subparsers(dest='command', help='Sub-command help')

    # Route command
    route_parser = subparsers.add_parser('route', help='Estimate travel between two points')
    route_parser.add_argument('origin', type=parse_point, help='Origin as lon,lat')
    route_parser.add_argument('destination', type=parse_point, help='Destination as lon,lat')

    # Schedule command
    schedule_parser = subparsers.add_parser('schedule', help='Schedule a full day')
    schedule_parser.add_argument('events_file', type=str, help='JSON file with the day description')
    schedule_parser.add_argument('--start', type=str, help='Day start time HH:MM')
    schedule_parser.add_argument('--buffer', type=int, help='Transition buffer in minutes')
    schedule_parser.add_argument('--json', action='store_true', help='Print the result as JSON')

    # Validate command
    validate_parser = subparsers.add_parser('validate', help='Validate one stop at a given time')
    validate_parser.add_argument('events_file', type=str, help='JSON file with the day description')
    validate_parser.add_argument('place_id', type=str, help='Place id to check')
    validate_parser.add_argument('--time', type=str, required=True, help='Visit start time HH:MM')
    validate_parser.add_argument('--date', type=str, help='Override the date of the file')

    args = parser.parse_args()
    setup_logging(args.debug)

    if args.command == 'route':
        route_between(args.origin, args.destination, args)
        return 0
    elif args.command == 'schedule':
        return schedule_file(args.events_file, args)
    elif args.command == 'validate':
        return validate_file(args.events_file, args.place_id, args.time, args)
    parser.print_help()
    return 0


if __name__ == "__main__":
    sys.exit(main())

#!/usr/bin/env python3
"""
List the occurrences of stored events in a date range.

Dates are read in the company timezone (stored setting, else configuration).

Usage:
    uv run python src/scripts/list_occurrences.py --start 2024-01-01 --end 2024-01-31
    uv run python src/scripts/list_occurrences.py --event-id 3 --start 2024-01-01 --end 2024-03-31
"""

import argparse
import sys
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from core import config
from core.database import fetch_event, fetch_events, get_connection
from core.date_codec import decode, encode, encode_datetime
from services.company_timezone import CompanyTimezoneResolver
from services.occurrences import calendar_occurrences, event_occurrences


def format_occurrence(occurrence, titles: dict) -> str:
    title = titles.get(occurrence.event_id, "")
    if occurrence.is_all_day:
        return f"{encode(occurrence.occurrence_date)}  all day        #{occurrence.event_id} {title}"
    end = encode_datetime(occurrence.display_end)[11:] if occurrence.display_end else "     "
    start = encode_datetime(occurrence.display_start)[11:]
    return f"{encode(occurrence.occurrence_date)}  {start}-{end}  #{occurrence.event_id} {title}"


def main(start: str, end: str, event_id: int | None = None) -> int:
    """Main entry point."""
    if not config.DB_PATH.exists():
        print(f"Database not found at {config.DB_PATH}. Run src/scripts/init_db.py first.")
        return 1

    conn = get_connection()
    try:
        zone = CompanyTimezoneResolver(conn).resolve()
        start_day = decode(start, zone)
        end_day = decode(end, zone)
        if start_day is None or end_day is None:
            print("Start and end must be dates (YYYY-MM-DD)")
            return 1

        if event_id is not None:
            event = fetch_event(conn, event_id)
            if event is None:
                print(f"Event {event_id} not found")
                return 1
            events = [event]
            occurrences = event_occurrences(event, start_day, end_day, zone)
        else:
            events = fetch_events(conn)
            occurrences = calendar_occurrences(events, start_day, end_day, zone)
    finally:
        conn.close()

    titles = {e["id"]: e["title"] for e in events}
    print(f"Occurrences {encode(start_day)} to {encode(end_day)} ({zone.key}):")
    for occurrence in occurrences:
        print(f"  {format_occurrence(occurrence, titles)}")
    print(f"\nTotal: {len(occurrences)}")
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="List event occurrences in a date range")
    parser.add_argument("--start", required=True, help="First date (YYYY-MM-DD)")
    parser.add_argument("--end", required=True, help="Last date (YYYY-MM-DD), inclusive")
    parser.add_argument("--event-id", type=int, help="Only this event")
    args = parser.parse_args()

    sys.exit(main(args.start, args.end, args.event_id))

"""
Single source of truth for database tables that exist after migrations.

Use these names when writing raw SQL. Events, members and event_hosts are owned by
the host application; this service only reads them (members.no_show_count is the
one column it writes).
"""
# All tables that exist in the DB. Must match models and migration 001.
ALL_TABLE_NAMES = (
    "members",
    "events",
    "event_hosts",
    "event_timeslots",
    "timeslot_claims",
    "event_lineup_state",
)

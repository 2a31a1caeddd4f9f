"""
Constants for reminder scheduling and timeline aggregation.
"""

# No reminder is ever materialized further than this from today
REMINDER_HORIZON_YEARS = 10

# Dashboard window for upcoming reminders
UPCOMING_WINDOW_DAYS = 7

# DynamoDB TransactWriteItems action limit
MAX_TRANSACTION_ITEMS = 100

CARE_EVENT_TYPES = ("vaccine", "deworming")

REMINDER_TYPES = (
    "vaccination",
    "deworming",
    "checkup",
    "grooming",
    "medication",
    "general",
)

# Reminder type generated for each care event type
EVENT_REMINDER_TYPES = {
    "vaccine": "vaccination",
    "deworming": "deworming",
}

# Title prefix for generated reminders, "{kind}: {label}"
REMINDER_TITLE_KINDS = {
    "vaccine": "Vacuna",
    "deworming": "Desparasitación",
}

# Marker expected in the description of legacy reminders
REMINDER_KIND_MARKERS = {
    "vaccine": "Vacuna",
    "deworming": "Desparasitación",
}

REMINDER_DESCRIPTIONS = {
    "vaccine": "Recordatorio para aplicar la vacuna {label}",
    "deworming": "Recordatorio para aplicar la desparasitación {label}",
}

# Same-day ordering of timeline entries
TIMELINE_KIND_RANK = {
    "weight": 0,
    "vaccine": 1,
    "deworming": 2,
}

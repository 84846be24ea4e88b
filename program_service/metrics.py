from prometheus_client import Counter

PROGRAMS_GENERATED_TOTAL = Counter(
    "programs_generated_total",
    "Number of workout and diet programs generated and stored",
)

PROGRAM_GENERATION_FAILURES_TOTAL = Counter(
    "program_generation_failures_total",
    "Number of failed program generation requests",
    ["stage"],
)

CLERK_WEBHOOK_EVENTS_TOTAL = Counter(
    "clerk_webhook_events_total",
    "Number of verified Clerk webhook events received",
    ["event_type"],
)

# src/translate_relay/observability/names.py

"""Standard metric names for translate-relay observability.

Use these constants instead of hardcoded strings for consistency
across the codebase.

Note: All duration metrics are in milliseconds by convention.
"""

# ============================================================================
# Relay (per request) Metrics
# ============================================================================

# Duration
RELAY_STREAM_DURATION = "relay_stream_duration"

# Counters
RELAY_REQUESTS_TOTAL = "relay_requests_total"
RELAY_ERRORS_TOTAL = "relay_errors_total"
RELAY_DISCONNECTS_TOTAL = "relay_disconnects_total"


# ============================================================================
# Upstream Adapter Metrics
# ============================================================================

# Duration (time to first fragment)
ADAPTER_FIRST_FRAGMENT_DURATION = "adapter_first_fragment_duration"

# Counters
ADAPTER_FRAGMENTS_TOTAL = "adapter_fragments_total"
ADAPTER_PARSING_ERRORS_TOTAL = "adapter_parsing_errors_total"
ADAPTER_ERRORS_TOTAL = "adapter_errors_total"


# ============================================================================
# Marker Parser Metrics
# ============================================================================

# Counters
PARSER_EVENTS_TOTAL = "parser_events_total"
PARSER_PROTOCOL_VIOLATIONS_TOTAL = "parser_protocol_violations_total"

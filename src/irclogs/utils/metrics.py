"""
Prometheus metrics configuration for the IRC log service.

Defines custom metrics for ask sessions, tool dispatch and model calls.
"""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

# Use standard Prometheus naming conventions: namespace_subsystem_name_unit
NAMESPACE = "irclogs"


# ============================================================================
# Ask Session Metrics
# ============================================================================

ask_sessions_active = Gauge(
    f"{NAMESPACE}_ask_sessions_active",
    "Number of ask sessions currently holding an admission permit",
)

ask_sessions_total = Counter(
    f"{NAMESPACE}_ask_sessions_total",
    "Total number of ask sessions finished",
    ["outcome"],  # "done", "error", "budget_exhausted", "stopped"
)

ask_admission_rejections_total = Counter(
    f"{NAMESPACE}_ask_admission_rejections_total",
    "Total number of ask requests rejected because no permit was free",
)


# ============================================================================
# Tool Metrics
# ============================================================================

ask_tool_calls_total = Counter(
    f"{NAMESPACE}_ask_tool_calls_total",
    "Total number of tool calls dispatched",
    ["tool_name", "status"],  # status: "success", "error"
)

ask_tool_call_duration_seconds = Histogram(
    f"{NAMESPACE}_ask_tool_call_duration_seconds",
    "Tool call execution duration in seconds",
    ["tool_name"],
    buckets=(0.001, 0.01, 0.05, 0.1, 0.5, 1.0, 5.0),
)


# ============================================================================
# Model API Metrics
# ============================================================================

model_requests_total = Counter(
    f"{NAMESPACE}_model_requests_total",
    "Total number of Messages API requests",
    ["status"],  # "success", "transport_error", "protocol_error"
)

model_request_duration_seconds = Histogram(
    f"{NAMESPACE}_model_request_duration_seconds",
    "Messages API request duration in seconds",
    buckets=(0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0),
)

model_tokens_total = Counter(
    f"{NAMESPACE}_model_tokens_total",
    "Total tokens reported by the Messages API",
    ["model", "type"],  # type values: "input", "output", "cache_creation", "cache_read"
)

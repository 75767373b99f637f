"""Prometheus metrics for the document control backend.

Defines and exposes operational metrics for monitoring and alerting.
"""

from prometheus_client import Counter

# Approval workflow transitions
workflow_transitions_total = Counter(
    "doccontrol_workflow_transitions_total",
    "Approval workflow transitions",
    ["transition"]  # created|advanced|approved|rejected|cancelled
)

# Best-effort attachment uploads
attachment_uploads_total = Counter(
    "doccontrol_attachment_uploads_total",
    "Rejection attachment uploads",
    ["status"]  # stored|skipped
)

# Activity log writes that failed and were swallowed
activity_log_failures_total = Counter(
    "doccontrol_activity_log_failures_total",
    "Activity log entries that could not be written",
    ["action"]
)

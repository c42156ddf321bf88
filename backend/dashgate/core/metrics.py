"""Central Prometheus metrics registry.

All application metrics are defined here to avoid scattered metric definitions
and ensure consistent naming/labeling.
"""

from prometheus_client import Counter, Histogram, Info

# Application info
app_info = Info("dashgate_app", "Dashgate application info")

# --- HTTP ---
http_requests_total = Counter(
    "dashgate_http_requests_total",
    "Total HTTP requests",
    ["method", "path", "status"],
)
http_request_duration_seconds = Histogram(
    "dashgate_http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "path"],
)

# --- Authorization ---
authorization_decisions_total = Counter(
    "dashgate_authorization_decisions_total",
    "Data provider authorization decisions",
    ["outcome"],  # granted | denied | error
)

# --- Tenant lookups (remote admin service) ---
tenant_lookups_total = Counter(
    "dashgate_tenant_lookups_total",
    "Tenant id lookups against the admin service",
    ["status"],
)
tenant_lookup_duration_seconds = Histogram(
    "dashgate_tenant_lookup_duration_seconds",
    "Duration of tenant id lookups in seconds",
)

# --- Widget metadata store ---
widget_metadata_operations_total = Counter(
    "dashgate_widget_metadata_operations_total",
    "Widget metadata table operations",
    ["operation", "status"],
)

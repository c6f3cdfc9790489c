"""
Health and metrics routes for the Mimhaad GL service.

Mounted outside /api/ so probes and Prometheus scrapes skip JWT auth:
- /_health/live, /_health/ready, /_health/full (ledger integrity included)
- /_metrics/ (see metrics_patterns)
"""
from django.urls import path

from ops.health import FullHealthView, LivenessView, ReadinessView
from ops.metrics import MetricsView

urlpatterns = [
    path("live", LivenessView.as_view(), name="health-live"),
    path("ready", ReadinessView.as_view(), name="health-ready"),
    path("full", FullHealthView.as_view(), name="health-full"),
]

# Included at /_metrics/ by mimhaad_backend.urls
metrics_patterns = [
    path("", MetricsView.as_view(), name="metrics"),
]

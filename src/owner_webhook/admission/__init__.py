"""
owner_webhook.admission

Admission decision core.

Responsibilities:
- Owner label patch construction and owner identity encoding.
- Ownership resolution through owner references.
- The decision engine producing a verdict per admission request.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# Nothing in this package imports FastAPI or the kubernetes client; the transport and
# the lookup adapters depend on it, never the other way around.

"""
owner_webhook.lookup

Label lookup package.

Responsibilities:
- The `LabelLookup` capability consumed by the ownership resolver.
- In-memory and Kubernetes-backed implementations.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# The resolver should depend on this boundary (not on the kubernetes client directly).

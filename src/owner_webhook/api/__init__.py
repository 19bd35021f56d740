"""
owner_webhook.api

API package for the owner-label webhook.

Responsibilities:
- FastAPI app factory and router modules.
- AdmissionReview wire models and verdict encoding.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# The API layer should remain thin: payload parsing + delegation to the decision engine.

"""
owner_webhook.api.routers

HTTP routers (admission endpoint and probes).
"""

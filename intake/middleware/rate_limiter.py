"""
Rate limiting configuration.

The Limiter instance is created in intake/__init__.py with no default
limits; this module applies limits per route category.

    - Submit endpoints:  SUBMIT_RATE_LIMIT (default 10/minute), keyed by tenant
    - Write endpoints:   60/minute
    - Health check:      exempt

Rate limiting is disabled in testing mode.

Usage:
    from intake.middleware.rate_limiter import init_rate_limits
    init_rate_limits(app, limiter)
"""

import logging

from flask import g, request as flask_request

logger = logging.getLogger(__name__)

WRITE_LIMIT = "60/minute"

# (blueprint name, view function name) of every submission endpoint
SUBMIT_ENDPOINTS = (
    ("onboarding", "submit_phase"),
    ("seller", "submit_seller"),
)


def tenant_rate_limit_key():
    """Rate limit key: tenant if the caller is identified, else remote IP."""
    tenant_id = getattr(g, "jwt_tenant_id", None)
    if tenant_id:
        return f"tenant:{tenant_id}"
    return flask_request.remote_addr or "unknown"


def init_rate_limits(app, limiter):
    """Apply rate limits to the API blueprints."""

    if app.config.get("TESTING"):
        app.logger.info("Rate limiter disabled (TESTING=True)")
        return

    submit_limit = app.config.get("SUBMIT_RATE_LIMIT", "10/minute")
    for bp_name, view_name in SUBMIT_ENDPOINTS:
        view = app.view_functions.get(f"{bp_name}.{view_name}")
        if view:
            app.view_functions[f"{bp_name}.{view_name}"] = limiter.limit(
                submit_limit, key_func=tenant_rate_limit_key,
            )(view)

    for bp_name in ("onboarding", "seller", "admin"):
        bp = app.blueprints.get(bp_name)
        if bp:
            limiter.limit(WRITE_LIMIT, methods=["POST", "PUT", "DELETE"])(bp)

    bp = app.blueprints.get("health")
    if bp:
        limiter.exempt(bp)

    app.logger.info("Rate limiter configured: submit: %s, write: %s", submit_limit, WRITE_LIMIT)

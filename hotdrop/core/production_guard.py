"""Production configuration guard — enforces hard constraints in production.

The guard validates that production-critical settings are configured
before the server starts.  It fails hard (raises ``ProductionConfigError``)
if any constraint is violated.
"""

from __future__ import annotations

import logging

from hotdrop.config import ServerConfig

logger = logging.getLogger(__name__)

# Smallest deploy token accepted in production.
MIN_PRODUCTION_TOKEN_LENGTH = 16


class ProductionConfigError(RuntimeError):
    """Raised when production configuration constraints are violated.

    The server cannot safely start in production mode with the current
    configuration.  It must not be caught and ignored — the process should
    exit.
    """


def enforce_production_constraints(config: ServerConfig) -> None:
    """Validate all production-critical configuration constraints.

    Constraints enforced
    --------------------
    1. Debug mode must be disabled.
    2. A deploy token must be configured and at least
       ``MIN_PRODUCTION_TOKEN_LENGTH`` characters long.
    3. The logic route must not shadow the deploy or health endpoints.

    Raises
    ------
    ProductionConfigError
        If any production constraint is violated.
    """
    if not config.is_production:
        if not config.deploy_token.get_secret_value():
            logger.warning(
                "No deploy token configured; every deploy request will be rejected."
            )
        return

    violations: list[str] = []

    if config.debug:
        violations.append(
            "debug=True is not allowed in production. Set HOTDROP_DEBUG=false."
        )

    token = config.deploy_token.get_secret_value()
    if len(token) < MIN_PRODUCTION_TOKEN_LENGTH:
        violations.append(
            f"A deploy token of at least {MIN_PRODUCTION_TOKEN_LENGTH} characters "
            "is required in production. Set HOTDROP_DEPLOY_TOKEN."
        )

    if config.logic_route.rstrip("/") in ("/deploy", "/health", ""):
        violations.append(
            f"logic_route {config.logic_route!r} collides with a built-in endpoint."
        )

    # Collect and report all violations at once
    if violations:
        msg = "Production configuration guard failed.\n" + "\n".join(
            f"  - {v}" for v in violations
        )
        logger.critical(msg)
        raise ProductionConfigError(msg)

    logger.info("Production configuration guard passed.")

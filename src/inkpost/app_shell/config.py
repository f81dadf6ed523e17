import logging
import os
from collections.abc import Mapping

from inkpost.rules.models import Rules

logger = logging.getLogger(__name__)


def missing_env(rules: Rules, environ: Mapping[str, str] | None = None) -> list[str]:
    env = os.environ if environ is None else environ
    return [name for name in rules.ops.required_env if not env.get(name)]


def validate_ops_rules(rules: Rules, environ: Mapping[str, str] | None = None) -> None:
    """
    Validate operational requirements before startup.

    Raises:
        RuntimeError: a required environment variable is missing or empty.
    """
    missing = missing_env(rules, environ)
    if missing:
        raise RuntimeError(f"Missing required environment variables: {', '.join(missing)}")
    logger.info("Configuration validated (rules version %s)", rules.project.rules_version)

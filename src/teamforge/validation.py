from __future__ import annotations

import logging
from collections.abc import Callable

from teamforge.errors import UnknownTargetError
from teamforge.models import Capabilities, Team, ValidationResult, ValidationWarning
from teamforge.providers import capabilities_of
from teamforge.providers.base import describe_unsupported

logger = logging.getLogger(__name__)

# Team sections checked against each target's capabilities.
_CHECKED_FEATURES = ("agents", "hooks", "skills", "constitution", "mcp_servers")


def validate_deployment(
    team: Team,
    targets: list[str],
    lookup: Callable[[str], Capabilities] = capabilities_of,
) -> ValidationResult:
    """Predict which non-empty Team sections each target will drop.

    Never raises. Unknown targets are left to the deploy step, which reports
    them as failed results.
    """
    result = ValidationResult()

    for target in targets:
        try:
            caps = lookup(target)
        except UnknownTargetError:
            logger.debug("Skipping validation for unknown target %s", target)
            continue

        for feature in _CHECKED_FEATURES:
            count = team.section_size(feature)
            if count and not caps.supports(feature):
                result.warnings.append(
                    ValidationWarning(
                        target=target,
                        feature=feature,
                        message=describe_unsupported(target, feature, count, pending=True),
                    )
                )

    result.valid = not result.errors
    return result

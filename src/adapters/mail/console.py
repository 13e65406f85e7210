"""
Console notifier adapter - Implements Notifier protocol.

This module provides a console-based implementation of the domain's
notifier port, logging activation links to stdout for development.
"""

import logging

from src.domain.ports import MigrationType

logger = logging.getLogger(__name__)


class ConsoleNotifier:
    """
    Implements Notifier protocol via console logging.

    Uses structural subtyping - no explicit inheritance from Protocol.
    Selected when no email provider key is configured.
    """

    def send(
        self,
        to_email: str,
        first_name: str,
        activation_link: str,
        migration_type: MigrationType,
        company_name: str,
    ) -> bool:
        """
        Log the activation link to console (simulates email delivery).

        The link is logged at INFO level to be visible in container logs.

        Returns:
            Always True
        """
        logger.info(
            "[ACTIVATION] Email: %s Name: %s Company: %s Migration: %s Link: %s",
            to_email,
            first_name,
            company_name,
            migration_type.value,
            activation_link,
        )
        return True

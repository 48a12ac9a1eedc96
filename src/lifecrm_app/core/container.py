"""Application dependency container."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from lifecrm_app.core.config import AppConfig, ensure_encryption_key, get_optional_env, load_config
from lifecrm_app.core.crypto import CryptoService
from lifecrm_app.core.logging_config import configure_logging
from lifecrm_app.repositories.audit_repository import AuditRepository
from lifecrm_app.repositories.customer_repository import CustomerRepository
from lifecrm_app.repositories.db_pool import ThreadLocalConnection
from lifecrm_app.repositories.learning_repository import LearningRepository
from lifecrm_app.repositories.schema import initialize_schema
from lifecrm_app.repositories.user_repository import UserRepository
from lifecrm_app.services.customer_service import CustomerService
from lifecrm_app.services.dashboard_service import DashboardService
from lifecrm_app.services.learning_service import LearningService
from lifecrm_app.services.user_service import UserService

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    """Wires repositories and services."""

    config: AppConfig
    customer_service: CustomerService
    user_service: UserService
    learning_service: LearningService
    dashboard_service: DashboardService
    audit_repo: AuditRepository
    pool: ThreadLocalConnection

    def close(self) -> None:
        """Close the calling thread's database connection."""
        self.pool.close_connection()


def build_services(config: AppConfig, crypto: CryptoService) -> ServiceContainer:
    """Open the database, create the schema and wire every service."""
    pool = ThreadLocalConnection(config)
    initialize_schema(pool)

    audit_repo = AuditRepository(pool)
    customer_repo = CustomerRepository(pool, crypto)

    return ServiceContainer(
        config=config,
        customer_service=CustomerService(customer_repo, audit_repo),
        user_service=UserService(UserRepository(pool), audit_repo),
        learning_service=LearningService(LearningRepository(pool), audit_repo),
        dashboard_service=DashboardService(customer_repo),
        audit_repo=audit_repo,
        pool=pool,
    )


def build_container(config_path: Path | None = None) -> ServiceContainer:
    """Load configuration, set up logging and keys, then build dependencies."""
    config = load_config(config_path)
    configure_logging(config.logging.level)
    encryption_key = ensure_encryption_key(config.encryption.key_env, config.database.path)
    container = build_services(config, CryptoService.from_base64_key(encryption_key))

    admin_password = get_optional_env(config.auth.admin_password_env)
    if admin_password:
        container.user_service.ensure_admin(config.auth.admin_email, admin_password)
    else:
        logger.debug("%s not set; skipping admin seeding", config.auth.admin_password_env)

    removed = container.audit_repo.cleanup_old_logs(config.logging.retention_days)
    if removed:
        logger.info("Cleaned old audit logs: %d", removed)
    return container

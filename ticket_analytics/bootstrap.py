"""Application bootstrap wiring for startup validation and dependency assembly."""

from ticket_analytics.adapters import SettingsIdentityProvider
from ticket_analytics.analytics import AnalyticsQueryGuard, AnalyticsQueryService, AnalyticsScopeResolver
from ticket_analytics.config import AppSettings, config_configure_logging, config_get_guard_logger, config_load_settings
from ticket_analytics.db import SQLAlchemyAnalyticsLedgerService, SQLAlchemyDatabaseHealthService, db_create_engine


def bootstrap_create_query_service(settings: AppSettings | None = None) -> AnalyticsQueryService:
    """Assemble the analytics query service after validating startup configuration.

    Args:
        settings: Optional pre-loaded settings; loaded from the environment when omitted.

    Returns:
        AnalyticsQueryService: Fully wired query service.

    Raises:
        SettingsLoadError: Raised when startup configuration validation fails.
    """

    resolved_settings = settings or config_load_settings()
    config_configure_logging(resolved_settings.log_level)

    engine = db_create_engine(database_url=resolved_settings.database_url)
    ledger_service = SQLAlchemyAnalyticsLedgerService(
        engine=engine,
        non_ticket_item_types=resolved_settings.analytics_non_ticket_item_types,
        vendor_store_type=resolved_settings.analytics_vendor_store_type,
    )
    identity_provider = SettingsIdentityProvider(
        principal_id=resolved_settings.analytics_principal_id,
        admin_principal_ids=resolved_settings.analytics_admin_principal_ids,
    )
    return AnalyticsQueryService(
        guard=AnalyticsQueryGuard(logger=config_get_guard_logger()),
        scope_resolver=AnalyticsScopeResolver(tenant_directory=ledger_service),
        identity_provider=identity_provider,
        order_ledger=ledger_service,
        refund_ledger=ledger_service,
    )


def bootstrap_create_health_service(settings: AppSettings | None = None) -> SQLAlchemyDatabaseHealthService:
    """Build the ledger database health service.

    Args:
        settings: Optional pre-loaded settings; loaded from the environment when omitted.

    Returns:
        SQLAlchemyDatabaseHealthService: Health service bound to the ledger database.

    Raises:
        SettingsLoadError: Raised when startup configuration validation fails.
    """

    resolved_settings = settings or config_load_settings()
    return SQLAlchemyDatabaseHealthService(engine=db_create_engine(database_url=resolved_settings.database_url))

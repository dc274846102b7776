"""Infrastructure-related constants for the SQL-backed settings stores."""

# Database constants
POOL_RECYCLE_SECONDS = 3600  # 1 hour
COMMAND_TIMEOUT_SECONDS = 60

# Naming convention for constraints to ensure consistency across backends
NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

# Table names
SETTINGS_DOCUMENT_TABLE = "settings_documents"
CONTENT_ENTRY_TABLE = "vat_website"

# Longest SQL statement text kept in slow query logs
MAX_LOGGED_STATEMENT_LENGTH = 500

# PostgreSQL NOTIFY channel carrying the collection key of each settings write
SETTINGS_CHANGE_CHANNEL = "vat_settings_changes"

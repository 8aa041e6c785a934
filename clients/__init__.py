# Infrastructure clients
from clients.environment import (
    ConfigurationError,
    get_database_url,
    get_users_secret,
)
from clients.postgres_client import PostgresClient

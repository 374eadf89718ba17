import os
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator

# Load environment variables from .env file if it exists
load_dotenv()

# DynamoDB per-call transaction limits as documented for TransactWriteItems (v1 SDK era)
# and TransactGetItems. Newer accounts allow 100 writes; raise the setting to match.
DEFAULT_MAX_TRANSACT_WRITE_ITEMS = 25
DEFAULT_MAX_TRANSACT_GET_ITEMS = 100


def _int_env(name: str, default: int) -> int:
    value = os.getenv(name)
    return int(value) if value else default


class DynamoDBConfig(BaseModel):
    """Configuration for DynamoDB connection and transactional operations."""

    aws_access_key_id: Optional[str] = Field(
        default_factory=lambda: os.getenv("AWS_ACCESS_KEY_ID"),
        description="AWS access key ID"
    )

    aws_secret_access_key: Optional[str] = Field(
        default_factory=lambda: os.getenv("AWS_SECRET_ACCESS_KEY"),
        description="AWS secret access key"
    )

    region_name: str = Field(
        default_factory=lambda: os.getenv("AWS_REGION", "us-east-1"),
        description="AWS region name"
    )

    endpoint_url: Optional[str] = Field(
        default_factory=lambda: os.getenv("DYNAMODB_ENDPOINT_URL"),
        description="DynamoDB endpoint URL (for local development)"
    )

    # Table configuration
    table_prefix: str = Field(
        default_factory=lambda: os.getenv("DYNAMODB_TABLE_PREFIX", ""),
        description="Prefix to add to all table names"
    )

    # Connection settings, passed straight to botocore
    max_pool_connections: int = Field(
        default=50,
        description="Maximum number of connections in the connection pool"
    )

    retries: int = Field(
        default=3,
        description="Number of botocore retry attempts for failed requests"
    )

    timeout_seconds: float = Field(
        default=30.0,
        description="Request timeout in seconds"
    )

    # Transaction limits
    max_transact_write_items: int = Field(
        default_factory=lambda: _int_env("DYNAMODB_MAX_TRANSACT_WRITE_ITEMS", DEFAULT_MAX_TRANSACT_WRITE_ITEMS),
        description="Maximum operations in one TransactWriteItems call"
    )

    max_transact_get_items: int = Field(
        default_factory=lambda: _int_env("DYNAMODB_MAX_TRANSACT_GET_ITEMS", DEFAULT_MAX_TRANSACT_GET_ITEMS),
        description="Maximum keys in one TransactGetItems call"
    )

    # Environment settings
    environment: str = Field(
        default_factory=lambda: os.getenv("ENVIRONMENT", "dev"),
        description="Current environment (dev, test, staging, prod)"
    )

    # Logging settings
    enable_debug_logging: bool = Field(
        default_factory=lambda: os.getenv("DYNAMODB_DEBUG_LOGGING", "false").lower() == "true",
        description="Enable debug logging for DynamoDB operations"
    )

    @field_validator('region_name')
    @classmethod
    def validate_region(cls, v):
        """Validate AWS region name."""
        if not v:
            raise ValueError("AWS region name is required")
        return v

    @field_validator('environment')
    @classmethod
    def validate_environment(cls, v):
        """Validate environment value."""
        valid_environments = ['dev', 'test', 'staging', 'prod']
        if v not in valid_environments:
            raise ValueError(f"Environment must be one of: {valid_environments}")
        return v

    @field_validator('max_transact_write_items', 'max_transact_get_items')
    @classmethod
    def validate_transaction_limit(cls, v):
        if v < 1:
            raise ValueError("Transaction item limit must be positive")
        return v

    def get_table_name(self, base_name: str) -> str:
        """Get the full table name with prefix and environment.

        Args:
            base_name: Base table name

        Returns:
            Full table name with prefix and environment
        """
        parts = []

        if self.table_prefix:
            parts.append(self.table_prefix)

        if self.environment != "prod":
            parts.append(self.environment)

        parts.append(base_name)

        return "_".join(parts)

    @classmethod
    def from_env(cls) -> 'DynamoDBConfig':
        """Create configuration from environment variables."""
        return cls()

    @classmethod
    def for_local_development(cls, port: int = 8000) -> 'DynamoDBConfig':
        """Create configuration for DynamoDB Local.

        DynamoDB Local only uses the access key and region to name its database
        file, so any values work.
        """
        return cls(
            aws_access_key_id="local",
            aws_secret_access_key="local",
            region_name="us-west-2",
            endpoint_url=f"http://localhost:{port}",
            environment="dev",
            enable_debug_logging=True
        )

    model_config = ConfigDict(
        validate_assignment=True,
        use_enum_values=True
    )

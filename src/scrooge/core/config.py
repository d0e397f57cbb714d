import logging
from pathlib import Path
from typing import Literal
from pydantic import BaseModel, Field, field_validator


BatchOrdering = Literal["hash", "presented"]
ClaimPolicy = Literal["on_acceptance", "on_attempt"]


class ScroogeConfig(BaseModel):
    """Base configuration for Scrooge components.

    This model loads configuration from environment variables and defaults.
    """
    # Batch Resolution Configuration
    batch_ordering: BatchOrdering = Field(
        default="hash",
        description="Order in which a batch is attempted: sorted by hash, or as presented"
    )
    claim_policy: ClaimPolicy = Field(
        default="on_acceptance",
        description="Whether an output is claimed for the pass only by an accepted "
                    "transaction, or by any transaction that reaches validation"
    )

    # Logging Configuration
    log_level: str = Field(
        default="INFO",
        description="Level passed to logging.basicConfig by the CLI"
    )

    # Wallet Configuration
    wallet_path: Path = Field(
        default=Path.home() / ".scrooge" / "wallet.json",
        description="Path to the wallet file"
    )

    @field_validator('log_level')
    def validate_log_level(cls, value):
        """Validate the log level is one the logging module knows."""
        value = value.upper()
        if not isinstance(logging.getLevelName(value), int):
            raise ValueError(f"Unknown log level: {value}")
        return value

    model_config = {
        "validate_assignment": True,
    }


# Global config instance with default values
config = ScroogeConfig()

def load_config_from_env() -> ScroogeConfig:
    """Load configuration from environment variables.

    Returns:
        ScroogeConfig: Configuration instance with values from environment
    """
    import os

    env_settings = {}

    env_mappings = {
        "SCROOGE_BATCH_ORDERING": "batch_ordering",
        "SCROOGE_CLAIM_POLICY": "claim_policy",
        "SCROOGE_LOG_LEVEL": "log_level",
        "SCROOGE_WALLET_PATH": "wallet_path",
    }

    for env_var, field_name in env_mappings.items():
        if env_var in os.environ:
            value = os.environ[env_var]

            if field_name == "wallet_path":
                value = Path(value)

            env_settings[field_name] = value

    return ScroogeConfig(**env_settings)

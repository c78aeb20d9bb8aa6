"""Runtime configuration from environment variables."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from vm_power import constants


class Settings(BaseSettings):
    """Reconciler configuration.

    All settings can be overridden via environment variables with VM_POWER_ prefix.
    Example: VM_POWER_GUARD_OUTSTANDING_TASK=false
    """

    model_config = SettingsConfigDict(
        env_prefix="VM_POWER_",
        extra="ignore",
        frozen=True,
    )

    guard_outstanding_task: bool = Field(
        default=True,
        description="Skip issuing a power action while a previous task reference is still set",
    )
    """With the guard off, a pass issues a new call even when the task poller
    has not cleared the previous task yet (the driver must then guarantee a
    single in-flight reconciliation per VM)."""

    network_device: str = Field(
        default=constants.DEFAULT_NETWORK_DEVICE,
        min_length=1,
        description="Network device reported as the machine's primary address",
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Process-wide settings, read from the environment once."""
    return Settings()

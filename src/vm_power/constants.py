"""Constants for power state reconciliation and network config rendering."""

from typing import Final

# ============================================================================
# Conditions
# ============================================================================

VM_PROVISIONED_CONDITION: Final[str] = "VMProvisioned"
"""Condition kind reporting whether the VM has been provisioned and powered as declared."""

POWERING_ON_REASON: Final[str] = "PoweringOn"
"""VM is being started or resumed."""

POWERING_ON_FAILED_REASON: Final[str] = "PoweringOnFailed"
"""The start/resume call to the hypervisor failed."""

POWERING_OFF_REASON: Final[str] = "PoweringOff"
"""VM is being shut down."""

POWERING_OFF_FAILED_REASON: Final[str] = "PoweringOffFailed"
"""The shutdown call to the hypervisor failed."""

TASK_OUTSTANDING_REASON: Final[str] = "TaskOutstanding"
"""A previously issued hypervisor task has not been cleared by the task poller yet.
Only used in log records; the condition keeps its in-progress reason."""

WAITING_FOR_NETWORK_REASON: Final[str] = "WaitingForNetworkAddress"
"""Power-on deferred until the machine has a network address. Log records only."""

# ============================================================================
# Network
# ============================================================================

DEFAULT_NETWORK_DEVICE: Final[str] = "net0"
"""Hypervisor network device holding the machine's primary address."""

CLOUD_INIT_INTERFACE_PREFIX: Final[str] = "eth"
"""Interface name prefix in rendered network-config (eth0, eth1, ...)."""

NETWORK_CONFIG_VERSION: Final[int] = 2
"""netplan / cloud-init network-config format version."""

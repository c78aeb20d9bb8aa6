"""Exception hierarchy for vm-power-reconciler.

All exceptions inherit from ReconcilerError.

Hierarchy:
    ReconcilerError (base)
    ├── TransientError (retryable marker base)
    │   └── PowerActionError               ← resume/start/shutdown call failed
    └── PermanentError (non-retryable marker base)
        └── NetworkConfigError
            ├── MissingNetworkConfigDataError  ← no interfaces given
            ├── MissingIPAddressError          ← static interface without address
            ├── MissingMacAddressError         ← interface without MAC
            ├── MissingGatewayError            ← static address without gateway
            └── MalformedIPAddressError        ← address is not a valid prefix

A VM still waiting for its network address, or a VM already in the target
power state, is not an error and never raises.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from vm_power.models import PowerAction, PowerTarget


class ReconcilerError(Exception):
    """Base exception for all reconciler errors with structured context.

    Attributes:
        message: Human-readable error message
        context: Dictionary of structured error context for logging/debugging
    """

    def __init__(self, message: str, context: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}


# =============================================================================
# Transient vs Permanent Error Base Classes
# =============================================================================


class TransientError(ReconcilerError):
    """Base for errors that may succeed on a later reconciliation pass.

    The reconciler never retries on its own. The driver decides how long to
    back off before the next pass.
    """


class PermanentError(ReconcilerError):
    """Base for errors that won't go away without a configuration change."""


# =============================================================================
# Power Actions
# =============================================================================


class PowerActionError(TransientError):
    """A hypervisor power action could not be initiated.

    The message names the attempted action and the VM id, e.g.
    "unable to shutdown the virtual machine 100: timeout". The underlying
    client exception is chained as __cause__.

    Attributes:
        vm_id: Hypervisor VM identifier
        action: Power action that was attempted
        target: Power target of the pass that attempted it
    """

    def __init__(
        self,
        vm_id: int,
        action: PowerAction,
        target: PowerTarget,
        cause: BaseException,
        context: dict[str, Any] | None = None,
    ):
        ctx = dict(context or {})
        ctx.update(
            {
                "vm_id": vm_id,
                "action": action.value,
                "target": target.value,
                "error_type": type(cause).__name__,
            }
        )
        super().__init__(f"unable to {action.value} the virtual machine {vm_id}: {cause}", ctx)
        self.vm_id = vm_id
        self.action = action
        self.target = target

    @classmethod
    def from_client_error(
        cls,
        vm_id: int,
        action: PowerAction,
        target: PowerTarget,
        cause: Exception,
    ) -> PowerActionError:
        """Wrap a hypervisor client failure, chaining it as __cause__.

        Returns:
            The wrapped error (not raised, caller raises or reports it).
        """
        error = cls(vm_id, action, target, cause)
        error.__cause__ = cause
        return error


# =============================================================================
# Network Config
# =============================================================================


class NetworkConfigError(PermanentError):
    """cloud-init network-config data failed validation."""


class MissingNetworkConfigDataError(NetworkConfigError):
    """No network interface data was provided."""

    def __init__(self, context: dict[str, Any] | None = None):
        super().__init__("network config data is not set", context)


class MissingIPAddressError(NetworkConfigError):
    """A statically configured interface has no IP address."""

    def __init__(self, context: dict[str, Any] | None = None):
        super().__init__("ip address is not set", context)


class MissingMacAddressError(NetworkConfigError):
    """An interface has no MAC address to match on."""

    def __init__(self, context: dict[str, Any] | None = None):
        super().__init__("mac address is not set", context)


class MissingGatewayError(NetworkConfigError):
    """A static IPv4/IPv6 address was given without the matching gateway."""

    def __init__(self, context: dict[str, Any] | None = None):
        super().__init__("gateway is not set", context)


class MalformedIPAddressError(NetworkConfigError):
    """An address is not a valid CIDR prefix (e.g. "10.0.0.5/24")."""

    def __init__(self, address: str, context: dict[str, Any] | None = None):
        ctx = dict(context or {})
        ctx["address"] = address
        super().__init__(f"malformed ip address: {address!r}", ctx)
        self.address = address

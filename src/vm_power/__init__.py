"""vm-power-reconciler: level-triggered power state reconciliation for hypervisor VMs.

Each reconciliation pass compares the declared power target of a machine
with the VM status last observed on the hypervisor, issues at most one
power action (resume, start or graceful shutdown) and reports the outcome.

Quick Start:
    ```python
    from vm_power import MachineState, PowerStateReconciler, PowerTarget, VirtualMachine, VmStatus

    state = MachineState(
        target=PowerTarget.ON,
        vm=VirtualMachine(vmid=100, status=VmStatus.PAUSED),
        ip_addresses={"net0": "10.0.0.5/24"},
    )
    reconciler = PowerStateReconciler(client)  # any HypervisorClient
    result = await reconciler.reconcile(state)
    state = result.apply(state)  # persist conditions + task_ref
    if result.error:
        ...  # back off
    elif result.requeue:
        ...  # reconcile again later
    ```

The pass never waits for hypervisor tasks and never retries: scheduling is
left to the driver that calls it.
"""

from vm_power.exceptions import (
    MalformedIPAddressError,
    MissingGatewayError,
    MissingIPAddressError,
    MissingMacAddressError,
    MissingNetworkConfigDataError,
    NetworkConfigError,
    PermanentError,
    PowerActionError,
    ReconcilerError,
    TransientError,
)
from vm_power.hypervisor import HypervisorClient
from vm_power.models import (
    Condition,
    ConditionSeverity,
    ConditionStatus,
    MachineState,
    PowerAction,
    PowerTarget,
    Task,
    VirtualMachine,
    VmStatus,
)
from vm_power.network_config import NetworkConfig, NetworkConfigData
from vm_power.power import (
    PowerStateReconciler,
    ReconcileResult,
    reconcile_power_off,
    reconcile_power_on,
    reconcile_power_state,
    select_power_action,
)
from vm_power.settings import Settings

__all__ = [
    "Condition",
    "ConditionSeverity",
    "ConditionStatus",
    "HypervisorClient",
    "MachineState",
    "MalformedIPAddressError",
    "MissingGatewayError",
    "MissingIPAddressError",
    "MissingMacAddressError",
    "MissingNetworkConfigDataError",
    "NetworkConfig",
    "NetworkConfigData",
    "NetworkConfigError",
    "PermanentError",
    "PowerAction",
    "PowerActionError",
    "PowerStateReconciler",
    "PowerTarget",
    "ReconcileResult",
    "ReconcilerError",
    "Settings",
    "Task",
    "TransientError",
    "VirtualMachine",
    "VmStatus",
    "reconcile_power_off",
    "reconcile_power_on",
    "reconcile_power_state",
    "select_power_action",
]

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("vm-power-reconciler")
except PackageNotFoundError:
    __version__ = "0.0.0.dev0"

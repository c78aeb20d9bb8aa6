"""Data models for vm-power-reconciler.

All models are immutable snapshots. A reconciliation pass reads a
MachineState and returns a ReconcileResult describing the delta; the driver
applies it with ReconcileResult.apply().
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from vm_power import constants

_FROZEN = ConfigDict(frozen=True, extra="forbid")


class VmStatus(str, Enum):
    """Observed power status of a VM. Exactly one value applies at a time."""

    RUNNING = "running"
    STOPPED = "stopped"
    PAUSED = "paused"
    HIBERNATED = "hibernated"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, raw: str | None) -> VmStatus:
        """Map a single hypervisor status string, case-insensitively.

        Accepts both the coarse Proxmox ``status`` and ``qmpstatus`` values:
        ``suspended`` is a paused guest, ``prelaunch`` a guest whose QEMU
        process exists but has not started executing.
        """
        match (raw or "").strip().lower():
            case "running":
                return cls.RUNNING
            case "stopped" | "prelaunch":
                return cls.STOPPED
            case "paused" | "suspended":
                return cls.PAUSED
            case "hibernated":
                return cls.HIBERNATED
            case _:
                return cls.UNKNOWN

    @classmethod
    def from_hypervisor(cls, status: str | None, qmp_status: str | None = None, lock: str | None = None) -> VmStatus:
        """Collapse the hypervisor's status fields into a single VmStatus.

        Proxmox reports a coarse ``status`` (running/stopped) refined by the
        QMP status of a running guest and by the config lock of a stopped one:

        - running + qmpstatus paused/suspended -> PAUSED
        - running + qmpstatus prelaunch        -> STOPPED
        - running otherwise                    -> RUNNING
        - stopped + lock "suspended"           -> HIBERNATED
        - otherwise                            -> parse(status)
        """
        coarse = cls.parse(status)
        match coarse:
            case cls.RUNNING if qmp_status:
                refined = cls.parse(qmp_status)
                return coarse if refined is cls.UNKNOWN else refined
            case cls.STOPPED if (lock or "").strip().lower() == "suspended":
                return cls.HIBERNATED
            case _:
                return coarse


class PowerTarget(str, Enum):
    """Declared power state for a managed VM."""

    ON = "on"
    OFF = "off"


class PowerAction(str, Enum):
    """State-changing hypervisor call issued by a reconciliation pass."""

    RESUME = "resume"
    START = "start"
    SHUTDOWN = "shutdown"


class ConditionStatus(str, Enum):
    TRUE = "True"
    FALSE = "False"
    UNKNOWN = "Unknown"


class ConditionSeverity(str, Enum):
    ERROR = "Error"
    WARNING = "Warning"
    INFO = "Info"
    NONE = ""


class VirtualMachine(BaseModel):
    """Hypervisor-owned VM snapshot. The reconciler only reads it."""

    model_config = _FROZEN

    vmid: int = Field(ge=1, description="Numeric hypervisor VM identifier")
    status: VmStatus = Field(default=VmStatus.UNKNOWN, description="Observed power status")
    name: str | None = Field(default=None, description="VM name as shown by the hypervisor")
    node: str | None = Field(default=None, description="Hypervisor node hosting the VM")


class Task(BaseModel):
    """Handle to an in-flight hypervisor operation (a Proxmox UPID)."""

    model_config = _FROZEN

    upid: str = Field(min_length=1, description="Opaque task identifier")


class Condition(BaseModel):
    """Observable status entry reporting progress or failure."""

    model_config = _FROZEN

    kind: str = Field(min_length=1)
    status: ConditionStatus
    reason: str = ""
    severity: ConditionSeverity = ConditionSeverity.NONE
    message: str = ""
    last_transition_time: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @classmethod
    def false(
        cls,
        kind: str,
        reason: str,
        severity: ConditionSeverity = ConditionSeverity.INFO,
        message: str = "",
    ) -> Condition:
        return cls(kind=kind, status=ConditionStatus.FALSE, reason=reason, severity=severity, message=message)

    @classmethod
    def true(cls, kind: str) -> Condition:
        return cls(kind=kind, status=ConditionStatus.TRUE)

    def same_state(self, other: Condition) -> bool:
        """Equal except for the transition timestamp."""
        return (self.kind, self.status, self.reason, self.severity, self.message) == (
            other.kind,
            other.status,
            other.reason,
            other.severity,
            other.message,
        )


class MachineState(BaseModel):
    """Everything a reconciliation pass needs to know about one managed VM.

    Attributes:
        target: Declared power state from the owning resource's spec.
        vm: Last observed hypervisor snapshot.
        task_ref: UPID of an issued task not yet cleared by the task poller.
        conditions: Status conditions keyed by kind.
        ip_addresses: Assigned addresses keyed by network device (e.g. "net0").
    """

    model_config = _FROZEN

    target: PowerTarget
    vm: VirtualMachine
    task_ref: str | None = None
    conditions: dict[str, Condition] = Field(default_factory=dict)
    ip_addresses: dict[str, str] = Field(default_factory=dict)

    @property
    def has_network_address(self) -> bool:
        """True when at least one network device has an assigned address."""
        return any(addr.strip() for addr in self.ip_addresses.values())

    def network_address(self, device: str = constants.DEFAULT_NETWORK_DEVICE) -> str | None:
        """Address of ``device``, falling back to the first assigned one."""
        addr = self.ip_addresses.get(device, "").strip()
        if addr:
            return addr
        return next((a.strip() for a in self.ip_addresses.values() if a.strip()), None)

    def get_condition(self, kind: str) -> Condition | None:
        return self.conditions.get(kind)

    def with_condition(self, condition: Condition) -> MachineState:
        """Return a copy with ``condition`` set.

        The previous transition time is kept when the status did not flip, so
        observers can tell how long the condition has been in its state.
        """
        previous = self.conditions.get(condition.kind)
        if previous is not None:
            if previous.same_state(condition):
                return self
            if previous.status == condition.status:
                condition = condition.model_copy(update={"last_transition_time": previous.last_transition_time})
        return self.model_copy(update={"conditions": {**self.conditions, condition.kind: condition}})

    def with_task_ref(self, task_ref: str | None) -> MachineState:
        return self.model_copy(update={"task_ref": task_ref})

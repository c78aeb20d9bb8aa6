"""Power state reconciliation for hypervisor-hosted VMs.

One reconciliation pass looks at the declared target and the observed VM
status, picks at most one corrective power action, initiates it on the
hypervisor and reports back through a ReconcileResult:

    requeue=True   call again later (task in flight, or waiting on a precondition)
    requeue=False  nothing left to do for this pass
    error          the hypervisor call failed; the driver applies its backoff

The pass never waits for the task to finish and never retries. A separate
task poller resolves ``task_ref`` and clears it.

Transition table (target on / target off):

    running     none     shutdown
    stopped     start    none
    paused      resume   shutdown
    hibernated  start    shutdown
    unknown     start    shutdown
"""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from vm_power import constants
from vm_power._logging import get_logger
from vm_power.exceptions import PowerActionError
from vm_power.hypervisor import HypervisorClient, invoke_power_action
from vm_power.models import (
    Condition,
    ConditionSeverity,
    MachineState,
    PowerAction,
    PowerTarget,
    VmStatus,
)
from vm_power.settings import Settings, get_settings

logger = get_logger(__name__)

ProgressCallback = Callable[[Condition], Awaitable[None]]
"""Receives the in-progress condition before the hypervisor call is issued."""


@dataclass(frozen=True, slots=True)
class ReconcileResult:
    """Outcome of one reconciliation pass.

    Attributes:
        requeue: The driver should run another pass later.
        error: Hypervisor call failure (not raised, caller raises or backs off).
        action: Power action issued this pass, if any.
        task_ref: UPID of the task started this pass, if any.
        conditions: Conditions written this pass, in write order.
    """

    requeue: bool
    error: PowerActionError | None = None
    action: PowerAction | None = None
    task_ref: str | None = None
    conditions: tuple[Condition, ...] = ()

    @property
    def condition(self) -> Condition | None:
        """Condition in effect at the end of the pass."""
        return self.conditions[-1] if self.conditions else None

    def apply(self, state: MachineState) -> MachineState:
        """Return ``state`` with this pass's conditions and task reference applied."""
        for condition in self.conditions:
            state = state.with_condition(condition)
        if self.task_ref is not None:
            state = state.with_task_ref(self.task_ref)
        return state

    def raise_for_error(self) -> None:
        if self.error is not None:
            raise self.error


def select_power_action(target: PowerTarget, status: VmStatus) -> PowerAction | None:
    """Action that moves a VM in ``status`` toward ``target``; None when already there."""
    match target:
        case PowerTarget.ON:
            match status:
                case VmStatus.RUNNING:
                    return None
                case VmStatus.PAUSED:
                    return PowerAction.RESUME
                case VmStatus.STOPPED | VmStatus.HIBERNATED | VmStatus.UNKNOWN:
                    return PowerAction.START
        case PowerTarget.OFF:
            match status:
                case VmStatus.STOPPED:
                    return None
                case VmStatus.RUNNING | VmStatus.PAUSED | VmStatus.HIBERNATED | VmStatus.UNKNOWN:
                    return PowerAction.SHUTDOWN
    raise ValueError(f"unhandled power transition: {target!r} / {status!r}")


async def _drive_power_state(
    client: HypervisorClient,
    state: MachineState,
    *,
    target: PowerTarget,
    progress_reason: str,
    failed_reason: str,
    settings: Settings,
    on_progress: ProgressCallback | None,
) -> ReconcileResult:
    vm = state.vm
    in_progress = Condition.false(
        constants.VM_PROVISIONED_CONDITION,
        progress_reason,
        ConditionSeverity.INFO,
    )
    if on_progress is not None:
        await on_progress(in_progress)

    action = select_power_action(target, vm.status)
    log_extra = {"vm_id": vm.vmid, "status": vm.status.value, "target": target.value}

    if action is None:
        logger.debug("VM already in target power state", extra=log_extra)
        return ReconcileResult(requeue=False, conditions=(in_progress,))

    log_extra["action"] = action.value

    if state.task_ref and settings.guard_outstanding_task:
        logger.info(
            "Power action deferred, previous task still outstanding",
            extra={**log_extra, "task_ref": state.task_ref, "reason": constants.TASK_OUTSTANDING_REASON},
        )
        return ReconcileResult(requeue=True, conditions=(in_progress,))

    logger.debug("Issuing power action", extra=log_extra)
    try:
        task = await invoke_power_action(client, action, vm)
    except Exception as e:  # noqa: BLE001
        error = PowerActionError.from_client_error(vm.vmid, action, target, e)
        logger.warning(
            "Power action failed",
            extra={**log_extra, "error": str(e), "error_type": type(e).__name__},
        )
        failed = Condition.false(
            constants.VM_PROVISIONED_CONDITION,
            failed_reason,
            ConditionSeverity.INFO,
            error.message,
        )
        return ReconcileResult(requeue=False, error=error, action=action, conditions=(in_progress, failed))

    if task is None:
        logger.debug("Power action returned no task", extra=log_extra)
        return ReconcileResult(requeue=False, action=action, conditions=(in_progress,))

    logger.info("Power action started", extra={**log_extra, "task_ref": task.upid})
    return ReconcileResult(requeue=True, action=action, task_ref=task.upid, conditions=(in_progress,))


async def reconcile_power_on(
    client: HypervisorClient,
    state: MachineState,
    *,
    has_network_address: bool | None = None,
    settings: Settings | None = None,
    on_progress: ProgressCallback | None = None,
) -> ReconcileResult:
    """Start or resume the VM.

    Power-on waits for the machine to have a network address: until then the
    pass touches neither the hypervisor nor the conditions and asks for a
    requeue.

    Args:
        client: Hypervisor client issuing the power call.
        state: Snapshot of the managed machine.
        has_network_address: Precondition override; defaults to
            ``state.has_network_address``.
        settings: Reconciler settings (process settings if None).
        on_progress: Awaited with the in-progress condition before the call.
    """
    settings = settings or get_settings()
    if has_network_address is None:
        has_network_address = state.has_network_address

    if not has_network_address:
        logger.debug(
            "IP address not set for machine",
            extra={
                "vm_id": state.vm.vmid,
                "network_device": settings.network_device,
                "reason": constants.WAITING_FOR_NETWORK_REASON,
            },
        )
        return ReconcileResult(requeue=True)

    return await _drive_power_state(
        client,
        state,
        target=PowerTarget.ON,
        progress_reason=constants.POWERING_ON_REASON,
        failed_reason=constants.POWERING_ON_FAILED_REASON,
        settings=settings,
        on_progress=on_progress,
    )


async def reconcile_power_off(
    client: HypervisorClient,
    state: MachineState,
    *,
    settings: Settings | None = None,
    on_progress: ProgressCallback | None = None,
) -> ReconcileResult:
    """Gracefully shut the VM down unless it is already stopped."""
    return await _drive_power_state(
        client,
        state,
        target=PowerTarget.OFF,
        progress_reason=constants.POWERING_OFF_REASON,
        failed_reason=constants.POWERING_OFF_FAILED_REASON,
        settings=settings or get_settings(),
        on_progress=on_progress,
    )


async def reconcile_power_state(
    client: HypervisorClient,
    state: MachineState,
    *,
    settings: Settings | None = None,
    on_progress: ProgressCallback | None = None,
) -> ReconcileResult:
    """Run the pass matching ``state.target``."""
    match state.target:
        case PowerTarget.ON:
            return await reconcile_power_on(client, state, settings=settings, on_progress=on_progress)
        case PowerTarget.OFF:
            return await reconcile_power_off(client, state, settings=settings, on_progress=on_progress)


class PowerStateReconciler:
    """Binds a hypervisor client and settings for repeated passes.

    Usage:
        reconciler = PowerStateReconciler(client)
        result = await reconciler.reconcile(state)
        state = result.apply(state)
    """

    def __init__(self, client: HypervisorClient, settings: Settings | None = None):
        self.client = client
        self.settings = settings or get_settings()

    async def power_on(
        self,
        state: MachineState,
        *,
        has_network_address: bool | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> ReconcileResult:
        return await reconcile_power_on(
            self.client,
            state,
            has_network_address=has_network_address,
            settings=self.settings,
            on_progress=on_progress,
        )

    async def power_off(self, state: MachineState, *, on_progress: ProgressCallback | None = None) -> ReconcileResult:
        return await reconcile_power_off(self.client, state, settings=self.settings, on_progress=on_progress)

    async def reconcile(self, state: MachineState, *, on_progress: ProgressCallback | None = None) -> ReconcileResult:
        return await reconcile_power_state(self.client, state, settings=self.settings, on_progress=on_progress)

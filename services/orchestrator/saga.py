import structlog
from shared.exceptions import CompensationFailure
from shared.observability import ecomm_reconciliation_items_total, ecomm_saga_compensation_total

logger = structlog.get_logger(__name__)

class SagaStep:
    def __init__(self, name, action, compensation=None):
        self.name = name
        self.action = action
        self.compensation = compensation

class SagaOrchestrator:
    """
    Runs an ordered list of (action, compensation) steps against a shared ctx.

    If an action raises, compensations of the steps that already completed
    run in reverse order and the original error is re-raised. The failing
    step itself is not compensated: its action is expected to have applied
    nothing when it raises.
    """

    def __init__(self, name: str = "saga"):
        self.name = name
        self.steps = []

    def add_step(self, name: str, action, compensation=None):
        """Builder pattern to add a step and its rollback compensation."""
        self.steps.append(SagaStep(name, action, compensation))
        return self

    async def execute(self, ctx: dict):
        """Executes steps sequentially. Triggers rollback on any exception."""
        executed_steps = []
        step = None
        try:
            for step in self.steps:
                await step.action(ctx)
                executed_steps.append(step)
            return ctx
        except Exception as e:
            logger.error("saga_step_failed", saga=self.name, step=step.name, error=repr(e))
            failed = await self._rollback(executed_steps, ctx)
            if failed:
                raise CompensationFailure(step.name, failed) from e
            raise

    async def _rollback(self, executed_steps: list, ctx: dict) -> list:
        """
        Executes compensations in reverse order. A failing compensation does
        not stop the others; the names of those that failed are returned.
        """
        logger.info("saga_rollback_started", saga=self.name, steps=[s.name for s in executed_steps])
        failed = []
        for step in reversed(executed_steps):
            if not step.compensation:
                continue
            try:
                await step.compensation(ctx)
                logger.info("saga_compensation_applied", saga=self.name, step=step.name)
                ecomm_saga_compensation_total.labels(step_name=step.name.split(":")[0]).inc()
            except Exception as ce:
                failed.append(step.name)
                ecomm_reconciliation_items_total.labels(source=self.name).inc()
                logger.critical(
                    "saga_compensation_failed",
                    saga=self.name,
                    step=step.name,
                    error=repr(ce),
                    action="manual reconciliation required",
                )
        return failed

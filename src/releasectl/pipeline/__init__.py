from .steps import DEFAULT_STEPS, PlannedStep, StepOutcome, plan_steps, property_args, run_steps

__all__ = ["DEFAULT_STEPS", "PlannedStep", "StepOutcome", "plan_steps", "property_args", "run_steps"]

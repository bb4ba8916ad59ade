from __future__ import annotations

from recipe_publishing.domain.errors import ValidationError
from recipe_publishing.domain.models import PipelineState
from recipe_publishing.domain.results import Failure, PartialFailure, SubmissionResult, Success
from recipe_publishing.services.commit_coordinator import CommitRun

SUCCESS_MESSAGE = "Recipe added successfully!"
FAILURE_MESSAGE = "Failed to add recipe. Please try again."
PARTIAL_FAILURE_MESSAGE = "Failed to add image to recipe. Please try again."


def report(run: CommitRun) -> SubmissionResult:
    """Map a terminal run to the value handed back to the caller."""
    if run.state is PipelineState.ABORTED:
        if run.error is None:
            raise ValueError(f"Aborted run for draft {run.draft_id} carries no error")
        return Failure(reason=run.error, recipe_id=run.recipe_id)

    if run.state is PipelineState.DONE:
        if run.recipe_id is None:
            raise ValueError(f"Finished run for draft {run.draft_id} has no recipe id")
        if not run.association_errors:
            return Success(recipe_id=run.recipe_id)
        failed = {error.slot for error in run.association_errors}
        return PartialFailure(
            recipe_id=run.recipe_id,
            failed_slots=tuple(sorted(failed)),
            failed_assets=tuple(asset for asset in run.assets if asset.slot in failed),
            errors=tuple(run.association_errors),
        )

    raise ValueError(f"Run for draft {run.draft_id} is not finished: {run.state.value}")


def user_message(result: SubmissionResult) -> str:
    if isinstance(result, Success):
        return SUCCESS_MESSAGE
    if isinstance(result, PartialFailure):
        return PARTIAL_FAILURE_MESSAGE
    if isinstance(result.reason, ValidationError):
        return result.reason.errors[0]
    return FAILURE_MESSAGE

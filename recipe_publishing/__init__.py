# recipe_publishing/__init__.py
from recipe_publishing.domain.models import Draft, ImageFile, TaxonomySelection
from recipe_publishing.domain.results import Failure, PartialFailure, SubmissionResult, Success
from recipe_publishing.services.publisher import RecipePublisher

__all__ = [
    "Draft",
    "ImageFile",
    "TaxonomySelection",
    "Success",
    "PartialFailure",
    "Failure",
    "SubmissionResult",
    "RecipePublisher",
]

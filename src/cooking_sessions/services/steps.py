"""Read-only access to recipe cooking steps."""

from dataclasses import dataclass
from typing import Protocol
from uuid import UUID

from cooking_sessions.domain.errors import NotFoundError, NoStepsError
from cooking_sessions.domain.steps import CookingStep


class StepRepository(Protocol):
    """Persistence interface for recipe cooking steps."""

    def get_steps_for_recipe(self, recipe_id: UUID) -> list[CookingStep]:
        """Return the steps of a recipe ordered by step number."""


@dataclass
class StepCatalog:
    """Lookup of ordered cooking steps for a recipe."""

    repository: StepRepository

    def get_steps(self, recipe_id: UUID) -> list[CookingStep]:
        """Return the recipe's steps in step-number order (possibly empty)."""
        steps = self.repository.get_steps_for_recipe(recipe_id)
        return sorted(steps, key=lambda step: step.step_number)

    def steps_for_start(self, recipe_id: UUID) -> list[CookingStep]:
        """Return the steps needed to start a session, or raise NoStepsError."""
        steps = self.get_steps(recipe_id)
        if not steps:
            raise NoStepsError(f"No cooking steps found for recipe {recipe_id}")
        return steps

    def steps_for_session(self, recipe_id: UUID) -> list[CookingStep]:
        """Return the steps of a running session's recipe, or raise NotFoundError."""
        steps = self.get_steps(recipe_id)
        if not steps:
            raise NotFoundError(f"Cooking steps not found for recipe {recipe_id}")
        return steps

"""Supabase repository for recipe cooking steps."""

from dataclasses import dataclass
from uuid import UUID

from supabase import Client

from cooking_sessions.domain.steps import CookingStep
from cooking_sessions.services.steps import StepRepository


@dataclass
class SupabaseStepRepository(StepRepository):
    """Supabase implementation for cooking step lookups."""

    client: Client

    def get_steps_for_recipe(self, recipe_id: UUID) -> list[CookingStep]:
        """Return the recipe's steps ordered by step number."""
        response = (
            self.client.table("cooking_steps")
            .select(
                "id, recipe_id, step_number, description, instructions, "
                "is_timer_required, duration_minutes, duration_seconds"
            )
            .eq("recipe_id", str(recipe_id))
            .order("step_number", desc=False)
            .execute()
        )
        return [_parse_row(row) for row in response.data or []]


def _parse_row(row: dict[str, object]) -> CookingStep:
    minutes = row.get("duration_minutes")
    seconds = row.get("duration_seconds")
    return CookingStep(
        id=UUID(str(row["id"])),
        recipe_id=UUID(str(row["recipe_id"])),
        step_number=int(row["step_number"]),
        description=str(row.get("description") or ""),
        instructions=str(row.get("instructions") or ""),
        is_timer_required=bool(row.get("is_timer_required")),
        duration_minutes=int(minutes) if minutes is not None else None,
        duration_seconds=int(seconds) if seconds is not None else None,
    )

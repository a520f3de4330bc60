"""Domain models for recipe cooking steps."""

from dataclasses import dataclass
from uuid import UUID


@dataclass(frozen=True)
class CookingStep:
    """Represents one ordered instruction of a recipe."""

    id: UUID
    recipe_id: UUID
    step_number: int
    description: str
    instructions: str
    is_timer_required: bool = False
    duration_minutes: int | None = None
    duration_seconds: int | None = None

    @property
    def total_duration_seconds(self) -> int:
        """Return the combined minutes and seconds of the step."""
        return (self.duration_minutes or 0) * 60 + (self.duration_seconds or 0)

    @property
    def timer_duration_ms(self) -> int:
        """Return the countdown length, or 0 when the step has no timer."""
        if not self.is_timer_required:
            return 0
        return max(0, self.total_duration_seconds * 1000)

    @property
    def has_timer(self) -> bool:
        return self.timer_duration_ms > 0

"""Wire models for the history commands.

The host application exchanges quiz history as JSON objects; these models
validate that shape and convert it to and from the history dataclasses.
"""

from pydantic import BaseModel, Field

from src.history import ItemResult, QuizSummary


class QuizResultPayload(BaseModel):
    """One answered port as sent by the host.

    Attributes:
        port: Port name.
        is_correct: Correctness flag, ``isCorrect`` on the wire.
    """

    port: str = Field(..., description="Port name")
    is_correct: bool = Field(
        ..., alias="isCorrect", description="Whether the answer was correct"
    )

    model_config = {
        "populate_by_name": True,
    }

    def to_result(self) -> ItemResult:
        return ItemResult(port=self.port, is_correct=self.is_correct)


class QuizHistoryPayload(BaseModel):
    """A completed quiz as sent by the host.

    Score, total and accuracy are accepted as given and not cross-checked
    against the results.
    """

    id: str = Field(..., description="Caller-generated unique identifier")
    date: int = Field(..., description="Completion time, epoch milliseconds")
    score: int = Field(..., description="Correct answers")
    total: int = Field(..., description="Items in the quiz")
    accuracy: float = Field(..., description="Score ratio, nominally 0-1")
    duration: int = Field(..., description="Seconds taken")
    difficulty: str = Field(..., description="Difficulty label")
    regions: list[str] = Field(..., description="Regions covered, in order")
    countries: list[str] = Field(..., description="Countries covered, in order")
    results: list[QuizResultPayload] = Field(
        ..., description="Per-port results"
    )

    def to_summary(self) -> QuizSummary:
        """Convert to the history dataclass."""
        return QuizSummary(
            id=self.id,
            date=self.date,
            score=self.score,
            total=self.total,
            accuracy=self.accuracy,
            duration=self.duration,
            difficulty=self.difficulty,
            regions=list(self.regions),
            countries=list(self.countries),
            results=[r.to_result() for r in self.results],
        )

    @classmethod
    def from_summary(cls, quiz: QuizSummary) -> "QuizHistoryPayload":
        """Build the wire model from a stored quiz."""
        return cls(
            id=quiz.id,
            date=quiz.date,
            score=quiz.score,
            total=quiz.total,
            accuracy=quiz.accuracy,
            duration=quiz.duration,
            difficulty=quiz.difficulty,
            regions=quiz.regions,
            countries=quiz.countries,
            results=[
                QuizResultPayload(port=r.port, is_correct=r.is_correct)
                for r in quiz.results
            ],
        )


__all__ = ["QuizResultPayload", "QuizHistoryPayload"]

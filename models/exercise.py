from typing import Annotated, List, Literal, Optional, Tuple, Union

from pydantic import Field

from .base import CamelModel


class CharacterExercise(CamelModel):
    type: Literal["character"] = "character"
    glyph: str
    meaning: str = ""
    meaning_alt: Optional[str] = None
    code: str = ""

    @property
    def answer(self) -> str:
        return self.glyph

    @property
    def units(self) -> Tuple[str, ...]:
        return (self.glyph,)


class SentenceExercise(CamelModel):
    type: Literal["sentence"] = "sentence"
    text: str
    meaning: str = ""

    @property
    def answer(self) -> str:
        return self.text

    @property
    def units(self) -> Tuple[str, ...]:
        """Each non-blank character of the sentence, first occurrence only."""
        seen: List[str] = []
        for char in self.text:
            if char.isspace() or char in seen:
                continue
            seen.append(char)
        return tuple(seen)


Exercise = Annotated[Union[CharacterExercise, SentenceExercise], Field(discriminator="type")]


class Lesson(CamelModel):
    id: str
    title: str
    title_alt: Optional[str] = None
    description: str = ""
    description_alt: Optional[str] = None
    exercises: List[Exercise] = Field(default_factory=list)

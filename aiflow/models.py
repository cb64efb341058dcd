from dataclasses import asdict, dataclass, field
from typing import List, Union


@dataclass
class DiffUnit:
    """The diff text of exactly one file."""
    file_path: str
    content: str


@dataclass
class DiffChunk:
    """
    One batch sent to the model: one or more diff units, or a slice of a
    single oversized unit. `token_count` is the running estimate of `content`.
    """
    content: str = ""
    files: List[str] = field(default_factory=list)
    token_count: int = 0

    def __bool__(self):
        return bool(self.content)


@dataclass
class GenerationResult:
    commit: str
    branch: str
    description: str = ""
    title: str = ""

    def to_dict(self):
        return asdict(self)


@dataclass
class ToolCallOutput:
    arguments: str


@dataclass
class TextOutput:
    content: str


ModelOutput = Union[ToolCallOutput, TextOutput]

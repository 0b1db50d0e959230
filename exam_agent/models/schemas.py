import math
import mimetypes
import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

# --- Basic Enums ---
class Difficulty(str, Enum):
    EASY = "EASY"
    MEDIUM = "MEDIUM"
    HARD = "HARD"


class Language(str, Enum):
    VI = "vi"
    EN = "en"


class DataPolicy(str, Enum):
    """What the model does with numbers found in attached documents."""

    VARY = "vary"  # change the figures, keep problem types and knowledge level
    PRESERVE = "preserve"  # keep figures as-is, or write canonical problems


class FigureMode(str, Enum):
    """How diagrams are produced in the LaTeX source."""

    TIKZ = "tikz"  # full TikZ code generated inline
    PLACEHOLDER = "placeholder"  # \includegraphics placeholder for a real image


class PreviewKind(str, Enum):
    IMAGE = "image"
    PDF = "pdf"


GRADE_LABELS: Tuple[str, ...] = tuple(str(g) for g in range(1, 13))

MAX_MULTIPLE_CHOICE = 50
MAX_ESSAY = 10

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def coerce_count(value: Any, *, upper: int) -> int:
    """
    Resolve a user-entered item count to an int in [0, upper].

    Follows form-input semantics: the leading integer of a string is used
    ("12abc" -> 12, "3.7" -> 3); anything non-numeric ("" / None / "abc") -> 0.
    Out-of-range numbers are clamped.
    """
    if isinstance(value, bool):
        n = int(value)
    elif isinstance(value, int):
        n = value
    elif isinstance(value, float):
        n = int(value) if math.isfinite(value) else 0
    else:
        m = _LEADING_INT.match(str(value or ""))
        n = int(m.group(1)) if m else 0
    return max(0, min(int(upper), n))


# --- Configuration ---
class ExamConfig(BaseModel):
    """Immutable exam configuration; edits produce a new value (see ConfigStore)."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    topic: str = ""
    grade: str = "6"
    difficulty: Difficulty = Difficulty.MEDIUM
    num_multiple_choice: int = Field(default=10, ge=0, le=MAX_MULTIPLE_CHOICE)
    num_essay: int = Field(default=2, ge=0, le=MAX_ESSAY)
    use_tikz: bool = True
    vary_data: bool = False
    language: Language = Language.VI

    @field_validator("topic", mode="before")
    @classmethod
    def _topic_text(cls, v):
        return "" if v is None else str(v)

    @field_validator("grade", mode="before")
    @classmethod
    def _grade_label(cls, v):
        label = str(v).strip()
        if label not in GRADE_LABELS:
            raise ValueError("grade must be one of 1..12")
        return label

    @field_validator("num_multiple_choice", mode="before")
    @classmethod
    def _clamp_multiple_choice(cls, v):
        return coerce_count(v, upper=MAX_MULTIPLE_CHOICE)

    @field_validator("num_essay", mode="before")
    @classmethod
    def _clamp_essay(cls, v):
        return coerce_count(v, upper=MAX_ESSAY)

    @property
    def data_policy(self) -> DataPolicy:
        return DataPolicy.VARY if self.vary_data else DataPolicy.PRESERVE

    @property
    def figure_mode(self) -> FigureMode:
        return FigureMode.TIKZ if self.use_tikz else FigureMode.PLACEHOLDER


# --- Attachments ---
PDF_MIME = "application/pdf"


@dataclass(frozen=True)
class Attachment:
    """
    A user-supplied reference document (image or PDF).

    Content is either held in memory (`data`) or read lazily from `path`;
    reading may fail, which surfaces as an encoding failure at submit time.
    """

    name: str
    mime_type: str
    data: Optional[bytes] = field(default=None, repr=False)
    path: Optional[Path] = None

    def read_bytes(self) -> bytes:
        if self.data is not None:
            return self.data
        if self.path is None:
            raise OSError(f"attachment '{self.name}' has no content")
        return Path(self.path).read_bytes()

    @property
    def size(self) -> Optional[int]:
        if self.data is not None:
            return len(self.data)
        try:
            return Path(self.path).stat().st_size if self.path else None
        except OSError:
            return None

    @classmethod
    def from_path(cls, path, mime_type: Optional[str] = None) -> "Attachment":
        p = Path(path)
        guessed, _ = mimetypes.guess_type(p.name)
        return cls(
            name=p.name,
            mime_type=(mime_type or guessed or "application/octet-stream"),
            path=p,
        )


@dataclass(frozen=True)
class EncodedAttachment:
    mime_type: str
    base64_payload: str = field(repr=False)
    name: Optional[str] = None

    def data_url(self) -> str:
        return f"data:{self.mime_type};base64,{self.base64_payload}"


@dataclass(frozen=True)
class GenerationRequest:
    """One outbound call: instruction text first, then attachments in added order."""

    instruction: str
    attachments: List[EncodedAttachment] = field(default_factory=list)


# --- Preview ---
@dataclass(frozen=True)
class PreviewResource:
    url: str
    kind: PreviewKind
    name: str

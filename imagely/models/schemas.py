"""
Pydantic Models and Schemas
===========================

Core data models for render requests, asset references, render outcomes
and batch logs.
"""

from typing import Optional, List, Dict, Any
from enum import Enum
from pathlib import Path
import re

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


URL_PATTERN = re.compile(r"^https?://", re.IGNORECASE)


def is_url(value: str) -> bool:
    """Return True when value is an absolute http(s) URL."""
    return bool(URL_PATTERN.match(value))


# Enums
class AssetKind(str, Enum):
    """Kind of external asset referenced by a document."""
    SCRIPT = "script"
    STYLE = "style"


class RemoteAssetMode(str, Enum):
    """How remote (http/https) assets are handled during inlining."""
    FETCH = "fetch"
    SKIP = "skip"


class OutputFormat(str, Enum):
    """Output formats supported by the renderer."""
    PNG = "png"
    JPEG = "jpeg"
    GIF = "gif"
    PDF = "pdf"


class RenderState(str, Enum):
    """Render pass lifecycle states."""
    IDLE = "idle"
    ENGINE_STARTING = "engine_starting"
    PAGE_LOADING = "page_loading"
    CONTENT_READY = "content_ready"
    CAPTURING = "capturing"
    COMPLETED = "completed"
    FAILED = "failed"


OUTPUT_EXTENSIONS: Dict[str, OutputFormat] = {
    ".png": OutputFormat.PNG,
    ".jpg": OutputFormat.JPEG,
    ".jpeg": OutputFormat.JPEG,
    ".gif": OutputFormat.GIF,
    ".pdf": OutputFormat.PDF,
}


# Render Models
class RenderRequest(BaseModel):
    """A single render pass request. Immutable once constructed."""
    model_config = ConfigDict(frozen=True)

    source: str = Field(..., min_length=1, description="HTML filepath or URL")
    destination: Path = Field(..., description="Destination image filepath")
    width: Optional[int] = Field(None, gt=0, description="Viewport pixel width")
    height: Optional[int] = Field(None, gt=0, description="Viewport pixel height")
    scale: float = Field(1.0, gt=0, description="Zoom level; 2 for HiDPI output")
    background_color: Optional[str] = Field(None, description="Page background color")
    json_data_path: Optional[Path] = Field(
        None, description="JSON file preloaded into window.data"
    )
    remote_assets: RemoteAssetMode = Field(
        RemoteAssetMode.FETCH, description="Remote script/stylesheet handling"
    )

    @field_validator("destination")
    @classmethod
    def validate_destination(cls, v: Path) -> Path:
        """Validate the destination extension is a supported output format."""
        if v.suffix.lower() not in OUTPUT_EXTENSIONS:
            allowed = ", ".join(sorted(OUTPUT_EXTENSIONS))
            raise ValueError(f"Unsupported destination extension '{v.suffix}' (expected one of {allowed})")
        return v

    @property
    def is_url(self) -> bool:
        """Whether the source is a remote URL rather than a local file."""
        return is_url(self.source)

    @property
    def output_format(self) -> OutputFormat:
        return OUTPUT_EXTENSIONS[self.destination.suffix.lower()]

    @property
    def has_viewport(self) -> bool:
        return self.width is not None or self.height is not None


class AssetReference(BaseModel):
    """An external script or stylesheet tag found in a document."""
    model_config = ConfigDict(frozen=True)

    original_tag: str = Field(..., description="Verbatim matched markup")
    kind: AssetKind = Field(..., description="Script or stylesheet")
    location: str = Field(..., description="Resolved local path or URL")

    @property
    def is_remote(self) -> bool:
        return is_url(self.location)


class FetchedAsset(BaseModel):
    """An asset reference together with its retrieved content."""
    model_config = ConfigDict(frozen=True)

    reference: AssetReference
    content: str

    @property
    def inline_tag(self) -> str:
        """Inline replacement markup for the originating tag."""
        tag_name = "script" if self.reference.kind == AssetKind.SCRIPT else "style"
        return f"<{tag_name}>{self.content}</{tag_name}>"


class Dimensions(BaseModel):
    """Probed dimensions of a rendered image."""
    width: Optional[int] = Field(None, description="Image width in pixels")
    height: Optional[int] = Field(None, description="Image height in pixels")

    @property
    def is_valid(self) -> bool:
        """Both dimensions are present and non-zero."""
        return bool(self.width) and bool(self.height)


class RenderOutcome(BaseModel):
    """Result of one render pass: dimensions on success, error otherwise."""
    destination: Optional[Path] = Field(None, description="Destination filepath")
    dimensions: Optional[Dimensions] = Field(None, description="Probed image dimensions")
    error: Optional[str] = Field(None, description="Error description if the pass failed")

    @model_validator(mode="after")
    def check_exclusive(self) -> "RenderOutcome":
        if (self.dimensions is None) == (self.error is None):
            raise ValueError("Exactly one of dimensions or error must be set")
        return self

    @property
    def success(self) -> bool:
        return self.error is None

    @classmethod
    def completed(cls, destination: Path, dimensions: Dimensions) -> "RenderOutcome":
        return cls(destination=destination, dimensions=dimensions)

    @classmethod
    def failed(cls, destination: Optional[Path], error: str) -> "RenderOutcome":
        return cls(destination=destination, error=error)


# Batch Models
class BatchRecord(BaseModel):
    """One JSON data record of a batch run."""
    index: int = Field(..., ge=0, description="Position of the record in the batch")
    data: Any = Field(..., description="Record payload injected as window.data")
    filename: Optional[str] = Field(None, description="Record-provided output name")


class BatchLogEntry(BaseModel):
    """Per-record entry written to the batch log."""
    width: Optional[int] = None
    height: Optional[int] = None
    index: int
    filename: Optional[str] = None
    destination: str


class BatchLog(BaseModel):
    """Batch summary persisted once the record sequence is exhausted."""
    success: List[BatchLogEntry] = Field(default_factory=list)
    failure: List[BatchLogEntry] = Field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.success) + len(self.failure)

    def record(self, entry: BatchLogEntry) -> None:
        """Classify an entry by whether its dimensions are truthy."""
        if entry.width and entry.height:
            self.success.append(entry)
        else:
            self.failure.append(entry)

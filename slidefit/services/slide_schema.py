from typing import Any, List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field


class LayoutBox(BaseModel):
    x: float = 0.0
    y: float = 0.0
    width: float = Field(..., gt=0)
    height: float = Field(..., gt=0)

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    def inset(self, left: float = 0.0, top: float = 0.0, right: float = 0.0, bottom: float = 0.0) -> "LayoutBox":
        """Shrink the box by the given padding on each side"""
        return LayoutBox(
            x=self.x + left,
            y=self.y + top,
            width=self.width - left - right,
            height=self.height - top - bottom,
        )


class TextBlock(BaseModel):
    paragraphs: List[str] = []
    bullets: List[str] = []

    def is_empty(self) -> bool:
        return not self.paragraphs and not self.bullets

    def as_text(self) -> str:
        """Paragraphs then bullets, one per line"""
        return "\n".join(list(self.paragraphs) + list(self.bullets))


class WrappedParagraph(BaseModel):
    lines: List[str]
    bullet: bool = False


class WrapResult(BaseModel):
    font_size: float
    lines: List[str]
    paragraphs: List[WrappedParagraph] = []


class TextRegion(BaseModel):
    role: Literal["title", "body"]
    box: LayoutBox
    result: WrapResult


class SlideContent(BaseModel):
    title: str = ""
    text: TextBlock = Field(default_factory=TextBlock)
    image_urls: List[str] = []


class ImagePlan(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    source_url: str
    target_rect: LayoutBox
    bitmap: Any  # PIL.Image.Image, already cropped to the slot aspect
    slot: int = 0

    def to_png(self) -> bytes:
        from slidefit.services.image_processing import to_png_bytes
        return to_png_bytes(self.bitmap)


class ImageSkip(BaseModel):
    url: str
    reason: str
    slot: Optional[int] = None


class SlidePlan(BaseModel):
    arrangement: Literal["stacked", "side_by_side"]
    title: Optional[TextRegion] = None
    body: Optional[TextRegion] = None
    images: List[ImagePlan] = []
    skipped: List[ImageSkip] = []
    image_slots: List[LayoutBox] = []


class FetchOutcome(BaseModel):
    status: Literal["ok", "skipped", "failed"]
    url: str
    data: Optional[bytes] = None
    reason: Optional[str] = None
    status_code: Optional[int] = None
    from_cache: bool = False

    @property
    def is_ok(self) -> bool:
        return self.status == "ok"

    @classmethod
    def ok(cls, url: str, data: bytes, from_cache: bool = False, status_code: Optional[int] = None) -> "FetchOutcome":
        return cls(status="ok", url=url, data=data, from_cache=from_cache, status_code=status_code)

    @classmethod
    def skipped(cls, url: str, reason: str, status_code: Optional[int] = None) -> "FetchOutcome":
        return cls(status="skipped", url=url, reason=reason, status_code=status_code)

    @classmethod
    def failed(cls, url: str, reason: str, status_code: Optional[int] = None) -> "FetchOutcome":
        return cls(status="failed", url=url, reason=reason, status_code=status_code)

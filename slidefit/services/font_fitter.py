import math
from typing import List, Optional, Union
from pydantic import BaseModel

from slidefit.core.config import Settings, settings as default_settings
from slidefit.core.logger import get_logger
from slidefit.services.slide_schema import LayoutBox, TextBlock, WrappedParagraph, WrapResult
from slidefit.services.word_wrap import max_line_length, wrap_smart

logger = get_logger("font_fitter")

TextInput = Union[str, TextBlock]


class FitProfile(BaseModel):
    """Font bounds, line height and inner padding for one kind of text region"""
    name: str
    min_pt: float
    max_pt: float
    line_height: float
    pad_left: float = 0.0
    pad_right: float = 0.0
    pad_top: float = 0.0
    pad_bottom: float = 0.0

    @classmethod
    def title(cls, cfg: Settings = default_settings) -> "FitProfile":
        return cls(
            name="title",
            min_pt=cfg.title_font_min,
            max_pt=cfg.title_font_max,
            line_height=cfg.title_line_height,
            pad_left=cfg.title_inset_x,
            pad_right=cfg.title_inset_x,
            pad_top=cfg.title_inset_y,
            pad_bottom=cfg.title_inset_y,
        )

    @classmethod
    def body(cls, cfg: Settings = default_settings) -> "FitProfile":
        return cls(
            name="body",
            min_pt=cfg.body_font_min,
            max_pt=cfg.body_font_max,
            line_height=cfg.body_line_height,
            pad_left=cfg.body_inset_x,
            pad_right=cfg.body_inset_x,
            pad_top=cfg.body_inset_top,
            pad_bottom=cfg.body_inset_bottom,
        )


class FontFitter:
    """Finds the largest font size at which wrapped text fits a rectangle"""

    def __init__(self, profile: FitProfile, cfg: Settings = default_settings):
        self.profile = profile
        self.glyph_width_ratio = cfg.glyph_width_ratio
        self.min_glyph_width = cfg.min_glyph_width
        self.min_chars_per_line = cfg.min_chars_per_line
        self.width_slack = cfg.width_slack
        self.max_iterations = cfg.fit_max_iterations
        self.tolerance = cfg.fit_tolerance_pt
        self.bullet_indent_chars = cfg.bullet_indent_chars

    def chars_per_line(self, box_width: float, font_size: float) -> int:
        """Estimate how many average-width glyphs fit the width at this size"""
        avg = max(self.min_glyph_width, font_size * self.glyph_width_ratio)
        cpl = math.floor((box_width - self.width_slack) / avg)
        return max(self.min_chars_per_line, cpl)

    def wrap_block(self, block: TextBlock, cpl: int) -> List[WrappedParagraph]:
        """Wrap paragraphs at cpl and bullets narrower, leaving room for the bullet glyph"""
        bullet_cpl = max(self.min_chars_per_line, cpl - self.bullet_indent_chars)
        paragraphs = [WrappedParagraph(lines=wrap_smart(p, cpl)) for p in block.paragraphs]
        paragraphs += [WrappedParagraph(lines=wrap_smart(b, bullet_cpl), bullet=True) for b in block.bullets]
        return paragraphs

    def fits(self, text: TextInput, box_width: float, box_height: float, font_size: float) -> bool:
        cpl = self.chars_per_line(box_width, font_size)
        lines = [line for para in self.wrap_block(_as_block(text), cpl) for line in para.lines]
        total_height = len(lines) * font_size * self.profile.line_height
        # Wrapping counts characters, so recheck the longest line against the estimate
        return total_height <= box_height and max_line_length(lines) <= cpl

    def fit(
        self,
        text: TextInput,
        box_width: float,
        box_height: float,
        min_pt: Optional[float] = None,
        max_pt: Optional[float] = None,
    ) -> float:
        """
        Binary search for the largest font size in [min_pt, max_pt] that fits.

        Relies on fits() being non-increasing in font size. Returns min_pt when
        nothing fits and max_pt for an empty text block.
        """
        lo = self.profile.min_pt if min_pt is None else min_pt
        hi = self.profile.max_pt if max_pt is None else max_pt
        if lo > hi:
            raise ValueError(f"min_pt ({lo}) must not exceed max_pt ({hi})")
        min_pt, max_pt = lo, hi

        if isinstance(text, TextBlock) and text.is_empty():
            return max_pt

        best = min_pt
        for _ in range(self.max_iterations):
            mid = (lo + hi) * 0.5
            if self.fits(text, box_width, box_height, mid):
                best = mid
                lo = mid
            else:
                hi = mid
            if abs(hi - lo) < self.tolerance:
                break

        return _clamp(best, min_pt, max_pt)

    def layout(self, text: TextInput, box: LayoutBox) -> WrapResult:
        """Fit text into the padded interior of box and return the wrapped lines"""
        p = self.profile
        if box.width <= p.pad_left + p.pad_right or box.height <= p.pad_top + p.pad_bottom:
            raise ValueError(
                f"{p.name} box {box.width:.1f}x{box.height:.1f} leaves no room inside its padding"
            )
        inner = box.inset(
            left=self.profile.pad_left,
            top=self.profile.pad_top,
            right=self.profile.pad_right,
            bottom=self.profile.pad_bottom,
        )
        width, height = inner.width, inner.height

        block = _as_block(text)
        font_size = self.fit(block, width, height)
        cpl = self.chars_per_line(width, font_size)
        paragraphs = self.wrap_block(block, cpl)
        lines = [line for para in paragraphs for line in para.lines]

        logger.debug(
            f"{self.profile.name}: {len(lines)} lines at {font_size:.2f}pt "
            f"({cpl} chars/line) in {width:.0f}x{height:.0f}"
        )
        return WrapResult(font_size=font_size, lines=lines, paragraphs=paragraphs)


def _as_block(text: TextInput) -> TextBlock:
    if isinstance(text, TextBlock):
        return text
    return TextBlock(paragraphs=text.split("\n"))


def _clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))


def title_fitter(cfg: Settings = default_settings) -> FontFitter:
    return FontFitter(FitProfile.title(cfg), cfg)


def body_fitter(cfg: Settings = default_settings) -> FontFitter:
    return FontFitter(FitProfile.body(cfg), cfg)

from typing import List, Optional, Tuple
import requests

from slidefit.core.config import Settings, settings as default_settings
from slidefit.core.logger import get_logger
from slidefit.services.font_fitter import FontFitter, body_fitter, title_fitter
from slidefit.services.image_fetcher import ImageFetcher
from slidefit.services.image_processing import crop_to_aspect, decode_image
from slidefit.services.slide_schema import (
    ImagePlan,
    ImageSkip,
    LayoutBox,
    SlideContent,
    SlidePlan,
    TextRegion,
)

logger = get_logger("layout_planner")


class LayoutPlanner:
    """Decides where a slide's title, body text and images go and prepares each of them"""

    def __init__(
        self,
        fetcher: Optional[ImageFetcher] = None,
        cfg: Settings = default_settings,
        title: Optional[FontFitter] = None,
        body: Optional[FontFitter] = None,
    ):
        self.cfg = cfg
        self.fetcher = fetcher
        self.title_fitter = title or title_fitter(cfg)
        self.body_fitter = body or body_fitter(cfg)

    def slide_area(self) -> LayoutBox:
        m = self.cfg.margin
        return LayoutBox(
            x=m,
            y=m,
            width=self.cfg.slide_width - 2 * m,
            height=self.cfg.slide_height - 2 * m,
        )

    def choose_arrangement(self, image_count: int) -> str:
        if self.cfg.stack_images and 0 < image_count <= self.cfg.stack_max_images:
            return "stacked"
        return "side_by_side"

    def plan(self, slide: SlideContent, area: Optional[LayoutBox] = None) -> SlidePlan:
        area = area or self.slide_area()
        cfg = self.cfg

        title_box = LayoutBox(x=area.x, y=area.y, width=area.width, height=cfg.title_height)
        title_region = None
        if slide.title.strip():
            title_region = TextRegion(role="title", box=title_box, result=self.title_fitter.layout(slide.title, title_box))

        content_top = area.y + cfg.title_height + cfg.gap * 2
        content_height = area.bottom - content_top
        if content_height <= 0:
            raise ValueError(f"slide area {area.width}x{area.height} leaves no room below the title")

        has_text = not slide.text.is_empty()
        arrangement = self.choose_arrangement(len(slide.image_urls))
        if arrangement == "stacked":
            text_box, images_area = self._stacked(area, content_top, content_height, has_text)
        else:
            text_box, images_area = self._side_by_side(area, content_top, content_height, has_text, bool(slide.image_urls))

        body_region = None
        if text_box is not None:
            body_region = TextRegion(role="body", box=text_box, result=self.body_fitter.layout(slide.text, text_box))

        plan = SlidePlan(arrangement=arrangement, title=title_region, body=body_region)
        if images_area is not None:
            plan.image_slots = self.image_slots(images_area, len(slide.image_urls))
            self._place_images(plan, slide.image_urls)

        logger.info(
            f"Planned '{slide.title}': {arrangement}, {len(plan.images)} image(s) placed, "
            f"{len(plan.skipped)} skipped"
        )
        return plan

    def _stacked(
        self, area: LayoutBox, top: float, height: float, has_text: bool
    ) -> Tuple[Optional[LayoutBox], LayoutBox]:
        cfg = self.cfg
        left = area.x + cfg.content_side_padding
        width = area.width - 2 * cfg.content_side_padding
        if not has_text:
            return None, LayoutBox(x=left, y=top, width=width, height=height)

        text_h = height * cfg.stacked_text_height_ratio
        text_box = LayoutBox(x=left, y=top, width=width, height=text_h - cfg.gap * 0.5)
        images_area = LayoutBox(
            x=left,
            y=top + text_h + cfg.gap * 0.5,
            width=width,
            height=height - text_h - cfg.gap * 0.5,
        )
        return text_box, images_area

    def _side_by_side(
        self, area: LayoutBox, top: float, height: float, has_text: bool, has_images: bool
    ) -> Tuple[Optional[LayoutBox], Optional[LayoutBox]]:
        cfg = self.cfg
        if not has_text:
            # All of the content area goes to the images
            images_area = LayoutBox(x=area.x, y=top, width=area.width, height=height) if has_images else None
            return None, images_area

        ratio = cfg.text_width_ratio_with_images if has_images else cfg.text_width_ratio_no_images
        text_w = area.width * ratio
        text_left = area.x if has_images else area.x + (area.width - text_w) / 2.0
        text_box = LayoutBox(x=text_left, y=top, width=text_w, height=height)
        if not has_images:
            return text_box, None

        images_area = LayoutBox(
            x=area.x + text_w + cfg.gap,
            y=top,
            width=area.width - text_w - cfg.gap,
            height=height,
        )
        return text_box, images_area

    def image_slots(self, area: LayoutBox, image_count: int) -> List[LayoutBox]:
        """Uniform 16:9 slots in one row, centered in area as a block"""
        cfg = self.cfg
        count = min(image_count, cfg.max_images_per_slide)
        if count <= 0:
            return []

        img_h = area.height * cfg.image_height_ratio
        img_w = img_h * cfg.image_aspect
        total_w = img_w * count + cfg.image_gap * (count - 1)
        if total_w > area.width:
            img_w = (area.width - cfg.image_gap * (count - 1)) / count
            img_h = img_w / cfg.image_aspect
            total_w = area.width

        start_x = area.x + (area.width - total_w) / 2
        start_y = area.y + (area.height - img_h) / 2
        return [
            LayoutBox(x=start_x + i * (img_w + cfg.image_gap), y=start_y, width=img_w, height=img_h)
            for i in range(count)
        ]

    def _place_images(self, plan: SlidePlan, urls: List[str]) -> None:
        for slot, url in enumerate(urls):
            if slot >= len(plan.image_slots):
                self._skip(plan, url, "no free image slot", slot)
                continue
            if self.fetcher is None:
                self._skip(plan, url, "image fetching disabled", slot)
                continue

            try:
                outcome = self.fetcher.fetch(url)
            except requests.RequestException as e:
                self._skip(plan, url, f"download failed: {e}", slot)
                continue
            if not outcome.is_ok:
                self._skip(plan, url, outcome.reason or outcome.status, slot)
                continue

            bitmap = decode_image(outcome.data)
            if bitmap is None:
                self._skip(plan, url, "undecodable image data", slot)
                continue

            plan.images.append(
                ImagePlan(
                    source_url=outcome.url,
                    target_rect=plan.image_slots[slot],
                    bitmap=crop_to_aspect(bitmap, self.cfg.image_aspect),
                    slot=slot,
                )
            )

    @staticmethod
    def _skip(plan: SlidePlan, url: str, reason: str, slot: int) -> None:
        logger.warning(f"Skipping image {url}: {reason}")
        plan.skipped.append(ImageSkip(url=url, reason=reason, slot=slot))

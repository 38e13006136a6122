import pytest
import requests

from slidefit.core.config import Settings
from slidefit.services.image_fetcher import ImageFetcher
from slidefit.services.layout_planner import LayoutPlanner
from slidefit.services.slide_schema import LayoutBox, SlideContent, TextBlock
from tests.fakes import FakeResponse, RoutedSession, png_bytes

TEXT = TextBlock(
    paragraphs=["Images are fetched once and cached on disk by URL hash."],
    bullets=["Retries use linear backoff", "HTML error pages are skipped"],
)


def urls(n):
    return [f"https://img.example.com/{i}.png" for i in range(n)]


def planner_for(routes, cfg=None):
    fetcher = ImageFetcher(session=RoutedSession(routes), sleep=lambda s: None, cfg=cfg or Settings())
    return LayoutPlanner(fetcher=fetcher, cfg=cfg or Settings())


def ok_routes(n, size=(400, 400)):
    return {u: FakeResponse(200, png_bytes(size)) for u in urls(n)}


@pytest.mark.parametrize("count,expected", [(0, "side_by_side"), (1, "stacked"), (3, "stacked"), (4, "side_by_side")])
def test_arrangement_depends_on_image_count(count, expected):
    assert LayoutPlanner().choose_arrangement(count) == expected


def test_stacking_can_be_disabled():
    planner = LayoutPlanner(cfg=Settings(stack_images=False))
    assert planner.choose_arrangement(2) == "side_by_side"


def test_text_only_slide_is_centered():
    plan = LayoutPlanner().plan(SlideContent(title="Overview", text=TEXT))
    assert plan.arrangement == "side_by_side"
    assert plan.images == [] and plan.image_slots == []
    box = plan.body.box
    assert box.width == pytest.approx(1920 * 0.92)
    assert box.x == pytest.approx((1920 - box.width) / 2)
    assert box.y == pytest.approx(124 + 80)


def test_stacked_slide_places_text_above_images():
    plan = planner_for(ok_routes(2)).plan(SlideContent(title="Cache", text=TEXT, image_urls=urls(2)))
    assert plan.arrangement == "stacked"
    assert plan.body.box.bottom < plan.image_slots[0].y
    assert [img.slot for img in plan.images] == [0, 1]
    assert plan.skipped == []


def test_image_row_is_uniform_widescreen_and_centered():
    planner = planner_for(ok_routes(3))
    plan = planner.plan(SlideContent(title="Row", text=TEXT, image_urls=urls(3)))
    slots = plan.image_slots
    assert len(slots) == 3
    assert len({round(s.height, 6) for s in slots}) == 1
    for s in slots:
        assert s.width / s.height == pytest.approx(16 / 9)
    area_left = 32
    area_right = 1920 - 32
    assert slots[0].x - area_left == pytest.approx(area_right - slots[-1].right)


def test_placed_bitmaps_are_cropped_to_widescreen():
    plan = planner_for(ok_routes(1, size=(300, 900))).plan(SlideContent(title="Tall", image_urls=urls(1)))
    bitmap = plan.images[0].bitmap
    assert bitmap.width / bitmap.height == pytest.approx(16 / 9, rel=0.01)
    assert plan.images[0].target_rect == plan.image_slots[0]
    assert plan.images[0].to_png().startswith(b"\x89PNG")


def test_slide_without_text_gives_images_the_whole_area():
    plan = planner_for(ok_routes(2)).plan(SlideContent(title="Gallery", image_urls=urls(2)))
    assert plan.body is None
    slot = plan.image_slots[0]
    # Image area starts right below the title band
    assert slot.y > 204
    assert slot.height == pytest.approx(876 * 0.45)


def test_many_images_go_side_by_side_with_three_slots():
    plan = planner_for(ok_routes(5)).plan(SlideContent(title="Many", text=TEXT, image_urls=urls(5)))
    assert plan.arrangement == "side_by_side"
    assert plan.body.box.width == pytest.approx(1920 * 0.40)
    assert len(plan.image_slots) == 3
    assert all(s.x >= plan.body.box.right for s in plan.image_slots)
    assert plan.image_slots[-1].right <= 1920 + 1e-6
    assert [s.slot for s in plan.skipped] == [3, 4]


def test_one_failing_image_does_not_lose_the_others():
    routes = ok_routes(3)
    routes[urls(3)[1]] = requests.ConnectionError("boom")
    plan = planner_for(routes).plan(SlideContent(title="Partial", text=TEXT, image_urls=urls(3)))
    assert [img.slot for img in plan.images] == [0, 2]
    assert plan.skipped[0].url == urls(3)[1]
    assert "boom" in plan.skipped[0].reason


def test_skipped_and_undecodable_images_are_reported():
    routes = ok_routes(3)
    routes[urls(3)[0]] = FakeResponse(404)
    routes[urls(3)[2]] = FakeResponse(200, b"definitely not an image", {"Content-Type": "image/png"})
    plan = planner_for(routes).plan(SlideContent(title="Mixed", image_urls=urls(3)))
    assert [img.slot for img in plan.images] == [1]
    reasons = {s.slot: s.reason for s in plan.skipped}
    assert reasons[0] == "HTTP 404"
    assert reasons[2] == "undecodable image data"


def test_without_fetcher_images_are_skipped():
    plan = LayoutPlanner().plan(SlideContent(title="Offline", text=TEXT, image_urls=urls(2)))
    assert plan.images == []
    assert len(plan.skipped) == 2
    assert len(plan.image_slots) == 2


def test_title_is_fitted_in_title_band():
    plan = LayoutPlanner().plan(SlideContent(title="Adaptive text layout for generated decks", text=TEXT))
    assert plan.title.role == "title"
    assert plan.title.box.height == 124
    assert 26 <= plan.title.result.font_size <= 56


def test_blank_title_is_omitted():
    plan = LayoutPlanner().plan(SlideContent(title="  ", text=TEXT))
    assert plan.title is None


def test_custom_area_is_respected():
    area = LayoutBox(x=100, y=50, width=1280, height=720)
    plan = LayoutPlanner().plan(SlideContent(title="Small", text=TEXT), area)
    assert plan.title.box.x == 100 and plan.title.box.y == 50
    assert plan.body.box.right <= area.right
    assert plan.body.box.bottom == pytest.approx(area.bottom)


def test_area_too_short_for_content_is_rejected():
    with pytest.raises(ValueError):
        LayoutPlanner().plan(SlideContent(title="Tiny", text=TEXT), LayoutBox(width=800, height=150))


def test_body_band_too_thin_for_padding_is_rejected():
    slide = SlideContent(title="Cramped", text=TEXT, image_urls=urls(1))
    with pytest.raises(ValueError, match="padding"):
        LayoutPlanner().plan(slide, LayoutBox(width=800, height=350))

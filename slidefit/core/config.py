from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Image cache settings
    cache_dir: str = "cache_images"
    cache_enabled: bool = True

    # HTTP settings
    http_connect_timeout: float = 8.0  # seconds
    http_read_timeout: float = 25.0  # seconds
    max_image_bytes: int = 10 * 1024 * 1024
    fetch_max_attempts: int = 3
    backoff_base_ms: int = 250
    backoff_jitter_ms: int = 200
    user_agent: str = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36"
    accept: str = "image/jpeg,image/png,image/gif,image/*;q=0.8,*/*;q=0.5"
    accept_language: str = "en-US,en;q=0.9"
    accept_encoding: str = "gzip, deflate"

    # Title text fitting
    title_font_min: float = 26.0
    title_font_max: float = 56.0
    title_line_height: float = 1.18
    title_inset_x: float = 14.0
    title_inset_y: float = 8.0

    # Body text fitting
    body_font_min: float = 15.0
    body_font_max: float = 30.0
    body_line_height: float = 5.16
    body_inset_x: float = 14.0
    body_inset_top: float = 20.0
    body_inset_bottom: float = 10.0
    bullet_indent_chars: int = 2

    # Glyph width model shared by both profiles
    glyph_width_ratio: float = 0.52
    min_glyph_width: float = 5.5
    min_chars_per_line: int = 12
    width_slack: float = 10.0

    # Binary search stops after this many halvings or once the bracket is
    # narrower than the tolerance, whichever comes first
    fit_max_iterations: int = 18
    fit_tolerance_pt: float = 0.25

    # Slide geometry
    slide_width: float = 1920.0
    slide_height: float = 1080.0
    margin: float = 0.0
    title_height: float = 124.0
    gap: float = 40.0
    content_side_padding: float = 32.0

    # Arrangement policy
    stack_images: bool = True
    stack_max_images: int = 3
    stacked_text_height_ratio: float = 0.22
    text_width_ratio_with_images: float = 0.40
    text_width_ratio_no_images: float = 0.92

    # Image row
    image_height_ratio: float = 0.45
    image_gap: float = 20.0
    image_aspect: float = 16.0 / 9.0
    max_images_per_slide: int = 3

    # Logging
    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        env_prefix = "SLIDEFIT_"
        case_sensitive = False  # Allow case-insensitive environment variables
        extra = "ignore"

settings = Settings()

from pathlib import Path
from typing import Final

# Text models (structured output, used for SVG)
GEMINI_3_FLASH: Final = "gemini-3-flash-preview"
GEMINI_3_PRO: Final = "gemini-3-pro-preview"

# Image models
GEMINI_2_5_FLASH_IMAGE: Final = "gemini-2.5-flash-image"
GEMINI_3_PRO_IMAGE: Final = "gemini-3-pro-image-preview"

# Video models
VEO_2: Final = "veo-2.0-generate-001"
VEO_3_1_FAST: Final = "veo-3.1-fast-generate-preview"
VEO_3_1: Final = "veo-3.1-generate-preview"

# Quota ceilings are scaled by this factor so we trip before the provider does.
SAFETY_FACTOR: Final = 0.95

ONE_MINUTE_MS: Final = 60 * 1000
ONE_DAY_MS: Final = 24 * 60 * 60 * 1000

# Defaults
LOG_DIR = Path(".logs")
TEMPLATES_DIR = Path("templates")
WAL_FILENAME: Final = "wal.json"
DEFAULT_RETRY_LIMIT: Final = 3
DEFAULT_RATE_LIMIT_INTERVAL: Final = 60.0
DEFAULT_POLL_INTERVAL: Final = 10.0
DEFAULT_POLL_TIMEOUT: Final = 10 * 60.0
DEFAULT_FFMPEG: Final = "ffmpeg"
DEFAULT_ASPECT_RATIO: Final = "16:9"

# Counted against the request size proxy when a reference image is attached.
IMAGE_INPUT_SURCHARGE: Final = 1000

ASPECT_RATIOS: Final = ("16:9", "9:16")
VIDEO_MIME_TYPES: Final = ("video/mp4", "image/gif")

# Debug artifacts overwritten on each attempt
DEBUG_PROMPT: Final = "prompt.txt"
DEBUG_OUTPUT: Final = "output.json"
DEBUG_OUTPUT_NORMALIZED: Final = "output_norm.json"
DEBUG_SPEC: Final = "spec.json"
DEBUG_OUTPUT_INFO: Final = "output_info.json"

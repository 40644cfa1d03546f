# pullstats/config/settings.py

"""Central configuration for the pullstats harvester."""

import os
from pathlib import Path

from curl_cffi.requests import BrowserTypeLiteral
from dotenv import load_dotenv

load_dotenv()


class Settings:
    """Central configuration for the pullstats harvester."""

    # --- Crawling ---
    REQUEST_TIMEOUT: int = 15           # Seconds before a request times out
    MAX_CONCURRENCY: int = int(         # Simultaneous in-flight fetches
        os.getenv("PULLSTATS_MAX_CONCURRENCY", "15")
    )

    # --- Source pages ---
    SOURCE_NAME: str = "github"
    LISTING_URL: str = (
        "https://github.com/orgs/{organization}/packages"
        "?visibility=public"
    )
    DETAIL_URL: str = (
        "https://github.com/{organization}/{repository}"
        "/pkgs/container/{package}/versions"
        "?filters%5Bversion_type%5D=tagged"
    )

    # --- Browser Impersonation ---
    IMPERSONATE_BROWSER: BrowserTypeLiteral = "chrome131"
    DEFAULT_HEADERS: dict[str, str] = {
        "Accept": (
            "text/html,application/xhtml+xml,"
            "application/xml;q=0.9,image/avif,"
            "image/webp,image/apng,*/*;q=0.8"
        ),
        "Accept-Language": "en-US,en;q=0.9",
        "sec-ch-ua": (
            '"Google Chrome";v="131", '
            '"Chromium";v="131", '
            '"Not_A Brand";v="24"'
        ),
        "sec-ch-ua-mobile": "?0",
        "sec-ch-ua-platform": '"Windows"',
        "sec-fetch-dest": "document",
        "sec-fetch-mode": "navigate",
        "sec-fetch-site": "none",
        "sec-fetch-user": "?1",
        "Upgrade-Insecure-Requests": "1",
    }

    # --- History format ---
    HISTORY_HEADER: list[str] = ["Date", "Package", "Version", "Count"]
    DATE_FORMAT: str = "%Y-%m-%d"

    # --- Paths ---
    BASE_DIR: Path = Path(__file__).resolve().parent.parent.parent
    SELECTORS_PATH: Path = (
        BASE_DIR / "pullstats" / "config" / "selectors.json"
    )
    OUTPUT_DIR: Path = Path(os.getenv("PULLSTATS_OUTPUT_DIR", "outputs"))
    RENDER_DIR: Path = Path(os.getenv("PULLSTATS_RENDER_DIR", "renders"))
    LOGS_DIR: Path = BASE_DIR / "logs"

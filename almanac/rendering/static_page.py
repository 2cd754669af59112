"""
Static page output.

The page embeds the day's games as a JSON data block that the front-end reads
on load. Each run replaces that block wholesale and stamps a last-updated
comment; nothing else in the page is touched.
"""

import json
import re
import shutil
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from loguru import logger

from almanac.models.game import Game
from almanac.models.prediction import PredictionSet

DATA_BLOCK_ID = "games-data"
DATA_BLOCK_PATTERN = re.compile(
    r'(<script[^>]*\bid="games-data"[^>]*>)(.*?)(</script>)', re.DOTALL | re.IGNORECASE
)
LAST_UPDATED_PATTERN = re.compile(r"<!-- last-updated: [^>]*-->")

DEFAULT_PAGE_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<title>AI Sports Almanac: MLB Predictions</title>
</head>
<body>
<div id="games"></div>
<script id="games-data" type="application/json">[]</script>
</body>
</html>
"""


def serialize_games(
    games: List[Game], predictions: Mapping[str, PredictionSet]
) -> List[Dict[str, Any]]:
    entries = []
    for game in games:
        entry = game.model_dump(mode="json")
        prediction_set = predictions.get(game.id)
        entry["predictions"] = (
            prediction_set.model_dump(mode="json")["by_provider"] if prediction_set else {}
        )
        entry["predictions_generated_at"] = (
            prediction_set.generated_at.isoformat() if prediction_set else None
        )
        entries.append(entry)
    return entries


def _script_safe_json(data: Any) -> str:
    # "</" inside a script element would close it early
    return json.dumps(data, indent=2, ensure_ascii=False).replace("</", "<\\/")


class StaticPageRenderer:
    def __init__(self, page_path: str):
        self.page_path = Path(page_path)

    def _load_page(self) -> str:
        if self.page_path.exists():
            return self.page_path.read_text(encoding="utf-8")
        logger.warning(f"{self.page_path} not found, starting from the default page template.")
        return DEFAULT_PAGE_TEMPLATE

    def render(
        self,
        games: List[Game],
        predictions: Mapping[str, PredictionSet],
        now: Optional[datetime] = None,
    ) -> Path:
        """Rewrites the page's data block and last-updated marker."""
        now = now or datetime.now(timezone.utc)
        html = self._load_page()
        payload = _script_safe_json(serialize_games(games, predictions))

        if DATA_BLOCK_PATTERN.search(html):
            html = DATA_BLOCK_PATTERN.sub(
                lambda m: f"{m.group(1)}\n{payload}\n{m.group(3)}", html, count=1
            )
        else:
            block = f'<script id="{DATA_BLOCK_ID}" type="application/json">\n{payload}\n</script>\n'
            if "</body>" in html:
                html = html.replace("</body>", block + "</body>", 1)
            else:
                html += block

        marker = f"<!-- last-updated: {now.isoformat()} -->"
        if LAST_UPDATED_PATTERN.search(html):
            html = LAST_UPDATED_PATTERN.sub(marker, html, count=1)
        elif "<head>" in html:
            html = html.replace("<head>", f"<head>\n{marker}", 1)
        else:
            html = f"{marker}\n{html}"

        self.page_path.parent.mkdir(parents=True, exist_ok=True)
        self.page_path.write_text(html, encoding="utf-8")
        logger.success(f"Rendered {len(games)} games to {self.page_path}")
        return self.page_path


def build_site(page_path: str, out_dir: str) -> Path:
    """Copies the rendered page and the static assets beside it into a fresh
    output directory, ready for static hosting."""
    page, out_path = Path(page_path), Path(out_dir)
    root_path = page.parent
    if not page.is_file():
        raise FileNotFoundError(f"Rendered page {page} does not exist")
    if out_path.exists():
        shutil.rmtree(out_path)
    out_path.mkdir(parents=True)

    shutil.copy2(page, out_path / "index.html")
    for asset_dir in ("team-logos", "public"):
        source = root_path / asset_dir
        if source.is_dir():
            shutil.copytree(source, out_path / asset_dir)

    logger.info(f"Static site built in {out_path}")
    return out_path

"""
Mock article feed for local development.

Publishes a batch of realistic sample articles through the normal
NewsPublisher path, so they are persisted and broadcast exactly like
articles posted over HTTP.

Usage:
    python -m global_news.main --memory --seed
"""
from __future__ import annotations

import asyncio
import random
from typing import Any

from global_news.publishing.publisher import NewsPublisher

REGIONS = ("Asia", "Europe", "Africa", "Americas", "Middle East")

ARTICLES: list[tuple[str, str, str]] = [
    # (title, description, category)
    # ── Politics ──────────────────────────────────────────────────
    ("Parliament passes landmark data protection bill", "The bill introduces fines of up to 4% of annual turnover for breaches.", "Politics"),
    ("Coalition talks stall over budget priorities", "Negotiators failed to agree on defence and health spending after a second week of talks.", "Politics"),
    ("Foreign ministers meet ahead of regional summit", "Trade corridors and border security top the agenda.", "Politics"),
    # ── Business ──────────────────────────────────────────────────
    ("Central bank holds rates steady for third month", "Policymakers cited easing inflation but warned of energy price risks.", "Business"),
    ("Shipping costs climb as port congestion worsens", "Container rates on major routes rose 18% week on week.", "Business"),
    ("Startup funding rebounds in third quarter", "Venture investment grew for the first time in six quarters.", "Business"),
    # ── Technology ────────────────────────────────────────────────
    ("New satellite network promises rural broadband", "The first 60 satellites launched on Tuesday.", "Technology"),
    ("Chipmaker unveils low-power processor for phones", "The company claims a 30% gain in battery life.", "Technology"),
    # ── Sports ────────────────────────────────────────────────────
    ("Underdogs stun champions in cup quarter-final", "A late header sealed a 2-1 win in front of a sold-out crowd.", "Sports"),
    ("Marathon record falls in cool conditions", "The winner finished 40 seconds under the previous best.", "Sports"),
    # ── Health ────────────────────────────────────────────────────
    ("Vaccination drive reaches remote villages", "Mobile clinics delivered more than 50,000 doses in a month.", "Health"),
    ("Study links short sleep to higher heart risk", "Researchers followed 20,000 adults over ten years.", "Health"),
    # ── Entertainment ─────────────────────────────────────────────
    ("Film festival opens with debut feature", "The first-time director drew a standing ovation.", "Entertainment"),
    ("Streaming service orders second season of hit drama", "Production begins early next year.", "Entertainment"),
]


def generate_article(rng: random.Random | None = None) -> dict[str, Any]:
    """Build one sample article payload (no _id, no timestamp)."""
    rng = rng or random.Random()
    title, description, category = rng.choice(ARTICLES)
    return {
        "title": title,
        "description": description,
        "image": f"https://picsum.photos/seed/{rng.randrange(10_000)}/800/450",
        "category": category,
        "region": rng.choice(REGIONS),
        "author": rng.choice(("reporter@globalnews.test", "desk@globalnews.test")),
        "isLive": rng.random() < 0.2,
        "breaking_news": rng.random() < 0.15,
        "popular_news": rng.random() < 0.3,
    }


async def seed(
    publisher: NewsPublisher,
    count: int = 20,
    *,
    interval: float = 0.0,
    rng: random.Random | None = None,
) -> int:
    """Publish `count` sample articles, optionally spaced by `interval` seconds."""
    rng = rng or random.Random()
    for i in range(count):
        await publisher.publish(generate_article(rng))
        if interval and i < count - 1:
            await asyncio.sleep(interval)
    return count

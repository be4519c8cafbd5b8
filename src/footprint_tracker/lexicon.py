"""Keyword and domain-pattern tables shared by the categorizer and heuristics.

Bump ``LEXICON_VERSION`` whenever a table changes so stored analyses can be
traced back to the vocabulary that produced them.
"""

from __future__ import annotations

LEXICON_VERSION = "1.0.0"

PRODUCTIVITY = "productivity"
ENTERTAINMENT = "entertainment"
SOCIAL = "social"
NEWS = "news"
SHOPPING = "shopping"
EDUCATION = "education"
HEALTH = "health"
FINANCE = "finance"
WORK = "work"
OTHER = "other"

PRODUCTIVE_CATEGORIES: frozenset[str] = frozenset({PRODUCTIVITY, EDUCATION, WORK})
DISTRACTING_CATEGORIES: frozenset[str] = frozenset({ENTERTAINMENT, SOCIAL})

# Category order is significant: the first category with a matching pattern wins.
DEFAULT_CATEGORY_PATTERNS: dict[str, tuple[str, ...]] = {
    PRODUCTIVITY: (
        "github.com",
        "gitlab.com",
        "stackoverflow.com",
        "docs.google.com",
        "notion.so",
        "trello.com",
        "asana.com",
        "slack.com",
        "discord.com",
        "zoom.us",
        "teams.microsoft.com",
        "atlassian.net",
        "jira.",
        "confluence.",
        "drive.google.com",
        "dropbox.com",
        "onedrive.",
        "figma.com",
        "canva.com",
    ),
    ENTERTAINMENT: (
        "youtube.com",
        "netflix.com",
        "hulu.com",
        "disney.",
        "prime.video",
        "spotify.com",
        "soundcloud.com",
        "twitch.tv",
        "gaming.",
        "steam.",
        "epic.games",
        "xbox.com",
        "playstation.com",
        "ign.com",
        "gamespot.com",
        "imdb.com",
        "rottentomatoes.com",
        "metacritic.com",
    ),
    SOCIAL: (
        "facebook.com",
        "instagram.com",
        "twitter.com",
        "x.com",
        "linkedin.com",
        "snapchat.com",
        "tiktok.com",
        "reddit.com",
        "pinterest.com",
        "tumblr.com",
        "whatsapp.com",
        "telegram.org",
        "signal.org",
        "mastodon.",
    ),
    NEWS: (
        "cnn.com",
        "bbc.com",
        "reuters.com",
        "ap.org",
        "nytimes.com",
        "wsj.com",
        "guardian.co.uk",
        "washingtonpost.com",
        "foxnews.com",
        "npr.org",
        "bloomberg.com",
        "techcrunch.com",
        "wired.com",
        "arstechnica.com",
        "theverge.com",
        "engadget.com",
        "gizmodo.com",
    ),
    SHOPPING: (
        "amazon.com",
        "ebay.com",
        "walmart.com",
        "target.com",
        "bestbuy.com",
        "shopify.com",
        "etsy.com",
        "alibaba.com",
        "aliexpress.com",
        "wish.com",
        "nike.com",
        "adidas.com",
        "zara.com",
        "h&m.com",
    ),
    EDUCATION: (
        "coursera.org",
        "udemy.com",
        "khan.academy",
        "edx.org",
        "pluralsight.com",
        "lynda.com",
        "skillshare.com",
        "masterclass.com",
        "mit.edu",
        "stanford.edu",
        "harvard.edu",
        "wikipedia.org",
        "scholar.google.com",
        "researchgate.net",
    ),
    HEALTH: (
        "webmd.com",
        "mayoclinic.org",
        "healthline.com",
        "nih.gov",
        "cdc.gov",
        "who.int",
        "myfitnesspal.com",
        "fitbit.com",
        "strava.com",
        "headspace.com",
        "calm.com",
    ),
    FINANCE: (
        "mint.com",
        "chase.com",
        "bankofamerica.com",
        "wellsfargo.com",
        "paypal.com",
        "venmo.com",
        "robinhood.com",
        "fidelity.com",
        "schwab.com",
        "vanguard.com",
        "coinbase.com",
        "binance.com",
        "bloomberg.com",
    ),
    WORK: (
        "office.com",
        "gmail.com",
        "outlook.com",
        "calendar.google.com",
        "salesforce.com",
        "hubspot.com",
        "mailchimp.com",
        "zapier.com",
    ),
}

POSITIVE_WORDS: tuple[str, ...] = (
    "amazing",
    "awesome",
    "brilliant",
    "excellent",
    "fantastic",
    "great",
    "happy",
    "love",
    "perfect",
    "wonderful",
    "good",
    "best",
    "beautiful",
    "inspiring",
    "incredible",
    "outstanding",
    "remarkable",
    "success",
    "achievement",
    "celebration",
    "joy",
    "excited",
    "thrilled",
    "grateful",
)

NEGATIVE_WORDS: tuple[str, ...] = (
    "terrible",
    "awful",
    "horrible",
    "bad",
    "hate",
    "worst",
    "disgusting",
    "angry",
    "frustrated",
    "disappointed",
    "sad",
    "depressed",
    "crisis",
    "disaster",
    "failure",
    "problem",
    "issue",
    "concern",
    "worry",
    "fear",
    "anxiety",
    "stress",
    "conflict",
    "violence",
    "death",
    "destruction",
)

BIAS_INDICATORS: tuple[str, ...] = (
    "always",
    "never",
    "all",
    "none",
    "everyone",
    "nobody",
    "obviously",
    "clearly",
    "undoubtedly",
    "definitely",
    "absolutely",
    "completely",
    "totally",
    "utterly",
    "entirely",
    "without question",
    "no doubt",
)

HARM_INDICATORS: tuple[str, ...] = (
    "violence",
    "violent",
    "kill",
    "murder",
    "suicide",
    "self-harm",
    "hate",
    "harassment",
    "bullying",
    "discrimination",
    "racism",
    "sexism",
    "extremist",
    "terrorist",
    "weapon",
    "bomb",
    "drug",
)

INFORMATIVE_PHRASES: tuple[str, ...] = (
    "according to",
    "research shows",
    "study finds",
    "data indicates",
    "statistics",
    "evidence",
    "peer-reviewed",
    "scientific",
    "academic",
)

TOPIC_KEYWORDS: dict[str, tuple[str, ...]] = {
    "Technology": (
        "tech",
        "software",
        "hardware",
        "computer",
        "programming",
        "coding",
        "ai",
        "machine learning",
        "blockchain",
        "cryptocurrency",
    ),
    "Politics": (
        "politics",
        "government",
        "election",
        "democracy",
        "policy",
        "legislation",
        "congress",
        "senate",
        "president",
        "vote",
    ),
    "Sports": (
        "sports",
        "football",
        "basketball",
        "soccer",
        "baseball",
        "tennis",
        "olympics",
        "championship",
        "team",
        "game",
    ),
    "Health": (
        "health",
        "medical",
        "medicine",
        "doctor",
        "hospital",
        "treatment",
        "therapy",
        "fitness",
        "nutrition",
        "wellness",
    ),
    "Entertainment": (
        "movie",
        "film",
        "music",
        "concert",
        "celebrity",
        "actor",
        "singer",
        "album",
        "show",
        "entertainment",
    ),
    "Business": (
        "business",
        "company",
        "market",
        "stock",
        "economy",
        "finance",
        "investment",
        "startup",
        "entrepreneur",
        "corporate",
    ),
    "Science": (
        "science",
        "research",
        "study",
        "experiment",
        "discovery",
        "theory",
        "biology",
        "chemistry",
        "physics",
        "astronomy",
    ),
    "Travel": (
        "travel",
        "vacation",
        "trip",
        "tourism",
        "destination",
        "flight",
        "hotel",
        "adventure",
        "culture",
        "explore",
    ),
}

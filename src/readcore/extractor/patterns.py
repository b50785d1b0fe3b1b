"""
Static pattern and tag tables used by the readerable check and the extractor.

Kept apart from the scoring control flow so they can be tested and tuned
independently. Bump ``PATTERNS_VERSION`` whenever a table changes in a way
that alters extraction output.
"""

from __future__ import annotations

import re

PATTERNS_VERSION = "2024.1"

# ============================================================================
# Name-based candidate patterns (matched against "class id")
# ============================================================================

UNLIKELY_CANDIDATES = re.compile(
    r"-ad-|ai2html|banner|breadcrumbs|combx|comment|community|cover-wrap|disqus|extra|footer|gdpr|header|"
    r"legends|menu|related|remark|replies|rss|shoutbox|sidebar|skyscraper|social|sponsor|supplemental|"
    r"ad-break|agegate|pagination|pager|popup|yom-remote",
    re.IGNORECASE,
)
MAYBE_CANDIDATE = re.compile(r"and|article|body|column|content|main|shadow", re.IGNORECASE)

POSITIVE = re.compile(
    r"article|body|content|entry|hentry|h-entry|main|page|pagination|post|text|blog|story",
    re.IGNORECASE,
)
NEGATIVE = re.compile(
    r"-ad-|hidden|^hid$| hid$| hid |^hid |banner|combx|comment|com-|contact|footer|gdpr|masthead|media|meta|"
    r"outbrain|promo|related|scroll|share|shoutbox|sidebar|skyscraper|sponsor|shopping|tags|widget",
    re.IGNORECASE,
)
BYLINE = re.compile(r"byline|author|dateline|writtenby|p-author", re.IGNORECASE)
SHARE_ELEMENTS = re.compile(r"(\b|_)(share|sharedaddy)(\b|_)", re.IGNORECASE)

# ============================================================================
# Text patterns
# ============================================================================

NORMALIZE = re.compile(r"\s{2,}")
WHITESPACE = re.compile(r"^\s*$")
HAS_CONTENT = re.compile(r"\S$")
HASH_URL = re.compile(r"^#.+")
TOKENIZE = re.compile(r"\W+")
COMMAS = re.compile("[\u002C\u060C\uFE50\uFE10\uFE11\u2E41\u2E34\u2E32\uFF0C]")
SENTENCE_END = re.compile(r"\.( |$)")
AD_WORDS = re.compile(
    r"^(ad(vertising|vertisement)?|pub(licité)?|werb(ung)?|广告|Реклама|Anuncio)$",
    re.IGNORECASE,
)
LOADING_WORDS = re.compile(r"^((loading|正在加载|Загрузка|chargement|cargando)(…|\.\.\.)?)$", re.IGNORECASE)

# ============================================================================
# Media and URL patterns
# ============================================================================

VIDEOS = re.compile(
    r"//(www\.)?((dailymotion|youtube|youtube-nocookie|player\.vimeo|v\.qq)\.com|"
    r"(archive|upload\.wikimedia)\.org|player\.twitch\.tv)",
    re.IGNORECASE,
)
SRCSET_URL = re.compile(r"(\S+)(\s+[\d.]+[xw])?(\s*(?:,|$))")
B64_DATA_URL = re.compile(r"^data:\s*([^\s;,]+)\s*;\s*base64\s*,", re.IGNORECASE)
IMAGE_EXTENSION = re.compile(r"\.(jpg|jpeg|png|webp)", re.IGNORECASE)
SRCSET_CANDIDATE = re.compile(r"\.(jpg|jpeg|png|webp)\s+\d")
SRC_CANDIDATE = re.compile(r"^\s*\S+\.(jpg|jpeg|png|webp)\S*\s*$")

# ============================================================================
# Metadata patterns
# ============================================================================

META_PROPERTY = re.compile(
    r"\s*(article|dc|dcterm|og|twitter)\s*:\s*(author|creator|description|published_time|title|site_name)\s*",
    re.IGNORECASE,
)
META_NAME = re.compile(
    r"^\s*(?:(dc|dcterm|og|twitter|parsely|weibo:(article|webpage))\s*[-\.:]\s*)?"
    r"(author|creator|pub-date|description|title|site_name)\s*$",
    re.IGNORECASE,
)
JSON_LD_ARTICLE_TYPES = re.compile(
    r"^Article|AdvertiserContentArticle|NewsArticle|AnalysisNewsArticle|AskPublicNewsArticle|"
    r"BackgroundNewsArticle|OpinionNewsArticle|ReportageNewsArticle|ReviewNewsArticle|Report|"
    r"SatiricalArticle|ScholarlyArticle|MedicalScholarlyArticle|SocialMediaPosting|BlogPosting|"
    r"LiveBlogPosting|DiscussionForumPosting|TechArticle|APIReference$"
)
SCHEMA_DOT_ORG = re.compile(r"^https?://schema\.org/?$")
CDATA_WRAPPER = re.compile(r"^\s*<!\[CDATA\[|\]\]>\s*$")

TITLE_SEPARATORS = re.compile(r" [\|\-\\/>»] ")
TITLE_HIERARCHICAL_SEPARATORS = re.compile(r" [\\/>»] ")
TITLE_BEFORE_LAST_SEPARATOR = re.compile(r"(.*)[\|\-\\/>»] .*")
TITLE_AFTER_FIRST_SEPARATOR = re.compile(r"[^\|\-\\/>»]*[\|\-\\/>»](.*)")
TITLE_SEPARATOR_RUN = re.compile(r"[\|\-\\/>»]+")

# ============================================================================
# Tag tables
# ============================================================================

UNLIKELY_ROLES = frozenset({"menu", "menubar", "complementary", "navigation", "alert", "alertdialog", "dialog"})

DIV_TO_P_ELEMS = frozenset({"blockquote", "dl", "div", "img", "ol", "p", "pre", "table", "ul"})

ALTER_TO_DIV_EXCEPTIONS = frozenset({"div", "article", "section", "p", "ol", "ul"})

PRESENTATIONAL_ATTRIBUTES = (
    "align",
    "background",
    "bgcolor",
    "border",
    "cellpadding",
    "cellspacing",
    "frame",
    "hspace",
    "rules",
    "style",
    "valign",
    "vspace",
)

DEPRECATED_SIZE_ATTRIBUTE_ELEMS = frozenset({"table", "th", "td", "hr", "pre"})

PHRASING_ELEMS = frozenset(
    {
        "abbr",
        "audio",
        "b",
        "bdo",
        "br",
        "button",
        "cite",
        "code",
        "data",
        "datalist",
        "dfn",
        "em",
        "embed",
        "i",
        "img",
        "input",
        "kbd",
        "label",
        "mark",
        "math",
        "meter",
        "noscript",
        "object",
        "output",
        "progress",
        "q",
        "ruby",
        "samp",
        "script",
        "select",
        "small",
        "span",
        "strong",
        "sub",
        "sup",
        "textarea",
        "time",
        "var",
        "wbr",
    }
)

DEFAULT_TAGS_TO_SCORE = frozenset({"section", "h2", "h3", "h4", "h5", "h6", "p", "td", "pre"})

# Class tokens that survive class stripping regardless of configuration.
CLASSES_TO_PRESERVE = ("page",)

EMBED_TAGS = frozenset({"object", "embed", "iframe"})
HEADING_TAGS = ("h1", "h2", "h3", "h4", "h5", "h6")
DATA_TABLE_DESCENDANTS = ("col", "colgroup", "tfoot", "thead", "th")

# Readerable check: elements considered as content nodes.
READERABLE_NODE_TAGS = frozenset({"p", "pre", "article"})

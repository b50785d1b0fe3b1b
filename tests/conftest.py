"""
Test configuration for ReadCore.

Registers markers and provides sample documents shared across the suite.
"""

import pytest

from readcore.parser import parse_document

# ============================================================================
# Pytest Configuration
# ============================================================================


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests for individual components")
    config.addinivalue_line("markers", "integration: End-to-end extraction tests")
    config.addinivalue_line("markers", "property: Property-based tests driven by hypothesis")


# ============================================================================
# Sample documents
# ============================================================================

ARTICLE_URL = "https://example.com/articles/tomatoes.html"

PARAGRAPHS = [
    "Growing tomatoes on a small balcony is easier than most people expect, provided the plants get at least "
    "six hours of direct sun, a deep container, and a steady supply of water during the hottest weeks.",
    "Start with a pot that holds at least twenty litres of soil, because cramped roots dry out quickly and the "
    "fruit splits when watering is irregular. Good drainage matters just as much as volume.",
    "Choose compact varieties bred for containers. Cherry tomatoes, dwarf bush types and hanging basket "
    "cultivars all crop heavily, stay manageable, and rarely need the tall cages that vining types demand.",
    "Feed the plants every two weeks once the first flowers open, using a fertiliser rich in potassium, and "
    "pinch out side shoots on cordon varieties so the energy goes into fruit rather than leaves.",
    "Harvest the fruit when it is fully coloured but still firm, and keep picking regularly. A well kept "
    "balcony plant can keep producing from midsummer until the first cold nights of autumn arrive.",
]

ARTICLE_HTML = """<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<title>Growing Tomatoes on a Balcony | Garden Notes</title>
<meta name="author" content="Ada Gardener">
<meta property="og:site_name" content="Garden Notes">
<meta property="og:description" content="How to grow tomatoes in containers.">
<meta property="article:published_time" content="2024-03-01T09:00:00Z">
</head>
<body>
<nav class="menu"><a href="/">Home</a> <a href="/about">About us</a> <a href="/archive">Archive</a></nav>
<div id="main">
<article class="post">
<h1>Growing Tomatoes on a Balcony</h1>
<p class="caption intro">{p0}</p>
<p>{p1} See the <a href="/guides/soil">soil guide</a> for mixes.</p>
<p>{p2}</p>
<p>{p3}</p>
<p>{p4} <a href="javascript:void(0)">Share this</a></p>
<p><img src="images/tomatoes.jpg" alt="Ripe tomatoes"></p>
</article>
</div>
<footer class="footer"><p>Copyright Garden Notes. All rights reserved. Contact the editors for reprints.</p></footer>
</body>
</html>
""".format(
    p0=PARAGRAPHS[0], p1=PARAGRAPHS[1], p2=PARAGRAPHS[2], p3=PARAGRAPHS[3], p4=PARAGRAPHS[4]
)


@pytest.fixture
def article_html():
    """Markup of a small article page with navigation, footer and meta tags."""
    return ARTICLE_HTML


@pytest.fixture
def article_document():
    """Freshly parsed article page; extraction consumes it."""
    return parse_document(ARTICLE_HTML, base_uri=ARTICLE_URL)


@pytest.fixture
def article_paragraphs():
    return list(PARAGRAPHS)

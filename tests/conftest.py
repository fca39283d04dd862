"""
Shared fixtures: static pages played by ``HtmlDocument``.
"""

import pytest

from navvra.document.html import HtmlDocument
from navvra.models import Category, ElementDescriptor, ElementType


WELCOME_PAGE = """
<html>
<head><title>Welcome Home</title></head>
<body>
  <nav>
    <a href="/">Home</a>
    <a href="/about">About us</a>
  </nav>
  <h1>Welcome Home</h1>
  <p>We build tools for people who read the web.</p>
  <button style="width: 160px; height: 40px">Get Started</button>
  <h2>Features</h2>
  <p>Fast and quiet.</p>
</body>
</html>
"""

SHOP_PAGE = """
<html>
<head><title>Gadget Shop</title></head>
<body>
  <h1>Gadget Shop</h1>
  <div class="ad">Sponsored banner</div>
  <h2>Wireless Headphones</h2>
  <p>Noise cancelling headphones for only $199. Free shipping on every order.</p>
  <button class="primary" width="200" height="48">Add to Cart</button>
  <button>Buy Now</button>
  <a href="/details" class="btn">View details</a>
  <a href="/reviews">Read reviews</a>
  <form action="/search">
    <input type="search" placeholder="Search products">
    <input type="submit" value="Search">
  </form>
  <img src="/headphones.png" alt="Headphones">
</body>
</html>
"""

LOGIN_PAGE = """
<html>
<head><title>Sign in</title></head>
<body>
  <h1>Account login</h1>
  <form id="login" action="/session">
    <input type="email" placeholder="Email">
    <input type="password" placeholder="Password">
    <button type="submit">Log in</button>
    <button type="button">Show password</button>
  </form>
</body>
</html>
"""

EMPTY_PAGE = "<html><head><title></title></head><body></body></html>"


@pytest.fixture
def welcome_document():
    return HtmlDocument(WELCOME_PAGE)


@pytest.fixture
def shop_document():
    return HtmlDocument(SHOP_PAGE)


@pytest.fixture
def login_document():
    return HtmlDocument(LOGIN_PAGE)


@pytest.fixture
def empty_document():
    return HtmlDocument(EMPTY_PAGE)


@pytest.fixture
def make_descriptor():
    """Factory for descriptors with sensible defaults."""
    counter = {"n": 0}

    def _make(text="Item", element_type=ElementType.BUTTON, tag_name=None, **kwargs):
        counter["n"] += 1
        defaults = {
            ElementType.BUTTON: "button",
            ElementType.HEADING: "h2",
            ElementType.LINK: "a",
            ElementType.INPUT: "input",
            ElementType.IMAGE: "img",
        }
        tag = tag_name or defaults[element_type]
        element_id = kwargs.pop("id", f"nv-1-{counter['n']}")
        if element_type == ElementType.HEADING and "level" not in kwargs:
            kwargs["level"] = tag.upper()
        return ElementDescriptor(
            id=element_id,
            text=text,
            element_type=element_type,
            tag_name=tag,
            **kwargs,
        )

    return _make


def _snapshot_descriptor(element_id, text, element_type="button", category=Category.OTHER.value, priority=2,
                         confidence=0.8, **extra):
    """Plain descriptor dict as it appears inside a snapshot."""
    descriptor = {
        "id": element_id,
        "text": text,
        "element_type": element_type,
        "tag_name": extra.pop("tag_name", "button"),
        "attributes": {},
        "width": 0.0,
        "height": 0.0,
        "is_visible": True,
        "level": None,
        "is_main_title": False,
        "is_navigation": False,
        "category": category,
        "confidence": confidence,
        "priority": priority,
    }
    descriptor.update(extra)
    return descriptor


@pytest.fixture
def snapshot_descriptor():
    """Factory for plain descriptor dicts as they appear inside a snapshot."""
    return _snapshot_descriptor

import re

import pytest

from classes.errors import ShortLinkError
from classes.link_store import LinkStore, generate_slug
from classes.settings import create_session_factory


@pytest.fixture
def session_factory(tmp_path):
    return create_session_factory(f"sqlite:///{tmp_path / 'links.db'}")


@pytest.fixture
def store(session_factory):
    store = LinkStore(session_factory, "https://sd.example/")
    store.create_tables()
    return store


def test_generate_slug_alphabet_and_length():
    slug = generate_slug(8)
    assert re.fullmatch(r"[a-z0-9]{8}", slug)


def test_create_and_resolve(store):
    link = store.create_short_link("https://site.netlify.app")

    assert len(link.slug) == 6
    assert link.short_url == f"https://sd.example/s/{link.slug}"
    assert store.get_long_url(link.slug) == "https://site.netlify.app"


def test_unknown_slug(store):
    assert store.get_long_url("zzzzzz") is None


def test_collision_retries_with_longer_slug(session_factory):
    taken = LinkStore(session_factory, "https://sd.example", slug_factory=lambda n: "a" * n)
    taken.create_tables()
    taken.create_short_link("https://first")

    candidates = iter(["aaaaaa", "bbbbbbb"])
    lengths = []

    def slugs(n):
        lengths.append(n)
        return next(candidates)

    store = LinkStore(session_factory, "https://sd.example", slug_factory=slugs)
    link = store.create_short_link("https://second")

    assert lengths == [6, 7]
    assert link.slug == "bbbbbbb"
    assert store.get_long_url("aaaaaa") == "https://first"


def test_gives_up_after_max_retries(session_factory):
    store = LinkStore(session_factory, "https://sd.example", max_retries=3, slug_factory=lambda n: "x" * 6)
    store.create_tables()
    store.create_short_link("https://first")

    with pytest.raises(ShortLinkError):
        store.create_short_link("https://second")


def test_max_slug_length(store):
    assert store.max_slug_length == 10


def test_ping(store):
    assert store.ping() is True

import pytest

from inkpost.domain.slugs import disambiguate_slug, generate_username, slugify


@pytest.mark.parametrize(
    "title,expected",
    [
        ("Hello, World!", "hello-world"),
        ("  --Multiple   spaces--  ", "multiple-spaces"),
        ("Python 3.12 Tips", "python-312-tips"),
        ("!!!", ""),
    ],
)
def test_slugify(title, expected):
    assert slugify(title) == expected


def test_disambiguate_free_slug_unchanged():
    assert disambiguate_slug("post", lambda s: False) == "post"


def test_disambiguate_appends_first_free_suffix():
    taken = {"post", "post-2"}
    assert disambiguate_slug("post", taken.__contains__) == "post-3"


def test_disambiguate_gives_up():
    with pytest.raises(ValueError):
        disambiguate_slug("post", lambda s: True, max_suffix=5)


def test_generate_username_from_email():
    assert generate_username("John.Doe+x@example.com", lambda s: False, rand=lambda: 42) == (
        "johndoex0042"
    )


def test_generate_username_collision_appends_counter():
    taken = {"ada1234", "ada12341"}
    assert generate_username("ada@example.com", taken.__contains__, rand=lambda: 1234) == (
        "ada12342"
    )


def test_generate_username_empty_local_part():
    assert generate_username("...@example.com", lambda s: False, rand=lambda: 7) == "user0007"

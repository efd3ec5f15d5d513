"""Field extraction from Taji100 pages.

Each function takes a page body and returns one typed value or raises
ScrapeError. Markup changes on the site should only ever need edits here.
"""

import re
from typing import Union

from bs4 import BeautifulSoup

from ..errors import ScrapeError

__all__ = [
    "extract_form_token",
    "extract_participant_id",
    "extract_entry_ids",
    "extract_entry_date",
    "extract_entry_time",
    "is_login_page",
]

Page = Union[str, bytes]

FORM_TOKEN_FIELD = "csrfmiddlewaretoken"
MY_PAGE_LABEL = "My Page"

_PARTICIPANT_HREF = re.compile(r"^/participants/([^/]+)/$")
_EDIT_HREF = re.compile(r"^/log/([^/]+)/edit$")


def _soup(page: Page) -> BeautifulSoup:
    return BeautifulSoup(page, "html.parser")


def extract_form_token(page: Page) -> str:
    """Anti-forgery token from the page's hidden form field."""
    field = _soup(page).find("input", attrs={"name": FORM_TOKEN_FIELD})
    if field is None or not field.get("value"):
        raise ScrapeError(f"No {FORM_TOKEN_FIELD} field on page")
    return field["value"]


def extract_participant_id(page: Page) -> str:
    """Participant id from the "My Page" navigation link."""
    for link in _soup(page).find_all("a", href=_PARTICIPANT_HREF):
        if link.get_text(strip=True) == MY_PAGE_LABEL:
            return _PARTICIPANT_HREF.match(link["href"]).group(1)
    raise ScrapeError(f'No "{MY_PAGE_LABEL}" link on page')


def extract_entry_ids(page: Page) -> list[str]:
    """Ids of all /log/{id}/edit links, in page order, without repeats.

    A profile with no entries yields an empty list.
    """
    ids = (
        _EDIT_HREF.match(link["href"]).group(1)
        for link in _soup(page).find_all("a", href=_EDIT_HREF)
    )
    return list(dict.fromkeys(ids))


def extract_entry_date(page: Page) -> str:
    """Date value of the checked date choice on an entry edit form."""
    soup = _soup(page)
    field = soup.find("input", attrs={"name": "date", "checked": True, "value": True})
    if field is None:
        field = soup.find("input", attrs={"checked": True, "value": True})
    if field is None:
        raise ScrapeError("No checked date field on entry page")
    return field["value"]


def extract_entry_time(page: Page) -> str:
    """Value of the time field on an entry edit form."""
    field = _soup(page).find("input", attrs={"name": "time", "value": True})
    if field is None:
        raise ScrapeError("No time field on entry page")
    return field["value"]


def is_login_page(url: str) -> bool:
    """Whether a (post-redirect) URL is the site's login page."""
    return "/account/login/" in url

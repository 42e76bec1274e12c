from urllib.parse import urljoin

# HTML parsing
from bs4 import BeautifulSoup
from bs4.element import Comment as bs4_comment
# URL normalization
from url_normalize import url_normalize

from . import log
from .utils import MAX_URL_LENGTH, SOUP_PARSER, VALID_PROTOCOLS

logger = log.logger()

_nontext_tags = ['head', 'meta', 'script', 'style', 'title', '[document]']

_ignored_href_prefixes = ('#', 'javascript:', 'mailto:', 'tel:')

class ParseResult:
    def __init__(self, title="", text="", outlinks=None):
        self.title = title
        self.text = text
        self.outlinks = outlinks if outlinks is not None else []

def _is_relevant_text(soup_element):
    if soup_element.parent is not None and \
       soup_element.parent.name in _nontext_tags:
        return False
    if isinstance(soup_element, bs4_comment):
        return False
    if str(soup_element).strip() == '':
        return False
    return True

# find_relevant_text returns a string with the first num_relevant_words words
# of visible text in the given BeautifulSoup object.
def find_relevant_text(soup, num_relevant_words=50):
    relevant_words = []
    for element in soup.find_all(string=True):
        if _is_relevant_text(element):
            relevant_words.extend(str(element).split())

        if len(relevant_words) >= num_relevant_words:
            break

    return " ".join(relevant_words[:num_relevant_words])

# normalize_href resolves an href against the page it was found on. It
# returns None for anything that is not a fetchable http(s) URL.
def normalize_href(parent_url, href):
    if href is None:
        return None
    href = href.strip()
    if href == '' or href.startswith(_ignored_href_prefixes):
        return None

    absolute = urljoin(parent_url, href)
    if absolute.split("://")[0].lower() not in VALID_PROTOCOLS:
        return None

    try:
        normalized_url = url_normalize(absolute)
    except Exception as e:
        logger.debug(f"Unable to normalize href '{href}': {e}")
        return None

    # Fragments never change the fetched document.
    normalized_url = normalized_url.split('#')[0]
    if len(normalized_url) > MAX_URL_LENGTH:
        return None
    return normalized_url

def parse_html(url, data):
    soup = BeautifulSoup(data, SOUP_PARSER)

    title = ""
    if soup.title is not None and soup.title.string is not None:
        title = soup.title.string.strip()

    outlinks = []
    seen = set()
    for link in soup.find_all('a'):
        normalized_url = normalize_href(url, link.attrs.get('href'))
        if normalized_url is None or normalized_url in seen:
            continue
        seen.add(normalized_url)
        outlinks.append(normalized_url)

    return ParseResult(title=title, text=find_relevant_text(soup),
                       outlinks=outlinks)

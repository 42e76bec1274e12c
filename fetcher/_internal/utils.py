from urllib.parse import urlsplit

# URL normalization
from url_normalize import url_normalize

# Read-only global variables
STATUS_SUCCESS = "SUCCESS"
STATUS_FAILED = "FAILED"
HTTP_SCHEME = "http"
HTTPS_SCHEME = "https"
VALID_PROTOCOLS = [HTTP_SCHEME, HTTPS_SCHEME]
DEFAULT_PROTOCOL = HTTPS_SCHEME
VALID_CONTENT_TYPE = "text/html"
SOUP_PARSER = "html.parser"
CONTENT_TYPE_KEY = "Content-Type"
MAX_URL_LENGTH = 2048

def fetch_run_result(status, dispatched=0, fetched=0, failed=0, reason=""):
    result = {}
    result['Status'] = status
    result['Dispatched'] = dispatched
    result['Fetched'] = fetched
    result['Failed'] = failed
    if reason != '':
        result['Reason'] = reason
    return result

def between(n, left, right):
    return left <= n and n <= right

def normalize(url):
    if "://" not in url:
        url = DEFAULT_PROTOCOL + "://" + url
    return url_normalize(url)

def host_of_url(url):
    host = urlsplit(url).hostname
    if host is None:
        raise ValueError(f"url '{url}' has no host")
    return host

# reverse_url turns an URL into a host-first storage key, so that all pages
# of a host (and of a domain) sort next to each other. For example
#
#   http://bar.foo.com:8983/to/index.html?a=b
#
# becomes
#
#   com.foo.bar:http:8983/to/index.html?a=b
#
# IPv6 literals have no labels to reverse and keep their brackets, so the
# colons inside them never mix with the key separators:
#
#   http://[::1]:8080/x  ->  [::1]:http:8080/x
def reverse_url(url):
    parts = urlsplit(normalize(url))
    if parts.scheme not in VALID_PROTOCOLS:
        raise ValueError(f"unsupported protocol in url '{url}'")

    host = parts.hostname
    if not host:
        raise ValueError(f"url '{url}' has no host")

    if ":" in host:
        key = "[" + host + "]"
    else:
        key = ".".join(reversed(host.split(".")))
    key += ":" + parts.scheme
    if parts.port is not None:
        key += ":" + str(parts.port)

    key += parts.path or "/"
    if parts.query:
        key += "?" + parts.query
    return key

def unreverse_url(key):
    if key.startswith("["):
        end = key.find("]")
        if end == -1:
            raise ValueError(f"malformed url key '{key}'")
        host = key[:end + 1]
        rest = key[end + 1:]
        if not rest.startswith(":"):
            raise ValueError(f"malformed url key '{key}'")
        rest = rest[1:]
    else:
        host = None
        rest = key

    slash = rest.find("/")
    if slash == -1:
        head, path = rest, "/"
    else:
        head, path = rest[:slash], rest[slash:]

    fields = head.split(":")
    if host is None:
        if len(fields) not in (2, 3):
            raise ValueError(f"malformed url key '{key}'")
        host = ".".join(reversed(fields.pop(0).split(".")))
    elif len(fields) not in (1, 2):
        raise ValueError(f"malformed url key '{key}'")

    if fields[0] == "":
        raise ValueError(f"malformed url key '{key}'")
    url = fields[0] + "://" + host
    if len(fields) == 2:
        url += ":" + fields[1]
    return url + path

def host_of_key(key):
    return host_of_url(unreverse_url(key))

def is_html(content_type):
    return content_type is not None and VALID_CONTENT_TYPE in content_type

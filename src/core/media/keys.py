"""
Object key and URL helpers.

S3 URLs come in two addressing styles and the key has to be recovered
from either one:

    path:           https://s3-ap-southeast-1.amazonaws.com/<bucket>/profile_images/3.png
    virtual-hosted: https://<bucket>.s3-ap-southeast-1.amazonaws.com/profile_images/3.png

Keys are recovered by stripping the scheme, host and bucket segment with
a regular expression; a virtual-hosted URL only carries a bucket segment
in its path when it duplicates the subdomain. Everything here is a
pure function so it can be tested without boto3.
"""

import re
from typing import Iterable, Optional
from urllib.parse import quote, unquote, urlsplit

from .models import AddressingStyle


class InvalidObjectURLError(ValueError):
    """Raised when a URL does not reference an object in a bucket."""
    pass


# s3.amazonaws.com, s3-ap-southeast-1.amazonaws.com, s3.ap-southeast-1.amazonaws.com,
# s3.dualstack.us-east-1.amazonaws.com, s3.cn-north-1.amazonaws.com.cn
_PATH_STYLE_HOST = re.compile(
    r"^s3(?:[.-](?:dualstack\.)?[a-z]{2}(?:-gov)?-[a-z]+-\d+)?\.amazonaws\.com(?:\.cn)?$",
    re.IGNORECASE,
)

# scheme://host/
_HOST_PREFIX = re.compile(r"^[^/]*//[^/]*/", re.IGNORECASE)

# scheme://host/bucket/
_HOST_AND_BUCKET_PREFIX = re.compile(r"^[^/]*//[^/]*/[^/]*/", re.IGNORECASE)

_GLOBAL_HOST = "s3.amazonaws.com"

# <bucket>.s3.<region>.amazonaws.com, <bucket>.s3-<region>.amazonaws.com
_VIRTUAL_HOST_BUCKET = re.compile(r"^(.+?)\.s3[.-]", re.IGNORECASE)


def _host_of(url: str) -> str:
    return (urlsplit(url).hostname or "").lower()


def _strip_query(url: str) -> str:
    parts = urlsplit(url)
    return parts._replace(query="", fragment="").geturl()


def detect_addressing_style(
    url: str,
    path_style_hosts: Iterable[str] = (),
) -> AddressingStyle:
    """
    Work out whether the bucket is in the path or in the host.

    Custom endpoints (MinIO, LocalStack) are always addressed path-style,
    so their hosts can be passed in `path_style_hosts`.
    """
    host = _host_of(url)
    extra = {h.lower() for h in path_style_hosts if h}

    if host in extra or _PATH_STYLE_HOST.match(host):
        return AddressingStyle.PATH
    return AddressingStyle.VIRTUAL_HOSTED


def extract_object_key(
    url: str,
    path_style_hosts: Iterable[str] = (),
) -> str:
    """
    Derive the object key from a full S3 URL.

    Path-style URLs lose the host and the bucket segment. Virtual-hosted
    URLs lose the host, and also a first path segment that repeats the
    bucket named in the subdomain. Query string and fragment are dropped
    and the key is percent-decoded.

    Raises:
        InvalidObjectURLError: the URL has no key component
    """
    bare = _strip_query(url)
    style = detect_addressing_style(bare, path_style_hosts)

    if style is AddressingStyle.PATH:
        pattern = _HOST_AND_BUCKET_PREFIX
    else:
        pattern = _HOST_PREFIX

    if not pattern.match(bare):
        raise InvalidObjectURLError(f"URL does not reference an object: {url}")

    key = unquote(pattern.sub("", bare, count=1))

    if style is AddressingStyle.VIRTUAL_HOSTED:
        key = _drop_bucket_segment(key, _host_of(bare))

    if not key:
        raise InvalidObjectURLError(f"URL does not reference an object: {url}")

    return key


def _drop_bucket_segment(key: str, host: str) -> str:
    # The subdomain already names the bucket; a leading copy in the path is noise.
    match = _VIRTUAL_HOST_BUCKET.match(host)
    if match is None:
        return key

    bucket = match.group(1)
    first, sep, rest = key.partition("/")
    if sep and first == bucket:
        return rest
    return key


def is_s3_url(
    url: str,
    region: str,
    extra_hosts: Iterable[str] = (),
) -> bool:
    """True when the URL points at S3 in `region` or at one of `extra_hosts`."""
    host = _host_of(url)
    if not host:
        return False

    if host in {h.lower() for h in extra_hosts if h}:
        return True

    region = region.lower()
    # us-east-1 is also served from the global endpoint
    if region == "us-east-1" and (
        host == _GLOBAL_HOST or host.endswith("." + _GLOBAL_HOST)
    ):
        return True

    region_domain = f"{region}.amazonaws.com"
    for domain in (region_domain, region_domain + ".cn"):
        if host.endswith("." + domain) or host.endswith("-" + domain):
            return True
    return False


def build_image_key(image_name: str, prefix: str = "profile_images/") -> str:
    """
    Build the key an uploaded image is stored under.

    Names are taken as a single path segment so callers cannot write
    outside the prefix.
    """
    name = image_name.strip()
    if not name:
        raise ValueError("Image name cannot be empty")
    if "/" in name or "\\" in name or ".." in name:
        raise ValueError(f"Image name must be a plain file name: {image_name!r}")

    return f"{prefix}{name}"


def build_object_url(
    endpoint: Optional[str],
    bucket: Optional[str],
    key: Optional[str],
) -> Optional[str]:
    """
    Compose endpoint + bucket + key into a path-style object URL.

    Returns None when any component is missing; callers decide how to fail.
    """
    if not endpoint or not bucket or not key:
        return None

    return f"{endpoint.rstrip('/')}/{quote(bucket)}/{quote(key, safe='/~')}"

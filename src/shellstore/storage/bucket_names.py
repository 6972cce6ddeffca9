"""S3 bucket name normalization.

Turns an arbitrary candidate into a name that satisfies the S3 bucket naming
rules (https://docs.aws.amazon.com/AmazonS3/latest/userguide/bucketnamingrules.html),
or synthesizes a timestamp-based name when no candidate is given.

Repairs applied, in order:
    1. whitespace runs collapse to "-"
    2. truncation to 63 characters
    3. lower-casing

Anything still invalid after the repairs raises BucketNamingError.
"""

from __future__ import annotations

import logging
import re
from datetime import UTC, datetime

from shellstore.storage.errors import BucketNamingError

logger = logging.getLogger(__name__)

MAX_BUCKET_NAME_LENGTH = 63
DEFAULT_FAMILY = "shellstore"

_WHITESPACE_PATTERN = re.compile(r"\s+")
_UPPERCASE_PATTERN = re.compile(r"[A-Z]")
_EDGE_PATTERN = re.compile(r"[a-z\d].*[a-z\d]", re.DOTALL)
_IPV4_PATTERN = re.compile(r"((25[0-5]|(2[0-4]|1\d|[1-9]|)\d)(\.(?!$)|$)){4}")
_VALID_NAME_PATTERN = re.compile(r"[a-z\d.\-]+")
_VALID_CHAR_PATTERN = re.compile(r"[a-z\d.\-]")

RULE_EDGE_CHARACTERS = "edge_characters"
RULE_IP_ADDRESS = "ip_address"
RULE_ADJACENT_PERIODS = "adjacent_periods"
RULE_XN_PREFIX = "xn_prefix"
RULE_S3ALIAS_SUFFIX = "s3alias_suffix"
RULE_CHARACTER_SET = "character_set"


def _timestamp() -> str:
    """Return the current UTC time as yyyyMMddHHmmssSSS."""
    return datetime.now(UTC).strftime("%Y%m%d%H%M%S%f")[:-3]


def default_bucket_name(family: str = DEFAULT_FAMILY) -> str:
    """Synthesize ``<timestamp>-<family>-bucket``."""
    return f"{_timestamp()}-{family}-bucket"


def make_bucket_name(candidate: str | None, family: str = DEFAULT_FAMILY) -> str:
    """Produce an S3 compliant bucket name.

    Args:
        candidate: Requested name, or None to synthesize one.
        family: Document family used in the synthesized name.

    Returns:
        The normalized bucket name.

    Raises:
        BucketNamingError: If the repaired name still violates a naming rule.
    """
    if candidate is None:
        name = default_bucket_name(family)
        logger.info("No bucket name given, using default bucket name '%s'", name)
    else:
        name = candidate

    name = _replace_whitespace(name)
    name = _truncate(name)
    name = _to_lower_case(name)
    check_bucket_name(name)

    logger.info("S3 bucket will be named '%s'", name)
    return name


def check_bucket_name(name: str) -> None:
    """Validate a bucket name against the S3 naming rules.

    Raises:
        BucketNamingError: On the first rule the name violates.
    """
    prefix = "S3 bucket names must "

    if not _EDGE_PATTERN.fullmatch(name):
        _fail(prefix + "begin and end with a letter or number.", RULE_EDGE_CHARACTERS, name)
    if _IPV4_PATTERN.fullmatch(name):
        _fail(
            prefix + "not be formatted as an IP address (for example, 192.168.5.4).",
            RULE_IP_ADDRESS,
            name,
        )
    if ".." in name:
        _fail(prefix + "not contain two adjacent periods.", RULE_ADJACENT_PERIODS, name)
    if name.startswith("xn--"):
        _fail(prefix + "not start with the prefix 'xn--'.", RULE_XN_PREFIX, name)
    if name.endswith("-s3alias"):
        _fail(
            prefix + "not end with the suffix '-s3alias'; it is reserved for access point aliases.",
            RULE_S3ALIAS_SUFFIX,
            name,
        )

    if not _VALID_NAME_PATTERN.fullmatch(name):
        invalid = sorted({c for c in name if not _VALID_CHAR_PATTERN.fullmatch(c)})
        _fail(
            "S3 bucket names can consist only of lowercase letters (a-z), numbers, "
            f"dots (.), and hyphens (-); invalid symbols: {invalid}",
            RULE_CHARACTER_SET,
            name,
            invalid_characters=invalid,
        )


def _fail(
    message: str,
    rule: str,
    name: str,
    *,
    invalid_characters: list[str] | None = None,
) -> None:
    logger.error("%s (bucket name '%s')", message, name)
    raise BucketNamingError(
        message,
        rule=rule,
        bucket=name,
        invalid_characters=invalid_characters,
    )


def _replace_whitespace(name: str, replacement: str = "-") -> str:
    if not _WHITESPACE_PATTERN.search(name):
        return name
    logger.info("S3 bucket names must not contain whitespace; replacing with '%s'", replacement)
    return _WHITESPACE_PATTERN.sub(replacement, name)


def _truncate(name: str) -> str:
    if len(name) <= MAX_BUCKET_NAME_LENGTH:
        return name
    logger.info(
        "S3 bucket names must be at most %d characters long; truncating",
        MAX_BUCKET_NAME_LENGTH,
    )
    return name[:MAX_BUCKET_NAME_LENGTH]


def _to_lower_case(name: str) -> str:
    if not _UPPERCASE_PATTERN.search(name):
        return name
    logger.info("S3 bucket names must be lower case; lower-casing")
    return name.lower()

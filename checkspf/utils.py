# -*- coding: utf-8 -*-
"""DNS utility functions"""

from __future__ import annotations

import logging
import re
import unicodedata
from typing import Literal, Optional, TypedDict, Union
from collections.abc import Callable, Sequence

import dns.exception
import dns.name
import dns.resolver
from dns.nameserver import Nameserver
import publicsuffixlist

from checkspf._constants import DEFAULT_DNS_TIMEOUT

"""Copyright 2019-2023 Sean Whalen

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at

   https://www.apache.org/licenses/LICENSE-2.0

Unless required by applicable law or agreed to in writing, software
distributed under the License is distributed on an "AS IS" BASIS,
WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
See the License for the specific language governing permissions and
limitations under the License."""

ZERO_WIDTH_RE = re.compile(r"[\u200B-\u200D\uFEFF]")  # includes ZWSP, ZWNJ, ZWJ, BOM
WHITESPACE_RE = re.compile(r"\s")
PSL = publicsuffixlist.PublicSuffixList()

TXTLookupStatus = Literal["ok", "nxdomain", "servfail", "no_answer", "transport_error"]

# Statuses that RFC 7208 § 4.6.4 counts as void lookups
VOID_LOOKUP_STATUSES = ("nxdomain", "no_answer")


class TXTLookupResult(TypedDict):
    status: TXTLookupStatus
    records: list[str]
    error: Union[str, None]


TXTLookup = Callable[[str], TXTLookupResult]


class InvalidDomain(ValueError):
    """Raised when a domain name cannot be queried at all"""


def get_base_domain(domain: str) -> str:
    """
    Gets the base domain name for the given domain

    .. note::
        Results are based on a list of public domain suffixes at
        https://publicsuffix.org/list/public_suffix_list.dat.

    Args:
        domain (str): A domain or subdomain

    Returns:
        str: The base domain of the given domain

    """
    domain = normalize_domain(domain)
    return PSL.privatesuffix(domain) or domain


def normalize_domain(domain: str) -> str:
    """
    Normalize an input domain by removing zero-width characters, surrounding
    whitespace, and a trailing dot, and lowering it

    Args:
        domain (str): A domain or subdomain

    Returns:
        str: A normalized domain
    """
    # 1. Normalize Unicode (NFC form for consistency)
    domain = unicodedata.normalize("NFC", domain)
    # 2. Remove zero-width and similar hidden chars
    domain = ZERO_WIDTH_RE.sub("", domain)
    # 3. Trailing dots denote the root; they are not part of the lookup key
    domain = domain.strip().rstrip(".")
    # 4. Lowercase for case-insensitivity (domains are case-insensitive)
    return domain.lower()


def validate_domain(domain: str) -> str:
    """
    Normalizes a domain and checks that it is a syntactically valid DNS name

    Args:
        domain (str): A domain name

    Returns:
        str: The normalized domain

    Raises:
        :exc:`checkspf.utils.InvalidDomain`
    """
    normalized = normalize_domain(domain)
    if normalized == "":
        raise InvalidDomain("A domain name is required.")
    if WHITESPACE_RE.search(normalized):
        raise InvalidDomain(f"{domain!r} is not a valid domain name.")
    try:
        dns.name.from_text(normalized)
    except dns.exception.DNSException as error:
        raise InvalidDomain(f"{domain!r} is not a valid domain name: {error}")
    return normalized


def query_txt(
    domain: str,
    *,
    nameservers: Optional[Sequence[str | Nameserver]] = None,
    resolver: Optional[dns.resolver.Resolver] = None,
    timeout: float = DEFAULT_DNS_TIMEOUT,
) -> list[str]:
    """
    Queries DNS for TXT records, once, without retries or caching

    Args:
        domain (str): The domain or subdomain to query about
        nameservers (list): A list of one or more nameservers to use
        resolver (dns.resolver.Resolver): A resolver object to use for DNS
                                          requests
        timeout (float): Sets the DNS timeout in seconds

    Returns:
        list: A list of TXT records, each with its character-strings joined

    Raises:
        :exc:`dns.exception.DNSException`
    """
    domain = normalize_domain(domain)
    if not resolver:
        resolver = dns.resolver.Resolver()
        timeout = float(timeout)
        if nameservers is not None:
            resolver.nameservers = nameservers
        resolver.timeout = timeout
        resolver.lifetime = timeout
    answers = resolver.resolve(domain, "TXT", lifetime=timeout)
    resource_records = list(
        map(
            lambda r: r.strings,
            answers,
        )
    )
    records = []
    for resource_record in resource_records:
        if not resource_record:
            continue
        # RFC 7208 § 3.3: multiple character-strings are joined without spaces
        joined = b"".join(resource_record)
        try:
            record = joined.decode()
        except UnicodeDecodeError:
            logging.warning(f"A TXT record at {domain} contains undecodable characters")
            record = joined.decode(errors="replace")
        records.append(record)

    return records


def lookup_txt(
    domain: str,
    *,
    nameservers: Optional[Sequence[str | Nameserver]] = None,
    resolver: Optional[dns.resolver.Resolver] = None,
    timeout: float = DEFAULT_DNS_TIMEOUT,
) -> TXTLookupResult:
    """
    Issues one TXT query and classifies the outcome instead of raising

    Args:
        domain (str): A domain name
        nameservers (list): A list of nameservers to query
        resolver (dns.resolver.Resolver): A resolver object to use for DNS
                                          requests
        timeout (float): number of seconds to wait for an answer from DNS

    Returns:
        dict: A ``dict`` with the following keys:
            - ``status`` - ``ok``, ``nxdomain``, ``servfail``, ``no_answer``,
              or ``transport_error``
            - ``records`` - A ``list`` of TXT record strings
            - ``error`` - A description of the failure, or ``None``
    """
    logging.debug(f"Getting TXT records for {domain}")
    try:
        records = query_txt(
            domain,
            nameservers=nameservers,
            resolver=resolver,
            timeout=timeout,
        )
    except dns.resolver.NXDOMAIN:
        return {
            "status": "nxdomain",
            "records": [],
            "error": "The domain does not exist.",
        }
    except dns.resolver.NoAnswer:
        return {
            "status": "no_answer",
            "records": [],
            "error": f"The domain {domain} does not have any TXT records.",
        }
    except dns.resolver.NoNameservers as error:
        return {"status": "servfail", "records": [], "error": str(error)}
    except dns.exception.Timeout as error:
        return {"status": "transport_error", "records": [], "error": str(error)}
    except Exception as error:
        logging.debug(f"TXT lookup for {domain} failed: {error!r}")
        return {"status": "transport_error", "records": [], "error": str(error)}

    return {"status": "ok", "records": records, "error": None}

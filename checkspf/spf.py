# -*- coding: utf-8 -*-
"""Sender Policy framework (SPF) record resolution and validation"""

from __future__ import annotations

import functools
import ipaddress
import logging
import re
import threading
import time
from typing import Literal, Optional, TypedDict, Union
from collections.abc import Sequence

import dns.resolver
from dns.nameserver import Nameserver
import pyleri

from checkspf._constants import (
    DEFAULT_DNS_TIMEOUT,
    MAX_RECURSION_DEPTH,
    MAX_VOID_DNS_LOOKUPS,
    SPF_RECORD_MAX_BYTES,
    SPF_RECORD_UDP_BYTES,
    SYNTAX_ERROR_MARKER,
)
from checkspf.utils import (
    VOID_LOOKUP_STATUSES,
    TXTLookup,
    lookup_txt,
    normalize_domain,
    validate_domain,
)

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

SPF_VERSION_TAG_REGEX_STRING = r"v=spf1(?=\s|$)"
SPF_TXT_PREFIX = "v=spf1"
QUALIFIER_REGEX_STRING = r"([+\-~?])?"

SPF_ALL_REGEX = re.compile(rf"^{QUALIFIER_REGEX_STRING}all$", re.IGNORECASE)
SPF_INCLUDE_REGEX = re.compile(
    rf"^{QUALIFIER_REGEX_STRING}include:(\S+)$", re.IGNORECASE
)
SPF_REDIRECT_REGEX = re.compile(r"^redirect=(\S+)$", re.IGNORECASE)
SPF_EXP_REGEX = re.compile(r"^exp=(\S+)$", re.IGNORECASE)
SPF_IP4_REGEX = re.compile(rf"^{QUALIFIER_REGEX_STRING}ip4:(\S+)$", re.IGNORECASE)
SPF_IP6_REGEX = re.compile(rf"^{QUALIFIER_REGEX_STRING}ip6:(\S+)$", re.IGNORECASE)
SPF_A_REGEX = re.compile(rf"^{QUALIFIER_REGEX_STRING}a([:/]\S*)?$", re.IGNORECASE)
SPF_MX_REGEX = re.compile(rf"^{QUALIFIER_REGEX_STRING}mx([:/]\S*)?$", re.IGNORECASE)
SPF_PTR_REGEX = re.compile(rf"^{QUALIFIER_REGEX_STRING}ptr(:\S*)?$", re.IGNORECASE)
SPF_EXISTS_REGEX = re.compile(
    rf"^{QUALIFIER_REGEX_STRING}exists:(\S+)$", re.IGNORECASE
)

# RFC 7208 § 7.1: "%{" macro-letter transformers *delimiter "}", or an escape
SPF_MACRO_REGEX = re.compile(
    r"%(?:\{[slodiphcrtv](?:[1-9][0-9]*)?r?[.\-+,/_=]*\}|[%_\-])", re.IGNORECASE
)
QUOTED_TXT_SEGMENT_REGEX = re.compile(r'"([^"]*)"')
SPF_VERSION_TAG_REGEX = re.compile(rf"^{SPF_VERSION_TAG_REGEX_STRING}")


class SPFError(Exception):
    """Raised when a fatal SPF error occurs"""

    def __init__(self, msg: str, data: Optional[dict] = None):
        """
        Args:
            msg (str): The error message
            data (dict): A dictionary of data to include in the output
        """
        self.data = data
        Exception.__init__(self, msg)


class SPFSyntaxError(SPFError):
    """Raised when an SPF syntax error is found"""


class SPFRecordNotFound(SPFError):
    """Raised when an SPF record could not be found"""

    status = "no_spf"

    def __init__(
        self,
        error: Union[Exception, str],
        domain: str,
        status: Optional[str] = None,
    ):
        self.error = error
        self.domain = domain
        if status is not None:
            self.status = status
        SPFError.__init__(self, str(error), data={"domain": domain})

    def __str__(self):
        return str(self.error)


class SPFNXDOMAIN(SPFRecordNotFound):
    """Raised when the domain of an SPF record does not exist (RCODE:3)"""

    status = "nxdomain"


class SPFNoAnswer(SPFRecordNotFound):
    """Raised when a domain exists but has no TXT records"""

    status = "no_answer"


class SPFLookupFailed(SPFRecordNotFound):
    """Raised when the DNS infrastructure fails to answer (SERVFAIL, transport
    errors); these are not void lookups"""

    status = "transport_error"


class MultipleSPFTXTRecords(SPFError):
    """Raised when multiple TXT spf1 records are found"""


class SPFResolutionCancelled(SPFError):
    """Raised when an SPF resolution is cancelled or exceeds its time limit"""


class _SPFGrammar(pyleri.Grammar):
    """Defines Pyleri grammar for the SPF version section"""

    version_tag = pyleri.Regex(SPF_VERSION_TAG_REGEX_STRING)
    term = pyleri.Regex(r"\S+")

    START = pyleri.Sequence(version_tag, pyleri.Repeat(term))


SPFQualifier = Literal["pass", "fail", "softfail", "neutral"]


class _SPFTermBase(TypedDict):
    qualifier: SPFQualifier
    raw: str


class SPFAllTerm(_SPFTermBase):
    mechanism: Literal["all"]


class SPFIncludeTerm(_SPFTermBase):
    mechanism: Literal["include"]
    domain: str


class SPFRedirectTerm(_SPFTermBase):
    mechanism: Literal["redirect"]
    domain: str


class SPFExpTerm(_SPFTermBase):
    mechanism: Literal["exp"]
    domain: str


class SPFIP4Term(_SPFTermBase):
    mechanism: Literal["ip4"]
    value: str


class SPFIP6Term(_SPFTermBase):
    mechanism: Literal["ip6"]
    value: str


class SPFATerm(_SPFTermBase):
    mechanism: Literal["a"]
    value: str


class SPFMXTerm(_SPFTermBase):
    mechanism: Literal["mx"]
    value: str


class SPFPTRTerm(_SPFTermBase):
    mechanism: Literal["ptr"]
    value: str


class SPFExistsTerm(_SPFTermBase):
    mechanism: Literal["exists"]
    domain: str


class SPFUnknownTerm(_SPFTermBase):
    mechanism: Literal["unknown"]


SPFTerm = Union[
    SPFAllTerm,
    SPFIncludeTerm,
    SPFRedirectTerm,
    SPFExpTerm,
    SPFIP4Term,
    SPFIP6Term,
    SPFATerm,
    SPFMXTerm,
    SPFPTRTerm,
    SPFExistsTerm,
    SPFUnknownTerm,
]


class SPFTreeNode(TypedDict):
    domain: str
    record: str
    dns_lookups: int
    netblocks: list[str]
    term: Union[SPFIncludeTerm, SPFRedirectTerm, None]
    depth: int
    children: list[Union[SPFTreeNode, SPFTerm]]


SPFLookupStatus = Literal[
    "ok",
    "nxdomain",
    "no_answer",
    "no_spf",
    "multiple_spf",
    "servfail",
    "transport_error",
    "max_depth",
    "loop",
]


class SPFLookupTrace(TypedDict):
    domain: str
    depth: int
    status: SPFLookupStatus


class SPFTreeResults(TypedDict):
    domain: str
    tree: Union[SPFTreeNode, None]
    void_dns_lookups: int
    warnings: list[str]
    errors: list[str]
    lookups: list[SPFLookupTrace]


spf_qualifiers: dict[str, SPFQualifier] = {
    "": "pass",
    "?": "neutral",
    "+": "pass",
    "-": "fail",
    "~": "softfail",
}

# Terms that are modifiers rather than mechanisms, and so never take a qualifier
spf_modifiers = ("redirect", "exp", "unknown")


class SPFResolutionContext:
    """
    Diagnostics shared by every branch of one SPF resolution

    The visited set used for loop detection is kept outside the context and
    copied for every branch.
    """

    def __init__(
        self,
        *,
        cancel_event: Optional[threading.Event] = None,
        time_limit: Optional[float] = None,
    ):
        """
        Args:
            cancel_event (threading.Event): Cancels the resolution when set
            time_limit (float): Maximum number of seconds the whole
                                resolution may take
        """
        self.void_dns_lookups = 0
        self.warnings: list[str] = []
        self.errors: list[str] = []
        self.lookups: list[SPFLookupTrace] = []
        self.cancel_event = cancel_event
        self.time_limit = time_limit
        self.deadline = None
        if time_limit is not None:
            self.deadline = time.monotonic() + time_limit

    def add_void_lookup(self, domain: str):
        """Counts a void lookup, recording an error each time the count is
        above the RFC 7208 § 4.6.4 limit"""
        self.void_dns_lookups += 1
        if self.void_dns_lookups > MAX_VOID_DNS_LOOKUPS:
            self.errors.append(
                f"{domain}: Resolving the SPF record has "
                f"{self.void_dns_lookups}/{MAX_VOID_DNS_LOOKUPS} maximum void "
                "DNS lookups (RFC 7208 § 4.6.4)"
            )

    def trace(self, domain: str, depth: int, status: SPFLookupStatus):
        self.lookups.append({"domain": domain, "depth": depth, "status": status})

    def raise_if_cancelled(self, domain: str):
        """
        Raises:
            :exc:`checkspf.spf.SPFResolutionCancelled`
        """
        if self.cancel_event is not None and self.cancel_event.is_set():
            raise SPFResolutionCancelled(
                f"SPF resolution was cancelled while resolving {domain}"
            )
        if self.deadline is not None and time.monotonic() > self.deadline:
            raise SPFResolutionCancelled(
                f"SPF resolution exceeded the {self.time_limit} second time "
                f"limit while resolving {domain}",
                data={"time_limit": self.time_limit},
            )


def _validate_spf_macros(
    value: str,
    domain: str,
    syntax_error_marker: str,
) -> None:
    """
    Validate SPF macro syntax in a domain-spec per RFC 7208 § 7.

    This is purely syntactic; no macro expansion or DNS lookups.
    """
    pos = value.find("%")
    while pos != -1:
        match = SPF_MACRO_REGEX.match(value, pos)
        if match is None:
            marked_value = value[:pos] + syntax_error_marker + value[pos:]
            raise SPFSyntaxError(
                f"{domain}: Invalid SPF macro syntax at position {pos} "
                f"(marked with {syntax_error_marker}) in value: {marked_value}"
            )
        pos = value.find("%", match.end())


def _validate_ip_network(value: str, version: int, domain: str) -> None:
    mechanism = f"ip{version}"
    if "%" in value:
        raise SPFSyntaxError(
            f"{domain}: SPF macros are not allowed in {mechanism} "
            f"mechanisms: {value}"
        )
    try:
        network = ipaddress.ip_network(value, strict=False)
    except ValueError:
        raise SPFSyntaxError(f"{domain}: {value} is not a valid {mechanism} value.")
    if network.version != version:
        other = 6 if version == 4 else 4
        raise SPFSyntaxError(
            f"{domain}: {value} is not a valid {mechanism} value. "
            f"Looks like ipv{other}."
        )


def _target_domain(value: str) -> str:
    # Macro letters are case-sensitive (uppercase means URL-escaped)
    if "%" in value:
        return value
    return normalize_domain(value)


def _unquote_txt_record(record: str) -> str:
    quoted_segments = QUOTED_TXT_SEGMENT_REGEX.findall(record)
    if quoted_segments:
        record = "".join(quoted_segments)
    return record.replace('"', "").strip()


def parse_spf_term(token: str) -> SPFTerm:
    """
    Classifies a single SPF record term

    Args:
        token (str): One whitespace-delimited term, e.g. ``~include:example.com``

    Returns:
        dict: A ``dict`` with ``mechanism``, ``qualifier``, and ``raw`` keys,
        plus a ``domain`` or ``value`` key depending on the mechanism
    """
    match = SPF_ALL_REGEX.match(token)
    if match:
        all_term: SPFAllTerm = {
            "mechanism": "all",
            "qualifier": spf_qualifiers[match.group(1) or ""],
            "raw": token,
        }
        return all_term
    match = SPF_INCLUDE_REGEX.match(token)
    if match:
        include_term: SPFIncludeTerm = {
            "mechanism": "include",
            "qualifier": spf_qualifiers[match.group(1) or ""],
            "raw": token,
            "domain": _target_domain(match.group(2)),
        }
        return include_term
    match = SPF_REDIRECT_REGEX.match(token)
    if match:
        redirect_term: SPFRedirectTerm = {
            "mechanism": "redirect",
            "qualifier": "pass",
            "raw": token,
            "domain": _target_domain(match.group(1)),
        }
        return redirect_term
    match = SPF_EXP_REGEX.match(token)
    if match:
        exp_term: SPFExpTerm = {
            "mechanism": "exp",
            "qualifier": "pass",
            "raw": token,
            "domain": _target_domain(match.group(1)),
        }
        return exp_term
    match = SPF_IP4_REGEX.match(token)
    if match:
        cidr = match.group(2)
        if "/" not in cidr:
            cidr = f"{cidr}/32"
        ip4_term: SPFIP4Term = {
            "mechanism": "ip4",
            "qualifier": spf_qualifiers[match.group(1) or ""],
            "raw": token,
            "value": cidr,
        }
        return ip4_term
    match = SPF_IP6_REGEX.match(token)
    if match:
        ip6_term: SPFIP6Term = {
            "mechanism": "ip6",
            "qualifier": spf_qualifiers[match.group(1) or ""],
            "raw": token,
            "value": match.group(2),
        }
        return ip6_term
    match = SPF_A_REGEX.match(token)
    if match:
        a_term: SPFATerm = {
            "mechanism": "a",
            "qualifier": spf_qualifiers[match.group(1) or ""],
            "raw": token,
            "value": (match.group(2) or "").lstrip(":"),
        }
        return a_term
    match = SPF_MX_REGEX.match(token)
    if match:
        mx_term: SPFMXTerm = {
            "mechanism": "mx",
            "qualifier": spf_qualifiers[match.group(1) or ""],
            "raw": token,
            "value": (match.group(2) or "").lstrip(":"),
        }
        return mx_term
    match = SPF_PTR_REGEX.match(token)
    if match:
        ptr_term: SPFPTRTerm = {
            "mechanism": "ptr",
            "qualifier": spf_qualifiers[match.group(1) or ""],
            "raw": token,
            "value": (match.group(2) or "").lstrip(":"),
        }
        return ptr_term
    match = SPF_EXISTS_REGEX.match(token)
    if match:
        exists_term: SPFExistsTerm = {
            "mechanism": "exists",
            "qualifier": spf_qualifiers[match.group(1) or ""],
            "raw": token,
            "domain": _target_domain(match.group(2)),
        }
        return exists_term
    unknown_term: SPFUnknownTerm = {
        "mechanism": "unknown",
        "qualifier": "pass",
        "raw": token,
    }
    return unknown_term


def parse_spf_terms(record: str) -> list[SPFTerm]:
    """
    Splits an SPF record into classified terms, in record order

    Args:
        record (str): An SPF record

    Returns:
        list: A ``list`` of term ``dicts``; see :func:`parse_spf_term`
    """
    return [
        parse_spf_term(token)
        for token in record.split()
        if token != SPF_TXT_PREFIX
    ]


def format_spf_term(term: SPFTerm) -> str:
    """
    Formats a term for display, with an explicit qualifier on mechanisms

    Args:
        term (dict): A parsed term

    Returns:
        str: e.g. ``+include:_spf.example.com`` for ``include:_spf.example.com``
    """
    raw = term["raw"]
    if term["mechanism"] in spf_modifiers or raw[:1] in spf_qualifiers:
        return raw
    return f"+{raw}"


def select_spf_record(records: Sequence[str], domain: str) -> str:
    """
    Finds the single SPF record among the TXT records of a domain

    Args:
        records (list): TXT record strings, quoted or unquoted
        domain (str): The domain the records came from

    Returns:
        str: The SPF record, with quotes removed

    Raises:
        :exc:`checkspf.spf.SPFRecordNotFound`
        :exc:`checkspf.spf.MultipleSPFTXTRecords`
    """
    spf_records = [
        _unquote_txt_record(record) for record in records if SPF_TXT_PREFIX in record
    ]
    if len(spf_records) == 0:
        raise SPFRecordNotFound("An SPF record does not exist.", domain)
    # https://datatracker.ietf.org/doc/html/rfc7208#section-4.5
    if len(spf_records) > 1:
        raise MultipleSPFTXTRecords(
            f"The domain {domain} has multiple SPF TXT records",
            data={"records": spf_records},
        )
    return spf_records[0]


def query_spf_record(domain: str, *, lookup: TXTLookup) -> str:
    """
    Queries DNS for an SPF record

    Args:
        domain (str): A domain name
        lookup: A TXT lookup gateway, e.g. :func:`checkspf.utils.lookup_txt`

    Returns:
        str: The SPF record

    Raises:
        :exc:`checkspf.spf.SPFRecordNotFound`
        :exc:`checkspf.spf.MultipleSPFTXTRecords`
    """
    logging.debug(f"Checking for a SPF record on {domain}")
    result = lookup(domain)
    status = result["status"]
    error = result["error"]
    if status == "nxdomain":
        raise SPFNXDOMAIN(error or "The domain does not exist.", domain)
    if status == "no_answer" or (status == "ok" and len(result["records"]) == 0):
        raise SPFNoAnswer(
            error or f"The domain {domain} does not have any TXT records.", domain
        )
    if status == "servfail":
        raise SPFLookupFailed(
            f"The DNS server failed to answer (SERVFAIL): {error}",
            domain,
            status=status,
        )
    if status == "transport_error":
        raise SPFLookupFailed(f"The DNS query failed: {error}", domain, status=status)

    return select_spf_record(result["records"], domain)


def _check_version_tag(
    record: str, domain: str, syntax_error_marker: str
) -> Optional[str]:
    if SPF_VERSION_TAG_REGEX.match(record):
        return None
    parsed_record = _SPFGrammar().parse(record)
    pos = parsed_record.pos
    marked_record = record[:pos] + syntax_error_marker + record[pos:]
    return (
        f"{domain}: The SPF record must begin with {SPF_TXT_PREFIX}. "
        f"Expected {SPF_TXT_PREFIX} at position {pos} "
        f"(marked with {syntax_error_marker}) in: {marked_record}"
    )


def _resolve_spf_node(
    domain: str,
    depth: int,
    visited: set[str],
    context: SPFResolutionContext,
    lookup: TXTLookup,
    *,
    term: Union[SPFIncludeTerm, SPFRedirectTerm, None] = None,
    syntax_error_marker: str = SYNTAX_ERROR_MARKER,
) -> Optional[SPFTreeNode]:
    context.raise_if_cancelled(domain)
    if depth > MAX_RECURSION_DEPTH:
        context.trace(domain, depth, "max_depth")
        context.errors.append(
            f"{domain}: Maximum SPF recursion depth of {MAX_RECURSION_DEPTH} "
            "exceeded or circular reference detected"
        )
        return None
    if domain in visited:
        context.trace(domain, depth, "loop")
        context.errors.append(f"{domain}: Circular reference detected (include loop)")
        return None

    try:
        record = query_spf_record(domain, lookup=lookup)
    except MultipleSPFTXTRecords:
        context.trace(domain, depth, "multiple_spf")
        context.errors.append(
            f"{domain}: PermError: The domain has multiple SPF TXT records. "
            "Only one is permitted (RFC 7208 § 4.5)"
        )
        return None
    except SPFRecordNotFound as error:
        context.trace(domain, depth, error.status)
        if error.status in VOID_LOOKUP_STATUSES:
            context.add_void_lookup(domain)
        context.warnings.append(f"{domain}: {error}")
        return None
    context.raise_if_cancelled(domain)
    context.trace(domain, depth, "ok")
    logging.debug(f"Parsing the SPF record on {domain}")

    version_error = _check_version_tag(record, domain, syntax_error_marker)
    if version_error:
        context.errors.append(version_error)

    # RFC 7208 § 3.4
    total_bytes = len(record.encode("utf-8"))
    if total_bytes > SPF_RECORD_MAX_BYTES:
        context.errors.append(
            f"{domain}: The SPF record is > {SPF_RECORD_MAX_BYTES} bytes "
            f"({total_bytes} bytes). This likely exceeds the reliable UDP "
            "response size (RFC 7208 § 3.4)"
        )
    elif total_bytes > SPF_RECORD_UDP_BYTES:
        context.warnings.append(
            f"{domain}: The SPF record is {total_bytes} bytes. RFC 7208 § 3.4 "
            f"recommends keeping answers under {SPF_RECORD_UDP_BYTES} bytes so "
            "the whole DNS message fits in 512 bytes"
        )

    visited.add(domain)

    children: list[Union[SPFTreeNode, SPFTerm]] = []
    dns_lookups = 0
    netblocks: list[str] = []
    all_seen = False
    redirect_seen = False
    for spf_term in parse_spf_terms(record):
        mechanism = spf_term["mechanism"]
        raw = spf_term["raw"]
        if all_seen:
            context.warnings.append(
                f"{domain}: {raw} is ignored because it appears after the "
                "all mechanism"
            )
            if mechanism == "redirect":
                context.warnings.append(
                    f"{domain}: The redirect modifier is ignored because an "
                    "all mechanism is present"
                )
            continue
        try:
            if mechanism == "include" or mechanism == "redirect":
                if mechanism == "redirect":
                    if redirect_seen:
                        raise SPFSyntaxError(
                            f"{domain}: Multiple redirect modifiers: {raw}"
                        )
                    redirect_seen = True
                dns_lookups += 1
                target = spf_term["domain"]
                if "%" in target:
                    children.append(spf_term)
                    context.warnings.append(
                        f"{domain}: {raw} uses SPF macros and cannot be "
                        "expanded without a message to evaluate"
                    )
                    _validate_spf_macros(target, domain, syntax_error_marker)
                    continue
                child = _resolve_spf_node(
                    target,
                    depth + 1,
                    set(visited),
                    context,
                    lookup,
                    term=spf_term,
                    syntax_error_marker=syntax_error_marker,
                )
                if child is not None:
                    children.append(child)
                    dns_lookups += child["dns_lookups"]
                    netblocks += child["netblocks"]
            elif mechanism == "ip4":
                _validate_ip_network(spf_term["value"], 4, domain)
                netblocks.append(spf_term["value"])
                children.append(spf_term)
            elif mechanism == "ip6":
                _validate_ip_network(spf_term["value"], 6, domain)
                children.append(spf_term)
            elif mechanism in ("a", "mx", "ptr", "exists"):
                dns_lookups += 1
                children.append(spf_term)
                if mechanism == "mx":
                    context.warnings.append(
                        f"{domain}: {raw} requires additional DNS lookups; each "
                        "MX host can resolve to up to 10 A/AAAA lookups that "
                        "are not counted here (RFC 7208 § 4.6.4)"
                    )
                elif mechanism == "ptr":
                    context.warnings.append(
                        f"{domain}: The ptr mechanism should not be used - "
                        "(RFC 7208 § 5.5)"
                    )
                if mechanism == "exists":
                    _validate_spf_macros(
                        spf_term["domain"], domain, syntax_error_marker
                    )
                else:
                    _validate_spf_macros(spf_term["value"], domain, syntax_error_marker)
            elif mechanism == "all":
                all_seen = True
                children.append(spf_term)
            elif mechanism == "exp":
                children.append(spf_term)
                _validate_spf_macros(spf_term["domain"], domain, syntax_error_marker)
            else:
                context.warnings.append(
                    f"{domain}: Unknown mechanism or modifier: {raw}"
                )
        except SPFSyntaxError as error:
            context.errors.append(str(error))

    node: SPFTreeNode = {
        "domain": domain,
        "record": record,
        "dns_lookups": dns_lookups,
        "netblocks": netblocks,
        "term": term,
        "depth": depth,
        "children": children,
    }
    return node


def resolve_spf_tree(
    domain: str,
    *,
    lookup: Optional[TXTLookup] = None,
    nameservers: Optional[Sequence[str | Nameserver]] = None,
    resolver: Optional[dns.resolver.Resolver] = None,
    timeout: float = DEFAULT_DNS_TIMEOUT,
    cancel_event: Optional[threading.Event] = None,
    time_limit: Optional[float] = None,
    syntax_error_marker: str = SYNTAX_ERROR_MARKER,
) -> SPFTreeResults:
    """
    Retrieves an SPF record and recursively expands its ``include`` and
    ``redirect`` terms into a tree, collecting RFC 7208 diagnostics

    Failures of individual branches (loops, depth, missing or multiple
    records, DNS failures) are recorded as ``errors`` or ``warnings`` and
    leave no node in the tree; they are never raised.

    Args:
        domain (str): A domain name
        lookup: A TXT lookup gateway; defaults to :func:`checkspf.utils.lookup_txt`
                using the ``nameservers``, ``resolver``, and ``timeout`` options
        nameservers (list): A list of nameservers to query
        resolver (dns.resolver.Resolver): A resolver object to use for DNS requests
        timeout (float): Number of seconds to wait for each answer from DNS
        cancel_event (threading.Event): Cancels the resolution when set
        time_limit (float): Maximum number of seconds for the whole resolution
        syntax_error_marker (str): The maker for pointing out syntax errors

    Returns:
        dict: A ``dict`` with the following keys:
            - ``domain`` - The normalized domain
            - ``tree`` - The root node, or ``None`` if the root record could
              not be retrieved
            - ``void_dns_lookups`` - The number of void DNS lookups
            - ``warnings`` - A ``list`` of warnings
            - ``errors`` - A ``list`` of errors
            - ``lookups`` - A ``list`` of every domain lookup attempted

    Raises:
        :exc:`checkspf.utils.InvalidDomain`
        :exc:`checkspf.spf.SPFResolutionCancelled`
    """
    domain = validate_domain(domain)
    if lookup is None:
        lookup = functools.partial(
            lookup_txt,
            nameservers=nameservers,
            resolver=resolver,
            timeout=timeout,
        )
    context = SPFResolutionContext(cancel_event=cancel_event, time_limit=time_limit)
    logging.debug(f"Resolving the SPF tree of {domain}")
    tree = _resolve_spf_node(
        domain,
        0,
        set(),
        context,
        lookup,
        syntax_error_marker=syntax_error_marker,
    )
    results: SPFTreeResults = {
        "domain": domain,
        "tree": tree,
        "void_dns_lookups": context.void_dns_lookups,
        "warnings": context.warnings,
        "errors": context.errors,
        "lookups": context.lookups,
    }
    return results


def is_spf_tree_node(child: Union[SPFTreeNode, SPFTerm]) -> bool:
    """Tells tree nodes apart from plain terms among a node's ``children``"""
    return "children" in child


__all__ = [
    "MultipleSPFTXTRecords",
    "SPFError",
    "SPFLookupFailed",
    "SPFNXDOMAIN",
    "SPFNoAnswer",
    "SPFRecordNotFound",
    "SPFResolutionCancelled",
    "SPFResolutionContext",
    "SPFSyntaxError",
    "format_spf_term",
    "is_spf_tree_node",
    "parse_spf_term",
    "parse_spf_terms",
    "query_spf_record",
    "resolve_spf_tree",
    "select_spf_record",
]

# -*- coding: utf-8 -*-
"""Summaries of resolved SPF trees"""

from __future__ import annotations

import logging
from collections import Counter
from typing import TypedDict, Union

from checkspf.spf import (
    SPFRecordNotFound,
    SPFTerm,
    SPFTreeNode,
    SPFTreeResults,
    format_spf_term,
    is_spf_tree_node,
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


class DuplicateNetblock(TypedDict):
    netblock: str
    count: int


class SPFAuditResults(TypedDict):
    dns_lookups: int
    unique_netblocks: list[str]
    ipv4_addresses: int
    duplicate_netblocks: list[DuplicateNetblock]
    void_dns_lookups: int
    warnings: list[str]
    errors: list[str]


def ipv4_address_count(cidr: str) -> int:
    """
    Counts the addresses covered by an IPv4 netblock

    Args:
        cidr (str): e.g. ``192.0.2.0/24``; a bare address counts as ``/32``

    Returns:
        int: ``2 ** (32 - prefix length)``
    """
    prefix_length = 32
    if "/" in cidr:
        prefix_length = int(cidr.split("/", 1)[1])
    return 2 ** (32 - prefix_length)


def iter_spf_tree(node: SPFTreeNode):
    """Yields ``node`` and every node below it, in pre-order"""
    yield node
    for child in node["children"]:
        if is_spf_tree_node(child):
            yield from iter_spf_tree(child)  # type: ignore[arg-type]


def audit_spf_tree(
    results: Union[SPFTreeResults, dict],
) -> SPFAuditResults:
    """
    Summarizes a resolved SPF tree

    The root node already carries the totals of its whole subtree, so its
    ``dns_lookups`` and ``netblocks`` are the totals of the resolution.

    Args:
        results (dict): The output of :func:`checkspf.spf.resolve_spf_tree`

    Returns:
        dict: A ``dict`` with the following keys:
            - ``dns_lookups`` - The total number of DNS lookups
            - ``unique_netblocks`` - IPv4 netblocks, without repeats, in the
              order they first appear
            - ``ipv4_addresses`` - The number of addresses the unique
              netblocks cover
            - ``duplicate_netblocks`` - Netblocks authorized more than once,
              with the number of times each appears
            - ``void_dns_lookups`` - The number of void DNS lookups
            - ``warnings`` - A ``list`` of warnings
            - ``errors`` - A ``list`` of errors

    Raises:
        :exc:`checkspf.spf.SPFRecordNotFound`
    """
    tree = results["tree"]
    if tree is None:
        raise SPFRecordNotFound("An SPF record does not exist.", results["domain"])
    netblocks = tree["netblocks"]
    counts = Counter(netblocks)
    # dict keys keep first-occurrence order
    unique_netblocks = list(dict.fromkeys(netblocks))
    duplicate_netblocks: list[DuplicateNetblock] = [
        {"netblock": netblock, "count": counts[netblock]}
        for netblock in unique_netblocks
        if counts[netblock] > 1
    ]
    ipv4_addresses = sum(map(ipv4_address_count, unique_netblocks))
    logging.debug(
        f"{results['domain']}: {tree['dns_lookups']} DNS lookups, "
        f"{len(unique_netblocks)} unique IPv4 netblocks"
    )

    audit: SPFAuditResults = {
        "dns_lookups": tree["dns_lookups"],
        "unique_netblocks": unique_netblocks,
        "ipv4_addresses": ipv4_addresses,
        "duplicate_netblocks": duplicate_netblocks,
        "void_dns_lookups": results["void_dns_lookups"],
        "warnings": results["warnings"],
        "errors": results["errors"],
    }
    return audit


qualifier_labels = {
    "pass": "Pass",
    "fail": "Fail",
    "softfail": "Soft Fail",
    "neutral": "Neutral",
}


def _format_spf_tree_lines(node: SPFTreeNode, indent: str) -> list[str]:
    lines = [f"{indent}[{node['dns_lookups']}] {node['domain']}"]
    lines.append(f"{indent}    {node['record']}")
    child_indent = indent + "    "
    for child in node["children"]:
        if is_spf_tree_node(child):
            lines += _format_spf_tree_lines(child, child_indent)  # type: ignore[arg-type]
            continue
        term: SPFTerm = child  # type: ignore[assignment]
        mechanism = term["mechanism"]
        text = format_spf_term(term)
        if mechanism == "all":
            text = f"{text} ({qualifier_labels[term['qualifier']]})"
        elif mechanism in ("a", "mx", "exists", "ptr", "include", "redirect"):
            text = f"[1] {text}"
        if mechanism == "ptr":
            text = f"{text} (not recommended)"
        lines.append(f"{child_indent}{text}")
    return lines


def format_spf_tree(tree: SPFTreeNode) -> str:
    """
    Renders a resolved SPF tree as indented text

    Each domain is shown with the number of DNS lookups its subtree costs,
    followed by its record and its terms.

    Args:
        tree (dict): A tree node from :func:`checkspf.spf.resolve_spf_tree`

    Returns:
        str: The rendered tree
    """
    return "\n".join(_format_spf_tree_lines(tree, ""))

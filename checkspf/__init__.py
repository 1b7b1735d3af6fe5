# -*- coding: utf-8 -*-

"""Resolves and audits SPF records"""

from __future__ import annotations

import json
import logging
import threading
from csv import DictWriter
from io import StringIO
from time import sleep
from typing import Optional, Union
from collections.abc import Sequence

import dns.resolver
from dns.nameserver import Nameserver

import checkspf._constants
from checkspf._constants import DEFAULT_DNS_TIMEOUT, MAX_DNS_LOOKUPS
from checkspf.audit import audit_spf_tree
from checkspf.spf import (
    SPFError,
    SPFResolutionCancelled,
    resolve_spf_tree,
)
from checkspf.utils import (
    InvalidDomain,
    TXTLookup,
    get_base_domain,
    normalize_domain,
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


__version__ = checkspf._constants.__version__

PARKED_SPF_RECORD = "v=spf1 -all"

root_failure_messages = {
    "nxdomain": "The domain does not exist.",
    "no_answer": "The domain does not have any TXT records.",
    "no_spf": "An SPF record does not exist.",
    "multiple_spf": "The domain has multiple SPF TXT records.",
    "servfail": "The SPF record could not be retrieved (SERVFAIL).",
    "transport_error": "The SPF record could not be retrieved.",
}


def get_spf_status(errors: list[str], warnings: list[str], dns_lookups: int) -> str:
    """
    Gets the compliance status of an audited SPF tree

    Returns:
        str: ``error``, ``too_many_dns_lookups``, ``warning``, or ``ok``, in
        that order of precedence
    """
    if len(errors) > 0:
        return "error"
    if dns_lookups > MAX_DNS_LOOKUPS:
        return "too_many_dns_lookups"
    if len(warnings) > 0:
        return "warning"
    return "ok"


def check_spf(
    domain: str,
    *,
    parked: bool = False,
    lookup: Optional[TXTLookup] = None,
    nameservers: Optional[Sequence[str | Nameserver]] = None,
    resolver: Optional[dns.resolver.Resolver] = None,
    timeout: float = DEFAULT_DNS_TIMEOUT,
    cancel_event: Optional[threading.Event] = None,
    time_limit: Optional[float] = None,
) -> dict:
    """
    Returns a dictionary with an audited SPF tree or an error.

    Args:
        domain (str): A domain name
        parked (bool): The domain is parked
        lookup: A TXT lookup gateway, e.g. a
                :class:`checkspf.doh.DNSOverHTTPSLookup`
        nameservers (list): A list of nameservers to query
        resolver (dns.resolver.Resolver): A resolver object to use for DNS requests
        timeout (float): number of seconds to wait for an answer from DNS
        cancel_event (threading.Event): Cancels the resolution when set
        time_limit (float): Maximum number of seconds for the whole resolution

    Returns:
        dict: A ``dict`` with the following keys:
            - ``domain`` - The normalized domain
            - ``base_domain`` - The base domain
            - ``record`` - The SPF record string of the domain
            - ``valid`` - ``True`` unless ``status`` is ``error`` or
              ``too_many_dns_lookups``
            - ``status`` - ``ok``, ``warning``, ``too_many_dns_lookups``, or
              ``error``
            - ``tree`` - The resolved tree; see
              :func:`checkspf.spf.resolve_spf_tree`
            - ``dns_lookups`` - The number of DNS lookups
            - ``too_many_dns_lookups`` - ``True`` when ``dns_lookups`` is over
              the RFC 7208 limit of 10, whatever the ``status``
            - ``unique_netblocks`` - A ``list`` of unique IPv4 netblocks
            - ``ipv4_addresses`` - The number of IPv4 addresses authorized
            - ``duplicate_netblocks`` - IPv4 netblocks authorized more than once
            - ``void_dns_lookups`` - The number of void DNS lookups
            - ``warnings`` - A ``list`` of warnings
            - ``errors`` - A ``list`` of errors
            - ``lookups`` - Every domain lookup that was attempted

        If the SPF record of the domain itself cannot be resolved, the
        dictionary will have the following keys:
            - ``domain`` - The normalized domain
            - ``record`` - ``None``
            - ``valid`` - False
            - ``status`` - ``error``
            - ``error`` - The error message
            - ``error_kind`` - ``nxdomain``, ``no_answer``, ``no_spf``,
              ``multiple_spf``, ``servfail``, ``transport_error``,
              ``cancelled``, or ``invalid_domain``
            - ``void_dns_lookups``, ``warnings``, ``errors``, and ``lookups``
              when the resolution got far enough to produce them
    """
    domain = normalize_domain(domain)
    spf_results = {
        "domain": domain,
        "record": None,
        "valid": False,
        "status": "error",
    }
    try:
        tree_results = resolve_spf_tree(
            domain,
            lookup=lookup,
            nameservers=nameservers,
            resolver=resolver,
            timeout=timeout,
            cancel_event=cancel_event,
            time_limit=time_limit,
        )
    except InvalidDomain as error:
        spf_results["error"] = str(error)
        spf_results["error_kind"] = "invalid_domain"
        return spf_results
    except SPFResolutionCancelled as error:
        spf_results["error"] = str(error)
        spf_results["error_kind"] = "cancelled"
        if error.data:
            spf_results.update(error.data)
        return spf_results
    except SPFError as error:
        spf_results["error"] = str(error)
        spf_results["error_kind"] = "error"
        if error.data:
            spf_results.update(error.data)
        return spf_results

    tree = tree_results["tree"]
    if tree is None:
        lookups = tree_results["lookups"]
        error_kind = lookups[0]["status"] if len(lookups) > 0 else "no_spf"
        spf_results["error"] = root_failure_messages.get(
            error_kind, "An SPF record does not exist."
        )
        spf_results["error_kind"] = error_kind
        spf_results["void_dns_lookups"] = tree_results["void_dns_lookups"]
        spf_results["warnings"] = tree_results["warnings"]
        spf_results["errors"] = tree_results["errors"]
        spf_results["lookups"] = lookups
        return spf_results

    audit = audit_spf_tree(tree_results)
    warnings = audit["warnings"].copy()
    if parked and tree["record"] != PARKED_SPF_RECORD:
        warnings.append(
            f"{domain}: The SPF record for parked domains should be: "
            f"{PARKED_SPF_RECORD}, not: {tree['record']}"
        )
    status = get_spf_status(audit["errors"], warnings, audit["dns_lookups"])
    if status == "too_many_dns_lookups":
        logging.debug(
            f"{domain}: {audit['dns_lookups']}/{MAX_DNS_LOOKUPS} DNS lookups"
        )

    spf_results = {
        "domain": domain,
        "base_domain": get_base_domain(domain),
        "record": tree["record"],
        "valid": status in ("ok", "warning"),
        "status": status,
        "tree": tree,
        "dns_lookups": audit["dns_lookups"],
        "too_many_dns_lookups": audit["dns_lookups"] > MAX_DNS_LOOKUPS,
        "unique_netblocks": audit["unique_netblocks"],
        "ipv4_addresses": audit["ipv4_addresses"],
        "duplicate_netblocks": audit["duplicate_netblocks"],
        "void_dns_lookups": audit["void_dns_lookups"],
        "warnings": warnings,
        "errors": audit["errors"],
        "lookups": tree_results["lookups"],
    }
    return spf_results


def check_domains(
    domains: list[str],
    *,
    parked: bool = False,
    lookup: Optional[TXTLookup] = None,
    nameservers: Optional[Sequence[str | Nameserver]] = None,
    resolver: Optional[dns.resolver.Resolver] = None,
    timeout: float = DEFAULT_DNS_TIMEOUT,
    time_limit: Optional[float] = None,
    wait: float = 0.0,
) -> Union[dict, list[dict]]:
    """
    Check the SPF records of the given domains and return the audits

    Args:
        domains (list): A list of domains to check
        parked (bool): Indicates that the domains are parked
        lookup: A TXT lookup gateway, e.g. a
                :class:`checkspf.doh.DNSOverHTTPSLookup`
        nameservers (list): A list of nameservers to query
        resolver (dns.resolver.Resolver): A resolver object to use for DNS
                                          requests
        timeout (float): number of seconds to wait for an answer from DNS
        time_limit (float): Maximum number of seconds for each domain's
                            resolution
        wait (float): number of seconds to wait between processing domains

    Returns:
       A ``dict`` or ``list`` of  `dict` with the following keys

       - ``domain`` - The domain name
       - ``base_domain`` The base domain
       - ``spf`` -  The output of :func:`checkspf.check_spf`
    """
    domains = sorted(
        list(
            set(
                map(
                    lambda d: normalize_domain(d.rstrip(".\r\n").strip().split(",")[0]),
                    domains,
                )
            )
        )
    )
    domains = [domain for domain in domains if "." in domain]
    results = []
    for domain in domains:
        logging.debug(f"Checking: {domain}")

        domain_results = {
            "domain": domain,
            "base_domain": get_base_domain(domain),
        }
        domain_results["spf"] = check_spf(
            domain,
            parked=parked,
            lookup=lookup,
            nameservers=nameservers,
            resolver=resolver,
            timeout=timeout,
            time_limit=time_limit,
        )

        results.append(domain_results)
        if wait > 0.0:
            logging.debug(f"Sleeping for {wait} seconds")
            sleep(wait)
    if len(results) == 1:
        results = results[0]

    return results


def results_to_json(
    results: Union[dict[str, object], list[dict[str, object]]],
) -> str:
    """
    Converts a dictionary of results or list of results to a JSON string

    Args:
        results (dict): A dictionary of results

    Returns:
        str: Results in JSON format
    """
    return json.dumps(results, ensure_ascii=False, indent=2)


def results_to_csv_rows(
    results: Union[dict, list[dict]],
) -> list[dict]:
    """
    Converts a results dictionary or list of dictionaries and returns a
    list of CSV row dictionaries

    Args:
        results (dict): A dictionary of results

    Returns:
        list: A list of CSV row dictionaries
    """
    rows = []

    if type(results) is dict:
        results = [results]

    for result in results:
        row = {}
        _spf = result["spf"]
        row["domain"] = result["domain"]
        row["base_domain"] = result["base_domain"]
        row["spf_record"] = _spf["record"]
        row["spf_valid"] = _spf["valid"]
        row["spf_status"] = _spf["status"]
        if "error" in _spf:
            row["spf_error"] = _spf["error"]
            row["spf_error_kind"] = _spf["error_kind"]
        else:
            row["spf_dns_lookups"] = _spf["dns_lookups"]
            row["spf_too_many_dns_lookups"] = _spf["too_many_dns_lookups"]
            row["spf_void_dns_lookups"] = _spf["void_dns_lookups"]
            row["spf_unique_netblocks"] = len(_spf["unique_netblocks"])
            row["spf_ipv4_addresses"] = _spf["ipv4_addresses"]
            row["spf_duplicate_netblocks"] = "|".join(
                map(
                    lambda d: f"{d['netblock']} ({d['count']})",
                    _spf["duplicate_netblocks"],
                )
            )
        row["spf_errors"] = "|".join(_spf.get("errors", []))
        row["spf_warnings"] = "|".join(_spf.get("warnings", []))
        rows.append(row)
    return rows


def results_to_csv(results: Union[dict, list[dict]]) -> str:
    """
    Converts a dictionary of results to CSV

    Args:
        results (dict): A dictionary of results

    Returns:
        str: A CSV of results
    """
    fields = [
        "domain",
        "base_domain",
        "spf_valid",
        "spf_status",
        "spf_record",
        "spf_dns_lookups",
        "spf_too_many_dns_lookups",
        "spf_void_dns_lookups",
        "spf_unique_netblocks",
        "spf_ipv4_addresses",
        "spf_duplicate_netblocks",
        "spf_error",
        "spf_error_kind",
        "spf_errors",
        "spf_warnings",
    ]
    output = StringIO(newline="\n")
    writer = DictWriter(output, fieldnames=fields)
    writer.writeheader()
    rows = results_to_csv_rows(results)
    writer.writerows(rows)
    output.flush()

    return output.getvalue()


def output_to_file(path: str, content: str):
    """
    Write given content to the given path

    Args:
        path (str): A file path
        content (str): JSON or CSV text
    """
    with open(
        path, "w", newline="\n", encoding="utf-8", errors="ignore"
    ) as output_file:
        output_file.write(content)

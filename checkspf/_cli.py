#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""Resolves SPF records into include trees and audits their DNS lookups"""

from __future__ import annotations

import os
from argparse import ArgumentParser
from typing import Optional

import logging

from checkspf import (
    __version__,
    check_domains,
    results_to_json,
    results_to_csv,
    output_to_file,
)
from checkspf._constants import (
    DEFAULT_DNS_TIMEOUT,
    DEFAULT_DOH_URL,
    DEFAULT_HTTP_TIMEOUT,
)
from checkspf.audit import format_spf_tree
from checkspf.doh import DNSOverHTTPSLookup

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


def results_to_tree_text(results) -> str:
    """Renders the SPF tree of each domain, or its error"""
    if type(results) is dict:
        results = [results]
    sections = []
    for result in results:
        _spf = result["spf"]
        if "error" in _spf:
            sections.append(f"{result['domain']}: {_spf['error']}")
            continue
        lines = [
            format_spf_tree(_spf["tree"]),
            f"status: {_spf['status']}",
            f"DNS lookups: {_spf['dns_lookups']}/10",
            f"void DNS lookups: {_spf['void_dns_lookups']}/2",
            f"IPv4 addresses: {_spf['ipv4_addresses']}",
        ]
        lines += map(lambda e: f"error: {e}", _spf["errors"])
        lines += map(lambda w: f"warning: {w}", _spf["warnings"])
        sections.append("\n".join(lines))
    return "\n\n".join(sections)


def _main(argv: Optional[list[str]] = None):
    """Called when the module in executed"""
    arg_parser = ArgumentParser(description=__doc__)
    arg_parser.add_argument(
        "domain",
        nargs="+",
        help="one or more domains, or a single path to a "
        "file containing a list of domains",
    )
    arg_parser.add_argument(
        "-p",
        "--parked",
        help="indicate that the domains are parked",
        action="store_true",
        default=False,
    )
    arg_parser.add_argument(
        "-f",
        "--format",
        default="json",
        help="specify JSON, CSV, or tree screen output format",
    )
    arg_parser.add_argument(
        "-o",
        "--output",
        nargs="+",
        help="one or more file paths to output to "
        "(must end in .json or .csv) "
        "(silences screen output)",
    )
    arg_parser.add_argument(
        "-n", "--nameserver", nargs="+", help="nameservers to query"
    )
    arg_parser.add_argument(
        "-t",
        "--timeout",
        help="number of seconds to wait for an answer from DNS "
        f"(default {DEFAULT_DNS_TIMEOUT})",
        type=float,
        default=DEFAULT_DNS_TIMEOUT,
    )
    arg_parser.add_argument(
        "--doh",
        nargs="?",
        const=DEFAULT_DOH_URL,
        default=None,
        metavar="URL",
        help="query TXT records over a DNS-over-HTTPS JSON API "
        f"(default {DEFAULT_DOH_URL})",
    )
    arg_parser.add_argument(
        "--http-timeout",
        help="number of seconds to wait for a DNS-over-HTTPS response "
        f"(default {DEFAULT_HTTP_TIMEOUT})",
        type=float,
        default=DEFAULT_HTTP_TIMEOUT,
    )
    arg_parser.add_argument(
        "--time-limit",
        help="maximum number of seconds to spend resolving each domain",
        type=float,
        default=None,
    )
    arg_parser.add_argument("-v", "--version", action="version", version=__version__)
    arg_parser.add_argument(
        "-w",
        "--wait",
        type=float,
        help="number of seconds to wait between checking domains (default 0.0)",
        default=0.0,
    )
    arg_parser.add_argument(
        "--debug", action="store_true", help="enable debugging output"
    )

    args = arg_parser.parse_args(argv)

    logging_format = "%(asctime)s - %(levelname)s: %(message)s"
    logging.basicConfig(level=logging.WARNING, format=logging_format)

    if args.debug:
        logging.getLogger().setLevel(logging.DEBUG)
        logging.debug("Debug output enabled")
    domains = args.domain
    if len(domains) == 1 and os.path.exists(domains[0]):
        with open(domains[0]) as domains_file:
            domains = domains_file.readlines()

    lookup = None
    if args.doh is not None:
        lookup = DNSOverHTTPSLookup(args.doh, http_timeout=args.http_timeout)

    results = check_domains(
        domains,
        parked=args.parked,
        lookup=lookup,
        nameservers=args.nameserver,
        timeout=args.timeout,
        time_limit=args.time_limit,
        wait=args.wait,
    )

    if args.output is None:
        output_format = args.format.lower()
        if output_format == "csv":
            print(results_to_csv(results))
        elif output_format == "tree":
            print(results_to_tree_text(results))
        else:
            print(results_to_json(results))
    else:
        for path in args.output:
            if path.lower().endswith(".json"):
                output_to_file(path, results_to_json(results))
            elif path.lower().endswith(".csv"):
                output_to_file(path, results_to_csv(results))
            else:
                logging.error(f"Output path {path} must end in .json or .csv")


if __name__ == "__main__":
    _main()

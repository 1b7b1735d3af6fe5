# -*- coding: utf-8 -*-
"""DNS-over-HTTPS (JSON API) TXT lookups"""

from __future__ import annotations

import logging
from typing import Optional

import requests

from checkspf._constants import DEFAULT_DOH_URL, DEFAULT_HTTP_TIMEOUT, USER_AGENT
from checkspf.utils import TXTLookupResult, normalize_domain

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

RCODE_NOERROR = 0
RCODE_SERVFAIL = 2
RCODE_NXDOMAIN = 3
TXT_RDATA_TYPE = 16


class DNSOverHTTPSLookup:
    """
    A TXT lookup gateway backed by a DNS-over-HTTPS JSON endpoint, such as
    ``https://dns.google/resolve`` or ``https://cloudflare-dns.com/dns-query``

    Instances are callables that take a domain name and return the same
    classified ``dict`` as :func:`checkspf.utils.lookup_txt`.
    """

    def __init__(
        self,
        url: str = DEFAULT_DOH_URL,
        *,
        http_timeout: float = DEFAULT_HTTP_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        """
        Args:
            url (str): The DoH JSON endpoint
            http_timeout (float): HTTP timeout in seconds
            session (requests.Session): A session to reuse for requests
        """
        self.url = url
        self.http_timeout = http_timeout
        if session is None:
            session = requests.Session()
            session.headers = {  # pyright: ignore[reportAttributeAccessIssue]
                "User-Agent": USER_AGENT,
                "Accept": "application/dns-json",
            }
        self.session = session

    def __call__(self, domain: str) -> TXTLookupResult:
        domain = normalize_domain(domain)
        params = {"name": domain, "type": "TXT"}
        logging.debug(f"Getting TXT records for {domain} from {self.url}")
        try:
            response = self.session.get(
                self.url, params=params, timeout=self.http_timeout
            )
            response.raise_for_status()
            data = response.json()
        except (requests.RequestException, ValueError) as error:
            return {"status": "transport_error", "records": [], "error": str(error)}

        return parse_doh_response(data, domain)


def parse_doh_response(data: dict, domain: str) -> TXTLookupResult:
    """
    Classifies a DNS-over-HTTPS JSON response body

    Args:
        data (dict): The decoded JSON body
        domain (str): The domain that was queried

    Returns:
        dict: A ``dict`` with ``status``, ``records``, and ``error`` keys
    """
    if not isinstance(data, dict):
        return {
            "status": "transport_error",
            "records": [],
            "error": "The DNS-over-HTTPS response was not a JSON object.",
        }
    rcode = data.get("Status")
    if rcode == RCODE_NXDOMAIN:
        return {
            "status": "nxdomain",
            "records": [],
            "error": "The domain does not exist.",
        }
    if rcode == RCODE_SERVFAIL:
        return {
            "status": "servfail",
            "records": [],
            "error": f"The DNS server failed to answer a query for {domain}.",
        }
    answers = data.get("Answer") or []
    if not isinstance(answers, list) or not all(
        isinstance(answer, dict) for answer in answers
    ):
        return {
            "status": "transport_error",
            "records": [],
            "error": "The DNS-over-HTTPS response has a malformed Answer section.",
        }
    if rcode != RCODE_NOERROR or len(answers) == 0:
        # Any other RCODE is treated as an empty answer
        return {
            "status": "no_answer",
            "records": [],
            "error": f"The domain {domain} does not have any TXT records.",
        }
    records = []
    for answer in answers:
        # CNAME chains are returned alongside the TXT answers
        if answer.get("type", TXT_RDATA_TYPE) != TXT_RDATA_TYPE:
            continue
        if answer.get("data"):
            records.append(answer["data"])

    return {"status": "ok", "records": records, "error": None}

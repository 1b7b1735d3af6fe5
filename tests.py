#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""Automated tests"""

import io
import threading
import time
import unittest
from contextlib import redirect_stdout
from unittest import mock

import dns.exception
import dns.resolver
import requests

import checkspf
import checkspf._cli
import checkspf.audit
import checkspf.doh
import checkspf.spf
import checkspf.utils
from checkspf._constants import DEFAULT_DOH_URL


class FakeTXTLookup:
    """A TXT lookup gateway backed by a dictionary

    Values are either a list of TXT strings or a gateway status such as
    ``servfail``. Domains missing from the zone do not exist.
    """

    def __init__(self, zone):
        self.zone = zone
        self.queries = []

    def __call__(self, domain):
        self.queries.append(domain)
        answer = self.zone.get(domain)
        if answer is None:
            return {
                "status": "nxdomain",
                "records": [],
                "error": "The domain does not exist.",
            }
        if isinstance(answer, str):
            return {"status": answer, "records": [], "error": f"{answer}: {domain}"}
        return {"status": "ok", "records": list(answer), "error": None}


def resolve(zone, domain="example.com", **kwargs):
    lookup = FakeTXTLookup(zone)
    return checkspf.spf.resolve_spf_tree(domain, lookup=lookup, **kwargs), lookup


class Test(unittest.TestCase):
    def testGetBaseDomain(self):
        subdomain = "foo.example.com"
        result = checkspf.utils.get_base_domain(subdomain)
        assert result == "example.com"

        subdomain = "_spf.Example.CO.UK."
        result = checkspf.utils.get_base_domain(subdomain)
        assert result == "example.co.uk"

    def testNormalizeDomain(self):
        self.assertEqual(
            checkspf.utils.normalize_domain(" Exa\u200bmple.COM. "), "example.com"
        )

    def testInvalidDomain(self):
        """Domains that cannot be queried are rejected before any lookup"""
        for domain in ["", "   ", "exa mple.com"]:
            with self.assertRaises(checkspf.utils.InvalidDomain):
                checkspf.utils.validate_domain(domain)

        lookup = FakeTXTLookup({})
        results = checkspf.check_spf("exa mple.com", lookup=lookup)
        self.assertFalse(results["valid"])
        self.assertEqual(results["status"], "error")
        self.assertEqual(results["error_kind"], "invalid_domain")
        self.assertEqual(lookup.queries, [])

    def testSPFTermRoundTrip(self):
        """Joining the raw terms reproduces the record in order"""
        terms = (
            "~include:_spf.example.com -ip4:192.0.2.0/24 a mx:mail.example.com/24 "
            "?exists:%{i}.example.com redirect=example.net ?all"
        )
        record = f"v=spf1 {terms}"
        parsed = checkspf.spf.parse_spf_terms(record)
        self.assertEqual(" ".join(map(lambda t: t["raw"], parsed)), terms)
        self.assertEqual(
            list(map(lambda t: t["qualifier"], parsed)),
            ["softfail", "fail", "pass", "pass", "neutral", "pass", "neutral"],
        )

    def testFormatSPFTerm(self):
        """Mechanisms are shown with an explicit qualifier; modifiers are not"""
        examples = {
            "a": "+a",
            "-mx": "-mx",
            "include:example.com": "+include:example.com",
            "~all": "~all",
            "redirect=example.com": "redirect=example.com",
            "exp=explain.example.com": "exp=explain.example.com",
        }
        for raw, formatted in examples.items():
            term = checkspf.spf.parse_spf_term(raw)
            self.assertEqual(checkspf.spf.format_spf_term(term), formatted)

    def testUppercaseSPFMechanism(self):
        """Mechanism names are matched case-insensitively"""
        terms = checkspf.spf.parse_spf_terms(
            "v=spf1 IP4:192.0.2.1 INCLUDE:Example.NET MX:mail.example.com -ALL"
        )
        self.assertEqual(
            list(map(lambda t: t["mechanism"], terms)), ["ip4", "include", "mx", "all"]
        )
        self.assertEqual(terms[0]["value"], "192.0.2.1/32")
        self.assertEqual(terms[1]["domain"], "example.net")
        self.assertEqual(terms[2]["value"], "mail.example.com")
        self.assertEqual(terms[3]["qualifier"], "fail")

    def testSplitSPFRecord(self):
        """Quoted character-strings are concatenated without spaces"""
        record = checkspf.spf.select_spf_record(
            ['"v=spf1 ip4:192.0.2.0/24 " "include:example.net -all"'], "example.com"
        )
        self.assertEqual(record, "v=spf1 ip4:192.0.2.0/24 include:example.net -all")

    def testSelectSPFRecord(self):
        record = checkspf.spf.select_spf_record(
            ["google-site-verification=abc", '"v=spf1 -all"'], "example.com"
        )
        self.assertEqual(record, "v=spf1 -all")

        with self.assertRaises(checkspf.spf.SPFRecordNotFound):
            checkspf.spf.select_spf_record(["MS=ms12345"], "example.com")

        with self.assertRaises(checkspf.spf.MultipleSPFTXTRecords) as context:
            checkspf.spf.select_spf_record(
                ["v=spf1 -all", "v=spf1 +all"], "example.com"
            )
        self.assertEqual(
            context.exception.data["records"], ["v=spf1 -all", "v=spf1 +all"]
        )

    def testMultipleSPFRecords(self):
        """Two SPF records are a PermError and produce no node"""
        zone = {"example.com": ["v=spf1 -all", "v=spf1 include:example.net -all"]}
        results, _ = resolve(zone)
        self.assertIsNone(results["tree"])
        self.assertEqual(len(results["errors"]), 1)
        self.assertEqual(results["lookups"][0]["status"], "multiple_spf")

        spf_results = checkspf.check_spf("example.com", lookup=FakeTXTLookup(zone))
        self.assertFalse(spf_results["valid"])
        self.assertEqual(spf_results["error_kind"], "multiple_spf")

    def testIncludeMissingSPF(self):
        """An include of a domain with no SPF record is a non-void warning"""
        zone = {
            "example.com": ["v=spf1 include:example.net -all"],
            "example.net": ["google-site-verification=abc"],
        }
        results, _ = resolve(zone)
        self.assertEqual(results["void_dns_lookups"], 0)
        self.assertEqual(results["errors"], [])
        self.assertEqual(len(results["warnings"]), 1)
        self.assertIn("example.net", results["warnings"][0])
        self.assertEqual(results["tree"]["dns_lookups"], 1)
        self.assertEqual(results["lookups"][1]["status"], "no_spf")

    def testRootWithoutSPFRecord(self):
        zone = {"example.com": ["MS=ms12345"], "example.org": "no_answer"}
        results = checkspf.check_spf("example.com", lookup=FakeTXTLookup(zone))
        self.assertFalse(results["valid"])
        self.assertIsNone(results["record"])
        self.assertEqual(results["error_kind"], "no_spf")

        results = checkspf.check_spf("example.org", lookup=FakeTXTLookup(zone))
        self.assertEqual(results["error_kind"], "no_answer")
        self.assertEqual(results["void_dns_lookups"], 1)

        results = checkspf.check_spf("example.net", lookup=FakeTXTLookup(zone))
        self.assertEqual(results["error_kind"], "nxdomain")

    def testMaxRecursionDepth(self):
        """A chain of 12 nested includes stops at the 11th level"""
        zone = {}
        for i in range(12):
            zone[f"d{i}.example.com"] = [f"v=spf1 include:d{i + 1}.example.com -all"]
        results, lookup = resolve(zone, "d0.example.com")
        tree = results["tree"]
        self.assertIsNotNone(tree)
        self.assertEqual(
            max(map(lambda n: n["depth"], checkspf.audit.iter_spf_tree(tree))), 10
        )
        self.assertNotIn("d11.example.com", lookup.queries)
        self.assertEqual(
            results["lookups"][-1],
            {"domain": "d11.example.com", "depth": 11, "status": "max_depth"},
        )
        self.assertEqual(len(results["errors"]), 1)
        self.assertIn("Maximum SPF recursion depth", results["errors"][0])
        self.assertEqual(tree["dns_lookups"], 11)

    def testSPFIncludeLoop(self):
        """A two-hop include chain back to the root is rejected"""
        zone = {
            "example.com": ["v=spf1 include:example.net -all"],
            "example.net": ["v=spf1 include:example.com -all"],
        }
        results, lookup = resolve(zone)
        self.assertEqual(len(results["errors"]), 1)
        self.assertIn("Circular reference", results["errors"][0])
        self.assertEqual(lookup.queries, ["example.com", "example.net"])
        self.assertEqual(results["lookups"][-1]["status"], "loop")

    def testSPFSelfInclude(self):
        zone = {"example.com": ["v=spf1 ip4:192.0.2.0/24 include:example.com -all"]}
        results, _ = resolve(zone)
        self.assertEqual(len(results["errors"]), 1)
        self.assertIn("Circular reference", results["errors"][0])
        self.assertEqual(results["tree"]["netblocks"], ["192.0.2.0/24"])

    def testSiblingIncludesOfSameDomain(self):
        """The same domain in sibling branches is resolved in both"""
        zone = {
            "example.com": ["v=spf1 include:a.example.com include:b.example.com -all"],
            "a.example.com": ["v=spf1 include:shared.example.com -all"],
            "b.example.com": ["v=spf1 include:shared.example.com -all"],
            "shared.example.com": ["v=spf1 ip4:192.0.2.0/24 -all"],
        }
        results, lookup = resolve(zone)
        self.assertEqual(results["errors"], [])
        self.assertEqual(lookup.queries.count("shared.example.com"), 2)
        self.assertEqual(results["tree"]["dns_lookups"], 4)
        self.assertEqual(
            results["tree"]["netblocks"], ["192.0.2.0/24", "192.0.2.0/24"]
        )

    def testJunkAfterAll(self):
        """Terms after all are not counted and each get one warning"""
        record = (
            "v=spf1 ip4:192.0.2.0/24 -all include:example.net a mx "
            "ip4:198.51.100.0/24"
        )
        results, lookup = resolve({"example.com": [record]})
        tree = results["tree"]
        self.assertEqual(tree["dns_lookups"], 0)
        self.assertEqual(tree["netblocks"], ["192.0.2.0/24"])
        self.assertEqual(lookup.queries, ["example.com"])
        self.assertEqual(len(results["warnings"]), 4)
        for warning in results["warnings"]:
            self.assertIn("after the all mechanism", warning)

    def testRedirectAfterAll(self):
        """A redirect after all is ignored with a warning and costs nothing"""
        zone = {
            "example.com": ["v=spf1 -all redirect=example.net"],
            "example.net": ["v=spf1 ip4:192.0.2.0/24 -all"],
        }
        results, lookup = resolve(zone)
        self.assertEqual(results["tree"]["dns_lookups"], 0)
        self.assertEqual(lookup.queries, ["example.com"])
        self.assertEqual(len(results["warnings"]), 2)
        self.assertIn("redirect modifier is ignored", results["warnings"][1])

    def testRedirect(self):
        zone = {
            "example.com": ["v=spf1 redirect=example.net"],
            "example.net": ["v=spf1 ip4:192.0.2.0/24 -all"],
        }
        results, _ = resolve(zone)
        tree = results["tree"]
        self.assertEqual(tree["dns_lookups"], 1)
        self.assertEqual(tree["netblocks"], ["192.0.2.0/24"])
        child = tree["children"][0]
        self.assertTrue(checkspf.spf.is_spf_tree_node(child))
        self.assertEqual(child["term"]["mechanism"], "redirect")
        self.assertEqual(child["depth"], 1)

    def testMultipleRedirects(self):
        zone = {
            "example.com": ["v=spf1 redirect=example.net redirect=example.org"],
            "example.net": ["v=spf1 -all"],
            "example.org": ["v=spf1 -all"],
        }
        results, lookup = resolve(zone)
        self.assertEqual(results["tree"]["dns_lookups"], 1)
        self.assertNotIn("example.org", lookup.queries)
        self.assertEqual(len(results["errors"]), 1)

    def testNetblockCounting(self):
        """Bare IPv4 addresses are /32 netblocks"""
        zone = {"example.com": ["v=spf1 ip4:192.0.2.0/24 ip4:192.0.2.1 -all"]}
        results = checkspf.check_spf("example.com", lookup=FakeTXTLookup(zone))
        self.assertEqual(results["unique_netblocks"], ["192.0.2.0/24", "192.0.2.1/32"])
        self.assertEqual(results["ipv4_addresses"], 257)
        self.assertEqual(results["duplicate_netblocks"], [])
        self.assertEqual(results["status"], "ok")

    def testIPv6NotCountedAsNetblock(self):
        zone = {"example.com": ["v=spf1 ip6:2001:db8::/32 -all"]}
        results, _ = resolve(zone)
        self.assertEqual(results["tree"]["netblocks"], [])
        self.assertEqual(results["errors"], [])
        self.assertEqual(results["tree"]["children"][0]["mechanism"], "ip6")

    def testDuplicateNetblocks(self):
        zone = {
            "example.com": ["v=spf1 ip4:10.0.0.0/24 include:a.example.com all"],
            "a.example.com": ["v=spf1 ip4:10.0.0.0/24 -all"],
        }
        results = checkspf.check_spf("example.com", lookup=FakeTXTLookup(zone))
        self.assertEqual(results["dns_lookups"], 1)
        self.assertEqual(
            results["duplicate_netblocks"], [{"netblock": "10.0.0.0/24", "count": 2}]
        )
        self.assertEqual(len(results["unique_netblocks"]), 1)
        self.assertEqual(results["ipv4_addresses"], 256)
        self.assertEqual(results["errors"], [])
        self.assertTrue(results["valid"])

    def testSPFMXMechanism(self):
        zone = {
            "example.com": ["v=spf1 ip4:10.0.0.0/24 include:a.example.com all"],
            "a.example.com": ["v=spf1 ip4:10.0.0.1/32 mx -all"],
        }
        results = checkspf.check_spf("example.com", lookup=FakeTXTLookup(zone))
        self.assertEqual(results["dns_lookups"], 2)
        self.assertEqual(len(results["warnings"]), 1)
        self.assertIn("mx", results["warnings"][0])
        self.assertEqual(results["status"], "warning")
        self.assertTrue(results["valid"])

    def testSPFPtrMechanism(self):
        results, _ = resolve({"example.com": ["v=spf1 ptr -all"]})
        self.assertEqual(results["tree"]["dns_lookups"], 1)
        self.assertEqual(len(results["warnings"]), 1)
        self.assertIn("ptr mechanism should not be used", results["warnings"][0])

    def testUnknownMechanism(self):
        results, _ = resolve({"example.com": ["v=spf1 foo:bar -all"]})
        self.assertEqual(
            results["warnings"],
            ["example.com: Unknown mechanism or modifier: foo:bar"],
        )
        self.assertEqual(results["errors"], [])

    def testTooManySPFVoidDNSLookups(self):
        """Every void lookup past the second is reported"""
        record = (
            "v=spf1 include:void1.example.com include:void2.example.com "
            "include:void3.example.com include:void4.example.com -all"
        )
        zone = {"example.com": [record], "void2.example.com": "no_answer"}
        results, _ = resolve(zone)
        self.assertEqual(results["void_dns_lookups"], 4)
        self.assertEqual(len(results["errors"]), 2)
        self.assertIn("3/2", results["errors"][0])
        self.assertIn("4/2", results["errors"][1])
        self.assertEqual(len(results["warnings"]), 4)

    def testDNSFailuresAreNotVoid(self):
        """SERVFAIL and transport errors never count as void lookups"""
        zone = {
            "example.com": [
                "v=spf1 include:broken.example.com include:down.example.com -all"
            ],
            "broken.example.com": "servfail",
            "down.example.com": "transport_error",
        }
        results, _ = resolve(zone)
        self.assertEqual(results["void_dns_lookups"], 0)
        self.assertEqual(results["errors"], [])
        self.assertEqual(len(results["warnings"]), 2)
        self.assertEqual(
            list(map(lambda t: t["status"], results["lookups"])),
            ["ok", "servfail", "transport_error"],
        )

    def testTooManySPFDNSLookups(self):
        hosts = " ".join(map(lambda i: f"a:host{i}.example.com", range(11)))
        zone = {"example.com": [f"v=spf1 {hosts} -all"]}
        results = checkspf.check_spf("example.com", lookup=FakeTXTLookup(zone))
        self.assertEqual(results["dns_lookups"], 11)
        self.assertEqual(results["errors"], [])
        self.assertEqual(results["status"], "too_many_dns_lookups")
        self.assertFalse(results["valid"])

    def testTooManySPFDNSLookupsWithErrors(self):
        """The lookup budget is flagged even when the status is error"""
        hosts = " ".join(map(lambda i: f"a:h{i}.example.com", range(11)))
        zone = {"example.com": [f"v=spf1 {hosts} ip4:999.0.0.0/8 -all"]}
        results = checkspf.check_spf("example.com", lookup=FakeTXTLookup(zone))
        self.assertEqual(results["status"], "error")
        self.assertEqual(results["dns_lookups"], 11)
        self.assertTrue(results["too_many_dns_lookups"])
        self.assertFalse(results["valid"])

        csv = checkspf.results_to_csv(
            {"domain": "example.com", "base_domain": "example.com", "spf": results}
        )
        header, row = csv.splitlines()[:2]
        column = header.split(",").index("spf_too_many_dns_lookups")
        self.assertEqual(row.split(",")[column], "True")

        zone = {"example.com": ["v=spf1 a:h0.example.com -all"]}
        results = checkspf.check_spf("example.com", lookup=FakeTXTLookup(zone))
        self.assertFalse(results["too_many_dns_lookups"])

    def testSPFStatusPrecedence(self):
        get_status = checkspf.get_spf_status
        self.assertEqual(get_status(["e"], ["w"], 11), "error")
        self.assertEqual(get_status([], ["w"], 11), "too_many_dns_lookups")
        self.assertEqual(get_status([], ["w"], 10), "warning")
        self.assertEqual(get_status([], [], 10), "ok")

    def testSPFInvalidIPv4(self):
        results, _ = resolve({"example.com": ["v=spf1 ip4:192.0.2.256 -all"]})
        self.assertEqual(len(results["errors"]), 1)
        self.assertIn("not a valid ip4 value", results["errors"][0])
        self.assertEqual(results["tree"]["netblocks"], [])

    def testSPFInvalidIPv6inIPv4(self):
        results, _ = resolve({"example.com": ["v=spf1 ip4:2001:db8::1 -all"]})
        self.assertEqual(len(results["errors"]), 1)
        self.assertIn("Looks like ipv6", results["errors"][0])

    def testSPFInvalidIPv4inIPv6(self):
        results, _ = resolve({"example.com": ["v=spf1 ip6:192.0.2.1 -all"]})
        self.assertEqual(len(results["errors"]), 1)
        self.assertIn("Looks like ipv4", results["errors"][0])

    def testSPFMacrosExists(self):
        results, _ = resolve({"example.com": ["v=spf1 exists:%{i}._spf.%{d} -all"]})
        self.assertEqual(results["errors"], [])
        self.assertEqual(results["tree"]["dns_lookups"], 1)

    def testSPFMacrosInclude(self):
        """Includes with macros are counted but not expanded"""
        results, lookup = resolve(
            {"example.com": ["v=spf1 include:%{ir}.%{v}._spf.%{d2} -all"]}
        )
        self.assertEqual(results["errors"], [])
        self.assertEqual(results["tree"]["dns_lookups"], 1)
        self.assertEqual(lookup.queries, ["example.com"])
        self.assertEqual(len(results["warnings"]), 1)
        self.assertIn("macros", results["warnings"][0])

    def testSPFInvalidMacro(self):
        results, _ = resolve({"example.com": ["v=spf1 exists:%{z}.example.com -all"]})
        self.assertEqual(len(results["errors"]), 1)
        self.assertIn("Invalid SPF macro syntax", results["errors"][0])

    def testSPFVersionTagMustBeExact(self):
        """v=spf10 is not a valid version tag"""
        results, _ = resolve({"example.com": ["v=spf10 ip4:192.0.2.0/24 -all"]})
        self.assertEqual(len(results["errors"]), 1)
        self.assertIn("must begin with v=spf1", results["errors"][0])
        self.assertIn(
            "Unknown mechanism or modifier: v=spf10", results["warnings"][0]
        )

        results, _ = resolve({"example.com": ["v=spf1\tip4:192.0.2.0/24 -all"]})
        self.assertEqual(results["errors"], [])
        results, _ = resolve({"example.com": ["v=spf1"]})
        self.assertEqual(results["errors"], [])

    def testSPFMissingVersionTag(self):
        results, _ = resolve({"example.com": ["spf2.0/pra v=spf1 -all"]})
        self.assertIsNotNone(results["tree"])
        self.assertEqual(len(results["errors"]), 1)
        self.assertIn("must begin with v=spf1", results["errors"][0])

    def testSPFRecordLength(self):
        long_record = "v=spf1 a:" + "h" * 460 + " -all"
        results, _ = resolve({"example.com": [long_record]})
        self.assertEqual(results["errors"], [])
        self.assertEqual(len(results["warnings"]), 1)
        self.assertIn("bytes", results["warnings"][0])

        too_long_record = "v=spf1 a:" + "h" * 520 + " -all"
        results, _ = resolve({"example.com": [too_long_record]})
        self.assertEqual(len(results["errors"]), 1)
        self.assertIn("512 bytes", results["errors"][0])

    def testCancelledBeforeResolution(self):
        cancel_event = threading.Event()
        cancel_event.set()
        lookup = FakeTXTLookup({"example.com": ["v=spf1 -all"]})
        with self.assertRaises(checkspf.spf.SPFResolutionCancelled):
            checkspf.spf.resolve_spf_tree(
                "example.com", lookup=lookup, cancel_event=cancel_event
            )
        self.assertEqual(lookup.queries, [])

    def testCancelledDuringResolution(self):
        cancel_event = threading.Event()
        zone = {
            "example.com": ["v=spf1 include:example.net include:example.org -all"],
            "example.net": ["v=spf1 -all"],
            "example.org": ["v=spf1 -all"],
        }
        fake_lookup = FakeTXTLookup(zone)

        def lookup(domain):
            result = fake_lookup(domain)
            if domain == "example.net":
                cancel_event.set()
            return result

        with self.assertRaises(checkspf.spf.SPFResolutionCancelled):
            checkspf.spf.resolve_spf_tree(
                "example.com", lookup=lookup, cancel_event=cancel_event
            )
        self.assertNotIn("example.org", fake_lookup.queries)

    def testTimeLimit(self):
        fake_lookup = FakeTXTLookup({"example.com": ["v=spf1 -all"]})

        def slow_lookup(domain):
            time.sleep(0.05)
            return fake_lookup(domain)

        results = checkspf.check_spf(
            "example.com", lookup=slow_lookup, time_limit=0.01
        )
        self.assertFalse(results["valid"])
        self.assertEqual(results["error_kind"], "cancelled")

    def testLookupTXTStatuses(self):
        """dnspython exceptions are classified instead of raised"""
        examples = [
            (dns.resolver.NXDOMAIN(), "nxdomain"),
            (dns.resolver.NoAnswer(), "no_answer"),
            (dns.resolver.NoNameservers(), "servfail"),
            (dns.exception.Timeout(), "transport_error"),
            (OSError("Network is unreachable"), "transport_error"),
        ]
        for error, status in examples:
            resolver = mock.Mock()
            resolver.resolve.side_effect = error
            result = checkspf.utils.lookup_txt("example.com", resolver=resolver)
            self.assertEqual(result["status"], status)
            self.assertEqual(result["records"], [])

    def testLookupTXTJoinsStrings(self):
        resolver = mock.Mock()
        resolver.resolve.return_value = [
            mock.Mock(strings=[b"v=spf1 ip4:192.0.2.0/24 ", b"-all"]),
            mock.Mock(strings=[b"MS=ms12345"]),
        ]
        result = checkspf.utils.lookup_txt("example.com", resolver=resolver)
        self.assertEqual(result["status"], "ok")
        self.assertEqual(
            result["records"], ["v=spf1 ip4:192.0.2.0/24 -all", "MS=ms12345"]
        )
        resolver.resolve.assert_called_once()

    def testDoHStatuses(self):
        parse = checkspf.doh.parse_doh_response
        self.assertEqual(parse({"Status": 3}, "example.com")["status"], "nxdomain")
        self.assertEqual(parse({"Status": 2}, "example.com")["status"], "servfail")
        self.assertEqual(parse({"Status": 5}, "example.com")["status"], "no_answer")
        self.assertEqual(
            parse({"Status": 0, "Answer": []}, "example.com")["status"], "no_answer"
        )
        self.assertEqual(parse([], "example.com")["status"], "transport_error")
        for answers in (["v=spf1 -all"], "v=spf1 -all", {"data": "v=spf1 -all"}):
            result = parse({"Status": 0, "Answer": answers}, "example.com")
            self.assertEqual(result["status"], "transport_error")
            self.assertEqual(result["records"], [])
        result = parse(
            {
                "Status": 0,
                "Answer": [
                    {"type": 5, "data": "spf.example.net."},
                    {"type": 16, "data": '"v=spf1 -all"'},
                ],
            },
            "example.com",
        )
        self.assertEqual(result["status"], "ok")
        self.assertEqual(result["records"], ['"v=spf1 -all"'])

    def testDoHLookup(self):
        session = mock.Mock()
        session.get.return_value.json.return_value = {
            "Status": 0,
            "Answer": [{"type": 16, "data": '"v=spf1 -all"'}],
        }
        lookup = checkspf.doh.DNSOverHTTPSLookup(session=session)
        result = lookup("Example.com.")
        self.assertEqual(result["records"], ['"v=spf1 -all"'])
        session.get.assert_called_once_with(
            DEFAULT_DOH_URL,
            params={"name": "example.com", "type": "TXT"},
            timeout=lookup.http_timeout,
        )

        session.get.side_effect = requests.ConnectionError("Connection refused")
        self.assertEqual(lookup("example.com")["status"], "transport_error")

    def testParkedDomain(self):
        zone = {"example.com": ["v=spf1 ip4:192.0.2.0/24 -all"]}
        results = checkspf.check_spf(
            "example.com", parked=True, lookup=FakeTXTLookup(zone)
        )
        self.assertEqual(results["status"], "warning")
        self.assertIn("parked", results["warnings"][0])

    def testCheckDomains(self):
        zone = {
            "example.com": ["v=spf1 ip4:192.0.2.0/24 ip4:192.0.2.0/24 -all"],
            "example.net": ["v=spf1 -all", "v=spf1 +all"],
        }
        results = checkspf.check_domains(
            ["Example.COM", "example.net.", "localhost"], lookup=FakeTXTLookup(zone)
        )
        self.assertEqual(
            list(map(lambda r: r["domain"], results)), ["example.com", "example.net"]
        )
        self.assertEqual(results[0]["spf"]["duplicate_netblocks"][0]["count"], 2)

        csv = checkspf.results_to_csv(results)
        self.assertTrue(csv.startswith("domain,base_domain,spf_valid"))
        self.assertIn("192.0.2.0/24 (2)", csv)
        self.assertIn("multiple_spf", csv)

        single = checkspf.check_domains(["example.com"], lookup=FakeTXTLookup(zone))
        self.assertIsInstance(single, dict)
        self.assertIn('"domain": "example.com"', checkspf.results_to_json(single))

    def testFormatSPFTree(self):
        zone = {
            "example.com": ["v=spf1 include:example.net ptr ~all"],
            "example.net": ["v=spf1 ip4:192.0.2.0/24 -all"],
        }
        results, _ = resolve(zone)
        text = checkspf.audit.format_spf_tree(results["tree"])
        lines = text.splitlines()
        self.assertEqual(lines[0], "[2] example.com")
        self.assertEqual(lines[1], "    v=spf1 include:example.net ptr ~all")
        self.assertEqual(lines[2], "    [0] example.net")
        self.assertIn("        +ip4:192.0.2.0/24", lines)
        self.assertIn("    [1] +ptr (not recommended)", lines)
        self.assertEqual(lines[-1], "    ~all (Soft Fail)")

    def testCLIUsesDoH(self):
        zone = {"example.com": ["v=spf1 -all"]}
        results = checkspf.check_domains(["example.com"], lookup=FakeTXTLookup(zone))
        with mock.patch.object(
            checkspf._cli, "check_domains", return_value=results
        ) as check_domains:
            output = io.StringIO()
            with redirect_stdout(output):
                checkspf._cli._main(["example.com", "--doh", "-f", "tree"])
        lookup = check_domains.call_args.kwargs["lookup"]
        self.assertIsInstance(lookup, checkspf.doh.DNSOverHTTPSLookup)
        self.assertEqual(lookup.url, DEFAULT_DOH_URL)
        self.assertIn("status: ok", output.getvalue())


if __name__ == "__main__":
    unittest.main(verbosity=2)

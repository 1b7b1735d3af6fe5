# -*- coding: utf-8 -*-
"""Constant values"""

from __future__ import annotations
import platform
import os

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

__version__ = "1.0.0"

OS = platform.system()
OS_RELEASE = platform.release()
USER_AGENT = f"Mozilla/5.0 (({OS} {OS_RELEASE})) checkspf/{__version__}"
SYNTAX_ERROR_MARKER = "➞"
DEFAULT_DNS_TIMEOUT = 2.0
DEFAULT_HTTP_TIMEOUT = 2.0
DEFAULT_DOH_URL = "https://dns.google/resolve"

# RFC 7208 § 4.6.4
MAX_DNS_LOOKUPS = 10
MAX_VOID_DNS_LOOKUPS = 2
MAX_RECURSION_DEPTH = 10

# RFC 7208 § 3.4
SPF_RECORD_MAX_BYTES = 512
SPF_RECORD_UDP_BYTES = 450

env = os.environ

if "DOH_URL" in env:
    DEFAULT_DOH_URL = env["DOH_URL"]
if "HTTP_TIMEOUT" in env:
    DEFAULT_HTTP_TIMEOUT = float(env["HTTP_TIMEOUT"])
if "DNS_TIMEOUT" in env:
    DEFAULT_DNS_TIMEOUT = float(env["DNS_TIMEOUT"])

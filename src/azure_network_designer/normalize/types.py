"""Free-text resource type labels to canonical resource kinds."""

import re
from typing import Optional

from ..models.resources import ResourceKind

DEFAULT_KIND = ResourceKind.APP_SERVICE

# Evaluated top to bottom, first match wins. Network edge services come
# before the data services so that e.g. "private endpoint for sql" stays a
# PrivateEndpoint. Every canonical kind name matches its own row.
TYPE_PATTERNS: list[tuple[re.Pattern, ResourceKind]] = [
    (re.compile(r"app(lication)?\s*gateway|waf"), ResourceKind.APPLICATION_GATEWAY),
    (re.compile(r"firewall"), ResourceKind.AZURE_FIREWALL),
    (re.compile(r"vpn"), ResourceKind.VPN_GATEWAY),
    (re.compile(r"express.?route"), ResourceKind.EXPRESS_ROUTE_GATEWAY),
    (re.compile(r"bastion"), ResourceKind.BASTION),
    (re.compile(r"private\s*endpoint"), ResourceKind.PRIVATE_ENDPOINT),
    (re.compile(r"private\s*dns|dns\s*zone"), ResourceKind.PRIVATE_DNS_ZONE),
    (re.compile(r"public\s*ip|\bpip\b"), ResourceKind.PUBLIC_IP),
    (re.compile(r"traffic.?manager"), ResourceKind.TRAFFIC_MANAGER),
    (re.compile(r"nsg|network\s*security\s*group"), ResourceKind.NETWORK_SECURITY_GROUP),
    (re.compile(r"route|udr"), ResourceKind.ROUTE_TABLE),
    (re.compile(r"app\s*service|web\s*app"), ResourceKind.APP_SERVICE),
    (re.compile(r"sql|database"), ResourceKind.SQL_DB),
    (re.compile(r"storage|blob"), ResourceKind.STORAGE),
    (re.compile(r"key.?vault|kv"), ResourceKind.KEY_VAULT),
]


def normalize_type(label: Optional[str]) -> ResourceKind:
    """Classify a free-form type label.

    Best effort: unrecognised labels fall through to ``DEFAULT_KIND``.
    """
    text = str(label or "").lower()
    for pattern, kind in TYPE_PATTERNS:
        if pattern.search(text):
            return kind
    return DEFAULT_KIND

"""
System-wide Constants for the BlitzProof Score Engine
Upstream endpoints, enumerations and neutral sentinel values
"""

from enum import Enum

# ============= Upstream APIs =============

COINGECKO_API = "https://api.coingecko.com/api/v3"
COINGECKO_PRO_API = "https://pro-api.coingecko.com/api/v3"
ETHERSCAN_API = "https://api.etherscan.io/api"
SNAPSHOT_GRAPHQL_API = "https://hub.snapshot.org/graphql"

SNAPSHOT_PROPOSALS_QUERY = """
query Proposals($space: String!) {
  proposals(where: {space_in: [$space]}) {
    id
    title
    votes
    scores
  }
}
"""

# ============= Categories & Enumerations =============

class Category(Enum):
    """Scoring categories, one collector each"""
    CODE_SECURITY = "codeSecurity"
    MARKET = "market"
    GOVERNANCE = "governance"
    FUNDAMENTAL = "fundamental"
    COMMUNITY = "community"
    OPERATIONAL = "operational"


class Severity(Enum):
    """Vulnerability severity levels"""
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class AuditStatus(Enum):
    """Contract audit status"""
    AUDITED = "audited"
    PARTIALLY_AUDITED = "partially_audited"
    UNAUDITED = "unaudited"


RATINGS = ("AAA", "AA", "A", "BBB", "BB", "B", "CCC", "CC", "C", "D")

# Unknown market cap rank
UNRANKED = 999999

SYSTEM_ACTOR = "system"
DEFAULT_ADMIN_ACTOR = "admin"

# ============= Cache =============

SCORE_CACHE_KEY = "{prefix}:score:{token_id}"
INFO_CACHE_KEY = "{prefix}:info:{token_id}"
DEFAULT_CACHE_TTL = 300

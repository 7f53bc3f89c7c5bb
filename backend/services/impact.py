"""
Load-impact estimate for a feature against the known API catalogue.

Keywords found in the feature text select endpoints; the extra load is scaled
by the feature's complexity and business value.
"""

import logging
from typing import Dict, List, Tuple

from models.data_models import FeatureData, FeatureLoadImpact, ImpactedEndpoint

logger = logging.getLogger(__name__)

# (path, method, average requests per minute)
API_CATALOGUE: List[Tuple[str, str, int]] = [
    ("/auth/register", "POST", 50),
    ("/auth/login", "POST", 245),
    ("/products", "GET", 350),
    ("/recommendations", "POST", 120),
    ("/recommendations", "GET", 420),
    ("/users/profile", "GET", 180),
    ("/users/follows", "POST", 80),
    ("/saved-items", "POST", 95),
    ("/saved-items", "GET", 150),
]

DEFAULT_RPM = 100

FEATURE_API_KEYWORDS: Dict[str, List[str]] = {
    "authentication": ["/auth/login", "/auth/register"],
    "login": ["/auth/login"],
    "register": ["/auth/register"],
    "user": ["/users/profile", "/users/follows"],
    "profile": ["/users/profile"],
    "product": ["/products"],
    "recommendation": ["/recommendations"],
    "friend": ["/users/follows", "/recommendations"],
    "discover": ["/recommendations", "/products"],
    "share": ["/recommendations"],
    "save": ["/saved-items"],
    "wishlist": ["/saved-items"],
    "buy": ["/products", "/saved-items"],
    "purchase": ["/products"],
    "explore": ["/products", "/recommendations"],
}

RECOMMENDATIONS = {
    "high": "Consider scaling this endpoint or implementing a queue system",
    "medium": "Implement caching and monitor performance after deployment",
    "low": "No changes needed, endpoint can handle additional load",
}


def _catalogue_entry(path: str) -> Tuple[str, int]:
    # first catalogue row wins for paths listed under several methods
    for p, method, rpm in API_CATALOGUE:
        if p == path:
            return method, rpm
    return "GET", DEFAULT_RPM


def matched_endpoints(feature: FeatureData) -> List[str]:
    text = " ".join([feature.name, feature.description or "", " ".join(feature.user_stories)]).lower()

    paths: List[str] = []
    for keyword, endpoints in FEATURE_API_KEYWORDS.items():
        if keyword in text:
            for endpoint in endpoints:
                if endpoint not in paths:
                    paths.append(endpoint)

    if not paths:
        if feature.complexity > 7:
            paths = ["/auth/login", "/users/profile"]
        elif feature.complexity > 4:
            paths = ["/products"]
        else:
            paths = ["/recommendations"]
        logger.debug("No keyword match for %r, using complexity defaults %s", feature.name, paths)
    return paths


def estimate_load_impact(feature: FeatureData) -> FeatureLoadImpact:
    impacted: List[ImpactedEndpoint] = []
    for path in matched_endpoints(feature):
        method, rpm = _catalogue_entry(path)
        additional = round(rpm * (feature.complexity / 10) * (feature.business_value / 10))

        if additional > rpm * 0.5:
            impact = "high"
        elif additional > rpm * 0.2:
            impact = "medium"
        else:
            impact = "low"

        impacted.append(
            ImpactedEndpoint(
                path=path,
                method=method,
                current_load=f"{rpm} req/min",
                estimated_load=f"{additional} req/min",
                impact=impact,
                recommendation=RECOMMENDATIONS[impact],
            )
        )

    has_high = any(e.impact == "high" for e in impacted)
    has_medium = any(e.impact == "medium" for e in impacted)
    overall = "high" if has_high else "medium" if has_medium else "low"

    recs: List[str] = []
    if has_high:
        recs.append("Consider phased rollout to monitor API performance")
        recs.append("Implement rate limiting for affected endpoints")
    if feature.complexity > 7:
        recs.append("Break down this feature into smaller components to reduce API impact")
    if len(impacted) > 2:
        recs.append("Review API architecture to optimize for this feature")

    return FeatureLoadImpact(
        feature_id=feature.id or "unknown",
        feature_name=feature.name,
        impacted_endpoints=impacted,
        overall_risk=overall,
        recommendations=recs or ["No significant API changes needed"],
    )

"""Lists the requests attributed to the page's own entity."""

from ..computed.entity_classification import EntityClassification
from .base import AuditResult, BaseAudit, make_table_details


class FirstPartyResourcesAudit(BaseAudit):
    id = "first-party-resources"
    title = "First-party resources"
    required_artifacts = ("url", "devtools_log")

    async def audit(self, artifacts, context) -> AuditResult:
        classification = await EntityClassification.request(artifacts, context)

        first_party = classification.first_party
        if first_party is None:
            return self._create_result(
                score=1.0,
                not_applicable=True,
                display_value="No first-party entity identified",
            )

        urls = sorted(url for url in classification.entity_by_url if classification.is_first_party(url))
        items = [{'url': url, 'entity': first_party.name} for url in urls]
        headings = [
            {'key': 'url', 'value_type': 'url', 'label': 'URL'},
            {'key': 'entity', 'value_type': 'text', 'label': 'Entity'},
        ]

        plural = "" if len(urls) == 1 else "s"
        return self._create_result(
            score=1.0,
            display_value=f"{len(urls)} request{plural} from {first_party.name}",
            details=make_table_details(headings, items),
        )

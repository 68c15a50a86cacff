"""Summary of the third-party entities a page loads resources from."""

import logging

from ..computed.entity_classification import EntityClassification
from .base import AuditResult, BaseAudit, make_table_details


logger = logging.getLogger(__name__)

MAX_SAMPLE_URLS = 5


class ThirdPartySummaryAudit(BaseAudit):
    """Groups every request not served by the first party by entity."""

    id = "third-party-summary"
    title = "Third-party entities"
    required_artifacts = ("url", "devtools_log")

    async def audit(self, artifacts, context) -> AuditResult:
        classification = await EntityClassification.request(artifacts, context)

        if not classification.entity_by_url:
            return self._create_result(score=1.0, not_applicable=True)

        items = []
        for entity in classification.third_party_entities:
            urls = sorted(classification.urls_by_entity[entity])
            items.append({
                'entity': entity.name,
                'category': entity.category,
                'url_count': len(urls),
                'is_unrecognized': entity.is_unrecognized,
                'urls': urls[:MAX_SAMPLE_URLS],
            })
        items.sort(key=lambda item: (-item['url_count'], item['entity']))

        headings = [
            {'key': 'entity', 'value_type': 'text', 'label': 'Third-Party'},
            {'key': 'category', 'value_type': 'text', 'label': 'Category'},
            {'key': 'url_count', 'value_type': 'numeric', 'label': 'Requests'},
        ]

        count = len(items)
        noun = "entity" if count == 1 else "entities"
        logger.debug(f"{count} third-party {noun} found")

        return self._create_result(
            score=1.0,
            display_value=f"{count} third-party {noun}",
            details=make_table_details(headings, items, is_entity_grouped=True),
        )

"""Entity classification of the network requests of a run.

Every request URL is attributed to the organization serving it: a known
entity from the reference dataset when one matches, otherwise a placeholder
synthesized from the URL's root domain (or browser-extension origin). The
page's own entity is identified as the first party.

Synthesized entities are only ever created through a per-call cache keyed by
their canonical key, so all URLs sharing a root domain resolve to the same
Entity instance.
"""

import logging
from typing import Callable, Dict, List, Optional, Set

import tldextract

from ..models.devtools import DevtoolsLog, PageURL
from ..models.entity import CHROME_EXTENSION_CATEGORY, Entity, EntityClassificationResult
from ..utils.url_utils import (
    get_chrome_extension_origin,
    get_host,
    get_root_domain,
    is_chrome_extension_url,
    is_http_url,
    is_valid_url,
)
from .artifact import ComputedArtifact
from .network_records import NetworkRecords


logger = logging.getLogger(__name__)

EntityCache = Dict[str, Entity]


def make_up_an_entity(entity_cache: EntityCache, url: str,
                      extractor: Optional[tldextract.TLDExtract] = None) -> Optional[Entity]:
    """Synthesize (or reuse) a placeholder entity for an unrecognized URL.

    Only http(s) and chrome-extension URLs get an entity. Web URLs are keyed
    by root domain, extension URLs by origin.

    Args:
        entity_cache: Synthesized entities of this run, keyed by canonical key
        url: Request URL
        extractor: Root-domain extractor

    Returns:
        The cached or newly registered entity, or None
    """
    if not is_valid_url(url):
        return None

    is_chrome_extension = is_chrome_extension_url(url)
    if not is_chrome_extension and not is_http_url(url):
        return None

    if is_chrome_extension:
        root_domain = get_chrome_extension_origin(url)
    else:
        root_domain = get_root_domain(url, extractor)
    if not root_domain:
        return None

    cached = entity_cache.get(root_domain)
    if cached is not None:
        return cached

    unrecognized_entity = Entity(
        name=root_domain,
        company=root_domain,
        category="",
        categories=[],
        domains=[] if is_chrome_extension else [root_domain],
        is_unrecognized=True,
        key=root_domain,
    )
    entity_cache[root_domain] = unrecognized_entity
    return unrecognized_entity


def preload_chrome_extensions(entity_cache: EntityCache, devtools_log: DevtoolsLog,
                              store_url: str) -> int:
    """Register an entity for every extension execution context in the log.

    Returns:
        Number of extension entities added
    """
    added = 0
    for entry in devtools_log:
        if entry.method != 'Runtime.executionContextCreated':
            continue

        context = entry.params.get('context')
        if not isinstance(context, dict):
            logger.debug("Skipping executionContextCreated without a context object")
            continue

        origin = context.get('origin')
        if not isinstance(origin, str) or not origin.startswith('chrome-extension:'):
            continue
        if origin in entity_cache:
            continue

        name = context.get('name')
        if not isinstance(name, str) or not name:
            name = origin
        host = get_host(origin) or ''
        entity_cache[origin] = Entity(
            name=name,
            company=name,
            category=CHROME_EXTENSION_CATEGORY,
            homepage=store_url + host,
            categories=[],
            domains=[],
            key=origin,
        )
        added += 1

    return added


def classify_url(url: str, lookup_entity: Callable[[str], Optional[Entity]],
                 entity_cache: EntityCache,
                 extractor: Optional[tldextract.TLDExtract] = None) -> Optional[Entity]:
    """Resolve a URL to a known entity, falling back to a synthesized one.

    Structurally invalid URLs get no entity, even on a known domain.
    """
    if not is_valid_url(url):
        return None
    return lookup_entity(url) or make_up_an_entity(entity_cache, url, extractor)


class EntityClassificationArtifact(ComputedArtifact):
    """Computed artifact grouping request URLs by entity."""

    def __init__(self):
        super().__init__("EntityClassification", dependency_keys=("url", "devtools_log"))

    async def compute(self, data, context) -> EntityClassificationResult:
        page_url: PageURL = data["url"]
        devtools_log: DevtoolsLog = data["devtools_log"]

        network_records = await NetworkRecords.request(devtools_log, context)

        lookup_entity = context.entity_lookup
        extractor = context.root_domain_extractor

        made_up_entity_cache: EntityCache = {}
        entity_by_url: Dict[str, Entity] = {}
        urls_by_entity: Dict[Entity, Set[str]] = {}

        extensions = preload_chrome_extensions(
            made_up_entity_cache, devtools_log, context.config.extension_store_url
        )

        skipped: List[str] = []
        for record in network_records:
            url = record.url
            if url in entity_by_url:
                continue

            entity = classify_url(url, lookup_entity, made_up_entity_cache, extractor)
            if entity is None:
                skipped.append(url)
                continue

            urls_by_entity.setdefault(entity, set()).add(url)
            entity_by_url[url] = entity

        # Navigations identify the first party by the main document; snapshots
        # and timespans only have the displayed URL.
        first_party_url = page_url.first_party_url
        first_party = classify_url(first_party_url, lookup_entity, made_up_entity_cache, extractor)

        logger.debug(
            f"Classified {len(entity_by_url)} URLs into {len(urls_by_entity)} entities "
            f"({extensions} extensions preloaded, {len(skipped)} unclassifiable URLs)"
        )
        if first_party is None:
            logger.info(f"Could not identify a first-party entity for {first_party_url}")

        return EntityClassificationResult(
            entity_by_url=entity_by_url,
            urls_by_entity=urls_by_entity,
            first_party=first_party,
        )


EntityClassification = EntityClassificationArtifact()

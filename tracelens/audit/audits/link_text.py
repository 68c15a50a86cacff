"""Checks that links carry descriptive text.

Generic link text such as "click here" gives no indication of where a link
leads. Links are compared against per-language lists of non-descriptive
phrases, walking the link's language tag from most to least specific
(``zh-cmn-Hans-CN`` -> ``zh-cmn-Hans`` -> ... -> ``zh``).
"""

from typing import Dict, Optional, Set

from ..models.devtools import AnchorElement
from ..utils.url_utils import equal_with_excluded_fragments
from .base import AuditResult, BaseAudit, make_table_details


NON_DESCRIPTIVE_LINK_TEXTS: Dict[str, Set[str]] = {
    # English
    'en': {
        'click here',
        'click this',
        'go',
        'here',
        'information',
        'learn more',
        'more',
        'more info',
        'more information',
        'right here',
        'read more',
        'see more',
        'start',
        'this',
    },
    # Japanese
    'ja': {
        'ここをクリック',
        'こちらをクリック',
        'リンク',
        '続きを読む',
        '続く',
        '全文表示',
    },
    # Spanish
    'es': {
        'click aquí',
        'click aqui',
        'clicka aquí',
        'clicka aqui',
        'pincha aquí',
        'pincha aqui',
        'aquí',
        'aqui',
        'más',
        'mas',
        'más información',
        'más informacion',
        'mas información',
        'mas informacion',
        'este',
        'enlace',
        'este enlace',
        'empezar',
    },
    # Portuguese
    'pt': {
        'clique aqui',
        'ir',
        'mais informação',
        'mais informações',
        'mais',
        'veja mais',
    },
    # Korean
    'ko': {
        '여기',
        '여기를 클릭',
        '클릭',
        '링크',
        '자세히',
        '자세히 보기',
        '계속',
        '이동',
        '전체 보기',
    },
    # Swedish
    'sv': {
        'här',
        'klicka här',
        'läs mer',
        'mer',
        'mer info',
        'mer information',
    },
    # German
    'de': {
        'klicke hier',
        'hier klicken',
        'hier',
        'mehr',
        'siehe',
        'dies',
        'das',
    },
}


def is_non_descriptive(text: str, lang: Optional[str]) -> bool:
    """Check link text against the phrase lists of its language and parents."""
    search_term = text.strip().lower()
    if not search_term:
        return False

    while lang:
        phrases = NON_DESCRIPTIVE_LINK_TEXTS.get(lang)
        if phrases and search_term in phrases:
            return True
        lang = lang[:lang.rfind('-')] if '-' in lang else ''

    return False


class LinkTextAudit(BaseAudit):
    id = "link-text"
    title = "Links have descriptive text"
    failure_title = "Links do not have descriptive text"
    required_artifacts = ("url", "anchor_elements")

    def _is_candidate(self, link: AnchorElement, final_displayed_url: str) -> bool:
        if not link.href or 'nofollow' in link.rel.split():
            return False

        href = link.href.lower()
        if href.startswith('javascript:') or href.startswith('mailto:'):
            return False

        # Anchor links within the displayed page
        if equal_with_excluded_fragments(link.href, final_displayed_url):
            return False

        return True

    def audit(self, artifacts, context) -> AuditResult:
        anchors = artifacts["anchor_elements"]
        if anchors is None:
            raise ValueError("AnchorElements artifact was not gathered")

        final_displayed_url = artifacts["url"].final_displayed_url
        failing_links = [
            {'href': link.href, 'text': link.text.strip()}
            for link in anchors
            if self._is_candidate(link, final_displayed_url)
            and is_non_descriptive(link.text, link.text_lang)
        ]

        headings = [
            {'key': 'href', 'value_type': 'url', 'label': 'Link destination'},
            {'key': 'text', 'value_type': 'text', 'label': 'Link Text'},
        ]

        display_value = None
        if failing_links:
            count = len(failing_links)
            display_value = "1 link found" if count == 1 else f"{count} links found"

        result = self._create_result(
            score=0.0 if failing_links else 1.0,
            display_value=display_value,
            details=make_table_details(headings, failing_links),
        )
        if failing_links:
            result.title = self.failure_title
        return result

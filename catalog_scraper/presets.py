"""
Catalog Presets
===============
Selector schemas for every rung of the retry ladder, plus the selector
fallback chains used by link discovery.

The product pages come in several templates. The structured schema targets
the current template; the legacy and compact schemas target older page
layouts; the last two rungs give up on structure and keep raw text.
"""

from .schema import Collection, ExpandablePanel, Scalar, Schema, Slide

# ---------------------------------------------------------------------------
# Catalog entry points
# ---------------------------------------------------------------------------
CATALOG_ORIGIN = "https://www.cisco.com"
INDEX_URL = f"{CATALOG_ORIGIN}/c/en/us/products/a-to-z-series-index.html"
CATEGORIES_URL = f"{CATALOG_ORIGIN}/c/en/us/products/index.html"

# ---------------------------------------------------------------------------
# Link discovery fallback chains (tried in order, first hit wins)
# ---------------------------------------------------------------------------
INDEX_LINK_SELECTORS = (
    '.list-section a',
    '#fw-content .list-section a[href]',
)

CATEGORY_LINK_SELECTORS = (
    '.cds-c-product-categories a.cmp-teaser__action-link',
    '.cmp-category-list a[href]',
    '#fw-content .col a[href*="/products/"]',
)

PRODUCT_LINK_SELECTORS = (
    '.cds-c-product-list .cmp-teaser__title a',
    '.cmp-list__item a.cmp-list__item-link',
    '.list-section a',
    '#fw-content a[href*="/products/"]',
)

INTERNAL_LINK_SELECTORS = (
    '.cds-c-resources a[href]',
    '#resources a[href]',
    '.cmp-tabs__tabpanel a[href*="/collateral/"]',
    '.dmc-list-item a[href]',
)

# Known content containers on document pages, most specific first
CONTENT_CONTAINER_SELECTORS = ('#fw-content', '#fw-c-content')


# ---------------------------------------------------------------------------
# Tier 0 - current product template
# ---------------------------------------------------------------------------
STRUCTURED_SCHEMA = Schema('structured', {
    'pre_title': Scalar('.cds-c-hero .cmp-teaser__pretitle'),
    'title': Scalar('.cds-c-hero .cmp-teaser__title'),
    'subtitle': Scalar('.cds-c-hero .cmp-teaser__description p'),
    'description': Scalar('.cds-c-detailblock__description p'),
    'benefits': Collection(
        container='.cds-c-detailblock__benefits-wrap .cds-c-cards',
        fields={
            'title': Scalar('.cds-c-cards__wrapper .cmp-teaser__title'),
            'description': Scalar('.cds-c-cards__wrapper .cmp-teaser__description p'),
        },
    ),
    'data_modals': ExpandablePanel(
        trigger='.cmp-accordion__desktop-button-wrapper .cmp-accordion__desktop-button',
        fields={
            'title': Scalar('.cmp-accordion__item .cmp-teaser__title'),
            'content': Scalar('.cmp-accordion__item .cmp-teaser__description'),
        },
    ),
    'overview': Collection(
        container='.cds-c-detailblock__benefits-wrap .cmp-accordion .cmp-accordion__item',
        fields={
            'title': Scalar('.cmp-accordion__title'),
            'content': Scalar('.cmp-text p'),
        },
    ),
    'product_list': Slide(
        container='.cds-model-comparison-carousel__slide-wrapper',
        slide='.cds-c-model-comparison-carousel__slide',
        fields={
            'name': Scalar('.cds-c-product-detail-card__model-name'),
            'description': Scalar('.cds-c-product-detail-card__model-description ul'),
        },
    ),
    'integrations': Collection(
        container='#container-integrations .cds-c-cards',
        fields={
            'title': Scalar('.cmp-teaser__title'),
            'description': Scalar('.cmp-teaser__description p'),
        },
    ),
})

# ---------------------------------------------------------------------------
# Tier 1 - legacy product template
# ---------------------------------------------------------------------------
LEGACY_SCHEMA = Schema('legacy', {
    'pre_title': Scalar('#fw-pagetitle'),
    'title': Scalar('.info-content h2'),
    'subtitle': Scalar('.compact .large compact'),
    'description': Scalar('.info-content .info-description'),
    'benefits': Collection(
        container='#benefits',
        fields={
            'title': Scalar('.rte-txt h3'),
            'description': Scalar('.rte-txt p'),
        },
    ),
    'data_modals': ExpandablePanel(
        trigger='#models .rte-txt',
        fields={
            'title': Scalar('h3'),
            'content': Scalar('li'),
        },
    ),
    'features': Collection(
        container='#features .dm0',
        fields={
            'title': Scalar('.sl-title'),
            'description': Scalar('p'),
        },
    ),
    'resources': Collection(
        container='#resources .dmc-list-item',
        fields={
            'title': Scalar('li a'),
            'url': Scalar('li a[href]', attribute='href'),
        },
    ),
})

# ---------------------------------------------------------------------------
# Tier 2 - compact product template
# ---------------------------------------------------------------------------
COMPACT_SCHEMA = Schema('compact', {
    'pre_title': Scalar('#fw-pagetitle'),
    'title': Scalar('#fw-pagetitle'),
    'subtitle': Scalar('.info-description'),
    'description': Scalar('.dmc-text'),
    'benefits': Collection(
        container='#benefits',
        fields={
            'description': Scalar('p'),
        },
    ),
    'data_modals': ExpandablePanel(
        trigger='#models',
        fields={
            'title': Scalar('h3'),
            'content': Scalar('li'),
        },
    ),
    'features': Collection(
        container='#features',
        fields={
            'title': Scalar('h3'),
            'description': Scalar('p'),
        },
    ),
    'resources': Collection(
        container='#resources',
        fields={
            'title': Scalar('li a'),
            'url': Scalar('li a[href]', attribute='href'),
        },
    ),
    'listing': Collection(
        container='.combination-listing',
        fields={
            'title': Scalar('.contentLink'),
            'url': Scalar('.contentLink[href]', attribute='href'),
        },
    ),
    'other_description': Scalar('.mlb-pilot p'),
    'table_content': Scalar('.table-columns p'),
})

# ---------------------------------------------------------------------------
# Tier 3 / 4 - raw text
# ---------------------------------------------------------------------------
# Raw text keeps one line per text block
BLOCK_TEXT_SEPARATOR = '\n'

CONTENT_CONTAINER_SCHEMA = Schema('content-container', {
    'content': Scalar(
        CONTENT_CONTAINER_SELECTORS[0],
        fallbacks=CONTENT_CONTAINER_SELECTORS[1:],
        separator=BLOCK_TEXT_SEPARATOR,
    ),
})

PAGE_BODY_SCHEMA = Schema('page-body', {
    'content': Scalar('body', separator=BLOCK_TEXT_SEPARATOR),
})

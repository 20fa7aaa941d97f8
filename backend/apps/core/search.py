"""
Read side of the search index.

Documents are written by ``apps.core.tasks.reindex_search``; this module
only queries them and groups the hits the way the storefront shows them.
"""

from django.db.models import Q

from .models import SearchDocument

# Response key -> indexed model
SEARCH_GROUPS = (
    ('products', 'products.Product'),
    ('pages', 'pages.Page'),
    ('categories', 'products.Category'),
)


def search_documents(query, limit=10, search_pages=True, search_categories=True):
    """
    Return up to ``limit`` hits per group for ``query``.

    Every whitespace separated term must appear in the title, slug or
    content of a document. A blank query matches nothing.
    """
    results = {group: [] for group, _ in SEARCH_GROUPS}
    terms = query.split()
    if not terms:
        return results

    condition = Q()
    for term in terms:
        condition &= (
            Q(title__icontains=term)
            | Q(slug__icontains=term)
            | Q(content__icontains=term)
        )

    skipped = set()
    if not search_pages:
        skipped.add('pages')
    if not search_categories:
        skipped.add('categories')

    for group, model_label in SEARCH_GROUPS:
        if group in skipped:
            continue
        documents = (
            SearchDocument.objects
            .filter(condition, model_label=model_label)
            .order_by('title', 'object_id')[:limit]
        )
        results[group] = [
            {
                'id': document.object_id,
                'title': document.title,
                'slug': document.slug,
                'url': document.url,
            }
            for document in documents
        ]
    return results

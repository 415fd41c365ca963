# storefront/core/pagination.py
import math
from typing import Sequence, Tuple, TypeVar

from storefront.schemas.common import PagedResult

T = TypeVar("T")

MAX_PAGE_SIZE = 100


def normalize(page: int, page_size: int) -> Tuple[int, int]:
    """(page, page_size) -> (skip, take). Nunca falha: valores fora da faixa são ajustados."""
    page = max(1, page)
    take = max(1, min(page_size, MAX_PAGE_SIZE))
    return (page - 1) * take, take


def build_link_header(page: int, page_size: int, total_count: int, base_url: str) -> str:
    """
    Header `Link` no estilo RFC 5988:
    <url?page=1&pageSize=10>; rel="prev", <...>; rel="first", ...
    """
    page = max(1, page)
    _, page_size = normalize(page, page_size)
    total_pages = math.ceil(max(0, total_count) / page_size)
    sep = "&" if "?" in base_url else "?"

    def link(p: int, rel: str) -> str:
        return f'<{base_url}{sep}page={p}&pageSize={page_size}>; rel="{rel}"'

    links = []
    if page > 1:
        links.append(link(page - 1, "prev"))
        links.append(link(1, "first"))
    if page < total_pages:
        links.append(link(page + 1, "next"))
        links.append(link(total_pages, "last"))
    return ", ".join(links)


def create_paged_result(items: Sequence[T], total_count: int, page: int, page_size: int) -> PagedResult[T]:
    _, take = normalize(page, page_size)
    return PagedResult(
        items=list(items)[:take],
        total_count=max(0, total_count),
        page=max(1, page),
        page_size=take,
    )

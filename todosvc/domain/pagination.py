DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = 10


def normalize_page(page: int | None, page_size: int | None) -> tuple[int, int]:
    """
    Normalizuje parametry paginacji (bez zgłaszania błędów).

    - `page` < 1 (lub brak) -> 1
    - `page_size` <= 0 (lub brak) -> 10

    Ta sama reguła obowiązuje w repozytoriach i we wszystkich adapterach,
    więc każdy protokół zwraca identyczne `page`/`page_size`.
    """
    if page is None or page < 1:
        page = DEFAULT_PAGE
    if page_size is None or page_size <= 0:
        page_size = DEFAULT_PAGE_SIZE
    return page, page_size


def page_offset(page: int, page_size: int) -> int:
    return (page - 1) * page_size

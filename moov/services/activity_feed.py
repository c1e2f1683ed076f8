"""
Activity feed pager - accumulates pages of the public feed on the client side
"""
import logging
from typing import Callable, List

from moov.schemas.watch_log import ActivityFeedPage, ActivityItem

logger = logging.getLogger(__name__)

ITEMS_PER_PAGE = 20

PageFetcher = Callable[[int, int], ActivityFeedPage]  # (limit, offset) -> page


class ActivityFeedPager:
    """
    Accumulates feed pages fetched on explicit "load more" requests.

    Each fetch starts at the number of items already held. New public logs
    shift the underlying offsets between fetches, so a page may repeat items
    that were already loaded; those are dropped by watch log id. A page that
    brings nothing new moves the next fetch one page further, so rows the
    server leaves out of a page cannot stall the pager.

    Usage:
        pager = ActivityFeedPager(lambda limit, offset: client_fetch(limit, offset))
        pager.load_more()
        while pager.has_more:
            pager.load_more()
    """

    def __init__(self, fetch_page: PageFetcher, page_size: int = ITEMS_PER_PAGE):
        self._fetch_page = fetch_page
        self.page_size = page_size
        self.reset()

    def reset(self) -> None:
        self.items: List[ActivityItem] = []
        self._seen_ids = set()
        self.has_more = True
        self.pages_loaded = 0
        self._skipped = 0

    @property
    def exhausted(self) -> bool:
        """True once a page reported that nothing follows it"""
        return not self.has_more

    def load_more(self) -> List[ActivityItem]:
        """Fetch the next page and return only the items that were new"""
        if self.exhausted:
            return []

        page = self._fetch_page(self.page_size, len(self.items) + self._skipped)

        added = []
        for item in page.activities:
            if item.log.id in self._seen_ids:
                continue
            self._seen_ids.add(item.log.id)
            added.append(item)

        self.items.extend(added)
        self._skipped = 0 if added else self._skipped + self.page_size
        self.has_more = page.has_more
        self.pages_loaded += 1
        logger.debug(f"Feed page {self.pages_loaded}: {len(added)} new of {len(page.activities)}, has_more={page.has_more}")
        return added

"""Extraction strategies. Importing this package registers every strategy."""

from encore.scrapers.api_endpoint import ApiEndpointStrategy  # noqa: F401
from encore.scrapers.direct_list import DirectListStrategy  # noqa: F401
from encore.scrapers.list_page import ListPageStrategy  # noqa: F401

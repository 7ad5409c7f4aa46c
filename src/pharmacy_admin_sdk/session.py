from __future__ import annotations

from concurrent.futures import Executor
from dataclasses import dataclass, field

from .clients.customers_client import CustomersClient
from .clients.dashboard_client import DashboardClient
from .clients.orders_client import OrdersClient
from .clients.prescriptions_client import PrescriptionsClient
from .clients.products_client import ProductsClient
from .config import ClientConfig
from .filter_store import FilterStore
from .http_client import HttpClient
from .list_cache import RemoteListCache
from .notifications import NotificationCenter
from .optimistic import OptimisticMutationExecutor


@dataclass
class AdminSession:
    """Everything one admin front end shares: one cache, one toast queue."""

    config: ClientConfig
    token: str | None = None
    background: Executor | None = None
    http: HttpClient | None = None
    cache: RemoteListCache | None = None
    notifications: NotificationCenter = field(default_factory=NotificationCenter)
    filter_store: FilterStore | None = None
    mutations: OptimisticMutationExecutor | None = None

    def __post_init__(self) -> None:
        self.http = self.http or HttpClient(config=self.config)
        self.cache = self.cache or RemoteListCache(
            stale_after_seconds=self.config.cache_stale_seconds,
            executor=self.background,
        )
        self.filter_store = self.filter_store or FilterStore()
        self.mutations = self.mutations or OptimisticMutationExecutor(self.cache, self.notifications)

    def products_client(self) -> ProductsClient:
        return ProductsClient(http=self.http, access_token=self.token)

    def orders_client(self) -> OrdersClient:
        return OrdersClient(http=self.http, access_token=self.token)

    def customers_client(self) -> CustomersClient:
        return CustomersClient(http=self.http, access_token=self.token)

    def prescriptions_client(self) -> PrescriptionsClient:
        return PrescriptionsClient(http=self.http, access_token=self.token)

    def dashboard_client(self) -> DashboardClient:
        return DashboardClient(http=self.http, access_token=self.token)

    def establish(self, token: str) -> None:
        self.token = token

    def clear(self) -> None:
        self.token = None
        self.cache.clear()
        self.notifications.clear()

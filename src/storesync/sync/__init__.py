from .aggregates import AggregateDeriver, AggregateSnapshot, extremal_item
from .controller import SyncController
from .observable import Observable, Subscription
from .paging import PageWindow
from .retry import BackoffRetrier, RetryState
from .store import AccumulatorStore, StoreState

__all__ = [
    "AggregateDeriver",
    "AggregateSnapshot",
    "extremal_item",
    "SyncController",
    "Observable",
    "Subscription",
    "PageWindow",
    "BackoffRetrier",
    "RetryState",
    "AccumulatorStore",
    "StoreState",
]

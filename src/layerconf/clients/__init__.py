from layerconf.clients.http_store import HttpRowStore, RetryableFetchError, rows_from_payload

__all__ = ["HttpRowStore", "RetryableFetchError", "rows_from_payload"]

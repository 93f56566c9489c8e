"""
Counter/KV cache backends.

- NoopCacheStore: always-miss store used when no cache URL is configured
- MemoryCacheStore: in-process TTL store
- RedisCacheStore: pooled redis client
"""
